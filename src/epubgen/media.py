"""Media type inference for embedded resources."""

from io import BytesIO
from os.path import splitext
from urllib.parse import urlparse

from PIL import Image, UnidentifiedImageError

OCTET_STREAM = "application/octet-stream"

MEDIA_TYPES = {
    ".gif": "image/gif",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".css": "text/css",
    ".xhtml": "application/xhtml+xml",
}

EXTENSIONS = {
    "image/gif": ".gif",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/svg+xml": ".svg",
    "font/ttf": ".ttf",
    "font/otf": ".otf",
    "font/woff": ".woff",
    "font/woff2": ".woff2",
}


def get_mimetype(name: str) -> str:
    """Return the mimetype of a file or URL based on its extension."""
    path = urlparse(name).path if "://" in name else name
    _, extension = splitext(path)
    return MEDIA_TYPES.get(extension.lower(), OCTET_STREAM)


def get_extension(media_type: str) -> str:
    """Return the file extension for a mimetype, or an empty string."""
    return EXTENSIONS.get(media_type.lower(), "")


def content_type_mimetype(content_type: str) -> str:
    """Strip the parameters of a Content-Type header value."""
    return content_type.split(";", 1)[0].strip().lower()


def sniff_image_mimetype(data: bytes) -> str:
    """Guess the mimetype of image data by opening it with Pillow."""
    try:
        with Image.open(BytesIO(data)) as image:
            return Image.MIME.get(image.format, OCTET_STREAM)
    except (UnidentifiedImageError, OSError):
        return OCTET_STREAM


def resolve_mimetype(content_type: str, source: str, data: bytes) -> str:
    """
    Return the mimetype of fetched data: the declared content type first,
    then the source extension, then the image signature.
    """
    declared = content_type_mimetype(content_type or "")
    if declared and declared != OCTET_STREAM:
        return declared

    guessed = get_mimetype(source)
    if guessed != OCTET_STREAM:
        return guessed

    return sniff_image_mimetype(data)
