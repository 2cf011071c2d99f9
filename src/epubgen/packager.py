"""Serialize the package into an OCF (zip) archive held in memory."""

from io import BytesIO
from zipfile import ZipFile, ZipInfo, ZIP_DEFLATED, ZIP_STORED

from epubgen.errors import PackagingError
from epubgen.model import ManifestItem, CSS_NAME, OEBPS, OPF_NAME

MIMETYPE = b"application/epub+zip"

# Fixed timestamp so that identical books give identical archives
ENTRY_DATE = (1980, 1, 1, 0, 0, 0)


def epub_put(epub: ZipFile, filename: str, data) -> None:
    """Write a file to the EPUB archive."""
    if isinstance(data, str):
        data = data.encode("utf-8")

    info = ZipInfo(filename, date_time=ENTRY_DATE)
    info.external_attr = 0o644 << 16

    if filename == "mimetype":
        info.compress_type = ZIP_STORED
        epub.writestr(info, data)
    else:
        info.compress_type = ZIP_DEFLATED
        epub.writestr(info, data, ZIP_DEFLATED, 9)


def package(container: bytes, opf: bytes, navigation: dict[str, bytes],
            documents: dict[str, bytes], css: str,
            assets: dict[str, bytes], items: list[ManifestItem]) -> bytes:
    """
    Return the EPUB archive. Entries are written in this order: mimetype,
    container.xml, the OPF, navigation documents, XHTML documents, the
    stylesheet, then binary assets.
    """
    payloads = {}
    for group in (navigation, documents, {CSS_NAME: css}, assets):
        for name, data in group.items():
            if name in payloads or name == OPF_NAME:
                raise PackagingError(f"Duplicate entry {name}")
            payloads[name] = data

    for item in items:
        if item.href not in payloads:
            raise PackagingError(
                f"Manifest item {item.id} ({item.href}) has no content")

    output = BytesIO()
    with ZipFile(output, "w") as epub:
        # First, write the mimetype
        epub_put(epub, "mimetype", MIMETYPE)

        # Then, the file container.xml which just points to content.opf
        epub_put(epub, "META-INF/container.xml", container)

        # Then, the content.opf file itself
        epub_put(epub, f"{OEBPS}/{OPF_NAME}", opf)

        for name, data in payloads.items():
            epub_put(epub, f"{OEBPS}/{name}", data)

    return output.getvalue()
