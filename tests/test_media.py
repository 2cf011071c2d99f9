from io import BytesIO
from unittest import TestCase, main
from parameterized import parameterized
from PIL import Image
from epubgen.media import (
    get_mimetype, get_extension, content_type_mimetype, sniff_image_mimetype,
    resolve_mimetype
)


def png_bytes() -> bytes:
    output = BytesIO()
    Image.new(mode="RGB", size=(4, 4), color="red").save(output, "PNG")
    return output.getvalue()


class TestMedia(TestCase):
    @parameterized.expand([
        ["png", "example/toto.png", "image/png"],
        ["jpg", "example/toto.jpg", "image/jpeg"],
        ["jpeg", "example/toto.jpeg", "image/jpeg"],
        ["uppercase", "example/TOTO.JPG", "image/jpeg"],
        ["empty", "", "application/octet-stream"],
        ["gif", "example/toto.gif", "image/gif"],
        ["gifjpeg", "example/toto.gif.jpeg", "image/jpeg"],
        ["noextension", "example.example/toto", "application/octet-stream"],
        ["ttf", "fonts/Merriweather.ttf", "font/ttf"],
        ["woff2", "fonts/Merriweather.woff2", "font/woff2"],
        ["url", "https://example.com/a/b.png?size=large", "image/png"],
        ["urlhost", "https://example.png/picture", "application/octet-stream"],
    ])
    def test_get_mimetype(self, _name, filepath, expected):
        self.assertEqual(get_mimetype(filepath), expected)

    @parameterized.expand([
        ["jpeg", "image/jpeg", ".jpg"],
        ["case", "IMAGE/PNG", ".png"],
        ["svg", "image/svg+xml", ".svg"],
        ["unknown", "application/pdf", ""],
    ])
    def test_get_extension(self, _name, media_type, expected):
        self.assertEqual(get_extension(media_type), expected)

    def test_content_type_parameters_are_stripped(self):
        self.assertEqual(
            content_type_mimetype("Image/PNG; charset=binary"), "image/png")

    def test_sniff_image(self):
        self.assertEqual(sniff_image_mimetype(png_bytes()), "image/png")
        self.assertEqual(sniff_image_mimetype(b"not an image"),
                         "application/octet-stream")

    @parameterized.expand([
        ["declared", "image/gif", "https://example.com/a.png", "image/gif"],
        ["extension", "", "https://example.com/a.png", "image/png"],
        ["octet", "application/octet-stream", "https://example.com/a.jpg",
         "image/jpeg"],
        ["sniffed", "", "https://example.com/picture", "image/png"],
    ])
    def test_resolve_mimetype(self, _name, content_type, source, expected):
        self.assertEqual(
            resolve_mimetype(content_type, source, png_bytes()), expected)


if __name__ == '__main__':
    main()
