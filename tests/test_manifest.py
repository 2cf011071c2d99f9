from unittest import TestCase, main
from parameterized import parameterized
from epubgen.manifest import build_manifest, spine, spine_chapters
from epubgen.model import FetchStatus, Resource, ResourceKind
from epubgen.normalize import normalize

CONTENT = [
    {"title": "Title page", "content": "", "beforeToc": True,
     "excludeFromToc": True},
    {"title": "One", "content": ""},
    {"title": "Dedication", "content": "", "beforeToc": True},
    {"title": "Two", "content": "", "excludeFromToc": True},
]


def resource(source, kind, filename, media_type):
    return Resource(source, kind, filename, media_type, b"x",
                    FetchStatus.SUCCEEDED)


RESOURCES = {
    "c": resource("c", ResourceKind.COVER, "images/cover.jpg", "image/jpeg"),
    "f": resource("f", ResourceKind.FONT, "fonts/serif.ttf", "font/ttf"),
    "i": resource("i", ResourceKind.IMAGE, "images/image_00000.png",
                  "image/png"),
    "x": Resource("x", ResourceKind.IMAGE, "images/image_00001",
                  status=FetchStatus.FAILED),
}


class TestManifest(TestCase):
    def test_spine_chapters(self):
        _, chapters = normalize({"title": "A"}, CONTENT)
        self.assertEqual([c.title for c in spine_chapters(chapters)],
                         ["Title page", "Dedication", "One", "Two"])

    @parameterized.expand([
        ["tocintoc", True,
         ["chapter-00000", "chapter-00002", "toc", "chapter-00001",
          "chapter-00003"]],
        ["tocnotintoc", False,
         ["chapter-00000", "chapter-00002", "chapter-00001",
          "chapter-00003"]],
    ])
    def test_spine_order(self, _name, toc_in_toc, expected):
        options, chapters = normalize(
            {"title": "A", "tocInTOC": toc_in_toc}, CONTENT)
        items = build_manifest(options, chapters, {})

        self.assertEqual([item.id for item in spine(items)], expected)
        self.assertTrue(all(item.linear for item in spine(items)))

    def test_version_3_items(self):
        options, chapters = normalize({"title": "A"}, CONTENT)
        items = build_manifest(options, chapters, RESOURCES)

        self.assertEqual(
            [(item.id, item.href, item.media_type, item.properties)
             for item in items],
            [
                ("toc", "nav.xhtml", "application/xhtml+xml", "nav"),
                ("css", "style.css", "text/css", None),
                ("cover-page", "cover.xhtml", "application/xhtml+xml", None),
                ("cover-image", "images/cover.jpg", "image/jpeg",
                 "cover-image"),
                ("chapter-00000", "chapter-00000.xhtml",
                 "application/xhtml+xml", None),
                ("chapter-00001", "chapter-00001.xhtml",
                 "application/xhtml+xml", None),
                ("chapter-00002", "chapter-00002.xhtml",
                 "application/xhtml+xml", None),
                ("chapter-00003", "chapter-00003.xhtml",
                 "application/xhtml+xml", None),
                ("font-00000", "fonts/serif.ttf", "font/ttf", None),
                ("image-00000", "images/image_00000.png", "image/png", None),
            ]
        )

    def test_cover_page_is_not_linear(self):
        options, chapters = normalize({"title": "A"}, CONTENT)
        items = build_manifest(options, chapters, RESOURCES)

        first = spine(items)[0]
        self.assertEqual(first.id, "cover-page")
        self.assertFalse(first.linear)
        self.assertTrue(all(item.linear for item in spine(items)[1:]))

    def test_assets_are_not_in_spine(self):
        options, chapters = normalize({"title": "A"}, CONTENT)
        items = build_manifest(options, chapters, RESOURCES)

        in_spine = {item.id for item in items if item.in_spine}
        for item_id in ("css", "cover-image", "font-00000", "image-00000"):
            self.assertNotIn(item_id, in_spine)

    def test_version_2_items(self):
        options, chapters = normalize({"title": "A", "version": 2}, CONTENT)
        items = build_manifest(options, chapters, RESOURCES)

        self.assertEqual(items[0].id, "ncx")
        self.assertEqual(items[0].href, "toc.ncx")
        self.assertEqual(items[0].media_type, "application/x-dtbncx+xml")
        self.assertFalse(items[0].in_spine)
        self.assertEqual(items[1].href, "toc.xhtml")
        self.assertTrue(all(item.properties is None for item in items))

    def test_legacy_ncx(self):
        options, chapters = normalize(
            {"title": "A", "legacyNcx": True}, CONTENT)
        items = build_manifest(options, chapters, {})

        self.assertEqual([item.href for item in items[:2]],
                         ["toc.ncx", "nav.xhtml"])


if __name__ == '__main__':
    main()
