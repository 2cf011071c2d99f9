from io import BytesIO
from unittest import IsolatedAsyncioTestCase, main
from xml.dom.minidom import parseString
from zipfile import ZipFile, ZIP_STORED
from parameterized import parameterized
import httpx
from epubgen import EPub, generate
from epubgen.errors import (
    ConfigurationError, DownloadError, PackagingError, ValidationError
)
from epubgen.manifest import build_manifest
from epubgen.packager import package

PNG = b"\x89PNG\r\n\x1a\nfake"

ALICE = {
    "title": "Alice",
    "author": "Lewis Carroll",
    "date": "2020-01-01T00:00:00Z",
    "version": 3,
    "landmarks": {"bodyMatter": 1, "titlePage": 0},
}

CHAPTERS = [
    {"title": "Title page", "content": "<p>Alice</p>", "beforeToc": True},
    {"title": "Down the Rabbit-Hole",
     "content": '<p>Alice <img src="https://x/rabbit.png"></p>'},
    {"title": "The Pool of Tears", "content": "<p>Curiouser</p>",
     "excludeFromToc": True},
]


def images(request):
    return httpx.Response(200, content=PNG,
                          headers={"Content-Type": "image/png"})


def unreachable(request):
    return httpx.Response(500)


class TestEPub(IsolatedAsyncioTestCase):
    async def render(self, options, content=CHAPTERS, handler=images):
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            return await generate(options, content, client)

    async def test_mimetype_is_first_and_stored(self):
        epub = await self.render(ALICE)

        with ZipFile(BytesIO(epub)) as archive:
            first = archive.infolist()[0]
            self.assertEqual(first.filename, "mimetype")
            self.assertEqual(first.compress_type, ZIP_STORED)
            self.assertEqual(archive.read("mimetype"), b"application/epub+zip")

    async def test_layout(self):
        epub = await self.render(dict(ALICE, cover="https://x/cover.png"))

        with ZipFile(BytesIO(epub)) as archive:
            self.assertEqual(archive.namelist(), [
                "mimetype",
                "META-INF/container.xml",
                "OEBPS/content.opf",
                "OEBPS/nav.xhtml",
                "OEBPS/cover.xhtml",
                "OEBPS/chapter-00000.xhtml",
                "OEBPS/chapter-00001.xhtml",
                "OEBPS/chapter-00002.xhtml",
                "OEBPS/style.css",
                "OEBPS/images/cover.png",
                "OEBPS/images/image_00000.png",
            ])

            container = parseString(archive.read("META-INF/container.xml"))
            rootfile = container.getElementsByTagName("rootfile")[0]
            self.assertEqual(rootfile.getAttribute("full-path"),
                             "OEBPS/content.opf")

            chapter = archive.read("OEBPS/chapter-00001.xhtml").decode("utf-8")
            self.assertIn('src="images/image_00000.png"', chapter)
            self.assertEqual(archive.read("OEBPS/images/image_00000.png"), PNG)

    async def test_alice_with_landmarks(self):
        epub = await self.render(ALICE)

        with ZipFile(BytesIO(epub)) as archive:
            opf = parseString(archive.read("OEBPS/content.opf"))
            nav = parseString(archive.read("OEBPS/nav.xhtml"))

        items = {item.getAttribute("href"): item
                 for item in opf.getElementsByTagName("item")}
        self.assertEqual(items["nav.xhtml"].getAttribute("properties"), "nav")
        self.assertNotIn("toc.ncx", items)

        spine = opf.getElementsByTagName("spine")[0]
        self.assertFalse(spine.hasAttribute("toc"))
        self.assertEqual(
            [ref.getAttribute("idref")
             for ref in spine.getElementsByTagName("itemref")],
            ["chapter-00000", "toc", "chapter-00001", "chapter-00002"]
        )

        landmarks = [n for n in nav.getElementsByTagName("nav")
                     if n.getAttribute("epub:type") == "landmarks"][0]
        entries = {a.getAttribute("epub:type"): a.getAttribute("href")
                   for a in landmarks.getElementsByTagName("a")}
        self.assertEqual(entries["titlepage"],
                         items["chapter-00000.xhtml"].getAttribute("href"))
        self.assertEqual(entries["bodymatter"],
                         items["chapter-00001.xhtml"].getAttribute("href"))

        toc = [n for n in nav.getElementsByTagName("nav")
               if n.getAttribute("epub:type") == "toc"][0]
        self.assertNotIn("chapter-00002.xhtml", [
            a.getAttribute("href") for a in toc.getElementsByTagName("a")
        ])

    async def test_metadata(self):
        epub = await self.render(dict(ALICE, publisher="Macmillan",
                                      description="A girl falls"))

        with ZipFile(BytesIO(epub)) as archive:
            opf = parseString(archive.read("OEBPS/content.opf"))

        package_element = opf.documentElement
        self.assertEqual(package_element.getAttribute("version"), "3.0")
        self.assertEqual(package_element.getAttribute("unique-identifier"),
                         "BookId")

        def text(tag):
            return opf.getElementsByTagName(tag)[0].firstChild.data

        self.assertEqual(text("dc:title"), "Alice")
        self.assertEqual(text("dc:creator"), "Lewis Carroll")
        self.assertEqual(text("dc:publisher"), "Macmillan")
        self.assertEqual(text("dc:description"), "A girl falls")
        self.assertEqual(text("dc:language"), "en")
        self.assertTrue(text("dc:identifier").startswith("urn:uuid:"))

        modified = [m for m in opf.getElementsByTagName("meta")
                    if m.getAttribute("property") == "dcterms:modified"]
        self.assertEqual(modified[0].firstChild.data, "2020-01-01T00:00:00Z")

    @parameterized.expand([
        ["tocintoc", True, ["chapter-00000", "toc", "chapter-00001",
                            "chapter-00002"]],
        ["tocnotintoc", False, ["chapter-00000", "chapter-00001",
                                "chapter-00002"]],
    ])
    async def test_version_2(self, _name, toc_in_toc, expected_spine):
        options = dict(ALICE, version=2, tocInTOC=toc_in_toc,
                       cover="https://x/cover.png")
        epub = await self.render(options)

        with ZipFile(BytesIO(epub)) as archive:
            names = archive.namelist()
            opf = parseString(archive.read("OEBPS/content.opf"))

        self.assertIn("OEBPS/toc.ncx", names)
        self.assertIn("OEBPS/toc.xhtml", names)
        self.assertNotIn("OEBPS/nav.xhtml", names)

        spine = opf.getElementsByTagName("spine")[0]
        self.assertEqual(spine.getAttribute("toc"), "ncx")
        refs = spine.getElementsByTagName("itemref")
        self.assertEqual(
            [r.getAttribute("idref") for r in refs
             if r.getAttribute("linear") == "yes"],
            expected_spine
        )

        guide = {ref.getAttribute("type"): ref.getAttribute("href")
                 for ref in opf.getElementsByTagName("reference")}
        self.assertEqual(guide, {"title-page": "chapter-00000.xhtml",
                                 "text": "chapter-00001.xhtml"})

    async def test_identical_input_gives_identical_archives(self):
        first = await self.render(ALICE)
        second = await self.render(ALICE)
        self.assertEqual(first, second)

    async def test_undated_books_are_identical(self):
        options = {"title": "Alice", "author": "Lewis Carroll"}
        first = await self.render(options)
        second = await self.render(options)

        self.assertEqual(first, second)

        with ZipFile(BytesIO(first)) as archive:
            opf = parseString(archive.read("OEBPS/content.opf"))

        self.assertEqual(
            opf.getElementsByTagName("dc:date")[0].firstChild.data,
            "1980-01-01T00:00:00Z"
        )

    async def test_failed_download_is_fatal(self):
        with self.assertRaises(DownloadError) as context:
            await self.render(dict(ALICE, retryTimes=1), handler=unreachable)

        self.assertEqual(context.exception.references,
                         ["https://x/rabbit.png"])

    async def test_failed_download_is_ignored(self):
        options = dict(ALICE, retryTimes=1, ignoreFailedDownloads=True)
        epub = await self.render(options, handler=unreachable)

        with ZipFile(BytesIO(epub)) as archive:
            chapter = archive.read("OEBPS/chapter-00001.xhtml").decode("utf-8")
            names = archive.namelist()

        self.assertNotIn("<img", chapter)
        self.assertNotIn("rabbit.png", chapter)
        self.assertFalse(any(name.startswith("OEBPS/images/")
                             for name in names))

    def test_invalid_input(self):
        with self.assertRaises(ValidationError):
            EPub({"title": "Alice", "version": 4}, CHAPTERS)

    def test_landmark_out_of_range(self):
        with self.assertRaises(ConfigurationError) as context:
            EPub(dict(ALICE, landmarks={"bodyMatter": 3}), CHAPTERS)

        self.assertEqual(context.exception.field, "landmarks.bodyMatter")

    def test_packaging_checks_the_manifest(self):
        book = EPub({"title": "Alice"}, [{"content": "<p>x</p>"}])
        items = build_manifest(book.options, book.chapters, {})

        with self.assertRaises(PackagingError):
            package(b"", b"", {}, {}, "", {}, items)


if __name__ == '__main__':
    main()
