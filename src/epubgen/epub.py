"""The generation pipeline: normalize, fetch, assemble, package."""

import asyncio

import httpx

from epubgen.content import assemble, coverpage_xml
from epubgen.fetch import ResourceFetcher, collect_resources
from epubgen.manifest import build_manifest, cover_resource
from epubgen.model import ResourceKind, COVER_PAGE_NAME
from epubgen.normalize import normalize
from epubgen.opf import container_xml, package_opf_xml
from epubgen.packager import package
from epubgen.toc import build_navigation, landmark_entries
from epubgen.validate import check


class EPub:
    """Generate an EPUB archive from book options and chapters."""

    def __init__(self, options: dict, content: list[dict],
                 client: httpx.AsyncClient = None) -> None:
        check(options, content)
        self.options, self.chapters = normalize(options, content)
        self.client = client
        self.resources = {}

    async def fetch(self) -> None:
        """Fetch the cover, the fonts and the images of the chapters."""
        resources = collect_resources(self.options, self.chapters)
        if resources:
            self.options.sink.log(f"Fetching {len(resources)} resources")

        fetcher = ResourceFetcher(self.options, self.client)
        self.resources = await fetcher.fetch_all(resources)

        for font in self.options.fonts:
            resource = self.resources.get(font.url)
            if resource is not None and resource.succeeded:
                font.media_type = resource.media_type

    def assemble(self) -> bytes:
        """Build every document and return the EPUB archive."""
        options = self.options

        documents = {}
        cover = cover_resource(self.resources)
        if cover is not None:
            documents[COVER_PAGE_NAME] = coverpage_xml(options, cover)
        documents.update(assemble(options, self.chapters, self.resources))

        items = build_manifest(options, self.chapters, self.resources)
        landmarks = landmark_entries(options, self.chapters, cover is not None)
        navigation = build_navigation(options, self.chapters, landmarks)

        assets = {}
        for kind in (ResourceKind.COVER, ResourceKind.FONT, ResourceKind.IMAGE):
            for resource in self.resources.values():
                if resource.kind is kind and resource.succeeded:
                    assets[resource.filename] = resource.data

        epub = package(
            container_xml(),
            package_opf_xml(options, items, landmarks),
            navigation,
            documents,
            options.css,
            assets,
            items,
        )

        options.sink.log(
            f"Generated EPUB {options.version} with {len(self.chapters)}"
            f" chapters ({len(epub)} bytes)"
        )
        return epub

    async def render(self) -> bytes:
        """Fetch the resources then return the EPUB archive."""
        await self.fetch()
        return self.assemble()


async def generate(options: dict, content: list[dict],
                   client: httpx.AsyncClient = None) -> bytes:
    """Return an EPUB archive built from raw options and chapters."""
    return await EPub(options, content, client).render()


def generate_sync(options: dict, content: list[dict]) -> bytes:
    """Synchronous version of ``generate``."""
    return asyncio.run(generate(options, content))
