"""
Fetch every resource referenced by the book.

Resources are fetched at most ``batch_size`` at a time: as soon as one fetch
finishes, the next pending one starts. Each attempt is bounded by
``fetch_timeout`` and failed attempts are retried ``retry_times`` times.
"""

import asyncio
from base64 import b64decode
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx
from bs4 import BeautifulSoup

from epubgen.errors import DownloadError
from epubgen.media import get_extension, get_mimetype, resolve_mimetype
from epubgen.model import (
    FetchStatus, NormChapter, NormOptions, Resource, ResourceKind,
    FONTS_DIR, IMAGES_DIR
)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_10_1) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/39.0.2171.95 Safari/537.36"
)

RETRY_ERRORS = (httpx.HTTPError, asyncio.TimeoutError, OSError, ValueError)


def is_remote(source: str) -> bool:
    """Tell if a reference is an HTTP(S) URL."""
    return source.lower().startswith(("http://", "https://"))


def is_data_url(source: str) -> bool:
    return source.lower().startswith("data:")


def is_candidate(source: str) -> bool:
    """Tell if an image reference has to be fetched and embedded."""
    return is_remote(source) or is_data_url(source)


def parse_data_url(source: str) -> tuple[bytes, str]:
    """Decode a data: URL into its payload and declared mimetype."""
    header, separator, data = source.partition(",")
    if not separator:
        raise ValueError("malformed data URL")

    meta = header[5:]
    mime, _, encoding = meta.partition(";")
    if encoding.lower() == "base64":
        return b64decode(data, validate=True), mime

    return unquote(data).encode("utf-8"), mime


def image_sources(html: str) -> list[str]:
    """Return the sources of the images of an HTML fragment to embed."""
    soup = BeautifulSoup(html, "html.parser")
    return [
        img["src"].strip()
        for img in soup.find_all("img", src=True)
        if is_candidate(img["src"].strip())
    ]


def collected(resources: dict[str, Resource], source: str,
              kind: ResourceKind, sink) -> bool:
    """
    Tell if a reference was already collected. A reference shared by a font
    and an image keeps its first use, with a warning.
    """
    existing = resources.get(source)
    if existing is None:
        return False

    kinds = (existing.kind, kind)
    if existing.kind is not kind and ResourceKind.FONT in kinds:
        sink.warn(
            f"{source} is used as {existing.kind.value} and as {kind.value},"
            f" keeping {existing.filename}"
        )

    return True


def collect_resources(options: NormOptions,
                      chapters: list[NormChapter]) -> dict[str, Resource]:
    """
    Return every resource of the book keyed by its reference, each
    reference appearing once: cover first, then fonts, then chapter images
    in reading order.
    """
    resources = {}

    if options.cover:
        resources[options.cover] = Resource(
            source=options.cover,
            kind=ResourceKind.COVER,
            filename=f"{IMAGES_DIR}/cover",
        )

    for font in options.fonts:
        if collected(resources, font.url, ResourceKind.FONT, options.sink):
            continue

        resources[font.url] = Resource(
            source=font.url,
            kind=ResourceKind.FONT,
            filename=f"{FONTS_DIR}/{font.filename}",
        )

    count = 0
    for chapter in chapters:
        for source in image_sources(chapter.content):
            if collected(resources, source, ResourceKind.IMAGE, options.sink):
                continue

            resources[source] = Resource(
                source=source,
                kind=ResourceKind.IMAGE,
                filename=f"{IMAGES_DIR}/image_{count:05d}",
            )
            count += 1

    return resources


class ResourceFetcher:
    """Fetch resources concurrently with retries and a failure policy."""

    def __init__(self, options: NormOptions, client: httpx.AsyncClient = None,
                 backoff: float = 0.5) -> None:
        self.options = options
        self.sink = options.sink
        self.client = client
        self.backoff = backoff
        self.aborted = False

    async def fetch_all(
            self, resources: dict[str, Resource]) -> dict[str, Resource]:
        """
        Fetch every pending resource and return the same mapping with
        payloads filled in. Raise a DownloadError if a fetch failed and
        failures are not ignored.
        """
        pending = [r for r in resources.values()
                   if r.status is FetchStatus.PENDING]
        if not pending:
            return resources

        self.aborted = False
        semaphore = asyncio.Semaphore(self.options.batch_size)

        if self.client is not None:
            await self._gather(self.client, semaphore, pending)
        else:
            async with httpx.AsyncClient(
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                timeout=httpx.Timeout(self.options.fetch_timeout),
            ) as client:
                await self._gather(client, semaphore, pending)

        failed = [r for r in pending
                  if r.status is FetchStatus.FAILED and r.error is not None]
        if failed and not self.options.ignore_failed_downloads:
            raise DownloadError(
                [r.source for r in failed],
                {r.source: r.error for r in failed if r.error is not None}
            )

        return resources

    async def _gather(self, client, semaphore, pending) -> None:
        await asyncio.gather(*(
            self._fetch(client, semaphore, resource) for resource in pending
        ))

    async def _fetch(self, client: httpx.AsyncClient,
                     semaphore: asyncio.Semaphore, resource: Resource) -> None:
        """Fetch one resource, retrying failed attempts."""
        async with semaphore:
            attempts = self.options.retry_times + 1
            for attempt in range(attempts):
                if self.aborted:
                    resource.status = FetchStatus.FAILED
                    return

                try:
                    data, content_type = await asyncio.wait_for(
                        self._download(client, resource.source),
                        self.options.fetch_timeout
                    )
                except RETRY_ERRORS as error:
                    resource.error = error
                    if attempt + 1 < attempts and not self.aborted:
                        self.sink.log(
                            f"Failed to fetch {resource.source} ({error!r}),"
                            f" retrying ({attempt + 1}/{attempts - 1})"
                        )
                        await asyncio.sleep(self.backoff * 2 ** attempt)
                    continue

                self._succeed(resource, data, content_type)
                return

            resource.status = FetchStatus.FAILED
            if self.options.ignore_failed_downloads:
                self.sink.warn(
                    f"Ignoring {resource.source} after {attempts} attempts:"
                    f" {resource.error!r}"
                )
            else:
                self.aborted = True

    async def _download(self, client: httpx.AsyncClient,
                        source: str) -> tuple[bytes, str]:
        """Return the payload and content type of a reference."""
        if is_data_url(source):
            return parse_data_url(source)

        if is_remote(source):
            response = await client.get(source)
            response.raise_for_status()
            return response.content, response.headers.get("Content-Type", "")

        path = urlparse(source).path if source.startswith("file://") else source
        return Path(unquote(path)).read_bytes(), ""

    def _succeed(self, resource: Resource, data: bytes,
                 content_type: str) -> None:
        resource.data = data
        resource.media_type = resolve_mimetype(
            content_type, resource.source, data)
        resource.status = FetchStatus.SUCCEEDED
        resource.error = None

        if resource.kind is not ResourceKind.FONT:
            extension = get_extension(resource.media_type) or ".bin"
            resource.filename += extension
        elif resource.media_type == "application/octet-stream":
            resource.media_type = get_mimetype(resource.filename)

        self.sink.log(f"Fetched {resource.source} as {resource.filename}")

