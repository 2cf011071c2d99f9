"""Compute the manifest items and the spine of the package."""

from epubgen.model import (
    ManifestItem, NormChapter, NormOptions, Resource, ResourceKind,
    COVER_PAGE_NAME, CSS_NAME, NCX_NAME
)

XHTML = "application/xhtml+xml"

NCX_ID = "ncx"
TOC_ID = "toc"
CSS_ID = "css"
COVER_PAGE_ID = "cover-page"
COVER_IMAGE_ID = "cover-image"


def cover_resource(resources: dict[str, Resource]):
    """Return the cover resource if it was fetched, None otherwise."""
    for resource in resources.values():
        if resource.kind is ResourceKind.COVER and resource.succeeded:
            return resource

    return None


def spine_chapters(chapters: list[NormChapter]) -> list[NormChapter]:
    """Return the chapters in reading order: those before the TOC first."""
    before = [chapter for chapter in chapters if chapter.before_toc]
    after = [chapter for chapter in chapters if not chapter.before_toc]
    return before + after


def build_manifest(options: NormOptions, chapters: list[NormChapter],
                   resources: dict[str, Resource]) -> list[ManifestItem]:
    """Return every item of the package, in manifest order."""
    items = []

    if options.has_ncx:
        items.append(ManifestItem(NCX_ID, NCX_NAME, "application/x-dtbncx+xml"))

    items.append(ManifestItem(
        TOC_ID, options.toc_filename, XHTML,
        properties="nav" if options.version == 3 else None
    ))

    items.append(ManifestItem(CSS_ID, CSS_NAME, "text/css"))

    cover = cover_resource(resources)
    if cover is not None:
        items.append(ManifestItem(COVER_PAGE_ID, COVER_PAGE_NAME, XHTML))
        items.append(ManifestItem(
            COVER_IMAGE_ID, cover.filename, cover.media_type,
            properties="cover-image" if options.version == 3 else None
        ))

    for chapter in chapters:
        items.append(ManifestItem(chapter.id, chapter.filename, XHTML))

    fonts = [r for r in resources.values()
             if r.kind is ResourceKind.FONT and r.succeeded]
    for index, font in enumerate(fonts):
        items.append(ManifestItem(f"font-{index:05d}", font.filename,
                                  font.media_type))

    images = [r for r in resources.values()
              if r.kind is ResourceKind.IMAGE and r.succeeded]
    for index, image in enumerate(images):
        items.append(ManifestItem(f"image-{index:05d}", image.filename,
                                  image.media_type))

    place_in_spine(options, chapters, items)
    return items


def place_in_spine(options: NormOptions, chapters: list[NormChapter],
                   items: list[ManifestItem]) -> None:
    """
    Mark the items belonging to the spine and number them in reading order:
    cover page (not linear), chapters before the TOC, the TOC itself when
    ``toc_in_toc`` is set, then the remaining chapters.
    """
    by_id = {item.id: item for item in items}

    order = []
    if COVER_PAGE_ID in by_id:
        by_id[COVER_PAGE_ID].linear = False
        order.append(COVER_PAGE_ID)

    reading = spine_chapters(chapters)
    before = [chapter.id for chapter in reading if chapter.before_toc]
    after = [chapter.id for chapter in reading if not chapter.before_toc]

    order.extend(before)
    if options.toc_in_toc:
        order.append(TOC_ID)
    order.extend(after)

    for position, item_id in enumerate(order):
        by_id[item_id].in_spine = True
        by_id[item_id].spine_order = position


def spine(items: list[ManifestItem]) -> list[ManifestItem]:
    """Return the spine items sorted in reading order."""
    return sorted((item for item in items if item.in_spine),
                  key=lambda item: item.spine_order)

