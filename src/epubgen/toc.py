"""
Build the navigation documents: the EPUB 3 Nav document, the EPUB 2 TOC
page, the NCX file, and the landmarks (or guide) of the book.
"""

from dataclasses import dataclass
from typing import Optional
from xml.dom.minidom import Document

from epubgen.dom import append_to, to_xml, xhtml_document
from epubgen.manifest import spine_chapters
from epubgen.model import (
    LandmarkTarget, NormChapter, NormOptions, COVER_PAGE_NAME, CSS_NAME,
    NCX_NAME
)
from epubgen.templates import render_template

# Landmark role -> (epub:type, OPF 2 guide type)
LANDMARK_TYPES = {
    "cover": ("cover", "cover"),
    "toc": ("toc", "toc"),
    "bodyMatter": ("bodymatter", "text"),
    "titlePage": ("titlepage", "title-page"),
    "frontMatter": ("frontmatter", None),
    "backMatter": ("backmatter", None),
    "listOfIllustrations": ("loi", "loi"),
    "listOfTables": ("lot", "lot"),
    "preface": ("preface", "preface"),
    "bibliography": ("bibliography", "bibliography"),
    "index": ("index", "index"),
    "glossary": ("glossary", "glossary"),
    "acknowledgments": ("acknowledgments", "acknowledgements"),
}

LANDMARK_TITLES = {
    "cover": "Cover",
    "bodyMatter": "Begin Reading",
    "titlePage": "Title Page",
    "frontMatter": "Front Matter",
    "backMatter": "Back Matter",
    "listOfIllustrations": "List of Illustrations",
    "listOfTables": "List of Tables",
    "preface": "Preface",
    "bibliography": "Bibliography",
    "index": "Index",
    "glossary": "Glossary",
    "acknowledgments": "Acknowledgments",
}


@dataclass
class NavPoint:
    id: str
    label: str
    href: str


@dataclass
class LandmarkEntry:
    role: str
    epub_type: str
    guide_type: Optional[str]
    title: str
    href: str


def chapter_label(options: NormOptions, chapter: NormChapter) -> str:
    """Return the label of a chapter in the table of contents."""
    if options.number_chapters_in_toc:
        return f"{chapter.index + 1}. {chapter.title}"

    return chapter.title


def toc_href(options: NormOptions) -> str:
    """Return the link to the table of contents."""
    if options.version == 3:
        return f"{options.toc_filename}#toc"

    return options.toc_filename


def nav_points(options: NormOptions, chapters: list[NormChapter],
               include_toc: bool = False) -> list[NavPoint]:
    """
    Return the entries of the table of contents in reading order. Chapters
    excluded from the TOC are skipped. With ``include_toc`` the TOC document
    itself is listed where it stands in the spine.
    """
    points = []
    toc_added = False

    for chapter in spine_chapters(chapters):
        if include_toc and not toc_added and not chapter.before_toc:
            points.append(NavPoint("toc", options.toc_title, toc_href(options)))
            toc_added = True

        if chapter.exclude_from_toc:
            continue

        points.append(NavPoint(
            chapter.id, chapter_label(options, chapter), chapter.filename
        ))

    if include_toc and not toc_added:
        points.append(NavPoint("toc", options.toc_title, toc_href(options)))

    return points


def landmark_entries(options: NormOptions, chapters: list[NormChapter],
                     has_cover: bool) -> list[LandmarkEntry]:
    """
    Return the landmarks of the book. Without configured landmarks, the
    cover (when there is one) and the table of contents are listed.
    """
    by_index = {chapter.index: chapter for chapter in chapters}

    if options.landmarks is None:
        targets = [("toc", LandmarkTarget.TOC)]
        if has_cover:
            targets.insert(0, ("cover", LandmarkTarget.COVER))
    else:
        targets = [(landmark.role, landmark.target)
                   for landmark in options.landmarks]

    entries = []
    for role, target in targets:
        epub_type, guide_type = LANDMARK_TYPES[role]
        title = LANDMARK_TITLES.get(role, options.toc_title)

        if target is LandmarkTarget.HIDDEN:
            continue

        if target is LandmarkTarget.COVER:
            if not has_cover:
                continue
            href = COVER_PAGE_NAME
        elif target is LandmarkTarget.TOC:
            href = toc_href(options)
        else:
            href = by_index[target].filename

        entries.append(LandmarkEntry(role, epub_type, guide_type, title, href))

    return entries


def template_context(options: NormOptions, points: list[NavPoint],
                     landmarks: list[LandmarkEntry]) -> dict:
    """Return the variables available to navigation templates."""
    return {
        "title": options.title,
        "author": options.author,
        "identifier": options.identifier,
        "lang": options.lang,
        "toc_title": options.toc_title,
        "version": options.version,
        "css": CSS_NAME,
        "nav_points": points,
        "landmarks": landmarks,
    }


def nav_xml(options: NormOptions, points: list[NavPoint],
            landmarks: list[LandmarkEntry]) -> bytes:
    """Return the XML data of the EPUB 3 Nav document."""
    if options.toc_xhtml is not None:
        return render_template(
            "tocXHTML", options.toc_xhtml,
            **template_context(options, points, landmarks)
        )

    doc, _, body = xhtml_document(options.lang, options.toc_title, [CSS_NAME])

    nav = append_to(body, 'nav', {
        'epub:type': "toc",
        'role': "doc-toc",
        'id': "toc"
    })
    append_to(nav, 'h1', {}, options.toc_title)

    nav_list = append_to(nav, 'ol')
    for point in points:
        nav_item = append_to(nav_list, 'li')
        append_to(nav_item, 'a', {'href': point.href}, point.label)

    if landmarks:
        nav = append_to(body, 'nav', {
            'epub:type': "landmarks",
            'id': "landmarks",
            'hidden': "hidden"
        })
        append_to(nav, 'h2', {}, "Landmarks")

        nav_list = append_to(nav, 'ol')
        for entry in landmarks:
            nav_item = append_to(nav_list, 'li')
            append_to(nav_item, 'a', {
                'epub:type': entry.epub_type,
                'href': entry.href
            }, entry.title)

    return to_xml(doc)


def toc_page_xml(options: NormOptions, points: list[NavPoint],
                 landmarks: list[LandmarkEntry]) -> bytes:
    """Return the XML data of the EPUB 2 table of contents page."""
    if options.toc_xhtml is not None:
        return render_template(
            "tocXHTML", options.toc_xhtml,
            **template_context(options, points, landmarks)
        )

    doc, _, body = xhtml_document(
        options.lang, options.toc_title, [CSS_NAME], epub_namespace=False
    )

    append_to(body, 'h1', {'id': "toc"}, options.toc_title)
    nav_list = append_to(body, 'ol')
    for point in points:
        nav_item = append_to(nav_list, 'li')
        append_to(nav_item, 'a', {'href': point.href}, point.label)

    return to_xml(doc)


def tocncx_xml(options: NormOptions, points: list[NavPoint],
               landmarks: list[LandmarkEntry]) -> bytes:
    """Return the XML data of the toc.ncx file."""
    if options.toc_ncx is not None:
        return render_template(
            "tocNCX", options.toc_ncx,
            **template_context(options, points, landmarks)
        )

    doc = Document()

    ncx = append_to(doc, 'ncx', {
        'xmlns': "http://www.daisy.org/z3986/2005/ncx/",
        'xml:lang': options.lang,
        'version': "2005-1"
    })

    head = append_to(ncx, 'head')

    append_to(head, 'meta', {'name': "dtb:uid", 'content': options.identifier})
    append_to(head, 'meta', {'name': "dtb:depth", 'content': "1"})
    append_to(head, 'meta', {'name': "dtb:totalPageCount", 'content': "0"})
    append_to(head, 'meta', {'name': "dtb:maxPageNumber", 'content': "0"})

    doc_title = append_to(ncx, 'docTitle')
    append_to(doc_title, 'text', {}, options.title)

    for author in options.author:
        doc_author = append_to(ncx, 'docAuthor')
        append_to(doc_author, 'text', {}, author)

    nav_map = append_to(ncx, 'navMap')

    for index, point in enumerate(points):
        nav_point = append_to(nav_map, 'navPoint', {
            'id': f"navpoint-{index + 1}",
            'playOrder': str(index + 1)
        })

        nav_label = append_to(nav_point, 'navLabel')
        append_to(nav_label, 'text', {}, point.label)
        append_to(nav_point, 'content', {'src': point.href})

    return to_xml(doc)


def build_navigation(options: NormOptions, chapters: list[NormChapter],
                     landmarks: list[LandmarkEntry]) -> dict[str, bytes]:
    """Return the navigation documents keyed by filename."""
    points = nav_points(options, chapters)

    documents = {}
    if options.has_ncx:
        ncx_points = nav_points(options, chapters, options.toc_in_toc)
        documents[NCX_NAME] = tocncx_xml(options, ncx_points, landmarks)

    if options.version == 3:
        documents[options.toc_filename] = nav_xml(options, points, landmarks)
    else:
        documents[options.toc_filename] = toc_page_xml(
            options, points, landmarks)

    return documents
