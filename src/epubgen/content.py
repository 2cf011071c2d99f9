"""Assemble the XHTML documents of the chapters and of the cover page."""

from xml.dom.expatbuilder import parseString
from xml.parsers.expat import ExpatError

from bs4 import (
    BeautifulSoup, CData, Declaration, Doctype, ProcessingInstruction
)
from markupsafe import Markup

from epubgen.dom import append_to, to_xml, xhtml_document
from epubgen.errors import PackagingError
from epubgen.fetch import is_candidate
from epubgen.model import NormChapter, NormOptions, Resource, CSS_NAME
from epubgen.templates import render_template

XML_BEFORE = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<html xmlns="http://www.w3.org/1999/xhtml"><body>'
)
XML_AFTER = '</body></html>'


def rewrite_html(html: str, resources: dict[str, Resource]) -> str:
    """
    Point the images of an HTML fragment at their embedded copies and
    return the fragment serialized as XHTML.

    Images whose download failed are removed, images that were never meant
    to be fetched are left as is.
    """
    soup = BeautifulSoup(html, "html.parser")

    for node in soup.find_all(string=True):
        if isinstance(node, (Doctype, Declaration, ProcessingInstruction)):
            node.extract()

    for img in soup.find_all("img", src=True):
        source = img["src"].strip()
        if not is_candidate(source):
            continue

        resource = resources.get(source)
        if resource is not None and resource.succeeded:
            img["src"] = resource.filename
            if not img.get("alt"):
                img["alt"] = ""
        else:
            img.decompose()

    # Script and style text is never escaped by the serializer
    for tag in soup.find_all(["script", "style"]):
        if tag.string:
            text = tag.string.replace("]]>", "]]]]><![CDATA[>")
            tag.string.replace_with(CData(text))

    root = soup.body if soup.body is not None else soup
    return root.decode_contents(formatter="minimal")


def parse_body(xhtml: str, filename: str) -> list:
    """Parse an XHTML fragment and return its top level nodes."""
    try:
        document = parseString(
            (XML_BEFORE + xhtml + XML_AFTER).encode("utf-8"),
            namespaces=False
        )
    except ExpatError as error:
        raise PackagingError(f"Invalid XHTML in {filename}: {error}") from error

    return list(document.getElementsByTagName("body")[0].childNodes)


def chapter_xml(options: NormOptions, chapter: NormChapter, body: str) -> bytes:
    """Return the XHTML document of a chapter whose body is already rewritten."""
    if options.chapter_xhtml is not None:
        return render_template(
            "chapterXHTML",
            options.chapter_xhtml,
            lang=options.lang,
            title=chapter.title,
            author=chapter.author,
            url=chapter.url,
            id=chapter.id,
            css=CSS_NAME,
            prepend_chapter_titles=options.prepend_chapter_titles,
            content=Markup(body),
            version=options.version,
        )

    doc, _, body_element = xhtml_document(
        options.lang, chapter.title, [CSS_NAME])

    if options.prepend_chapter_titles:
        append_to(body_element, 'h1', {}, chapter.title)

    if chapter.author:
        append_to(body_element, 'p', {'class': "epub-author"},
                  ", ".join(chapter.author))

    if chapter.url:
        link = append_to(body_element, 'p', {'class': "epub-link"})
        append_to(link, 'a', {'href': chapter.url}, chapter.url)

    for node in parse_body(body, chapter.filename):
        body_element.appendChild(node)

    return to_xml(doc)


def coverpage_xml(options: NormOptions, cover: Resource) -> bytes:
    """Return the XHTML document displaying the cover image."""
    doc, html, body = xhtml_document(
        options.lang, options.title, [CSS_NAME], options.version == 3
    )
    html.setAttribute('class', "cover")
    body.setAttribute('class', "cover")

    if options.version == 3:
        body.setAttribute('epub:type', "cover")

    append_to(body, 'img', {
        'src': cover.filename,
        'alt': options.title,
        'class': "cover"
    })

    return to_xml(doc)


def assemble(options: NormOptions, chapters: list[NormChapter],
             resources: dict[str, Resource]) -> dict[str, bytes]:
    """Return the XHTML document of every chapter keyed by filename."""
    documents = {}
    for chapter in chapters:
        body = rewrite_html(chapter.content, resources)
        documents[chapter.filename] = chapter_xml(options, chapter, body)

    return documents
