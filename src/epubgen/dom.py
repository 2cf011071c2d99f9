"""Small helpers to build XML documents with minidom."""

from xml.dom.minidom import Document, Node, Element


def create(tag: str, attributes: dict = None, content=None) -> Element:
    """Create an XML element with the given tag, attributes and content."""
    doc = Document()
    element = doc.createElement(tag)

    if attributes is not None:
        for key, value in attributes.items():
            if value is not None:
                element.setAttribute(key, value)

    if content:
        if isinstance(content, Node):
            element.appendChild(content)
        else:
            element.appendChild(doc.createTextNode(content))

    return element


def append_to(doc: Node, tag: str, attributes: dict = None,
              content=None) -> Element:
    """Create an XML element and append it to the document."""
    element = create(tag, attributes, content)
    doc.appendChild(element)
    return element


def to_xml(doc: Document) -> bytes:
    """Serialize a document to UTF-8 encoded XML."""
    return doc.toxml(encoding="utf-8")


def xhtml_document(lang: str, title: str, styles: list[str],
                   epub_namespace: bool = True) -> tuple:
    """
    Create an XHTML document with its head filled in.

    Returns the document, the html element and the (empty) body element.
    """
    doc = Document()
    doc.appendChild(doc.implementation.createDocumentType("html", None, None))

    attributes = {'xmlns': "http://www.w3.org/1999/xhtml"}
    if epub_namespace:
        attributes['xmlns:epub'] = "http://www.idpf.org/2007/ops"
    attributes['xml:lang'] = lang
    attributes['lang'] = lang

    html = append_to(doc, 'html', attributes)

    head = append_to(html, 'head')
    append_to(head, 'meta', {
        'http-equiv': "Content-Type",
        'content': "text/html; charset=utf-8"
    })
    append_to(head, 'title', {}, title)

    for style in styles:
        append_to(head, 'link', {
            'rel': "stylesheet",
            'href': style,
            'type': "text/css"
        })

    body = append_to(html, 'body')
    return doc, html, body
