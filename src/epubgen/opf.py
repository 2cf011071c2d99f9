"""Build the OPF package document and the OCF container file."""

from datetime import datetime
from xml.dom.minidom import Document

from epubgen.dom import append_to, create, to_xml
from epubgen.manifest import COVER_IMAGE_ID, NCX_ID, spine
from epubgen.model import ManifestItem, NormOptions, OEBPS, OPF_NAME
from epubgen.templates import render_template
from epubgen.toc import LandmarkEntry

DC_NAMESPACE = "http://purl.org/dc/elements/1.1/"
OPF_NAMESPACE = "http://www.idpf.org/2007/opf"


def modified_date(date: str) -> str:
    """Return a date as required by dcterms:modified (CCYY-MM-DDThh:mm:ssZ)."""
    try:
        parsed = datetime.fromisoformat(date.replace("Z", "+00:00"))
    except ValueError:
        return date

    if parsed.utcoffset() is not None:
        parsed = parsed - parsed.utcoffset()

    return parsed.strftime(r"%Y-%m-%dT%H:%M:%SZ")


def _create_package(options: NormOptions):
    """Create the package element of the OPF file."""
    attributes = {
        "xmlns": OPF_NAMESPACE,
        "version": "3.0" if options.version == 3 else "2.0",
        "unique-identifier": "BookId"
    }
    if options.version == 3:
        attributes["xml:lang"] = options.lang

    return create("package", attributes)


def _create_metadata(options: NormOptions, items: list[ManifestItem]):
    """Create the metadata element of the OPF file."""
    attributes = {'xmlns:dc': DC_NAMESPACE}
    if options.version == 2:
        attributes['xmlns:opf'] = OPF_NAMESPACE

    metadata = create('metadata', attributes)

    append_to(metadata, 'dc:identifier', {'id': "BookId"}, options.identifier)
    append_to(metadata, 'dc:title', {}, options.title)
    append_to(metadata, 'dc:language', {}, options.lang)
    append_to(metadata, 'dc:date', {}, options.date)

    for index, author in enumerate(options.author):
        if options.version == 3:
            creator_id = f"creator-{index}"
            append_to(metadata, 'dc:creator', {'id': creator_id}, author)
            append_to(metadata, 'meta', {
                'refines': f"#{creator_id}",
                'property': "role",
                'scheme': "marc:relators"
            }, "aut")
        else:
            append_to(metadata, 'dc:creator', {
                'opf:role': "aut",
                'opf:file-as': author
            }, author)

    if options.publisher:
        append_to(metadata, 'dc:publisher', {}, options.publisher)

    if options.description:
        append_to(metadata, 'dc:description', {}, options.description)

    if options.version == 3:
        append_to(metadata, 'meta', {
            'property': "dcterms:modified",
        }, modified_date(options.date))

    # Ensure compatibility with EPUB 2 readers looking for the cover
    if any(item.id == COVER_IMAGE_ID for item in items):
        append_to(metadata, 'meta', {
            'name': "cover",
            'content': COVER_IMAGE_ID
        })

    return metadata


def _create_manifest(items: list[ManifestItem]):
    """Create the manifest element of the OPF file."""
    manifest = create('manifest')

    for item in items:
        append_to(manifest, 'item', {
            'id': item.id,
            'href': item.href,
            'media-type': item.media_type,
            'properties': item.properties
        })

    return manifest


def _create_spine(options: NormOptions, items: list[ManifestItem]):
    """Create the spine element of the OPF file."""
    spine_element = create('spine', {
        'toc': NCX_ID if options.has_ncx else None
    })

    for item in spine(items):
        append_to(spine_element, 'itemref', {
            'idref': item.id,
            'linear': "yes" if item.linear else "no"
        })

    return spine_element


def _create_guide(landmarks: list[LandmarkEntry]):
    """Create the guide element of the OPF file."""
    guide = create('guide')

    for entry in landmarks:
        if entry.guide_type is None:
            continue

        append_to(guide, 'reference', {
            'type': entry.guide_type,
            'title': entry.title,
            'href': entry.href
        })

    return guide


def package_opf_xml(options: NormOptions, items: list[ManifestItem],
                    landmarks: list[LandmarkEntry]) -> bytes:
    """Return the XML data of the content.opf file."""
    if options.content_opf is not None:
        return render_template(
            "contentOPF",
            options.content_opf,
            options=options,
            manifest=items,
            spine=spine(items),
            landmarks=landmarks,
            modified=modified_date(options.date),
        )

    opf = Document()

    package = _create_package(options)

    package.appendChild(_create_metadata(options, items))
    package.appendChild(_create_manifest(items))
    package.appendChild(_create_spine(options, items))

    if options.version == 2 and any(e.guide_type for e in landmarks):
        package.appendChild(_create_guide(landmarks))

    opf.appendChild(package)

    return to_xml(opf)


def container_xml() -> bytes:
    """Return the XML data of the container.xml file."""
    doc = Document()
    container = create('container', {
        'version': "1.0",
        'xmlns': "urn:oasis:names:tc:opendocument:xmlns:container"
    })

    rootfiles = create('rootfiles', {})
    rootfile = create('rootfile', {
        'full-path': f"{OEBPS}/{OPF_NAME}",
        'media-type': "application/oebps-package+xml"
    })

    rootfiles.appendChild(rootfile)
    container.appendChild(rootfiles)
    doc.appendChild(container)

    return to_xml(doc)
