"""Internal model shared by the pipeline stages."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from epubgen.log import Sink, Silent

# Locations inside the archive
OEBPS = "OEBPS"
OPF_NAME = "content.opf"
NCX_NAME = "toc.ncx"
NAV_NAME = "nav.xhtml"
TOC_NAME = "toc.xhtml"
COVER_PAGE_NAME = "cover.xhtml"
CSS_NAME = "style.css"
IMAGES_DIR = "images"
FONTS_DIR = "fonts"

RESERVED_FILENAMES = (NAV_NAME, TOC_NAME, COVER_PAGE_NAME)

# Landmark roles, in the order they are emitted
LANDMARK_ROLES = (
    "cover",
    "toc",
    "bodyMatter",
    "titlePage",
    "frontMatter",
    "backMatter",
    "listOfIllustrations",
    "listOfTables",
    "preface",
    "bibliography",
    "index",
    "glossary",
    "acknowledgments",
)


class LandmarkTarget(str, Enum):
    """Keywords a landmark may point to instead of a chapter index."""
    COVER = "cover"
    TOC = "toc"
    HIDDEN = "hidden"


class FetchStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ResourceKind(str, Enum):
    COVER = "cover"
    FONT = "font"
    IMAGE = "image"


@dataclass
class Font:
    filename: str
    url: str
    media_type: Optional[str] = None


@dataclass
class Landmark:
    role: str
    target: Union[LandmarkTarget, int]


@dataclass
class NormChapter:
    id: str
    index: int
    title: str
    content: str
    filename: str
    author: list[str] = field(default_factory=list)
    exclude_from_toc: bool = False
    before_toc: bool = False
    url: str = ""


@dataclass
class NormOptions:
    title: str
    identifier: str
    author: list[str]
    publisher: str
    description: str
    cover: str
    toc_title: str
    toc_in_toc: bool
    number_chapters_in_toc: bool
    prepend_chapter_titles: bool
    date: str
    lang: str
    css: str
    version: int
    fetch_timeout: float
    retry_times: int
    batch_size: int
    ignore_failed_downloads: bool
    chapter_xhtml: Optional[str] = None
    content_opf: Optional[str] = None
    toc_ncx: Optional[str] = None
    toc_xhtml: Optional[str] = None
    fonts: list[Font] = field(default_factory=list)
    landmarks: Optional[list[Landmark]] = None
    legacy_ncx: bool = False
    sink: Sink = field(default_factory=Silent)

    @property
    def has_ncx(self) -> bool:
        """Tell if the package carries a toc.ncx file."""
        return self.version == 2 or self.legacy_ncx

    @property
    def toc_filename(self) -> str:
        """Return the name of the XHTML table of contents."""
        return NAV_NAME if self.version == 3 else TOC_NAME


@dataclass
class Resource:
    """An asset to embed, keyed by its source reference."""
    source: str
    kind: ResourceKind
    filename: Optional[str] = None
    media_type: Optional[str] = None
    data: Optional[bytes] = None
    status: FetchStatus = FetchStatus.PENDING
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.status is FetchStatus.SUCCEEDED


@dataclass
class ManifestItem:
    id: str
    href: str
    media_type: str
    properties: Optional[str] = None
    in_spine: bool = False
    linear: bool = True
    spine_order: Optional[int] = None
