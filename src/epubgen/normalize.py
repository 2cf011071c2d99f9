"""
Turn raw options and chapters into the fully defaulted internal model.

Defaults are merged here and nowhere else: every later stage reads only
NormOptions and NormChapter.
"""

from uuid import NAMESPACE_URL, uuid5

from epubgen.errors import ConfigurationError
from epubgen.log import make_sink
from epubgen.model import (
    Font, Landmark, LandmarkTarget, NormChapter, NormOptions,
    LANDMARK_ROLES, RESERVED_FILENAMES
)
from epubgen.templates import DEFAULT_STYLES
from epubgen.validate import has_separator

# Same instant as the archive entry timestamps
DEFAULT_DATE = "1980-01-01T00:00:00Z"

DEFAULT_OPTIONS = {
    "description": "",
    "cover": "",
    "author": ["anonymous"],
    "publisher": "anonymous",
    "tocTitle": "Table of Contents",
    "tocInTOC": True,
    "numberChaptersInTOC": True,
    "prependChapterTitles": True,
    "lang": "en",
    "version": 3,
    "fetchTimeout": 20000,
    "retryTimes": 3,
    "batchSize": 100,
    "ignoreFailedDownloads": False,
    "verbose": False,
    "legacyNcx": False,
}


def to_list(author) -> list[str]:
    """Coerce an author (missing, string or list) to a list of names."""
    if author is None:
        return []

    if isinstance(author, str):
        return [author]

    return list(author)


def book_identifier(title: str, author: list[str]) -> str:
    """Return a unique identifier derived from the title and the authors."""
    name = "\n".join([title] + author)
    return f"urn:uuid:{uuid5(NAMESPACE_URL, name)}"


def chapter_id(index: int) -> str:
    """Return the stable identifier of the chapter at a given position."""
    return f"chapter-{index:05d}"


def xhtml_filename(filename: str) -> str:
    """Ensure a chapter filename ends with .xhtml."""
    if filename.endswith(".xhtml"):
        return filename

    return filename + ".xhtml"


def assign_filenames(chapters: list[dict]) -> list[str]:
    """
    Return the filename of every chapter: user filenames are kept, missing
    ones are derived from the chapter position without colliding with any
    other name.
    """
    taken = set(RESERVED_FILENAMES)
    user_filenames = {}

    for index, chapter in enumerate(chapters):
        if chapter.get("filename") is None:
            continue

        field = f"content[{index}].filename"
        if has_separator(chapter["filename"]):
            raise ConfigurationError(
                field, f"must not include slashes, got `{chapter['filename']}`"
            )

        filename = xhtml_filename(chapter["filename"])
        if filename in RESERVED_FILENAMES:
            raise ConfigurationError(field, f"`{filename}` is reserved")

        if filename in taken:
            raise ConfigurationError(field, f"`{filename}` is already used")

        taken.add(filename)
        user_filenames[index] = filename

    filenames = []
    for index, _ in enumerate(chapters):
        if index in user_filenames:
            filenames.append(user_filenames[index])
            continue

        base = chapter_id(index)
        filename = f"{base}.xhtml"
        suffix = 0
        while filename in taken:
            suffix += 1
            filename = f"{base}-{suffix}.xhtml"

        taken.add(filename)
        filenames.append(filename)

    return filenames


def normalize_chapters(content: list[dict]) -> list[NormChapter]:
    """Return the normalized chapters."""
    filenames = assign_filenames(content)

    return [
        NormChapter(
            id=chapter_id(index),
            index=index,
            title=chapter.get("title") or f"Chapter {index + 1}",
            content=chapter["content"],
            filename=filenames[index],
            author=to_list(chapter.get("author")),
            exclude_from_toc=bool(chapter.get("excludeFromToc", False)),
            before_toc=bool(chapter.get("beforeToc", False)),
            url=chapter.get("url") or "",
        )
        for index, chapter in enumerate(content)
    ]


def resolve_landmarks(landmarks, chapter_count: int,
                      has_cover: bool) -> list[Landmark]:
    """
    Resolve raw landmarks into an ordered list, checking chapter indexes
    and keywords.
    """
    if landmarks is None:
        return None

    for role in landmarks:
        if role not in LANDMARK_ROLES:
            raise ConfigurationError(f"landmarks.{role}", "unknown landmark")

    resolved = []
    for role in LANDMARK_ROLES:
        value = landmarks.get(role)
        if value is None:
            continue

        field = f"landmarks.{role}"
        if isinstance(value, str):
            try:
                target = LandmarkTarget(value)
            except ValueError:
                raise ConfigurationError(
                    field, f"unknown landmark keyword `{value}`"
                ) from None

            if target is LandmarkTarget.COVER and not has_cover:
                raise ConfigurationError(field, "the book has no cover")

            resolved.append(Landmark(role, target))
            continue

        if isinstance(value, bool) or int(value) != value:
            raise ConfigurationError(field, f"invalid chapter index `{value}`")

        if not 0 <= value < chapter_count:
            raise ConfigurationError(
                field,
                f"chapter index {value} out of range"
                f" (the book has {chapter_count} chapters)"
            )

        resolved.append(Landmark(role, int(value)))

    return resolved


def normalize_options(options: dict, chapter_count: int) -> NormOptions:
    """Merge raw options with the defaults."""
    settings = dict(DEFAULT_OPTIONS)
    settings.update({k: v for k, v in options.items() if v is not None})

    version = settings["version"]
    if version not in (2, 3):
        raise ConfigurationError(
            "version", f"expected version to be 3 or 2, got `{version}`")

    fonts = []
    for index, font in enumerate(settings.get("fonts") or []):
        if has_separator(font["filename"]):
            raise ConfigurationError(
                f"fonts[{index}].filename",
                f"must not include slashes, got `{font['filename']}`"
            )
        fonts.append(Font(filename=font["filename"], url=font["url"]))

    author = to_list(settings["author"])

    return NormOptions(
        title=settings["title"],
        identifier=book_identifier(settings["title"], author),
        author=author,
        publisher=settings["publisher"],
        description=settings["description"],
        cover=settings["cover"],
        toc_title=settings["tocTitle"],
        toc_in_toc=settings["tocInTOC"],
        number_chapters_in_toc=settings["numberChaptersInTOC"],
        prepend_chapter_titles=settings["prependChapterTitles"],
        date=settings.get("date") or DEFAULT_DATE,
        lang=settings["lang"],
        css=settings.get("css", DEFAULT_STYLES),
        version=int(version),
        fetch_timeout=settings["fetchTimeout"] / 1000,
        retry_times=int(settings["retryTimes"]),
        batch_size=int(settings["batchSize"]),
        ignore_failed_downloads=settings["ignoreFailedDownloads"],
        chapter_xhtml=settings.get("chapterXHTML"),
        content_opf=settings.get("contentOPF"),
        toc_ncx=settings.get("tocNCX"),
        toc_xhtml=settings.get("tocXHTML"),
        fonts=fonts,
        landmarks=resolve_landmarks(
            settings.get("landmarks"), chapter_count, bool(settings["cover"])
        ),
        legacy_ncx=settings["legacyNcx"],
        sink=make_sink(settings["verbose"]),
    )


def normalize(options: dict, content: list[dict]) -> tuple:
    """Return the normalized options and chapters."""
    chapters = normalize_chapters(content)
    return normalize_options(options, len(chapters)), chapters
