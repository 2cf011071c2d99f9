"""
Structural validation of raw options and chapters.

``validate`` never raises: it returns every violation it finds, so callers
can report them all at once. ``check`` raises a ``ValidationError`` instead.
"""

from dataclasses import dataclass
from numbers import Number

from epubgen.errors import ValidationError
from epubgen.model import LANDMARK_ROLES, LandmarkTarget

STRING_OPTIONS = (
    "publisher", "description", "cover", "tocTitle", "date", "lang", "css",
    "chapterXHTML", "contentOPF", "tocNCX", "tocXHTML",
)
BOOLEAN_OPTIONS = (
    "tocInTOC", "numberChaptersInTOC", "prependChapterTitles",
    "ignoreFailedDownloads", "legacyNcx",
)
POSITIVE_OPTIONS = ("fetchTimeout", "retryTimes", "batchSize")


@dataclass(frozen=True)
class Violation:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def is_number(value) -> bool:
    """Tell if a value is a number but not a boolean."""
    return isinstance(value, Number) and not isinstance(value, bool)


def is_name(value) -> bool:
    """Tell if a value is a valid author: a string or a list of strings."""
    if isinstance(value, str):
        return True

    return isinstance(value, list) and all(isinstance(n, str) for n in value)


def has_separator(filename: str) -> bool:
    """Tell if a filename contains a path separator."""
    return "/" in filename or "\\" in filename


def validate_landmarks(landmarks, path: str) -> list[Violation]:
    """Return the violations found in a landmarks mapping."""
    if not isinstance(landmarks, dict):
        return [Violation(path, "must be an object")]

    keywords = [target.value for target in LandmarkTarget]
    violations = []
    for role, value in landmarks.items():
        if role not in LANDMARK_ROLES:
            violations.append(Violation(f"{path}.{role}", "unknown landmark"))
        elif value is None:
            continue
        elif isinstance(value, str):
            if value not in keywords:
                violations.append(Violation(
                    f"{path}.{role}",
                    f"expected one of {', '.join(keywords)}, got `{value}`"
                ))
        elif not (is_number(value) and int(value) == value and value >= 0):
            violations.append(Violation(
                f"{path}.{role}", "expected a keyword or a chapter index"
            ))

    return violations


def validate_fonts(fonts, path: str) -> list[Violation]:
    """Return the violations found in a fonts list."""
    if not isinstance(fonts, list):
        return [Violation(path, "must be a list")]

    violations = []
    for index, font in enumerate(fonts):
        font_path = f"{path}[{index}]"
        if not isinstance(font, dict):
            violations.append(Violation(font_path, "must be an object"))
            continue

        filename = font.get("filename")
        if not isinstance(filename, str) or not filename:
            violations.append(Violation(
                f"{font_path}.filename", "must be a non-empty string"))
        elif has_separator(filename):
            violations.append(Violation(
                f"{font_path}.filename",
                f"Filename must not include slashes, got `{filename}`"
            ))

        if not isinstance(font.get("url"), str):
            violations.append(Violation(f"{font_path}.url", "must be a string"))

    return violations


def validate_options(options) -> list[Violation]:
    """Return the violations found in raw options."""
    if not isinstance(options, dict):
        return [Violation("options", "must be an object")]

    violations = []
    if not isinstance(options.get("title"), str):
        violations.append(Violation("options.title", "must be a string"))

    if options.get("author") is not None and not is_name(options["author"]):
        violations.append(Violation(
            "options.author", "must be a string or a list of strings"))

    for key in STRING_OPTIONS:
        if options.get(key) is not None and not isinstance(options[key], str):
            violations.append(Violation(f"options.{key}", "must be a string"))

    for key in BOOLEAN_OPTIONS:
        if options.get(key) is not None and not isinstance(options[key], bool):
            violations.append(Violation(f"options.{key}", "must be a boolean"))

    for key in POSITIVE_OPTIONS:
        value = options.get(key)
        if value is not None and not (is_number(value) and value > 0):
            violations.append(Violation(
                f"options.{key}", "must be a positive number"))

    version = options.get("version")
    if version is not None and version not in (2, 3):
        violations.append(Violation(
            "options.version", f"Expected version to be 3 or 2, got `{version}`"
        ))

    verbose = options.get("verbose")
    if verbose is not None and not (
            isinstance(verbose, bool) or callable(verbose)):
        violations.append(Violation(
            "options.verbose", "must be a boolean or a callable"))

    if options.get("fonts") is not None:
        violations.extend(validate_fonts(options["fonts"], "options.fonts"))

    if options.get("landmarks") is not None:
        violations.extend(
            validate_landmarks(options["landmarks"], "options.landmarks"))

    return violations


def validate_content(content) -> list[Violation]:
    """Return the violations found in a raw chapter list."""
    if not isinstance(content, (list, tuple)):
        return [Violation("content", "must be a list")]

    violations = []
    for index, chapter in enumerate(content):
        path = f"content[{index}]"
        if not isinstance(chapter, dict):
            violations.append(Violation(path, "must be an object"))
            continue

        if not isinstance(chapter.get("content"), str):
            violations.append(Violation(f"{path}.content", "must be a string"))

        for key in ("title", "url"):
            if chapter.get(key) is not None and not isinstance(chapter[key], str):
                violations.append(Violation(f"{path}.{key}", "must be a string"))

        for key in ("excludeFromToc", "beforeToc"):
            if chapter.get(key) is not None and not isinstance(chapter[key], bool):
                violations.append(Violation(f"{path}.{key}", "must be a boolean"))

        if chapter.get("author") is not None and not is_name(chapter["author"]):
            violations.append(Violation(
                f"{path}.author", "must be a string or a list of strings"))

        filename = chapter.get("filename")
        if filename is not None:
            if not isinstance(filename, str) or not filename:
                violations.append(Violation(
                    f"{path}.filename", "must be a non-empty string"))
            elif has_separator(filename):
                violations.append(Violation(
                    f"{path}.filename",
                    f"Filename must not include slashes, got `{filename}`"
                ))

    return violations


def validate(options, content) -> list[Violation]:
    """Return every violation found in raw options and chapters."""
    return validate_options(options) + validate_content(content)


def check(options, content) -> None:
    """Raise a ValidationError if the raw input is not valid."""
    violations = validate(options, content)
    if violations:
        raise ValidationError(violations)
