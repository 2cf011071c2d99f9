"""Exceptions raised while generating an EPUB."""


class EPubError(Exception):
    """Base class of every error raised by epubgen."""


class ValidationError(EPubError):
    """The raw options or chapters do not have the expected shape."""

    def __init__(self, violations: list) -> None:
        self.violations = list(violations)
        details = "; ".join(str(violation) for violation in self.violations)
        super().__init__(f"Invalid input: {details}")


class ConfigurationError(EPubError):
    """The input is well formed but cannot describe a valid book."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class DownloadError(EPubError):
    """One or more resources could not be fetched."""

    def __init__(self, references: list[str], causes: dict = None) -> None:
        self.references = list(references)
        self.causes = dict(causes or {})
        names = ", ".join(self.references)
        super().__init__(f"Unable to download {names}")


class PackagingError(EPubError):
    """The internal model cannot be serialized into an archive."""
