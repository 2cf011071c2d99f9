"""Generate EPUB 2 and EPUB 3 books from HTML chapters."""

from epubgen.epub import EPub, generate, generate_sync
from epubgen.errors import (
    EPubError, ConfigurationError, DownloadError, PackagingError,
    ValidationError
)
from epubgen.log import Custom, Default, Silent
from epubgen.validate import check, validate

__all__ = [
    "EPub", "generate", "generate_sync",
    "EPubError", "ConfigurationError", "DownloadError", "PackagingError",
    "ValidationError",
    "Custom", "Default", "Silent",
    "check", "validate",
]
