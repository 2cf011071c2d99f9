"""
Log sinks receiving progress and diagnostic messages.

The ``verbose`` option is resolved once into one of three sinks and the sink
is handed to every stage that reports something.
"""

from logging import getLogger, INFO, WARNING
from typing import Callable

LOG = "log"
WARN = "warn"

LOGGER = getLogger("epubgen")


class Sink:
    """Receive a message with a level ("log" or "warn")."""

    def __call__(self, level: str, *args) -> None:
        raise NotImplementedError

    def log(self, *args) -> None:
        self(LOG, *args)

    def warn(self, *args) -> None:
        self(WARN, *args)


class Silent(Sink):
    """Drop every message."""

    def __call__(self, level: str, *args) -> None:
        return None


class Default(Sink):
    """Forward messages to the standard "epubgen" logger."""

    def __call__(self, level: str, *args) -> None:
        LOGGER.log(WARNING if level == WARN else INFO,
                   " ".join(str(arg) for arg in args))


class Custom(Sink):
    """Forward messages to a user supplied callable."""

    def __init__(self, callback: Callable) -> None:
        self.callback = callback

    def __call__(self, level: str, *args) -> None:
        self.callback(level, *args)


def make_sink(verbose) -> Sink:
    """Return the sink matching a ``verbose`` option value."""
    if isinstance(verbose, Sink):
        return verbose

    if callable(verbose):
        return Custom(verbose)

    return Default() if verbose else Silent()
