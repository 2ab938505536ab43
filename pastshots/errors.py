"""Exception types raised by the capture pipeline."""

from __future__ import annotations


class PastshotsError(Exception):
    """Base class for every error the CLI turns into a non-zero exit."""


class SetupError(PastshotsError):
    """Configuration or environment problem detected before any page runs."""


class CaptureError(PastshotsError):
    """Navigation or screenshot failure for a single page."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url


class ComparisonError(PastshotsError):
    """Comparing two images or rendering their diff failed."""


class CodecError(PastshotsError):
    """An image could not be decoded or safely encoded."""
