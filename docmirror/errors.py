"""Exception hierarchy shared by every docmirror stage."""

from __future__ import annotations


class DocMirrorError(Exception):
    """Base class for all docmirror failures."""


class ConfigurationError(DocMirrorError, ValueError):
    """Raised for an invalid stage or missing required input."""


class CheckpointError(DocMirrorError):
    """Raised when the link checkpoint cannot be used."""


class CheckpointMissingError(CheckpointError, FileNotFoundError):
    """Raised when scrape/index runs before any extraction."""


class CheckpointFormatError(CheckpointError):
    """Raised when the checkpoint exists but cannot be understood."""


class NavigationError(DocMirrorError):
    """Raised when a page fails to load or render before its timeout."""


class MalformedURLError(DocMirrorError, ValueError):
    """Raised when an href cannot be resolved to a canonical URL."""


class PersistenceError(DocMirrorError, OSError):
    """Raised when a directory or file cannot be written."""


class BrowserSessionError(DocMirrorError, RuntimeError):
    """Raised when the browser session cannot be started."""
