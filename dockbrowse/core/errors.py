# dockbrowse/core/errors.py - Exception types raised by the browser components


class BrowserError(Exception):
    """Base class for all browser errors. None of them are fatal to the process."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path


class NotAccessibleError(BrowserError):
    """A listing or search target cannot be read."""


class PathNotFoundError(BrowserError):
    """A preview or stat target does not exist."""


class ChannelFailureError(BrowserError):
    """The container command-execution channel failed or was unavailable."""


class CorruptHistoryError(BrowserError):
    """The persisted history document is unreadable or malformed."""
