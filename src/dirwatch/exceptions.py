"""Custom exceptions for the dirwatch package."""


class DirWatchError(Exception):
    """Base exception for all dirwatch errors."""
    pass


class ScanError(DirWatchError):
    """A directory scan could not be completed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class ListingError(ScanError):
    """Tracked directory is missing or cannot be listed."""
    pass


class StatError(ScanError):
    """A listed entry vanished or became inaccessible before it was stat'ed."""

    def __init__(self, message: str, path=None, name: str = None):
        super().__init__(message, path)
        self.name = name


class WatchError(DirWatchError):
    """Error related to the OS-level watch handle."""
    pass


class WatchRegistrationError(WatchError):
    """OS-level watch could not be established."""
    pass


class WatchRuntimeError(WatchError):
    """OS-level watch failed after being established."""
    pass


class SessionClosedError(DirWatchError):
    """Watch session is already closed."""
    pass
