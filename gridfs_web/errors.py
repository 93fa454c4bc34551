"""Typed errors for gridfs_web."""


class GridFSWebError(Exception):
    """Base exception for all gridfs_web errors."""


class ConfigError(GridFSWebError):
    """Raised when the service configuration cannot be loaded."""


class RetrievalError(GridFSWebError):
    """Base for failures while serving a single request."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(message)


class NotFound(RetrievalError):
    """No stored object matches the lookup key."""

    def __init__(self, key: str):
        super().__init__(key, f"File not found: {key!r}")


class StoreIOError(RetrievalError):
    """Reading or closing a stored object failed mid-stream."""


class ConnectivityError(RetrievalError):
    """The object store could not be reached."""
