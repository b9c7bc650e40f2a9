"""Error taxonomy for the sync pipeline.

Per-session errors (upstream, storage, not-found, database) are caught at the
session boundary and reported in results. Authentication and configuration
errors abort the whole invocation.
"""


class SyncError(Exception):
    """Base class for pipeline errors."""

    kind = "sync"


class UpstreamError(SyncError):
    """External platform returned a non-2xx status or malformed data."""

    kind = "upstream"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorageError(SyncError):
    """An object store operation failed."""

    kind = "storage"


class TransferError(StorageError):
    """Streaming a source URL into the object store failed."""

    kind = "transfer"


class NotFoundError(SyncError):
    """A session, live production or source object does not exist."""

    kind = "not_found"


class DatabaseError(SyncError):
    """A metadata store read or write failed."""

    kind = "database"


class AuthenticationError(SyncError):
    """Credentials were rejected or a token could not be obtained."""

    kind = "authentication"


class ConfigurationError(SyncError):
    """Required configuration is missing."""

    kind = "configuration"


FATAL_ERRORS: tuple[type[SyncError], ...] = (AuthenticationError, ConfigurationError)
