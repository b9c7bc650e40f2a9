"""Base interface for object store gateways."""

from abc import ABC, abstractmethod

from recording_sync.domain.errors import StorageError
from recording_sync.domain.models import ObjectMetadata, UploadResult
from recording_sync.logging import get_logger

logger = get_logger(__name__)


class ObjectStore(ABC):
    """Abstract gateway to a durable object store.

    Implementations:
    - S3ObjectStore: AWS S3 (or S3-compatible) via boto3
    - StubObjectStore: In-memory store for local runs and tests
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @property
    @abstractmethod
    def bucket(self) -> str:
        """Bucket (or namespace) objects are written to."""
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return whether an object exists at ``key``.

        A not-found response is ``False``; any other failure raises StorageError.
        """
        ...

    @abstractmethod
    async def head(self, key: str) -> ObjectMetadata | None:
        """Return object metadata, or None if the object does not exist."""
        ...

    @abstractmethod
    async def upload_from_url(
        self,
        source_url: str,
        key: str,
        content_type: str | None = None,
    ) -> UploadResult:
        """Stream ``source_url`` into the store at ``key`` without buffering the file.

        Raises:
            TransferError: If the source fetch fails or the upload does not complete.
        """
        ...

    @abstractmethod
    async def copy(self, source_key: str, dest_key: str) -> None:
        """Server-side copy of an object."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete an object."""
        ...

    @abstractmethod
    async def issue_read_locator(
        self,
        key: str,
        ttl_seconds: int,
        download_filename: str | None = None,
    ) -> str:
        """Return a time-limited signed URL for reading ``key``."""
        ...

    async def move(self, source_key: str, dest_key: str) -> bool:
        """Move an object by copying then deleting the source.

        Not atomic. If the copy succeeds but the delete fails the destination
        is still correct; the leaked source is logged and the move counts as
        done. Returns whether the source was deleted.
        """
        await self.copy(source_key, dest_key)
        try:
            await self.delete(source_key)
        except StorageError as e:
            logger.warning(
                "storage_move_delete_failed",
                source_key=source_key,
                dest_key=dest_key,
                error=str(e),
            )
            return False

        logger.info("storage_object_moved", source_key=source_key, dest_key=dest_key)
        return True

    async def health_check(self) -> bool:
        return True
