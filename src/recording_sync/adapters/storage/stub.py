"""Stub object store for local runs and tests."""

from datetime import UTC, datetime

from recording_sync.adapters.storage.base import ObjectStore
from recording_sync.domain.errors import StorageError, TransferError
from recording_sync.domain.models import ObjectMetadata, UploadResult
from recording_sync.logging import get_logger

logger = get_logger(__name__)


class StubObjectStore(ObjectStore):
    """Dictionary-backed object store.

    Source URLs resolve through ``sources``; unknown URLs produce a small
    placeholder payload. Keys listed in ``failing_uploads``, ``failing_copies``
    or ``failing_deletes`` raise the matching storage error.
    """

    def __init__(self, bucket: str = "stub-recordings") -> None:
        self._bucket = bucket
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.sources: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.failing_uploads: set[str] = set()
        self.failing_copies: set[str] = set()
        self.failing_deletes: set[str] = set()

    @property
    def name(self) -> str:
        return "stub"

    @property
    def bucket(self) -> str:
        return self._bucket

    def put(self, key: str, data: bytes = b"stub-video") -> None:
        self.objects[key] = data

    async def exists(self, key: str) -> bool:
        return key in self.objects

    async def head(self, key: str) -> ObjectMetadata | None:
        if key not in self.objects:
            return None
        return ObjectMetadata(
            key=key,
            size_bytes=len(self.objects[key]),
            content_type=self.content_types.get(key, "video/mp4"),
            last_modified=datetime.now(UTC),
        )

    async def upload_from_url(
        self,
        source_url: str,
        key: str,
        content_type: str | None = None,
    ) -> UploadResult:
        if key in self.failing_uploads:
            raise TransferError(f"Failed to fetch source: 502 ({key})")

        data = self.sources.get(source_url, b"STUB_VIDEO:" + source_url.encode())
        self.objects[key] = data
        self.content_types[key] = content_type or "video/mp4"
        self.uploads.append(key)
        logger.info("stub_upload_completed", key=key, size_bytes=len(data))
        return UploadResult(key=key, bucket=self._bucket, size_bytes=len(data))

    async def copy(self, source_key: str, dest_key: str) -> None:
        if source_key in self.failing_copies:
            raise StorageError(f"Copy failed for {source_key}")
        if source_key not in self.objects:
            raise StorageError(f"NoSuchKey: {source_key}")
        self.objects[dest_key] = self.objects[source_key]

    async def delete(self, key: str) -> None:
        if key in self.failing_deletes:
            raise StorageError(f"Delete failed for {key}")
        self.objects.pop(key, None)

    async def issue_read_locator(
        self,
        key: str,
        ttl_seconds: int = 3600,
        download_filename: str | None = None,
    ) -> str:
        url = f"https://{self._bucket}.stub.local/{key}?expires={ttl_seconds}"
        if download_filename:
            url += f"&filename={download_filename}"
        return url
