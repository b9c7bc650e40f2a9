"""S3 object store gateway.

boto3 is blocking, so every call runs in the default executor. Uploads are
streamed from the source HTTP response through s3transfer's managed multipart
upload: memory use is bounded by part size times concurrency, and a failed
upload is aborted so no partial object appears under the key.
"""

import asyncio
import io
from collections.abc import Callable, Iterator
from functools import partial
from typing import Any, TypeVar

import boto3
import httpx
from boto3.s3.transfer import TransferConfig
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from recording_sync.adapters.storage.base import ObjectStore
from recording_sync.config import settings
from recording_sync.domain.errors import StorageError, TransferError
from recording_sync.domain.models import ObjectMetadata, UploadResult
from recording_sync.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
DEFAULT_CONTENT_TYPE = "video/mp4"


class _ResponseStream(io.RawIOBase):
    """Read-only file object over an iterator of byte chunks."""

    def __init__(self, chunks: Iterator[bytes]) -> None:
        self._chunks = chunks
        self._buffer = b""
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b: Any) -> int:
        while not self._buffer:
            try:
                self._buffer = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(b), len(self._buffer))
        b[:size] = self._buffer[:size]
        self._buffer = self._buffer[size:]
        self.bytes_read += size
        return size


def build_s3_client() -> Any:
    """Create a boto3 S3 client from settings (sigv4, virtual-hosted addressing)."""
    kwargs: dict[str, Any] = {"region_name": settings.s3_region}
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url
    if settings.s3_access_key_id and settings.s3_secret_access_key:
        kwargs["aws_access_key_id"] = settings.s3_access_key_id
        kwargs["aws_secret_access_key"] = settings.s3_secret_access_key

    return boto3.client(
        "s3",
        config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
        **kwargs,
    )


class S3ObjectStore(ObjectStore):
    """Object store backed by S3."""

    def __init__(
        self,
        bucket: str | None = None,
        client: Any = None,
        http_client: httpx.Client | None = None,
        part_size_bytes: int | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self._bucket = bucket or settings.s3_bucket
        self._client = client or build_s3_client()
        self._http = http_client or httpx.Client(timeout=httpx.Timeout(60.0, read=300.0))
        part_size = part_size_bytes or settings.s3_part_size_bytes
        concurrency = max_concurrency or settings.s3_max_concurrency
        # Streamed (non-seekable) uploads buffer up to max_in_memory_upload_chunks parts
        self.transfer_config = TransferConfig(
            multipart_threshold=part_size,
            multipart_chunksize=part_size,
            max_concurrency=concurrency,
            max_in_memory_upload_chunks=concurrency,
            use_threads=True,
        )

    @property
    def name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self._bucket

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    @staticmethod
    def _is_not_found(error: ClientError) -> bool:
        code = str(error.response.get("Error", {}).get("Code", ""))
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return code in NOT_FOUND_CODES or status == 404

    # -------------------------------------------------------------------------
    # Existence
    # -------------------------------------------------------------------------

    def _head_sync(self, key: str) -> ObjectMetadata | None:
        try:
            response = self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if self._is_not_found(e):
                return None
            raise StorageError(f"S3 head_object failed for {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"S3 head_object failed for {key}: {e}") from e

        return ObjectMetadata(
            key=key,
            size_bytes=int(response.get("ContentLength") or 0),
            content_type=response.get("ContentType"),
            last_modified=response.get("LastModified"),
        )

    async def head(self, key: str) -> ObjectMetadata | None:
        return await self._run(self._head_sync, key)

    async def exists(self, key: str) -> bool:
        return await self.head(key) is not None

    # -------------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------------

    def _upload_from_url_sync(
        self,
        source_url: str,
        key: str,
        content_type: str | None,
    ) -> UploadResult:
        try:
            with self._http.stream("GET", source_url, follow_redirects=True) as response:
                if not response.is_success:
                    raise TransferError(f"Failed to fetch source: {response.status_code}")

                content_length = int(response.headers.get("content-length") or 0)
                resolved_type = (
                    content_type or response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
                )
                logger.info(
                    "storage_upload_started",
                    key=key,
                    content_length_mb=round(content_length / 1024 / 1024),
                )

                stream = _ResponseStream(
                    response.iter_bytes(chunk_size=self.transfer_config.multipart_chunksize)
                )
                self._client.upload_fileobj(
                    stream,
                    self._bucket,
                    key,
                    ExtraArgs={"ContentType": resolved_type},
                    Config=self.transfer_config,
                )
        except httpx.HTTPError as e:
            raise TransferError(f"Source download interrupted: {e}") from e
        except (ClientError, BotoCoreError) as e:
            raise TransferError(f"S3 upload failed for {key}: {e}") from e

        size = stream.bytes_read or content_length
        logger.info("storage_upload_completed", key=key, size_bytes=size)
        return UploadResult(key=key, bucket=self._bucket, size_bytes=size)

    async def upload_from_url(
        self,
        source_url: str,
        key: str,
        content_type: str | None = None,
    ) -> UploadResult:
        return await self._run(self._upload_from_url_sync, source_url, key, content_type)

    # -------------------------------------------------------------------------
    # Copy / delete
    # -------------------------------------------------------------------------

    def _copy_sync(self, source_key: str, dest_key: str) -> None:
        try:
            # Managed copy switches to multipart for objects over the 5GB single-copy limit.
            self._client.copy(
                {"Bucket": self._bucket, "Key": source_key},
                self._bucket,
                dest_key,
                Config=self.transfer_config,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 copy {source_key} -> {dest_key} failed: {e}") from e

    async def copy(self, source_key: str, dest_key: str) -> None:
        await self._run(self._copy_sync, source_key, dest_key)

    def _delete_sync(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 delete failed for {key}: {e}") from e

    async def delete(self, key: str) -> None:
        await self._run(self._delete_sync, key)

    # -------------------------------------------------------------------------
    # Signed URLs
    # -------------------------------------------------------------------------

    async def issue_read_locator(
        self,
        key: str,
        ttl_seconds: int | None = None,
        download_filename: str | None = None,
    ) -> str:
        params: dict[str, Any] = {"Bucket": self._bucket, "Key": key}
        if download_filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{download_filename}"'

        try:
            return await self._run(
                self._client.generate_presigned_url,
                "get_object",
                Params=params,
                ExpiresIn=ttl_seconds or settings.s3_read_locator_ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to sign URL for {key}: {e}") from e

    async def health_check(self) -> bool:
        try:
            await self._run(self._client.head_bucket, Bucket=self._bucket)
        except (ClientError, BotoCoreError) as e:
            logger.error("s3_health_check_failed", bucket=self._bucket, error=str(e))
            return False
        return True
