"""Tests for the S3 object store with a mocked boto3 client."""

from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from recording_sync.adapters.storage.s3 import S3ObjectStore
from recording_sync.domain.errors import StorageError, TransferError

VIDEO = b"\x00\x00\x00\x18ftypmp42" * 1000


def client_error(code: str, status: int, operation: str = "HeadObject") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


def source_transport(status: int = 200, body: bytes = VIDEO) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=body, headers={"content-type": "video/mp4"})

    return httpx.MockTransport(handler)


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


def make_store(s3_client: MagicMock, transport: httpx.MockTransport | None = None) -> S3ObjectStore:
    return S3ObjectStore(
        bucket="test-bucket",
        client=s3_client,
        http_client=httpx.Client(transport=transport or source_transport()),
        part_size_bytes=10 * 1024 * 1024,
        max_concurrency=4,
    )


class TestTransferConfig:
    """Test multipart settings."""

    def test_bounded_parts(self, s3_client: MagicMock) -> None:
        store = make_store(s3_client)

        assert store.transfer_config.multipart_chunksize == 10 * 1024 * 1024
        assert store.transfer_config.max_concurrency == 4
        assert store.transfer_config.max_in_memory_upload_chunks == 4


class TestExists:
    """Test existence probes."""

    @pytest.mark.asyncio
    async def test_existing_object(self, s3_client: MagicMock) -> None:
        s3_client.head_object.return_value = {"ContentLength": 2048, "ContentType": "video/mp4"}
        store = make_store(s3_client)

        assert await store.exists("recordings/k.mp4") is True
        metadata = await store.head("recordings/k.mp4")
        assert metadata is not None
        assert metadata.size_bytes == 2048

    @pytest.mark.asyncio
    async def test_not_found_is_false(self, s3_client: MagicMock) -> None:
        s3_client.head_object.side_effect = client_error("404", 404)
        store = make_store(s3_client)

        assert await store.exists("recordings/missing.mp4") is False

    @pytest.mark.asyncio
    async def test_other_failures_raise(self, s3_client: MagicMock) -> None:
        s3_client.head_object.side_effect = client_error("AccessDenied", 403)
        store = make_store(s3_client)

        with pytest.raises(StorageError):
            await store.exists("recordings/k.mp4")


class TestUploadFromUrl:
    """Test streaming uploads."""

    @pytest.mark.asyncio
    async def test_streams_source_into_bucket(self, s3_client: MagicMock) -> None:
        received: list[bytes] = []

        def upload_fileobj(fileobj: Any, bucket: str, key: str, **kwargs: Any) -> None:
            received.append(fileobj.read())

        s3_client.upload_fileobj.side_effect = upload_fileobj
        store = make_store(s3_client)

        result = await store.upload_from_url("https://cdn.test/E1.mp4", "recordings/k.mp4")

        assert received == [VIDEO]
        assert result.size_bytes == len(VIDEO)
        assert result.bucket == "test-bucket"
        _, kwargs = s3_client.upload_fileobj.call_args
        assert kwargs["ExtraArgs"] == {"ContentType": "video/mp4"}
        assert kwargs["Config"] is store.transfer_config

    @pytest.mark.asyncio
    async def test_source_error_is_transfer_error(self, s3_client: MagicMock) -> None:
        store = make_store(s3_client, source_transport(status=403, body=b"expired"))

        with pytest.raises(TransferError):
            await store.upload_from_url("https://cdn.test/E1.mp4", "recordings/k.mp4")
        s3_client.upload_fileobj.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_failure_is_transfer_error(self, s3_client: MagicMock) -> None:
        s3_client.upload_fileobj.side_effect = client_error("InternalError", 500, "UploadPart")
        store = make_store(s3_client)

        with pytest.raises(TransferError):
            await store.upload_from_url("https://cdn.test/E1.mp4", "recordings/k.mp4")


class TestMove:
    """Test copy-then-delete moves."""

    @pytest.mark.asyncio
    async def test_move_copies_then_deletes(self, s3_client: MagicMock) -> None:
        store = make_store(s3_client)

        assert await store.move("old.mp4", "new.mp4") is True

        s3_client.copy.assert_called_once()
        args, _ = s3_client.copy.call_args
        assert args[0] == {"Bucket": "test-bucket", "Key": "old.mp4"}
        assert args[2] == "new.mp4"
        s3_client.delete_object.assert_called_once_with(Bucket="test-bucket", Key="old.mp4")

    @pytest.mark.asyncio
    async def test_failed_delete_is_not_a_failure(self, s3_client: MagicMock) -> None:
        s3_client.delete_object.side_effect = client_error("AccessDenied", 403, "DeleteObject")
        store = make_store(s3_client)

        assert await store.move("old.mp4", "new.mp4") is False

    @pytest.mark.asyncio
    async def test_failed_copy_raises(self, s3_client: MagicMock) -> None:
        s3_client.copy.side_effect = client_error("NoSuchKey", 404, "CopyObject")
        store = make_store(s3_client)

        with pytest.raises(StorageError):
            await store.move("old.mp4", "new.mp4")
        s3_client.delete_object.assert_not_called()


class TestReadLocator:
    """Test signed URLs."""

    @pytest.mark.asyncio
    async def test_download_filename(self, s3_client: MagicMock) -> None:
        s3_client.generate_presigned_url.return_value = "https://signed.test/k"
        store = make_store(s3_client)

        url = await store.issue_read_locator("k.mp4", 3600, download_filename="match.mp4")

        assert url == "https://signed.test/k"
        s3_client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={
                "Bucket": "test-bucket",
                "Key": "k.mp4",
                "ResponseContentDisposition": 'attachment; filename="match.mp4"',
            },
            ExpiresIn=3600,
        )
