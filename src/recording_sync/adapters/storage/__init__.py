"""Object store adapters."""

from recording_sync.adapters.storage.base import ObjectStore
from recording_sync.adapters.storage.s3 import S3ObjectStore
from recording_sync.adapters.storage.stub import StubObjectStore

__all__ = [
    "ObjectStore",
    "S3ObjectStore",
    "StubObjectStore",
]
