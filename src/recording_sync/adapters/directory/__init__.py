"""External session directory adapters."""

from recording_sync.adapters.directory.base import SessionDirectory
from recording_sync.adapters.directory.spiideo import (
    AccountConfig,
    SpiideoDirectory,
    TokenCache,
    resolve_account_config,
)
from recording_sync.adapters.directory.stub import StubSessionDirectory

__all__ = [
    "AccountConfig",
    "SessionDirectory",
    "SpiideoDirectory",
    "StubSessionDirectory",
    "TokenCache",
    "resolve_account_config",
]
