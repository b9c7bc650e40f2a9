"""API route modules."""

from recording_sync.api.routes import health, recordings

__all__ = ["health", "recordings"]
