"""Recording sync - moves finished match recordings into durable object storage."""

__version__ = "0.1.0"
