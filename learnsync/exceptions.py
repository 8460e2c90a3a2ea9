"""Custom exception hierarchy for learnsync.

Exception Hierarchy:
    LearnsyncError (base)
    ├── StoreError - collection store reads/writes
    │   └── CollectionLoadError
    ├── BlobStorageError - backup blob reads/writes
    └── ConfigurationError - settings/environment issues

The recovery coordinator never lets these escape its public operations; it
converts them into result objects. They are raised by the file-backed
collaborators and by configuration helpers.

Usage:
    from learnsync.exceptions import StoreError

    try:
        ...
    except OSError as e:
        raise StoreError("Failed to write collection", collection="progress") from e
"""

from typing import Any


class LearnsyncError(Exception):
    """Base exception for all learnsync errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error (e.g., collection, key)
    """

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class StoreError(LearnsyncError):
    """Error reading or writing a record collection."""


class CollectionLoadError(StoreError):
    """A collection could not be loaded."""

    def __init__(self, collection: str, cause: str) -> None:
        self.collection = collection
        self.cause = cause
        super().__init__(f"Failed to load {collection}: {cause}")


class BlobStorageError(LearnsyncError):
    """Error reading or writing a backup blob."""


class ConfigurationError(LearnsyncError):
    """Invalid configuration value."""
