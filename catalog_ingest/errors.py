"""Errors raised by the catalog ingestion pipeline."""
from typing import List, Optional


class IngestError(Exception):
    """Base class for every pipeline-fatal error."""


class ConfigurationError(IngestError):
    """Required startup settings are missing or invalid."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class SourceApiError(IngestError):
    """Google Books returned an error status or the request never completed."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        if status is None:
            super().__init__(f"Google Books request failed: {message}")
        else:
            super().__init__(f"Google Books API error ({status}): {message}")


class StoreWriteError(IngestError):
    """The batch write to the books table did not go through."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PipelineCancelled(IngestError):
    """The run was cancelled before its batch was persisted."""
