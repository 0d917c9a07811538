"""Errors raised by the odds cache, snapshot stores and upstream sources."""

from __future__ import annotations


class OddsDataError(Exception):
    """Base error for odds-data operations."""


class StoreError(OddsDataError):
    """Raised when a snapshot store cannot complete an I/O operation."""


class CacheError(OddsDataError):
    """Base error for cache-manager operations."""


class PersistError(CacheError):
    """Raised when a snapshot could not be written to durable storage."""


class CorruptedSnapshotError(CacheError):
    """Raised internally when a durable snapshot record cannot be decoded."""


class UpstreamError(OddsDataError):
    """Raised when the upstream odds source fails."""
