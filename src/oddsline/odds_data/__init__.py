"""Odds cache, snapshot stores, upstream sources and repository."""

from oddsline.odds_data.cache_manager import DEFAULT_CACHE_KEY, CacheManager, CacheStatus
from oddsline.odds_data.errors import (
    CacheError,
    CorruptedSnapshotError,
    OddsDataError,
    PersistError,
    StoreError,
    UpstreamError,
)
from oddsline.odds_data.policy import DEFAULT_CACHE_TIMEOUT_S, NEVER, CachePolicy
from oddsline.odds_data.repo import FetchResult, OddsRepository
from oddsline.odds_data.snapshot import CachedSnapshot, decode_snapshot, encode_snapshot
from oddsline.odds_data.snapshot_store import (
    FileSnapshotStore,
    MemorySnapshotStore,
    SnapshotStore,
)
from oddsline.odds_data.upstream import MockOddsSource, OddsAPISource, UpstreamSource

__all__ = [
    "DEFAULT_CACHE_KEY",
    "DEFAULT_CACHE_TIMEOUT_S",
    "NEVER",
    "CacheError",
    "CacheManager",
    "CachePolicy",
    "CacheStatus",
    "CachedSnapshot",
    "CorruptedSnapshotError",
    "FetchResult",
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "MockOddsSource",
    "OddsAPISource",
    "OddsDataError",
    "OddsRepository",
    "PersistError",
    "SnapshotStore",
    "StoreError",
    "UpstreamError",
    "UpstreamSource",
    "decode_snapshot",
    "encode_snapshot",
]
