"""Single-snapshot odds cache held in memory and in a durable store."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from oddsline.models import OddsEvent
from oddsline.odds_data.errors import CorruptedSnapshotError, PersistError, StoreError
from oddsline.odds_data.policy import DEFAULT_CACHE_TIMEOUT_S, CachePolicy
from oddsline.odds_data.snapshot import CachedSnapshot, decode_snapshot, encode_snapshot
from oddsline.odds_data.snapshot_store import MemorySnapshotStore, SnapshotStore
from oddsline.time_utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = "cached_odds"


@dataclass(frozen=True)
class CacheStatus:
    """Point-in-time view of the cached snapshot."""

    present: bool
    is_fresh: bool
    stored_at: datetime | None = None
    expires_at: datetime | None = None
    remaining_s: float = 0.0
    event_count: int = 0


class CacheManager:
    """Owns the one cached odds snapshot.

    Every public operation runs under a single lock, store I/O included, so
    the backing store does not need to be safe for concurrent use.
    """

    def __init__(
        self,
        store: SnapshotStore | None = None,
        *,
        timeout_s: float = DEFAULT_CACHE_TIMEOUT_S,
        key: str = DEFAULT_CACHE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.snapshot_store: SnapshotStore = store if store is not None else MemorySnapshotStore()
        self.policy = CachePolicy(timeout_s=timeout_s)
        self.key = key
        self._clock = clock
        self._snapshot: CachedSnapshot | None = None
        self._lock = threading.RLock()

    def store(self, odds: Sequence[OddsEvent]) -> None:
        """Replace the snapshot with ``odds`` and persist it.

        The in-memory snapshot is updated even when the durable write fails;
        that failure is raised as ``PersistError``.
        """
        with self._lock:
            snapshot = CachedSnapshot(odds=tuple(odds), stored_at=self._clock())
            self._snapshot = snapshot
            try:
                self.snapshot_store.write(self.key, encode_snapshot(snapshot))
            except StoreError as exc:
                raise PersistError(f"failed to persist odds snapshot: {exc}") from exc
            logger.debug("cached %d odds events at %s", len(snapshot.odds), snapshot.stored_at)

    def get_fresh(self) -> list[OddsEvent] | None:
        """Return cached odds still valid under the TTL policy, else None."""
        with self._lock:
            snapshot = self._current()
            if snapshot is None or not self.policy.is_valid(snapshot.stored_at, self._clock()):
                return None
            return list(snapshot.odds)

    def get_stale(self) -> list[OddsEvent] | None:
        """Return whatever odds are cached regardless of age, else None."""
        with self._lock:
            snapshot = self._current()
            if snapshot is None:
                return None
            return list(snapshot.odds)

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None
            self._delete_durable()

    def status(self) -> CacheStatus:
        with self._lock:
            snapshot = self._current()
            if snapshot is None:
                return CacheStatus(present=False, is_fresh=False)
            now = self._clock()
            return CacheStatus(
                present=True,
                is_fresh=self.policy.is_valid(snapshot.stored_at, now),
                stored_at=snapshot.stored_at,
                expires_at=self.policy.expiry(snapshot.stored_at),
                remaining_s=self.policy.remaining_s(snapshot.stored_at, now),
                event_count=len(snapshot.odds),
            )

    def _current(self) -> CachedSnapshot | None:
        # Memory wins unless it is missing or expired; a durable snapshot is
        # promoted only when it is no older than the one already held.
        memory = self._snapshot
        if memory is not None and self.policy.is_valid(memory.stored_at, self._clock()):
            return memory
        durable = self._load_durable()
        if durable is None:
            return memory
        if memory is None or durable.stored_at >= memory.stored_at:
            self._snapshot = durable
            return durable
        return memory

    def _load_durable(self) -> CachedSnapshot | None:
        try:
            data = self.snapshot_store.read(self.key)
        except StoreError as exc:
            logger.warning("odds snapshot read failed, treating as absent: %s", exc)
            return None
        if data is None:
            return None
        try:
            return decode_snapshot(data)
        except CorruptedSnapshotError as exc:
            logger.warning("discarding corrupted odds snapshot %r: %s", self.key, exc)
            self._delete_durable()
            return None

    def _delete_durable(self) -> None:
        try:
            self.snapshot_store.delete(self.key)
        except StoreError as exc:
            logger.warning("failed to delete odds snapshot %r: %s", self.key, exc)
