"""Read-through repository over the odds cache and an upstream source."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from oddsline.models import OddsEvent
from oddsline.odds_data.cache_manager import CacheManager, CacheStatus
from oddsline.odds_data.errors import UpstreamError
from oddsline.odds_data.upstream import UpstreamSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Odds returned by the repository and where they came from.

    ``status`` is ``"cached"`` for a fresh cache hit, ``"ok"`` for a
    successful upstream fetch and ``"stale"`` for the expired-cache fallback.
    """

    events: list[OddsEvent]
    status: str


class OddsRepository:
    """Cache-first odds access with stale fallback when upstream fails."""

    def __init__(self, *, cache: CacheManager, source: UpstreamSource) -> None:
        self.cache = cache
        self.source = source

    def get_or_fetch(self) -> FetchResult:
        cached = self.cache.get_fresh()
        if cached is not None:
            return FetchResult(events=cached, status="cached")

        try:
            events = list(self.source.fetch())
        except UpstreamError as exc:
            stale = self.cache.get_stale()
            if stale is None:
                raise
            logger.warning("upstream odds fetch failed, serving stale cache: %s", exc)
            return FetchResult(events=stale, status="stale")

        # PersistError propagates here.
        self.cache.store(events)
        return FetchResult(events=events, status="ok")

    def fetch(self) -> list[OddsEvent]:
        return self.get_or_fetch().events

    def refresh(self) -> list[OddsEvent]:
        """Fetch from upstream unconditionally; no stale fallback."""
        events = list(self.source.fetch())
        self.cache.store(events)
        return events

    def peek_cache(self) -> list[OddsEvent] | None:
        return self.cache.get_fresh()

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_status(self) -> CacheStatus:
        return self.cache.status()
