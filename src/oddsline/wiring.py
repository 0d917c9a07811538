"""Assemble a repository from settings."""

from __future__ import annotations

from oddsline.odds_data.cache_manager import CacheManager
from oddsline.odds_data.repo import OddsRepository
from oddsline.odds_data.snapshot_store import FileSnapshotStore
from oddsline.odds_data.upstream import MockOddsSource, OddsAPISource, UpstreamSource
from oddsline.settings import Settings

SOURCES = ("mock", "odds_api")


def build_source(settings: Settings) -> UpstreamSource:
    if settings.source == "mock":
        return MockOddsSource(count=settings.mock_event_count)
    if settings.source == "odds_api":
        return OddsAPISource(settings)
    raise ValueError(f"unknown odds source {settings.source!r}; expected one of {SOURCES}")


def build_repository(settings: Settings, *, source: UpstreamSource | None = None) -> OddsRepository:
    """Wire a file-backed cache manager and upstream source into a repository."""
    cache = CacheManager(
        FileSnapshotStore(settings.data_dir),
        timeout_s=settings.cache_timeout_s,
        key=settings.cache_key,
    )
    return OddsRepository(cache=cache, source=source or build_source(settings))
