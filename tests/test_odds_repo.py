from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from oddsline.models import OddsEvent
from oddsline.odds_data.cache_manager import CacheManager
from oddsline.odds_data.errors import PersistError, StoreError, UpstreamError
from oddsline.odds_data.repo import OddsRepository
from oddsline.odds_data.snapshot_store import MemorySnapshotStore
from oddsline.odds_data.upstream import OddsAPISource
from oddsline.settings import Settings

T0 = datetime(2026, 3, 1, 18, 0, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ScriptedSource:
    """Returns queued results in order; exceptions in the queue are raised."""

    def __init__(self, *results: list[OddsEvent] | Exception) -> None:
        self.results = list(results)
        self.calls = 0

    def fetch(self) -> list[OddsEvent]:
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FailingWriteStore(MemorySnapshotStore):
    def write(self, key: str, data: bytes) -> None:
        raise StoreError("read-only volume")


def _event(event_id: str) -> OddsEvent:
    return OddsEvent(
        id=event_id,
        sport="football",
        home_team="Kansas City Chiefs",
        away_team="Dallas Cowboys",
        commence_time=T0 + timedelta(days=1),
    )


EVENT_A = _event("event-a")
EVENT_B = _event("event-b")
EVENT_C = _event("event-c")


def _repo(source: ScriptedSource, *, timeout_s: float = 300, clock=None, store=None):
    cache = CacheManager(store, timeout_s=timeout_s, clock=clock or FakeClock())
    return OddsRepository(cache=cache, source=source), cache


def test_cold_fetch_hits_upstream_and_populates_cache() -> None:
    source = ScriptedSource([EVENT_A, EVENT_B])
    repo, cache = _repo(source)

    result = repo.get_or_fetch()

    assert result.status == "ok"
    assert result.events == [EVENT_A, EVENT_B]
    assert cache.get_fresh() == [EVENT_A, EVENT_B]
    assert source.calls == 1


def test_fresh_cache_hit_skips_upstream() -> None:
    source = ScriptedSource([EVENT_C])
    repo, cache = _repo(source)
    cache.store([EVENT_A])

    result = repo.get_or_fetch()

    assert result.status == "cached"
    assert result.events == [EVENT_A]
    assert source.calls == 0


def test_fetch_after_refresh_is_a_pure_cache_hit() -> None:
    clock = FakeClock()
    source = ScriptedSource([EVENT_A], [EVENT_B])
    repo, _ = _repo(source, timeout_s=60, clock=clock)

    assert repo.refresh() == [EVENT_A]
    clock.advance(30)
    assert repo.fetch() == [EVENT_A]
    assert source.calls == 1


def test_refresh_always_bypasses_cache() -> None:
    source = ScriptedSource([EVENT_A], [EVENT_B, EVENT_C])
    repo, cache = _repo(source)

    assert repo.refresh() == [EVENT_A]
    assert repo.refresh() == [EVENT_B, EVENT_C]
    assert cache.get_fresh() == [EVENT_B, EVENT_C]
    assert source.calls == 2


def test_expired_cache_refetches() -> None:
    clock = FakeClock()
    source = ScriptedSource([EVENT_B])
    repo, cache = _repo(source, timeout_s=5, clock=clock)
    cache.store([EVENT_A])
    clock.advance(6)

    result = repo.get_or_fetch()

    assert result.status == "ok"
    assert result.events == [EVENT_B]


def test_upstream_failure_serves_stale_cache(caplog: pytest.LogCaptureFixture) -> None:
    clock = FakeClock()
    source = ScriptedSource(UpstreamError("connection refused"))
    repo, cache = _repo(source, timeout_s=5, clock=clock)
    cache.store([EVENT_A])
    clock.advance(60)

    with caplog.at_level("WARNING", logger="oddsline.odds_data.repo"):
        result = repo.get_or_fetch()

    assert result.status == "stale"
    assert result.events == [EVENT_A]
    assert "connection refused" in caplog.text


def test_cold_start_upstream_failure_propagates() -> None:
    error = UpstreamError("service unavailable")
    repo, _ = _repo(ScriptedSource(error))

    with pytest.raises(UpstreamError) as exc_info:
        repo.fetch()

    assert exc_info.value is error


def test_refresh_upstream_failure_has_no_stale_fallback() -> None:
    source = ScriptedSource(UpstreamError("timeout"))
    repo, cache = _repo(source)
    cache.store([EVENT_A])

    with pytest.raises(UpstreamError, match="timeout"):
        repo.refresh()

    assert cache.get_fresh() == [EVENT_A]


def test_empty_upstream_result_is_cached() -> None:
    source = ScriptedSource([])
    repo, _ = _repo(source)

    assert repo.fetch() == []
    assert repo.peek_cache() == []
    assert repo.fetch() == []
    assert source.calls == 1


def test_persist_failure_during_fetch_propagates() -> None:
    source = ScriptedSource([EVENT_A])
    repo, _ = _repo(source, store=FailingWriteStore())

    with pytest.raises(PersistError):
        repo.fetch()

    assert repo.peek_cache() == [EVENT_A]


def test_persist_failure_during_refresh_propagates() -> None:
    repo, _ = _repo(ScriptedSource([EVENT_A]), store=FailingWriteStore())
    with pytest.raises(PersistError, match="read-only volume"):
        repo.refresh()


def test_peek_cache_never_calls_upstream() -> None:
    clock = FakeClock()
    source = ScriptedSource([EVENT_B])
    repo, cache = _repo(source, timeout_s=5, clock=clock)

    assert repo.peek_cache() is None
    cache.store([EVENT_A])
    assert repo.peek_cache() == [EVENT_A]
    clock.advance(10)
    assert repo.peek_cache() is None
    assert source.calls == 0


def test_clear_cache_forces_next_fetch_upstream() -> None:
    source = ScriptedSource([EVENT_A], [EVENT_B])
    repo, _ = _repo(source)

    repo.fetch()
    repo.clear_cache()

    assert repo.cache_status().present is False
    assert repo.fetch() == [EVENT_B]
    assert source.calls == 2


def test_out_of_range_upstream_timestamp_falls_back_to_stale() -> None:
    payload = [
        {
            "id": "evt-1",
            "sport_key": "basketball_nba",
            "commence_time": "9999-12-31T23:59:59-05:00",
            "home_team": "Boston Celtics",
            "away_team": "Miami Heat",
            "bookmakers": [],
        }
    ]
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
    settings = Settings(_env_file=None, odds_api_key="test-key")
    clock = FakeClock()
    with OddsAPISource(settings, transport=transport) as source:
        cache = CacheManager(timeout_s=5, clock=clock)
        cache.store([EVENT_A])
        clock.advance(60)
        result = OddsRepository(cache=cache, source=source).get_or_fetch()

    assert result.status == "stale"
    assert result.events == [EVENT_A]
