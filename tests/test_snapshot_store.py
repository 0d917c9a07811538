from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from oddsline.models import OddsEvent
from oddsline.odds_data.errors import CorruptedSnapshotError, StoreError
from oddsline.odds_data.snapshot import CachedSnapshot, decode_snapshot, encode_snapshot
from oddsline.odds_data.snapshot_store import FileSnapshotStore, MemorySnapshotStore


def test_memory_store_read_write_delete() -> None:
    store = MemorySnapshotStore()
    assert store.read("cached_odds") is None

    store.write("cached_odds", b"{}")
    assert store.read("cached_odds") == b"{}"
    assert store.keys() == ["cached_odds"]

    store.delete("cached_odds")
    store.delete("cached_odds")
    assert store.read("cached_odds") is None


def test_file_store_round_trip_and_missing_delete(tmp_path: Path) -> None:
    store = FileSnapshotStore(tmp_path / "data")
    assert store.read("cached_odds") is None

    store.write("cached_odds", b'{"ok": true}\n')
    assert (tmp_path / "data" / "cached_odds.json").read_bytes() == b'{"ok": true}\n'
    assert store.read("cached_odds") == b'{"ok": true}\n'

    store.delete("cached_odds")
    store.delete("cached_odds")
    assert store.read("cached_odds") is None


def test_file_store_write_failure_raises_store_error_and_cleans_temp(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = FileSnapshotStore(tmp_path)

    def replace_fail(_: Path, __: Path) -> None:
        raise OSError("replace failure")

    monkeypatch.setattr("oddsline.odds_data.snapshot_store.os.replace", replace_fail)

    with pytest.raises(StoreError, match="replace failure"):
        store.write("cached_odds", b"{}")

    assert not any(path.name.startswith(".tmp-") for path in tmp_path.glob(".*"))
    assert not (tmp_path / "cached_odds.json").exists()


def test_file_store_rejects_path_like_keys(tmp_path: Path) -> None:
    store = FileSnapshotStore(tmp_path)
    with pytest.raises(ValueError):
        store.read("../escape")


def test_snapshot_record_keeps_sub_second_precision() -> None:
    stored_at = datetime(2026, 3, 1, 18, 0, 0, 123456, tzinfo=UTC)
    event = OddsEvent(
        id="hockey_NHL_a",
        sport="hockey",
        home_team="Toronto Maple Leafs",
        away_team="Montreal Canadiens",
        commence_time=datetime(2026, 3, 2, 0, 0, tzinfo=UTC),
    )
    decoded = decode_snapshot(encode_snapshot(CachedSnapshot(odds=(event,), stored_at=stored_at)))
    assert decoded.stored_at == stored_at
    assert decoded.odds == (event,)


@pytest.mark.parametrize(
    "data",
    [
        b"\xff\xfe",
        b"not json",
        b"[]",
        b'{"schema_version": 99, "stored_at": "2026-03-01T18:00:00Z", "odds": []}',
        b'{"schema_version": 1, "stored_at": "", "odds": []}',
        b'{"schema_version": 1, "stored_at": "2026-03-01T18:00:00Z", "odds": {}}',
        b'{"schema_version": 1, "stored_at": "2026-03-01T18:00:00Z", "odds": [{"id": 1}]}',
    ],
)
def test_decode_snapshot_flags_corruption(data: bytes) -> None:
    with pytest.raises(CorruptedSnapshotError):
        decode_snapshot(data)
