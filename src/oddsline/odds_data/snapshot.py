"""Versioned snapshot record persisted by the cache manager."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from oddsline.models import OddsEvent
from oddsline.odds_data.errors import CorruptedSnapshotError
from oddsline.time_utils import iso_z, parse_iso_z

SCHEMA_VERSION = 1


@dataclass(frozen=True)
class CachedSnapshot:
    """Odds payload plus the instant it was stored."""

    odds: tuple[OddsEvent, ...]
    stored_at: datetime


def encode_snapshot(snapshot: CachedSnapshot) -> bytes:
    payload = {
        "schema_version": SCHEMA_VERSION,
        "stored_at": iso_z(snapshot.stored_at),
        "odds": [event.to_dict() for event in snapshot.odds],
    }
    return (json.dumps(payload, sort_keys=True, ensure_ascii=True) + "\n").encode("utf-8")


def _decode(data: bytes) -> CachedSnapshot:
    payload: Any = json.loads(data.decode("utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("snapshot must be an object")
    if payload.get("schema_version") != SCHEMA_VERSION:
        raise ValueError(f"unsupported snapshot schema {payload.get('schema_version')!r}")
    raw_stored_at = payload.get("stored_at")
    stored_at = parse_iso_z(raw_stored_at) if isinstance(raw_stored_at, str) else None
    if stored_at is None:
        raise ValueError("snapshot.stored_at must be an ISO-8601 timestamp")
    odds = payload.get("odds")
    if not isinstance(odds, list):
        raise ValueError("snapshot.odds must be a list")
    return CachedSnapshot(
        odds=tuple(OddsEvent.from_dict(item) for item in odds),
        stored_at=stored_at,
    )


def decode_snapshot(data: bytes) -> CachedSnapshot:
    """Decode a durable record, raising ``CorruptedSnapshotError`` on any defect."""
    try:
        return _decode(data)
    except (UnicodeDecodeError, ValueError, OverflowError, RecursionError) as exc:
        raise CorruptedSnapshotError(str(exc)) from exc
