from datetime import UTC, datetime, timedelta, timezone

from oddsline.time_utils import iso_z, parse_iso_z, utc_now


def test_iso_z_normalizes_to_utc_and_keeps_microseconds() -> None:
    value = datetime(2026, 3, 1, 13, 0, 0, 250000, tzinfo=timezone(timedelta(hours=-5)))
    assert iso_z(value) == "2026-03-01T18:00:00.250000Z"


def test_parse_iso_z_round_trips_and_rejects_garbage() -> None:
    now = utc_now()
    assert parse_iso_z(iso_z(now)) == now
    assert parse_iso_z("2026-03-01T18:00:00") == datetime(2026, 3, 1, 18, tzinfo=UTC)
    assert parse_iso_z("") is None
    assert parse_iso_z("yesterday") is None


def test_parse_iso_z_out_of_range_after_utc_conversion_is_none() -> None:
    assert parse_iso_z("9999-12-31T23:59:59-05:00") is None
    assert parse_iso_z("0001-01-01T00:00:00+05:00") is None
