"""CLI entrypoint for oddsline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from oddsline.models import OddsEvent
from oddsline.odds_data.errors import OddsDataError
from oddsline.odds_data.repo import OddsRepository
from oddsline.settings import Settings
from oddsline.time_utils import iso_z
from oddsline.wiring import SOURCES, build_repository


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    if args.timeout_s is not None:
        overrides["cache_timeout_s"] = args.timeout_s
    if args.source:
        overrides["source"] = args.source
    return Settings(**overrides)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, sort_keys=True, indent=2))


def _print_events(status: str, events: Sequence[OddsEvent]) -> None:
    _print_json(
        {
            "status": status,
            "count": len(events),
            "events": [event.to_dict() for event in events],
        }
    )


def _cmd_fetch(repo: OddsRepository, args: argparse.Namespace) -> int:
    result = repo.get_or_fetch()
    _print_events(result.status, result.events)
    return 0


def _cmd_refresh(repo: OddsRepository, args: argparse.Namespace) -> int:
    _print_events("ok", repo.refresh())
    return 0


def _cmd_peek(repo: OddsRepository, args: argparse.Namespace) -> int:
    events = repo.peek_cache()
    if events is None:
        _print_json({"status": "miss"})
    else:
        _print_events("cached", events)
    return 0


def _cmd_status(repo: OddsRepository, args: argparse.Namespace) -> int:
    status = repo.cache_status()
    _print_json(
        {
            "present": status.present,
            "is_fresh": status.is_fresh,
            "stored_at": iso_z(status.stored_at) if status.stored_at else "",
            "expires_at": iso_z(status.expires_at) if status.expires_at else "",
            "remaining_s": round(status.remaining_s, 3),
            "event_count": status.event_count,
        }
    )
    return 0


def _cmd_clear(repo: OddsRepository, args: argparse.Namespace) -> int:
    repo.clear_cache()
    print("cache cleared")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oddsline")
    parser.add_argument("--data-dir", default="", help="Override the snapshot data dir.")
    parser.add_argument(
        "--timeout-s",
        type=float,
        default=None,
        help="Cache TTL in seconds; negative never expires, 0 always expires.",
    )
    parser.add_argument("--source", choices=SOURCES, default="", help="Upstream odds source.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command")

    fetch = subparsers.add_parser("fetch", help="Serve odds from cache, fetching on a miss")
    fetch.set_defaults(func=_cmd_fetch)
    refresh = subparsers.add_parser("refresh", help="Fetch odds from upstream and cache them")
    refresh.set_defaults(func=_cmd_refresh)
    peek = subparsers.add_parser("peek", help="Show fresh cached odds without fetching")
    peek.set_defaults(func=_cmd_peek)
    status = subparsers.add_parser("status", help="Show cache freshness")
    status.set_defaults(func=_cmd_status)
    clear = subparsers.add_parser("clear", help="Drop cached odds")
    clear.set_defaults(func=_cmd_clear)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        repo = build_repository(_settings_from_args(args))
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    try:
        return int(func(repo, args))
    except (OddsDataError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2
    finally:
        close = getattr(repo.source, "close", None)
        if close is not None:
            close()


if __name__ == "__main__":
    raise SystemExit(main())
