"""Odds event, bookmaker and outcome records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from oddsline.time_utils import iso_z, parse_iso_z, utc_now
from oddsline.util.parsing import expect_dict, expect_list, expect_str


@dataclass(frozen=True)
class Outcome:
    """One priced selection, in decimal odds."""

    name: str
    price: float

    @property
    def display_price(self) -> str:
        return f"{self.price:.2f}"

    @property
    def implied_probability(self) -> float:
        if self.price <= 0:
            return 0.0
        return 1 / self.price * 100

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "price": self.price}

    @classmethod
    def from_dict(cls, payload: Any) -> Outcome:
        row = expect_dict(payload, "outcome")
        price = row.get("price")
        if isinstance(price, bool) or not isinstance(price, int | float):
            raise ValueError("outcome.price must be a number")
        return cls(name=expect_str(row.get("name"), "outcome.name"), price=float(price))


@dataclass(frozen=True)
class Bookmaker:
    """A bookmaker and the outcomes it prices."""

    name: str
    outcomes: tuple[Outcome, ...] = ()

    @property
    def best_outcome(self) -> Outcome | None:
        if not self.outcomes:
            return None
        return max(self.outcomes, key=lambda item: item.price)

    def has_outcome(self, name: str) -> bool:
        target = name.lower()
        return any(item.name.lower() == target for item in self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "outcomes": [item.to_dict() for item in self.outcomes]}

    @classmethod
    def from_dict(cls, payload: Any) -> Bookmaker:
        row = expect_dict(payload, "bookmaker")
        outcomes = expect_list(row.get("outcomes", []), "bookmaker.outcomes")
        return cls(
            name=expect_str(row.get("name"), "bookmaker.name"),
            outcomes=tuple(Outcome.from_dict(item) for item in outcomes),
        )


@dataclass(frozen=True)
class OddsEvent:
    """A sporting event with odds from one or more bookmakers."""

    id: str
    sport: str
    home_team: str
    away_team: str
    commence_time: datetime
    bookmakers: tuple[Bookmaker, ...] = field(default=())

    @property
    def display_title(self) -> str:
        return f"{self.home_team} vs {self.away_team}"

    def is_live(self, now: datetime | None = None) -> bool:
        return self.commence_time <= (now or utc_now())

    def best_odds(self) -> list[Outcome] | None:
        """Return the highest-priced outcome per selection name across bookmakers."""
        if not self.bookmakers:
            return None
        best: dict[str, Outcome] = {}
        for bookmaker in self.bookmakers:
            for outcome in bookmaker.outcomes:
                key = outcome.name.lower()
                current = best.get(key)
                if current is None or outcome.price > current.price:
                    best[key] = outcome
        return sorted(best.values(), key=lambda item: item.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sport": self.sport,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "commenceTime": iso_z(self.commence_time),
            "bookmakers": [item.to_dict() for item in self.bookmakers],
        }

    @classmethod
    def from_dict(cls, payload: Any) -> OddsEvent:
        row = expect_dict(payload, "event")
        commence_time = parse_iso_z(expect_str(row.get("commenceTime"), "event.commenceTime"))
        if commence_time is None:
            raise ValueError("event.commenceTime must be an ISO-8601 timestamp")
        bookmakers = expect_list(row.get("bookmakers", []), "event.bookmakers")
        return cls(
            id=expect_str(row.get("id"), "event.id"),
            sport=expect_str(row.get("sport"), "event.sport"),
            home_team=expect_str(row.get("homeTeam"), "event.homeTeam"),
            away_team=expect_str(row.get("awayTeam"), "event.awayTeam"),
            commence_time=commence_time,
            bookmakers=tuple(Bookmaker.from_dict(item) for item in bookmakers),
        )
