"""Upstream odds sources: a mock generator and The Odds API v4."""

from __future__ import annotations

import random
import time
import uuid
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any, Protocol

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from oddsline.models import Bookmaker, OddsEvent, Outcome
from oddsline.odds_data.errors import UpstreamError
from oddsline.settings import Settings
from oddsline.time_utils import parse_iso_z, utc_now
from oddsline.util.parsing import expect_dict, expect_list


class UpstreamSource(Protocol):
    """Produces the current odds slate or raises ``UpstreamError``."""

    def fetch(self) -> list[OddsEvent]: ...


MOCK_FIXTURES: dict[str, list[tuple[str, str, str]]] = {
    "basketball": [
        ("Los Angeles Lakers", "Golden State Warriors", "NBA"),
        ("Boston Celtics", "Miami Heat", "NBA"),
        ("Phoenix Suns", "Denver Nuggets", "NBA"),
    ],
    "football": [
        ("New England Patriots", "Buffalo Bills", "NFL"),
        ("Kansas City Chiefs", "Dallas Cowboys", "NFL"),
        ("Green Bay Packers", "Chicago Bears", "NFL"),
    ],
    "soccer": [
        ("Manchester United", "Liverpool", "EPL"),
        ("Real Madrid", "Barcelona", "La Liga"),
        ("Bayern Munich", "Borussia Dortmund", "Bundesliga"),
    ],
    "baseball": [
        ("New York Yankees", "Boston Red Sox", "MLB"),
        ("Los Angeles Dodgers", "San Francisco Giants", "MLB"),
    ],
    "hockey": [
        ("Toronto Maple Leafs", "Montreal Canadiens", "NHL"),
        ("Chicago Blackhawks", "Detroit Red Wings", "NHL"),
    ],
}
MOCK_BOOKMAKERS = ["DraftKings", "FanDuel", "BetMGM", "William Hill", "Caesars", "PointsBet"]
DRAW_SPORTS = {"soccer"}


class MockOddsSource:
    """Generates a plausible odds slate without any network access."""

    def __init__(
        self,
        *,
        count: int = 15,
        simulate_error: bool = False,
        simulate_empty: bool = False,
        delay_s: float = 0.0,
        seed: int | None = None,
    ) -> None:
        self.count = max(0, int(count))
        self.simulate_error = simulate_error
        self.simulate_empty = simulate_empty
        self.delay_s = delay_s
        self._random = random.Random(seed)

    def fetch(self) -> list[OddsEvent]:
        if self.delay_s > 0:
            time.sleep(self.delay_s)
        if self.simulate_error:
            raise UpstreamError("request failed")
        if self.simulate_empty:
            return []
        now = utc_now()
        return [self._event(now) for _ in range(self.count)]

    def _event(self, now: datetime) -> OddsEvent:
        sport = self._random.choice(sorted(MOCK_FIXTURES))
        home, away, league = self._random.choice(MOCK_FIXTURES[sport])
        event_id = "_".join(
            [sport, league, home.replace(" ", "_"), away.replace(" ", "_"), uuid.uuid4().hex]
        )
        offset_s = self._random.uniform(3600, 86400 * 7)
        return OddsEvent(
            id=event_id,
            sport=sport,
            home_team=home,
            away_team=away,
            commence_time=now + timedelta(seconds=offset_s),
            bookmakers=self._bookmakers(sport, home, away),
        )

    def _bookmakers(self, sport: str, home: str, away: str) -> tuple[Bookmaker, ...]:
        names = self._random.sample(MOCK_BOOKMAKERS, self._random.randint(2, 4))
        books = []
        for name in names:
            outcomes = [
                Outcome(name=home, price=round(self._random.uniform(1.5, 3.0), 2)),
                Outcome(name=away, price=round(self._random.uniform(1.5, 3.0), 2)),
            ]
            if sport in DRAW_SPORTS:
                draw_price = round(self._random.uniform(2.8, 4.0), 2)
                outcomes.append(Outcome(name="Draw", price=draw_price))
            books.append(Bookmaker(name=name, outcomes=tuple(outcomes)))
        return tuple(books)


class RetryableStatusError(RuntimeError):
    """Raised for retryable status codes."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"retryable status {response.status_code}")

    def retry_after_seconds(self) -> float | None:
        raw_value = self.response.headers.get("Retry-After")
        if not raw_value:
            return None
        try:
            return max(0.0, float(raw_value))
        except ValueError:
            try:
                date_value = parsedate_to_datetime(raw_value)
            except (TypeError, ValueError):
                return None
            return max(0.0, (date_value - datetime.now(UTC)).total_seconds())


def _wait_for_retry(retry_state) -> float:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(exc, RetryableStatusError):
        retry_after = exc.retry_after_seconds()
        if retry_after is not None:
            return min(retry_after, 60.0)
    return min(2 ** (retry_state.attempt_number - 1), 30.0)


def normalize_api_events(payload: Any, *, market: str = "h2h") -> list[OddsEvent]:
    """Convert an Odds API ``/odds`` payload into ``OddsEvent`` records."""
    events: list[OddsEvent] = []
    for raw_event in expect_list(payload, "odds_payload"):
        event = expect_dict(raw_event, "odds_event")
        commence_time = parse_iso_z(str(event.get("commence_time", "")))
        if commence_time is None:
            raise ValueError(f"odds_event {event.get('id')!r} has no commence_time")
        bookmakers = []
        for raw_book in expect_list(event.get("bookmakers", []), "odds_event.bookmakers"):
            book = expect_dict(raw_book, "odds_bookmaker")
            outcomes: list[Outcome] = []
            for raw_market in expect_list(book.get("markets", []), "odds_bookmaker.markets"):
                market_row = expect_dict(raw_market, "odds_market")
                if market_row.get("key") != market:
                    continue
                outcomes.extend(
                    Outcome.from_dict(item)
                    for item in expect_list(market_row.get("outcomes", []), "odds_market.outcomes")
                )
            bookmakers.append(
                Bookmaker(
                    name=str(book.get("title") or book.get("key", "")),
                    outcomes=tuple(outcomes),
                )
            )
        events.append(
            OddsEvent(
                id=str(event.get("id", "")),
                sport=str(event.get("sport_key", "")),
                home_team=str(event.get("home_team", "")),
                away_team=str(event.get("away_team", "")),
                commence_time=commence_time,
                bookmakers=tuple(bookmakers),
            )
        )
    return events


class OddsAPISource:
    """Fetches the odds slate from The Odds API v4."""

    def __init__(self, settings: Settings, *, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings
        self._base_url = settings.odds_api_base_url.rstrip("/")
        limits = httpx.Limits(max_connections=8, max_keepalive_connections=4)
        self._http = httpx.Client(
            timeout=settings.odds_api_timeout_s, limits=limits, transport=transport
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> OddsAPISource:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        api_key = str(self.settings.odds_api_key).strip()
        if not api_key:
            raise UpstreamError("missing Odds API key; set ODDS_API_KEY")
        url = f"{self._base_url}/{path.lstrip('/')}"
        response: httpx.Response | None = None
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(4),
                retry=retry_if_exception_type(RetryableStatusError),
                wait=_wait_for_retry,
                reraise=True,
            ):
                with attempt:
                    response = self._http.get(url, params={**params, "apiKey": api_key})
                    if response.status_code == 429 or 500 <= response.status_code <= 599:
                        raise RetryableStatusError(response)
                    response.raise_for_status()
        except RetryableStatusError as exc:
            raise UpstreamError(
                f"{path} failed with status {exc.response.status_code} after retries"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(f"{path} failed with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{path} failed with transport error: {exc}") from exc
        if response is None:
            raise UpstreamError(f"{path} failed without a response")
        try:
            return response.json()
        except (ValueError, RecursionError) as exc:
            raise UpstreamError(f"{path} returned invalid JSON") from exc

    def fetch(self) -> list[OddsEvent]:
        path = f"/sports/{self.settings.odds_api_sport_key}/odds"
        payload = self._get(
            path,
            {
                "regions": self.settings.odds_api_regions,
                "markets": self.settings.odds_api_markets,
                "oddsFormat": "decimal",
                "dateFormat": "iso",
            },
        )
        market = self.settings.odds_api_markets.split(",")[0].strip() or "h2h"
        try:
            return normalize_api_events(payload, market=market)
        except ValueError as exc:
            raise UpstreamError(f"{path} returned malformed odds: {exc}") from exc
