"""Time-based validity policy for cached odds snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from oddsline.time_utils import utc_now

DEFAULT_CACHE_TIMEOUT_S = 300.0

# Expiry instant reported for snapshots that never expire.
NEVER = datetime.max.replace(tzinfo=UTC)


@dataclass(frozen=True)
class CachePolicy:
    """TTL policy.

    A negative timeout never expires, a zero timeout is always expired and a
    positive timeout is a normal TTL in seconds.
    """

    timeout_s: float = DEFAULT_CACHE_TIMEOUT_S

    @property
    def never_expires(self) -> bool:
        return self.timeout_s < 0

    @property
    def always_expired(self) -> bool:
        return self.timeout_s == 0

    def age_s(self, stored_at: datetime, now: datetime | None = None) -> float:
        return ((now or utc_now()) - stored_at).total_seconds()

    def is_valid(self, stored_at: datetime, now: datetime | None = None) -> bool:
        if self.never_expires:
            return True
        if self.always_expired:
            return False
        return self.age_s(stored_at, now) <= self.timeout_s

    def remaining_s(self, stored_at: datetime, now: datetime | None = None) -> float:
        """Return seconds left before expiry, floored at zero.

        Negative timeouts are not special-cased; check ``is_valid`` first when
        the never-expires reading matters.
        """
        return max(0.0, self.timeout_s - self.age_s(stored_at, now))

    def expiry(self, stored_at: datetime) -> datetime:
        if self.never_expires:
            return NEVER
        try:
            return stored_at + timedelta(seconds=self.timeout_s)
        except OverflowError:
            # Past the representable range.
            return NEVER
