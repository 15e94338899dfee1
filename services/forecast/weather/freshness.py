"""
Dual-TTL freshness policy for cached forecasts.

Two clocks govern every entry:

  sliding TTL   Redis expiration on the value key, reset on every hit.
                Controls memory residency only: an idle entry drops out
                of Redis after this long.
  max TTL       Ceiling on the age of the data, measured from the
                creation timestamp written alongside the value. Hits never
                move the creation timestamp, so a key polled continuously
                still goes stale once it is older than this.

Decision table:

  value   creation time parseable   age <= max TTL   decision
  -----   -----------------------   --------------   --------
  no      -                         -                MISS
  yes     no                        -                MISS
  yes     yes                       no               STALE
  yes     yes                       yes              HIT

STALE is handled exactly like MISS by the caller; it is kept separate so
the two show up differently in logs.
"""

from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
_FRACTION_RE = re.compile(r"\.(\d+)")


class CacheDecision(str, enum.Enum):
    HIT = "hit"
    STALE = "stale"
    MISS = "miss"


@dataclass(frozen=True)
class ForecastPolicy:
    """Sliding and absolute TTLs for forecast entries."""

    sliding_ttl: timedelta
    max_ttl: timedelta

    def __post_init__(self) -> None:
        if self.sliding_ttl <= timedelta(0):
            raise ValueError("sliding_ttl must be positive")
        if self.max_ttl <= timedelta(0):
            raise ValueError("max_ttl must be positive")

    @classmethod
    def from_seconds(cls, sliding_ttl: float, max_ttl: float) -> ForecastPolicy:
        return cls(
            sliding_ttl=timedelta(seconds=sliding_ttl),
            max_ttl=timedelta(seconds=max_ttl),
        )

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> ForecastPolicy:
        """
        Build a policy from an options mapping.

        Recognised keys: ``slidingTtl`` and ``maxTtl``, both in seconds.
        Missing keys fall back to 5s / 30s.
        """
        unknown = set(options) - {"slidingTtl", "maxTtl"}
        if unknown:
            raise ValueError(f"Unknown forecast cache options: {sorted(unknown)}")
        return cls.from_seconds(
            sliding_ttl=float(options.get("slidingTtl", 5)),
            max_ttl=float(options.get("maxTtl", 30)),
        )

    @classmethod
    def from_settings(cls, settings: Any) -> ForecastPolicy:
        return cls.from_seconds(
            sliding_ttl=settings.forecast_sliding_ttl_s,
            max_ttl=settings.forecast_max_ttl_s,
        )

    @property
    def sliding_ttl_seconds(self) -> int:
        """Sliding TTL rounded up to whole seconds, as Redis EXPIRE wants."""
        return max(1, math.ceil(self.sliding_ttl.total_seconds()))

    @property
    def max_ttl_seconds(self) -> int:
        return max(1, math.ceil(self.max_ttl.total_seconds()))


@dataclass(frozen=True)
class Freshness:
    """Outcome of evaluating one cache entry."""

    decision: CacheDecision
    created_at: datetime | None = None
    age: timedelta | None = None


def _as_text(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return str(raw)


def parse_creation_time(raw: Any) -> datetime | None:
    """
    Parse a stored creation timestamp into an aware UTC datetime.

    Returns None for missing, empty or unparseable values. Naive
    timestamps are taken to be UTC. Round-trip stamps with a trailing ``Z``
    and up to seven fractional digits (``2026-03-01T12:00:00.1234567Z``)
    are accepted; digits past microseconds are dropped.
    """
    text = _as_text(raw)
    if not text or not text.strip():
        return None
    text = text.strip()
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def evaluate_freshness(
    value: Any,
    created_raw: Any,
    now: datetime,
    policy: ForecastPolicy,
) -> Freshness:
    """Apply the decision table to a value/creation-time pair read from Redis."""
    if not _as_text(value):
        return Freshness(CacheDecision.MISS)

    created_at = parse_creation_time(created_raw)
    if created_at is None:
        logger.warning(
            "Forecast entry has a missing or malformed creation time: %r",
            created_raw,
        )
        return Freshness(CacheDecision.MISS)

    # Clock skew between writers can put the creation time slightly ahead
    age = max(now - created_at, timedelta(0))
    if age > policy.max_ttl:
        return Freshness(CacheDecision.STALE, created_at=created_at, age=age)
    return Freshness(CacheDecision.HIT, created_at=created_at, age=age)
