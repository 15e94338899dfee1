"""
Forecast cache: Redis-backed, keyed per coordinate pair.

Each logical entry is two Redis strings (see keys.py):

  forecast:{lat},{lon}                 JSON periods, EXPIRE = sliding TTL
  forecast:{lat},{lon}:creationTime    ISO 8601 UTC write time, EXPIRE = max TTL

Reads fetch both keys with a single MGET, so a reader sees one consistent
snapshot. Writes go through a MULTI/EXEC pipeline, so no reader can see a
new value paired with an old (or missing) creation time. Entries that are
inconsistent anyway (written by an older deploy, or a creation key that was
evicted) are treated as misses by the freshness evaluator.

Redis failures are not swallowed. They surface as
ForecastCacheUnavailableError and fail the request (503), never the process.

Uses only standard Redis commands (MGET, SET EX, TTL, EXPIRE, MULTI/EXEC),
no Lua scripts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from redis.exceptions import RedisError

from services.forecast.weather.errors import ForecastCacheUnavailableError
from services.forecast.weather.freshness import (
    CacheDecision,
    ForecastPolicy,
    Freshness,
    evaluate_freshness,
)
from services.forecast.weather.keys import CacheKeys

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _decode(raw: Any) -> str | None:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


@dataclass(frozen=True)
class CacheLookup:
    """Result of ForecastCache.lookup()."""

    freshness: Freshness
    payload: str | None = None
    previous_ttl: int | None = None
    """Remaining TTL (seconds) of the value key before a hit renewed it. Diagnostics only."""

    @property
    def is_hit(self) -> bool:
        return self.freshness.decision is CacheDecision.HIT


class ForecastCache:
    """
    Dual-TTL forecast cache on top of an async Redis client.

    Usage:
        cache = ForecastCache(app.state.redis, ForecastPolicy.from_settings(settings))
        lookup = await cache.lookup(keys)
        if not lookup.is_hit:
            payload = await fetch_from_api(...)
            if payload is not None:
                await cache.store(keys, payload)
    """

    def __init__(
        self,
        redis: Any,
        policy: ForecastPolicy,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Args:
            redis:  An async Redis client (redis.asyncio compatible).
            policy: Sliding / max TTLs.
            clock:  Returns the current aware UTC datetime. Injected by tests.
        """
        self._redis = redis
        self._policy = policy
        self._clock = clock

    @property
    def policy(self) -> ForecastPolicy:
        return self._policy

    async def lookup(self, keys: CacheKeys) -> CacheLookup:
        """
        Read an entry and decide whether it can be served.

        On a hit the value key's expiration is reset to the sliding TTL.
        The creation key is never touched here, so the entry's age keeps
        counting from when it was first written.
        """
        try:
            raw_value, raw_created = await self._redis.mget(keys.value_key, keys.creation_key)
        except RedisError as exc:
            logger.error("Forecast cache MGET failed for key=%s", keys.value_key, exc_info=True)
            raise ForecastCacheUnavailableError("read", keys.value_key) from exc

        value = _decode(raw_value)
        freshness = evaluate_freshness(value, raw_created, self._clock(), self._policy)

        if freshness.decision is CacheDecision.MISS:
            logger.debug("Forecast cache miss: %s", keys.value_key)
            return CacheLookup(freshness)

        if freshness.decision is CacheDecision.STALE:
            logger.debug(
                "Forecast cache stale: key=%s age=%s max_ttl=%s",
                keys.value_key,
                freshness.age,
                self._policy.max_ttl,
            )
            return CacheLookup(freshness)

        previous_ttl = await self._renew(keys)
        logger.debug(
            "Cache hit. Resetting TTL for key %s. Previous TTL was %s",
            keys.value_key,
            previous_ttl,
        )
        logger.debug(
            "Total time elapsed between creation and now for key %s: %s",
            keys.value_key,
            freshness.age,
        )
        return CacheLookup(freshness, payload=value, previous_ttl=previous_ttl)

    async def _renew(self, keys: CacheKeys) -> int | None:
        try:
            previous_ttl = await self._redis.ttl(keys.value_key)
            await self._redis.expire(keys.value_key, self._policy.sliding_ttl_seconds)
        except RedisError as exc:
            logger.error("Forecast cache EXPIRE failed for key=%s", keys.value_key, exc_info=True)
            raise ForecastCacheUnavailableError("expire", keys.value_key) from exc
        return previous_ttl

    async def store(self, keys: CacheKeys, payload: str) -> datetime:
        """
        Write a freshly fetched payload and its creation time.

        Returns the creation timestamp that was written.
        """
        created_at = self._clock()

        try:
            pipe = self._redis.pipeline(transaction=True)
            pipe.set(keys.value_key, payload, ex=self._policy.sliding_ttl_seconds)
            pipe.set(
                keys.creation_key,
                created_at.isoformat(),
                ex=self._policy.max_ttl_seconds,
            )
            await pipe.execute()
        except RedisError as exc:
            logger.error("Forecast cache SET failed for key=%s", keys.value_key, exc_info=True)
            raise ForecastCacheUnavailableError("write", keys.value_key) from exc

        logger.debug(
            "New data cached with key %s and creation time %s",
            keys.value_key,
            created_at.isoformat(),
        )
        return created_at
