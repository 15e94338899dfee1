"""
ForecastService: cache-aside forecast lookup for a coordinate pair.

Flow for every request:

  cache_keys(lat, lon)
    -> ForecastCache.lookup()        HIT: sliding TTL renewed, cached payload used
    -> MISS / STALE:
         WeatherGovClient.fetch_forecast()
         ForecastCache.store()       only when the fetch returned something
    -> _assemble()                   JSON periods -> ForecastResult + elapsed ms

A failed upstream fetch is not cached, so the next request for the same
coordinates goes upstream again. Redis errors propagate as
ForecastCacheUnavailableError.
"""

from __future__ import annotations

import json
import logging
import time

from pydantic import TypeAdapter, ValidationError

from services.forecast.weather.cache import ForecastCache
from services.forecast.weather.client import WeatherGovClient
from services.forecast.weather.keys import cache_keys
from services.forecast.weather.models import ForecastPeriod, ForecastResult

logger = logging.getLogger(__name__)

_PERIODS_ADAPTER = TypeAdapter(list[ForecastPeriod])


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _parse_periods(payload: str) -> list[ForecastPeriod] | None:
    """Deserialize a cached/fetched payload, or None if it is not a list of periods."""
    try:
        return _PERIODS_ADAPTER.validate_python(json.loads(payload))
    except (ValueError, ValidationError):
        logger.warning("Discarding unreadable forecast payload: %.200s", payload)
        return None


class ForecastService:
    """
    Serves forecasts from ForecastCache, falling back to weather.gov.

    Usage:
        service = ForecastService(cache=ForecastCache(redis, policy), client=WeatherGovClient(http))
        result = await service.get_forecast(39.74, -104.99)
    """

    def __init__(self, cache: ForecastCache, client: WeatherGovClient) -> None:
        self._cache = cache
        self._client = client

    async def get_forecast(self, latitude: float, longitude: float) -> ForecastResult | None:
        """
        Return the forecast for a coordinate pair, or None when no data is available.

        None is a normal outcome (upstream down, unknown location), not an error.
        """
        started = time.perf_counter()
        keys = cache_keys(latitude, longitude)

        logger.debug("Fetching weather forecast for %s, %s", latitude, longitude)

        lookup = await self._cache.lookup(keys)
        if lookup.is_hit:
            payload = lookup.payload
        else:
            payload = await self._client.fetch_forecast(latitude, longitude)
            if payload is None:
                logger.info(
                    "No forecast available for %s, %s (%s)",
                    latitude,
                    longitude,
                    lookup.freshness.decision.value,
                )
            else:
                await self._cache.store(keys, payload)

        return self._assemble(payload, started)

    def _assemble(self, payload: str | None, started: float) -> ForecastResult | None:
        if payload is None:
            return None

        periods = _parse_periods(payload)
        if periods is None:
            return None

        elapsed = _elapsed_ms(started)
        logger.debug("Weather forecast fetched in %d ms", elapsed)
        return ForecastResult(periods=periods, elapsedMilliseconds=elapsed)
