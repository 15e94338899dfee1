"""
WeatherGovClient: two-step api.weather.gov forecast lookup.

  1. GET /points/{lat},{lon}
       -> properties.gridId, properties.gridX, properties.gridY
  2. GET /gridpoints/{gridId}/{gridX},{gridY}/forecast
       -> properties.periods

Only ``properties.periods`` is kept; it is re-serialized to a compact JSON
string and handed to the cache as an opaque blob.

Every failure (network error, timeout, non-2xx, bad JSON, missing field)
ends the lookup with None. Nothing is retried; the next request simply
tries again.

weather.gov answers coordinates with more than four decimals with a 301 to
the rounded URL, so redirects are followed.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from services.forecast.weather.models import GridPoint

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.weather.gov"
_DEFAULT_USER_AGENT = "weatherCachingApp/1.0"

# HTTP timeout for each weather.gov call
_API_TIMEOUT_S = 8.0


def _extract_grid_point(payload: Any) -> GridPoint | None:
    """Pull the grid reference out of a /points response, or None."""
    if not isinstance(payload, dict):
        return None
    properties = payload.get("properties")
    if not isinstance(properties, dict):
        return None
    try:
        return GridPoint(
            grid_id=properties.get("gridId"),
            grid_x=properties.get("gridX"),
            grid_y=properties.get("gridY"),
        )
    except ValidationError:
        return None


def _extract_periods(payload: Any) -> list[dict[str, Any]] | None:
    """
    Pull ``properties.periods`` out of a gridpoints forecast response, or None.

    Every period must be a JSON object; anything else is never cached.
    """
    if not isinstance(payload, dict):
        return None
    properties = payload.get("properties")
    if not isinstance(properties, dict):
        return None
    periods = properties.get("periods")
    if not isinstance(periods, list):
        return None
    if not all(isinstance(period, dict) for period in periods):
        return None
    return periods


class WeatherGovClient:
    """
    Thin async client for the two weather.gov endpoints the cache needs.

    Usage:
        async with httpx.AsyncClient() as http:
            client = WeatherGovClient(http)
            payload = await client.fetch_forecast(39.74, -104.99)
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str = _DEFAULT_BASE_URL,
        timeout_s: float = _API_TIMEOUT_S,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        """
        Args:
            http:       Shared httpx.AsyncClient (connection pool owned by the app).
            base_url:   weather.gov root, overridable for tests.
            timeout_s:  Per-call timeout; expiry counts as a fetch failure.
            user_agent: weather.gov requires an identifying User-Agent.
        """
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "application/geo+json",
        }

    async def _get_json(self, path: str) -> Any | None:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(
                url,
                headers=self._headers,
                timeout=self._timeout_s,
                follow_redirects=True,
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "weather.gov returned %d for %s: %s",
                exc.response.status_code,
                url,
                exc.response.text[:200],
            )
        except httpx.TimeoutException:
            logger.warning("weather.gov timed out after %.1fs for %s", self._timeout_s, url)
        except httpx.HTTPError as exc:
            logger.warning("weather.gov request failed for %s: %s", url, exc)
        except ValueError:
            logger.warning("weather.gov returned invalid JSON for %s", url)
        return None

    async def get_grid_point(self, latitude: float, longitude: float) -> GridPoint | None:
        """Resolve a coordinate pair to its forecast grid cell."""
        payload = await self._get_json(f"/points/{latitude},{longitude}")
        if payload is None:
            return None
        grid = _extract_grid_point(payload)
        if grid is None:
            logger.warning(
                "weather.gov points response missing grid fields for %s,%s",
                latitude,
                longitude,
            )
        return grid

    async def get_periods(self, grid: GridPoint) -> list[dict[str, Any]] | None:
        """Fetch the forecast periods for a grid cell."""
        payload = await self._get_json(
            f"/gridpoints/{grid.grid_id}/{grid.grid_x},{grid.grid_y}/forecast"
        )
        if payload is None:
            return None
        periods = _extract_periods(payload)
        if periods is None:
            logger.warning("weather.gov forecast response missing periods for %s", grid)
        return periods

    async def fetch_forecast(self, latitude: float, longitude: float) -> str | None:
        """
        Run both lookups and return the periods as a JSON string.

        Returns None if either step fails.
        """
        grid = await self.get_grid_point(latitude, longitude)
        if grid is None:
            return None

        periods = await self.get_periods(grid)
        if periods is None:
            return None

        return json.dumps(periods, separators=(",", ":"))
