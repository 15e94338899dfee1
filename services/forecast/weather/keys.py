"""
Redis key derivation for cached forecasts.

Key format:
  value:          forecast:{lat},{lon}
  creation time:  forecast:{lat},{lon}:creationTime

Coordinates are rendered with repr(float), the shortest string that
round-trips to the same float, so identical inputs always collide and any
difference in either coordinate produces a different key.
"""

from __future__ import annotations

from typing import NamedTuple

_KEY_PREFIX = "forecast"
_CREATION_SUFFIX = "creationTime"


class CacheKeys(NamedTuple):
    """The two Redis keys that make up one logical forecast entry."""

    value_key: str
    creation_key: str


def _format_coordinate(value: float) -> str:
    # -0.0 and 0.0 compare equal, so they must share a key
    return repr(float(value) + 0.0)


def cache_keys(latitude: float, longitude: float) -> CacheKeys:
    """Build the value key and its companion creation-time key."""
    value_key = f"{_KEY_PREFIX}:{_format_coordinate(latitude)},{_format_coordinate(longitude)}"
    return CacheKeys(value_key=value_key, creation_key=f"{value_key}:{_CREATION_SUFFIX}")
