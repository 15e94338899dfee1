"""
Weather forecast package.

Provides the api.weather.gov integration with dual-TTL Redis caching.
Entries are keyed per coordinate pair; see weather/freshness.py for the policy.
"""

from services.forecast.weather.cache import ForecastCache
from services.forecast.weather.client import WeatherGovClient
from services.forecast.weather.freshness import ForecastPolicy
from services.forecast.weather.service import ForecastService

__all__ = ["ForecastCache", "ForecastPolicy", "ForecastService", "WeatherGovClient"]
