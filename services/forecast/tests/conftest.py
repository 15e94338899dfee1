"""
Shared test fixtures for the forecast cache test suite.

Provides:
- FakeRedis + FakeClock so TTL behaviour can be tested without sleeping
- a scripted weather.gov upstream served through httpx.MockTransport
- a fully wired ForecastService and an async FastAPI test client
"""

import os

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test env vars before any app imports
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("REDIS_URL", "redis://localhost:26379/0")
os.environ.setdefault("SENTRY_DSN", "")

from services.forecast.tests.helpers.fake_redis import FakeClock, FakeRedis  # noqa: E402
from services.forecast.tests.helpers.weather_gov import BASE_URL, FakeWeatherGov  # noqa: E402
from services.forecast.weather.cache import ForecastCache  # noqa: E402
from services.forecast.weather.client import WeatherGovClient  # noqa: E402
from services.forecast.weather.freshness import ForecastPolicy  # noqa: E402
from services.forecast.weather.service import ForecastService  # noqa: E402


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(fake_clock: FakeClock) -> FakeRedis:
    return FakeRedis(fake_clock)


@pytest.fixture
def policy() -> ForecastPolicy:
    return ForecastPolicy.from_options({"slidingTtl": 5, "maxTtl": 30})


@pytest.fixture
def forecast_cache(fake_redis, policy, fake_clock) -> ForecastCache:
    return ForecastCache(fake_redis, policy, clock=fake_clock)


@pytest.fixture
def upstream() -> FakeWeatherGov:
    return FakeWeatherGov()


@pytest.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http:
        yield http


@pytest.fixture
def weather_client(http_client) -> WeatherGovClient:
    return WeatherGovClient(http_client, base_url=BASE_URL, timeout_s=2.0)


@pytest.fixture
def forecast_service(forecast_cache, weather_client) -> ForecastService:
    return ForecastService(cache=forecast_cache, client=weather_client)


# ---------------------------------------------------------------------------
# FastAPI test client with the service wired to the fakes above
# ---------------------------------------------------------------------------

@pytest.fixture
async def app(forecast_service):
    """The FastAPI app with the fake-backed ForecastService injected."""
    from services.forecast.config import settings
    from services.forecast.main import app as _app

    _app.state.settings = settings
    _app.state.forecast_service = forecast_service
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
