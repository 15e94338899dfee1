"""
Forecast cache FastAPI service: weather.gov forecasts served through Redis.

Entrypoint: uvicorn services.forecast.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

import httpx
import redis.asyncio as aioredis
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from services.forecast.config import settings
from services.forecast.middleware.cors import setup_cors
from services.forecast.middleware.sentry import setup_sentry
from services.forecast.routers import forecast, health
from services.forecast.weather import (
    ForecastCache,
    ForecastPolicy,
    ForecastService,
    WeatherGovClient,
)
from services.forecast.weather.errors import ForecastServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    setup_sentry()

    redis_client = aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
    )
    try:
        await redis_client.ping()
    except Exception:
        # Requests fail with CACHE_UNAVAILABLE until Redis comes back
        logger.warning("Redis not reachable at startup: %s", settings.redis_url, exc_info=True)

    http_client = httpx.AsyncClient(timeout=settings.weather_api_timeout_s)

    policy = ForecastPolicy.from_settings(settings)
    app.state.redis = redis_client
    app.state.http = http_client
    app.state.settings = settings
    app.state.forecast_service = ForecastService(
        cache=ForecastCache(redis_client, policy),
        client=WeatherGovClient(
            http_client,
            base_url=settings.weather_api_base_url,
            timeout_s=settings.weather_api_timeout_s,
            user_agent=settings.weather_api_user_agent,
        ),
    )
    logger.info(
        "Forecast cache ready: sliding_ttl=%ss max_ttl=%ss",
        policy.sliding_ttl_seconds,
        policy.max_ttl_seconds,
    )

    yield

    await http_client.aclose()
    await redis_client.aclose()


app = FastAPI(
    title="Forecast Cache API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(forecast.router)

setup_cors(app)


# Request ID injection
@app.middleware("http")
async def request_envelope_middleware(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# -- Exception Handlers --

def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message},
            "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
        },
    )


@app.exception_handler(ForecastServiceError)
async def forecast_error_handler(request: Request, exc: ForecastServiceError) -> JSONResponse:
    logger.warning("Forecast request failed: %s", exc)
    return _error_response(request, exc.status_code, exc.code, "Forecast temporarily unavailable.")


@app.exception_handler(404)
async def not_found_handler(request: Request, exc) -> JSONResponse:
    return _error_response(request, 404, "NOT_FOUND", "Resource not found.")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(request, 422, "VALIDATION_ERROR", str(exc.errors()))


@app.exception_handler(422)
async def validation_error_handler(request: Request, exc) -> JSONResponse:
    message = str(exc.detail) if hasattr(exc, "detail") else "Validation error."
    return _error_response(request, 422, "VALIDATION_ERROR", message)


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc) -> JSONResponse:
    return _error_response(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")
