"""Exceptions raised out of the forecast service."""


class ForecastServiceError(Exception):
    """Base class for request-level forecast failures."""

    code = "FORECAST_ERROR"
    status_code = 500


class ForecastCacheUnavailableError(ForecastServiceError):
    """Redis could not be reached or rejected a command."""

    code = "CACHE_UNAVAILABLE"
    status_code = 503

    def __init__(self, operation: str, key: str) -> None:
        super().__init__(f"Forecast cache {operation} failed for key={key}")
        self.operation = operation
        self.key = key
