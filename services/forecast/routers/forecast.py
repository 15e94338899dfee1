"""
Forecast endpoint: GET /weatherforecast

Wraps ForecastService for HTTP consumers.
``data`` is null when no forecast could be obtained; that is not an error.
"""

from __future__ import annotations

import math

from fastapi import APIRouter, HTTPException, Query, Request

router = APIRouter(tags=["forecast"])


def _require_finite(value: float, field: str) -> float:
    if not math.isfinite(value):
        raise HTTPException(status_code=422, detail=f"{field} must be a finite number")
    return value


@router.get("/weatherforecast", name="GetWeatherForecast")
async def get_weather_forecast(
    request: Request,
    latitude: float = Query(..., description="Latitude in decimal degrees"),
    longitude: float = Query(..., description="Longitude in decimal degrees"),
) -> dict:
    forecast_service = request.app.state.forecast_service

    result = await forecast_service.get_forecast(
        _require_finite(latitude, "latitude"),
        _require_finite(longitude, "longitude"),
    )

    return {
        "success": True,
        "data": result.model_dump(exclude_unset=True) if result is not None else None,
        "requestId": request.state.request_id,
    }
