"""
Forecast payload shapes.

ForecastPeriod mirrors one entry of weather.gov's ``properties.periods``.
The cache stores the periods as an opaque JSON string and never looks inside;
the fields below are only declared so the API schema is useful. They are
typed ``Any`` because weather.gov changes value shapes behind feature flags
(``temperature`` as a QuantitativeValue object, for one), and anything else
it sends is kept via ``extra="allow"``. Dump with ``exclude_unset=True`` to
get back exactly what was received.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GridPoint(BaseModel):
    """weather.gov forecast office + grid cell for a coordinate pair."""

    grid_id: str = Field(..., min_length=1)
    grid_x: int
    grid_y: int


class ForecastPeriod(BaseModel):
    model_config = ConfigDict(extra="allow")

    number: Any = None
    name: Any = None
    startTime: Any = None
    endTime: Any = None
    isDaytime: Any = None
    temperature: Any = None
    temperatureUnit: Any = None
    temperatureTrend: Any = None
    probabilityOfPrecipitation: Any = None
    windSpeed: Any = None
    windDirection: Any = None
    icon: Any = None
    shortForecast: Any = None
    detailedForecast: Any = None


class ForecastResult(BaseModel):
    """What GET /weatherforecast returns for a coordinate pair."""

    periods: list[ForecastPeriod] = Field(default_factory=list)
    elapsedMilliseconds: int = Field(..., ge=0)
