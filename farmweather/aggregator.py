"""
Weather aggregation for the dashboard.

get_dashboard_weather fans out three provider calls at once and merges them:
- current conditions are mandatory (no reading -> no snapshot)
- forecast and alerts are best-effort (failure -> empty list)

get_agricultural_weather pairs a 7-day forecast with derived insights.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import List, Optional

from .insights import InsightPreconditionError, compute_insights
from .schemas import (
    AgriculturalWeather,
    CurrentConditions,
    DashboardCurrent,
    DashboardForecastDay,
    DashboardWeatherSnapshot,
    ForecastDay,
    WeatherResponse,
)
from .weather_clients import UNKNOWN_ERROR, WeatherApiClient

logger = logging.getLogger(__name__)

DASHBOARD_FORECAST_DAYS = 5
AGRICULTURAL_FORECAST_DAYS = 7

# Day 0 is today and is already covered by current conditions.
DASHBOARD_FORECAST_SLICE = slice(1, 5)

DASHBOARD_FAILED_MESSAGE = "Failed to fetch dashboard weather data"
INSIGHTS_FAILED_MESSAGE = "Failed to compute agricultural insights"
MISSING_LOCATION_ERROR = "Location is required"


def round_half_up(value: float) -> int:
    """Nearest integer with .5 going up (2.5 -> 3, -2.5 -> -2), unlike round()."""
    return int(math.floor(value + 0.5))


def to_dashboard_current(current: CurrentConditions) -> DashboardCurrent:
    return DashboardCurrent(
        temperature=round_half_up(current.temperature_c),
        condition=current.condition,
        humidity=current.humidity,
        wind_speed=round_half_up(current.wind_kph),
        rainfall=current.precip_mm,
        uv_index=current.uv,
        icon=current.icon,
    )


def to_dashboard_day(day: ForecastDay) -> DashboardForecastDay:
    return DashboardForecastDay(
        date=day.date,
        max_temp=round_half_up(day.max_temp_c),
        min_temp=round_half_up(day.min_temp_c),
        condition=day.condition,
        chance_of_rain=day.chance_of_rain,
        icon=day.icon,
    )


def _settled(result, branch: str) -> WeatherResponse:
    """Turn a gather() outcome into a WeatherResponse, even if the branch blew up."""
    if isinstance(result, BaseException):
        logger.error("Dashboard %s branch raised: %r", branch, result)
        return WeatherResponse.fail(str(result) or UNKNOWN_ERROR, DASHBOARD_FAILED_MESSAGE)
    return result


class WeatherAggregator:
    """Combines WeatherApiClient calls into dashboard- and farm-ready views."""

    def __init__(self, client: WeatherApiClient):
        self.client = client

    async def get_dashboard_weather(self, location: str) -> WeatherResponse:
        """
        One snapshot for the dashboard widget.

        Fails only when current conditions cannot be fetched; a failed
        forecast or alerts call just leaves that part empty.
        """
        if not location or not location.strip():
            return WeatherResponse.fail(MISSING_LOCATION_ERROR, DASHBOARD_FAILED_MESSAGE)

        results = await asyncio.gather(
            self.client.fetch_current(location),
            self.client.fetch_forecast(location, DASHBOARD_FORECAST_DAYS),
            self.client.fetch_alerts(location),
            return_exceptions=True,
        )
        current_res, forecast_res, alerts_res = (
            _settled(r, name) for r, name in zip(results, ("current", "forecast", "alerts"))
        )

        if not current_res.success:
            return WeatherResponse.fail(
                current_res.error or UNKNOWN_ERROR,
                current_res.message or DASHBOARD_FAILED_MESSAGE,
                status_code=current_res.status_code,
            )

        current = current_res.data.current

        forecast: List[DashboardForecastDay] = []
        if forecast_res.success and forecast_res.data.days:
            forecast = [to_dashboard_day(d) for d in forecast_res.data.days[DASHBOARD_FORECAST_SLICE]]
        else:
            logger.info("No forecast for %r, dashboard shows it empty", location)

        alerts = []
        if alerts_res.success:
            alerts = alerts_res.data
        else:
            logger.info("No alerts for %r, dashboard shows them empty", location)

        snapshot = DashboardWeatherSnapshot(
            current=to_dashboard_current(current),
            forecast=forecast,
            alerts=alerts,
            last_updated=current.last_updated,
        )
        return WeatherResponse.ok(snapshot)

    async def get_agricultural_weather(self, location: str, days: Optional[int] = None) -> WeatherResponse:
        """Forecast (default 7 days) plus insights computed from it."""
        if not location or not location.strip():
            return WeatherResponse.fail(MISSING_LOCATION_ERROR, INSIGHTS_FAILED_MESSAGE)

        forecast_res = await self.client.fetch_forecast(location, days or AGRICULTURAL_FORECAST_DAYS)
        if not forecast_res.success:
            return forecast_res

        forecast = forecast_res.data
        try:
            insights = compute_insights(forecast.current, forecast.days)
        except InsightPreconditionError as e:
            logger.warning("Insights skipped for %r: %s", location, e)
            return WeatherResponse.fail(str(e), INSIGHTS_FAILED_MESSAGE)

        return WeatherResponse.ok(
            AgriculturalWeather(current=forecast.current, forecast=forecast.days, insights=insights)
        )
