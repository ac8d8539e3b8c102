"""
FastAPI entrypoint.

This file focuses on:
- routing
- request/response handling (the {success, data, error, message} envelope)
- wiring together settings + clients
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .advisories import current_field_insights, farm_alerts, forecast_with_field_insights
from .aggregator import AGRICULTURAL_FORECAST_DAYS, WeatherAggregator
from .settings import settings
from .weather_clients import WeatherApiClient

logging.basicConfig(level=settings.log_level)

DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------
# Dependencies
# -------------------------

def get_client() -> WeatherApiClient:
    """Provider client built from settings; tests override this."""
    return WeatherApiClient(
        settings.weather_api_key,
        base_url=settings.weather_api_base_url,
        timeout_s=settings.request_timeout_s,
    )


def get_aggregator(client: WeatherApiClient = Depends(get_client)) -> WeatherAggregator:
    return WeatherAggregator(client)


def resolve_location(
    location: Optional[str] = Query(None, max_length=255),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
) -> Optional[str]:
    """A location name wins; otherwise "lat,lon" when both coordinates are given."""
    if location and location.strip():
        return location.strip()
    if lat is not None and lon is not None:
        return f"{lat},{lon}"
    return None


def envelope(success: bool, data: Any = None, error: Optional[str] = None,
             message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body = {"success": success}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    if message is not None:
        body["message"] = message
    return JSONResponse(body, status_code=status_code)


def bad_request(error: str, message: str) -> JSONResponse:
    return envelope(False, error=error, message=message, status_code=400)


def missing_location() -> JSONResponse:
    return bad_request("MISSING_LOCATION", "Either location name or coordinates (lat, lon) are required")


def respond(result) -> JSONResponse:
    """Serialize a WeatherResponse; upstream failures become 502."""
    if not result.success:
        return envelope(False, error=result.error, message=result.message, status_code=502)
    return envelope(True, data=_dump(result.data))


def _dump(data: Any) -> Any:
    if isinstance(data, list):
        return [_dump(x) for x in data]
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    return data


# -------------------------
# API routes
# -------------------------

@app.get("/api/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/api/weather/dashboard")
async def api_dashboard_weather(
    location: Optional[str] = Depends(resolve_location),
    aggregator: WeatherAggregator = Depends(get_aggregator),
):
    """
    Dashboard snapshot:
    - current conditions (required)
    - next four forecast days (best-effort)
    - provider alerts (best-effort)
    """
    if location is None:
        return missing_location()
    return respond(await aggregator.get_dashboard_weather(location))


@app.get("/api/weather/current")
async def api_current_weather(
    location: Optional[str] = Depends(resolve_location),
    client: WeatherApiClient = Depends(get_client),
):
    """Full current reading plus field-work hints."""
    if location is None:
        return missing_location()

    result = await client.fetch_current(location)
    if not result.success:
        return respond(result)

    weather = result.data
    data = _dump(weather)
    data["lastUpdated"] = weather.current.last_updated
    data["agriculturalInsights"] = _dump(current_field_insights(weather.current))
    return envelope(True, data=data, message="Current weather retrieved successfully")


@app.get("/api/weather/forecast")
async def api_weather_forecast(
    days: int = Query(3),
    location: Optional[str] = Depends(resolve_location),
    client: WeatherApiClient = Depends(get_client),
):
    """Daily forecast (clamped to 1..7 days), each day with field insights."""
    if location is None:
        return missing_location()

    result = await client.fetch_forecast(location, days)
    if not result.success:
        return respond(result)

    forecast = result.data
    data = {
        "location": _dump(forecast.location),
        "current": _dump(forecast.current),
        "forecast": forecast_with_field_insights(forecast.days),
    }
    return envelope(True, data=data, message="Weather forecast retrieved successfully")


@app.get("/api/weather/alerts")
async def api_weather_alerts(
    location: Optional[str] = Depends(resolve_location),
    client: WeatherApiClient = Depends(get_client),
):
    """
    Alerts for the farm:
    - provider-issued alerts (as-is)
    - warnings derived from the 7-day forecast
    """
    if location is None:
        return missing_location()

    result = await client.fetch_forecast(location, AGRICULTURAL_FORECAST_DAYS)
    if not result.success:
        return respond(result)

    forecast = result.data
    data = {
        "location": _dump(forecast.location),
        "providerAlerts": _dump(forecast.alerts),
        **_dump(farm_alerts(forecast.days)),
    }
    return envelope(True, data=data, message="Weather alerts and recommendations retrieved successfully")


@app.get("/api/weather/agricultural")
async def api_agricultural_weather(
    location: Optional[str] = Depends(resolve_location),
    aggregator: WeatherAggregator = Depends(get_aggregator),
):
    """7-day forecast with planting/irrigation/pest/harvest insights."""
    if location is None:
        return missing_location()
    return respond(await aggregator.get_agricultural_weather(location))


@app.get("/api/weather/historical")
async def api_historical_weather(
    date: Optional[str] = Query(None),
    location: Optional[str] = Depends(resolve_location),
    client: WeatherApiClient = Depends(get_client),
):
    """Observed weather for one past date, for planning against last season."""
    if location is None:
        return missing_location()
    if not date or not DATE_RE.fullmatch(date):
        return bad_request("MISSING_DATE", "Date is required (YYYY-MM-DD format)")

    result = await client.fetch_history(location, date)
    if not result.success:
        return respond(result)
    return envelope(True, data=_dump(result.data), message="Historical weather data retrieved successfully")


@app.get("/api/weather/search")
async def api_search_locations(
    q: Optional[str] = Query(None, max_length=255),
    client: WeatherApiClient = Depends(get_client),
):
    """Location autocomplete (queries under 3 characters return nothing)."""
    if not q:
        return bad_request("MISSING_QUERY", "Search query is required")
    return respond(await client.search_locations(q))
