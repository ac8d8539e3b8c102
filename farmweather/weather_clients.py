"""
Weather clients.

We intentionally separate API logic from FastAPI endpoints:
- easier to test in isolation (inject an httpx transport, no network)
- cleaner main.py
- one place that turns upstream failures into WeatherResponse values

Nothing in this module raises past the public fetch_* methods: every
transport or upstream failure comes back as WeatherResponse(success=False).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from .schemas import (
    Alert,
    CurrentConditions,
    CurrentWeather,
    Forecast,
    ForecastDay,
    HistoricalWeather,
    LocationMatch,
    ResolvedLocation,
    WeatherResponse,
)

logger = logging.getLogger(__name__)

MIN_FORECAST_DAYS = 1
MAX_FORECAST_DAYS = 7

# Autocomplete is pointless (and noisy upstream) below this length.
MIN_SEARCH_QUERY_LENGTH = 3

FETCH_FAILED_MESSAGE = "Failed to fetch weather data"
CONNECT_FAILED_MESSAGE = "Failed to connect to weather service"
UNKNOWN_ERROR = "Unknown error occurred"


class WeatherError(RuntimeError):
    """Raised for provider payloads we cannot make sense of."""
    pass


def clamp_days(days: int) -> int:
    """Keep a requested forecast horizon inside what we ask the provider for."""
    return min(max(int(days), MIN_FORECAST_DAYS), MAX_FORECAST_DAYS)


# -------------------------
# Upstream payload -> schema mapping
# -------------------------

def parse_location(raw: Optional[Dict[str, Any]]) -> Optional[ResolvedLocation]:
    if not raw:
        return None
    return ResolvedLocation(
        name=raw.get("name", ""),
        region=raw.get("region", ""),
        country=raw.get("country", ""),
        lat=float(raw["lat"]),
        lon=float(raw["lon"]),
        tz_id=raw.get("tz_id", ""),
        localtime=raw.get("localtime", ""),
    )


def parse_current(raw: Dict[str, Any]) -> CurrentConditions:
    """Map the provider's `current` object (Celsius/Fahrenheit pairs) to metric."""
    condition = raw.get("condition") or {}
    return CurrentConditions(
        temperature_c=float(raw["temp_c"]),
        condition=condition.get("text", ""),
        condition_code=condition.get("code"),
        humidity=raw["humidity"],
        wind_kph=float(raw["wind_kph"]),
        precip_mm=float(raw.get("precip_mm", 0.0)),
        uv=float(raw.get("uv", 0.0)),
        icon=condition.get("icon", ""),
        last_updated=raw["last_updated"],
        feels_like_c=raw.get("feelslike_c"),
        wind_dir=raw.get("wind_dir"),
    )


def parse_forecast_day(raw: Dict[str, Any]) -> ForecastDay:
    day = raw["day"]
    condition = day.get("condition") or {}
    return ForecastDay(
        date=raw["date"],
        max_temp_c=float(day["maxtemp_c"]),
        min_temp_c=float(day["mintemp_c"]),
        avg_temp_c=float(day["avgtemp_c"]),
        avg_humidity=float(day["avghumidity"]),
        total_precip_mm=float(day.get("totalprecip_mm", 0.0)),
        condition=condition.get("text", ""),
        chance_of_rain=float(day.get("daily_chance_of_rain", 0)),
        icon=condition.get("icon", ""),
        max_wind_kph=day.get("maxwind_kph"),
        uv=day.get("uv"),
    )


def parse_alerts(payload: Dict[str, Any]) -> List[Alert]:
    """
    Alerts ride along on forecast.json under {"alerts": {"alert": [...]}}.
    No alerts object (or no array inside it) simply means there are none.
    """
    alerts = payload.get("alerts")
    if not isinstance(alerts, dict):
        return []
    items = alerts.get("alert")
    if not isinstance(items, list):
        return []
    return [Alert(**{k: str(v) for k, v in item.items() if k in Alert.model_fields and v is not None})
            for item in items]


def parse_current_weather(payload: Dict[str, Any]) -> CurrentWeather:
    if "current" not in payload:
        raise WeatherError("Weather payload has no current conditions")
    return CurrentWeather(location=parse_location(payload.get("location")), current=parse_current(payload["current"]))


def parse_forecast(payload: Dict[str, Any]) -> Forecast:
    if "current" not in payload:
        raise WeatherError("Forecast payload has no current conditions")
    forecast = payload.get("forecast") or {}
    days = [parse_forecast_day(d) for d in forecast.get("forecastday") or []]
    return Forecast(
        location=parse_location(payload.get("location")),
        current=parse_current(payload["current"]),
        days=days,
        alerts=parse_alerts(payload),
    )


def parse_history(payload: Dict[str, Any]) -> HistoricalWeather:
    """history.json has no current reading, only the forecast-shaped day."""
    days = (payload.get("forecast") or {}).get("forecastday") or []
    if not days:
        raise WeatherError("History payload has no day for the requested date")
    return HistoricalWeather(location=parse_location(payload.get("location")), day=parse_forecast_day(days[0]))


def parse_search_results(payload: Any) -> List[LocationMatch]:
    if not isinstance(payload, list):
        raise WeatherError("Location search returned an unexpected payload")
    return [
        LocationMatch(
            id=item.get("id"),
            name=item.get("name", ""),
            region=item.get("region", ""),
            country=item.get("country", ""),
            lat=float(item["lat"]),
            lon=float(item["lon"]),
            url=item.get("url", ""),
        )
        for item in payload
    ]


def _upstream_error_message(r: httpx.Response) -> str:
    """
    WeatherAPI answers errors with {"error": {"code": ..., "message": ...}}.
    Fall back to the status line when the body is missing or not JSON.
    """
    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
    return f"HTTP {r.status_code}: {r.reason_phrase}"


class WeatherApiClient:
    """
    WeatherAPI.com wrapper.

    Endpoints used:
    - Current conditions:
        /current.json?key=KEY&q=LOCATION&aqi=yes
    - N-day forecast (+ alerts):
        /forecast.json?key=KEY&q=LOCATION&days=N&aqi=yes&alerts=yes
    - Alerts only (1-day forecast):
        /forecast.json?key=KEY&q=LOCATION&days=1&aqi=no&alerts=yes
    - One past day:
        /history.json?key=KEY&q=LOCATION&dt=YYYY-MM-DD
    - Location autocomplete:
        /search.json?key=KEY&q=QUERY

    Each fetch_* call performs exactly one request; there are no retries and
    no caching at this layer.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.weatherapi.com/v1",
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    async def _request(
        self,
        path: str,
        params: Dict[str, Any],
        parse: Callable[[Any], Any],
    ) -> WeatherResponse:
        """
        Issue one GET and turn the outcome into a WeatherResponse.

        - non-2xx      -> upstream error message (or status line), status_code set
        - transport    -> exception text, falling back to a generic message
        - bad 2xx body -> treated like a transport failure
        """
        query = {"key": self.api_key, **params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(f"{self.base}{path}", params=query)

            if not r.is_success:
                error = _upstream_error_message(r)
                logger.warning("Weather API %s failed (%s): %s", path, r.status_code, error)
                return WeatherResponse.fail(error, FETCH_FAILED_MESSAGE, status_code=r.status_code)

            return WeatherResponse.ok(parse(r.json()))
        except (httpx.HTTPError, WeatherError, ValueError, KeyError, TypeError, AttributeError) as e:
            error = str(e) or UNKNOWN_ERROR
            logger.warning("Weather API %s unreachable or malformed: %s", path, error)
            return WeatherResponse.fail(error, CONNECT_FAILED_MESSAGE)

    async def fetch_current(self, location: str) -> WeatherResponse:
        """Current conditions for a free-text location."""
        return await self._request(
            "/current.json",
            {"q": location, "aqi": "yes"},
            parse_current_weather,
        )

    async def fetch_forecast(self, location: str, days: int = MAX_FORECAST_DAYS) -> WeatherResponse:
        """
        Daily forecast. Out-of-range horizons are clamped into [1, 7]
        rather than rejected.
        """
        return await self._request(
            "/forecast.json",
            {"q": location, "days": clamp_days(days), "aqi": "yes", "alerts": "yes"},
            parse_forecast,
        )

    async def fetch_alerts(self, location: str) -> WeatherResponse:
        """Active alerts; an empty list when the provider reports none."""
        return await self._request(
            "/forecast.json",
            {"q": location, "days": 1, "aqi": "no", "alerts": "yes"},
            parse_alerts,
        )

    async def fetch_history(self, location: str, date: str) -> WeatherResponse:
        """Observed weather for a past date (YYYY-MM-DD); the provider decides how far back."""
        return await self._request("/history.json", {"q": location, "dt": date}, parse_history)

    async def search_locations(self, query: str) -> WeatherResponse:
        """Autocomplete candidates. Short queries return nothing without calling upstream."""
        if len(query.strip()) < MIN_SEARCH_QUERY_LENGTH:
            return WeatherResponse.ok([])
        return await self._request("/search.json", {"q": query.strip()}, parse_search_results)
