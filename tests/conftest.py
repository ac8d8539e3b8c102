"""Shared fixtures: provider payloads and a fake WeatherAPI behind httpx.MockTransport."""
import os

# Settings fail fast without a key; give the test process one before any import.
os.environ.setdefault("WEATHER_API_KEY", "test-key")

from typing import Any, Dict, List, Optional

import httpx
import pytest

from farmweather.schemas import CurrentConditions, ForecastDay
from farmweather.weather_clients import WeatherApiClient

BASE_URL = "https://weather.test/v1"

LOCATION = {
    "name": "Nakuru",
    "region": "Rift Valley",
    "country": "Kenya",
    "lat": -0.28,
    "lon": 36.07,
    "tz_id": "Africa/Nairobi",
    "localtime": "2026-10-19 09:20",
}


def current_payload(
    temp_c: float = 24.6,
    wind_kph: float = 12.4,
    humidity: float = 55,
    precip_mm: float = 0.2,
    uv: float = 6.0,
    last_updated: str = "2026-10-19 09:15",
) -> Dict[str, Any]:
    return {
        "last_updated": last_updated,
        "temp_c": temp_c,
        "temp_f": temp_c * 9 / 5 + 32,
        "is_day": 1,
        "condition": {"text": "Partly cloudy", "icon": "//cdn.weatherapi.com/116.png", "code": 1003},
        "wind_kph": wind_kph,
        "wind_mph": wind_kph / 1.609,
        "wind_dir": "NE",
        "precip_mm": precip_mm,
        "humidity": humidity,
        "feelslike_c": temp_c + 1,
        "uv": uv,
    }


def forecast_day_payload(
    date: str,
    maxtemp_c: float = 30.4,
    mintemp_c: float = 18.5,
    avgtemp_c: float = 24.0,
    avghumidity: float = 55,
    totalprecip_mm: float = 1.0,
    chance_of_rain: float = 20,
) -> Dict[str, Any]:
    return {
        "date": date,
        "date_epoch": 0,
        "day": {
            "maxtemp_c": maxtemp_c,
            "mintemp_c": mintemp_c,
            "avgtemp_c": avgtemp_c,
            "maxwind_kph": 18.0,
            "totalprecip_mm": totalprecip_mm,
            "avghumidity": avghumidity,
            "daily_chance_of_rain": chance_of_rain,
            "condition": {"text": "Sunny", "icon": "//cdn.weatherapi.com/113.png", "code": 1000},
            "uv": 7.0,
        },
        "astro": {"sunrise": "06:30 AM", "sunset": "06:40 PM"},
        "hour": [],
    }


def forecast_payload(n_days: int = 5, alerts: Optional[List[Dict[str, Any]]] = None, **day_kwargs) -> Dict[str, Any]:
    payload = {
        "location": LOCATION,
        "current": current_payload(),
        "forecast": {
            "forecastday": [forecast_day_payload(f"2026-10-{19 + i}", **day_kwargs) for i in range(n_days)],
        },
    }
    if alerts is not None:
        payload["alerts"] = {"alert": alerts}
    return payload


def history_payload(date: str = "2025-10-19", **day_kwargs) -> Dict[str, Any]:
    return {
        "location": LOCATION,
        "forecast": {"forecastday": [forecast_day_payload(date, **day_kwargs)]},
    }


def alert_payload(headline: str = "Heavy rain warning") -> Dict[str, Any]:
    return {
        "headline": headline,
        "msgtype": "Alert",
        "severity": "Moderate",
        "urgency": "Expected",
        "areas": "Nakuru",
        "category": "Met",
        "certainty": "Likely",
        "event": "Rain",
        "note": "",
        "effective": "2026-10-19T06:00:00+03:00",
        "expires": "2026-10-20T06:00:00+03:00",
        "desc": "Heavy rain is expected.",
        "instruction": "Avoid low-lying fields.",
    }


def error_response(status: int, message: Optional[str] = None) -> httpx.Response:
    if message is None:
        return httpx.Response(status)
    return httpx.Response(status, json={"error": {"code": 1006, "message": message}})


class FakeProvider:
    """
    Answers like WeatherAPI.com. Each endpoint is configured with a payload
    (served as 200 JSON), an httpx.Response, or an exception to raise.
    """

    def __init__(self, current=None, forecast=None, alerts=None, search=None, history=None):
        self.current = current if current is not None else {"location": LOCATION, "current": current_payload()}
        self.forecast = forecast if forecast is not None else forecast_payload()
        self.alerts = alerts if alerts is not None else forecast_payload(n_days=1, alerts=[])
        self.search = search if search is not None else []
        self.history = history if history is not None else history_payload()
        self.requests: List[httpx.Request] = []

    def _answer(self, configured, request: httpx.Request) -> httpx.Response:
        if isinstance(configured, Exception):
            raise configured
        if isinstance(configured, httpx.Response):
            return configured
        return httpx.Response(200, json=configured)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params
        if path.endswith("/current.json"):
            return self._answer(self.current, request)
        if path.endswith("/forecast.json"):
            if params.get("aqi") == "no":
                return self._answer(self.alerts, request)
            return self._answer(self.forecast, request)
        if path.endswith("/history.json"):
            return self._answer(self.history, request)
        if path.endswith("/search.json"):
            return self._answer(self.search, request)
        return httpx.Response(404, json={"error": {"message": "Unknown endpoint"}})

    def client(self) -> WeatherApiClient:
        return WeatherApiClient("test-key", base_url=BASE_URL, timeout_s=2.0, transport=httpx.MockTransport(self))


@pytest.fixture
def provider():
    return FakeProvider()


def make_current(**overrides) -> CurrentConditions:
    values = dict(
        temperature_c=24.0,
        condition="Sunny",
        humidity=55,
        wind_kph=10,
        precip_mm=0,
        uv=5,
        icon="",
        last_updated="2026-10-19 09:15",
    )
    values.update(overrides)
    return CurrentConditions(**values)


def make_day(date: str = "2026-10-19", **overrides) -> ForecastDay:
    values = dict(
        date=date,
        max_temp_c=30,
        min_temp_c=18,
        avg_temp_c=24,
        avg_humidity=55,
        total_precip_mm=1,
        condition="Sunny",
        chance_of_rain=10,
    )
    values.update(overrides)
    return ForecastDay(**values)
