"""Tests for API endpoints."""
import pytest
from fastapi.testclient import TestClient

from conftest import FakeProvider, alert_payload, error_response, forecast_payload, history_payload
from farmweather.main import app, get_client


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def client(fake_provider):
    app.dependency_overrides[get_client] = fake_provider.client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_dashboard_weather(client):
    response = client.get("/api/weather/dashboard", params={"location": "Nakuru"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["current"]["temperature"] == 25
    assert data["current"]["windSpeed"] == 12
    assert data["current"]["uvIndex"] == 6.0
    assert len(data["forecast"]) == 4
    assert set(data["forecast"][0]) == {"date", "maxTemp", "minTemp", "condition", "chanceOfRain", "icon"}
    assert data["alerts"] == []
    assert data["lastUpdated"] == "2026-10-19 09:15"


def test_dashboard_from_coordinates(client, fake_provider):
    response = client.get("/api/weather/dashboard", params={"lat": -0.28, "lon": 36.07})

    assert response.status_code == 200
    assert fake_provider.requests[0].url.params["q"] == "-0.28,36.07"


def test_dashboard_requires_location(client):
    response = client.get("/api/weather/dashboard")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "MISSING_LOCATION"


def test_dashboard_current_failure_is_502(client, fake_provider):
    fake_provider.current = error_response(400, "No matching location found.")

    response = client.get("/api/weather/dashboard", params={"location": "Atlantis"})

    assert response.status_code == 502
    body = response.json()
    assert body == {
        "success": False,
        "error": "No matching location found.",
        "message": "Failed to fetch weather data",
    }


def test_current_weather_with_field_insights(client):
    response = client.get("/api/weather/current", params={"location": "Nakuru"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["current"]["temperatureC"] == 24.6
    assert data["location"]["name"] == "Nakuru"
    assert data["agriculturalInsights"] == {
        "irrigationRecommended": True,
        "pestRisk": "low",
        "fieldWorkSuitable": True,
        "uvProtectionNeeded": False,
    }


def test_forecast_days_are_clamped_and_annotated(client, fake_provider):
    response = client.get("/api/weather/forecast", params={"location": "Nakuru", "days": 14})

    assert response.status_code == 200
    assert fake_provider.requests[0].url.params["days"] == "7"
    day = response.json()["data"]["forecast"][0]
    assert day["maxTempC"] == 30.4
    assert day["agriculturalInsights"]["plantingConditions"] == "good"
    assert day["agriculturalInsights"]["bestTimeForIrrigation"] == "morning"


def test_alerts_combine_provider_and_forecast_warnings(client, fake_provider):
    fake_provider.forecast = forecast_payload(n_days=3, alerts=[alert_payload()], maxtemp_c=42)

    response = client.get("/api/weather/alerts", params={"location": "Nakuru"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert [a["headline"] for a in data["providerAlerts"]] == ["Heavy rain warning"]
    assert [a["type"] for a in data["alerts"]] == ["heat_warning"] * 3
    assert data["recommendations"] == []


def test_agricultural_weather(client):
    response = client.get("/api/weather/agricultural", params={"location": "Nakuru"})

    assert response.status_code == 200
    insights = response.json()["data"]["insights"]
    assert set(insights) == {"isGoodForPlanting", "irrigationNeeded", "pestRisk", "harvestWeather", "recommendations"}
    assert insights["recommendations"]


def test_search_short_query(client, fake_provider):
    response = client.get("/api/weather/search", params={"q": "Na"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}
    assert fake_provider.requests == []


def test_search_without_query_is_400(client, fake_provider):
    response = client.get("/api/weather/search")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "MISSING_QUERY",
        "message": "Search query is required",
    }
    assert fake_provider.requests == []


def test_dashboard_humidity_keeps_integer_form(client):
    response = client.get("/api/weather/dashboard", params={"location": "Nakuru"})

    assert '"humidity":55,' in response.text


def test_historical_weather(client, fake_provider):
    fake_provider.history = history_payload("2025-10-19", totalprecip_mm=12.5)

    response = client.get("/api/weather/historical", params={"location": "Nakuru", "date": "2025-10-19"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["day"]["date"] == "2025-10-19"
    assert body["data"]["day"]["totalPrecipMm"] == 12.5
    assert body["data"]["location"]["name"] == "Nakuru"
    assert fake_provider.requests[0].url.params["dt"] == "2025-10-19"


@pytest.mark.parametrize("params", [{}, {"date": "19/10/2025"}, {"date": "2025-10-19T00:00"}])
def test_historical_weather_requires_a_date(client, fake_provider, params):
    response = client.get("/api/weather/historical", params={"location": "Nakuru", **params})

    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_DATE"
    assert fake_provider.requests == []


def test_historical_weather_requires_location(client):
    response = client.get("/api/weather/historical", params={"date": "2025-10-19"})

    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_LOCATION"


def test_historical_upstream_failure_is_502(client, fake_provider):
    fake_provider.history = error_response(400, "No matching location found.")

    response = client.get("/api/weather/historical", params={"location": "Atlantis", "date": "2025-10-19"})

    assert response.status_code == 502
    assert response.json()["error"] == "No matching location found."
