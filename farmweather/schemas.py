"""
Pydantic schemas.

Why:
- Upstream payloads are large and loosely shaped; these models are the
  stable subset the dashboard and the insight engine rely on
- Defines the contract of our REST endpoints (camelCase on the wire)
- Every model is frozen: a fetched reading is never edited, only replaced
"""

from __future__ import annotations

from typing import Annotated, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Relative humidity as the provider sends it; an integer reading stays an integer.
Percent = Union[Annotated[int, Field(ge=0, le=100)], Annotated[float, Field(ge=0, le=100)]]


class ApiModel(BaseModel):
    """Base for everything we return: immutable, camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# -------------------------
# Upstream-normalized entities
# -------------------------

class ResolvedLocation(ApiModel):
    """Place the provider matched for the free-text location."""
    name: str
    region: str = ""
    country: str = ""
    lat: float
    lon: float
    tz_id: str = ""
    localtime: str = ""


class CurrentConditions(ApiModel):
    """One point-in-time reading (metric units)."""
    temperature_c: float
    condition: str
    condition_code: Optional[int] = None
    humidity: Percent
    wind_kph: float
    precip_mm: float
    uv: float = Field(..., ge=0)
    icon: str = ""
    last_updated: str
    feels_like_c: Optional[float] = None
    wind_dir: Optional[str] = None


class CurrentWeather(ApiModel):
    """Result of a current-conditions call."""
    location: Optional[ResolvedLocation] = None
    current: CurrentConditions


class ForecastDay(ApiModel):
    """Daily summary from the provider's forecastday entry."""
    date: str
    max_temp_c: float
    min_temp_c: float
    avg_temp_c: float
    avg_humidity: float = Field(..., ge=0, le=100)
    total_precip_mm: float
    condition: str
    chance_of_rain: float = Field(0, ge=0, le=100)
    icon: str = ""
    max_wind_kph: Optional[float] = None
    uv: Optional[float] = None


class Alert(ApiModel):
    """
    Provider-issued weather alert.
    Field names follow the provider so alerts can be passed through as-is.
    """
    headline: str = ""
    msgtype: str = ""
    severity: str = ""
    urgency: str = ""
    areas: str = ""
    category: str = ""
    certainty: str = ""
    event: str = ""
    note: str = ""
    effective: str = ""
    expires: str = ""
    desc: str = ""
    instruction: str = ""


class Forecast(ApiModel):
    """Ordered (day-ascending) forecast plus the reading it was issued with."""
    location: Optional[ResolvedLocation] = None
    current: CurrentConditions
    days: List[ForecastDay] = []
    alerts: List[Alert] = []


class HistoricalWeather(ApiModel):
    """Observed daily summary for one past date."""
    location: Optional[ResolvedLocation] = None
    day: ForecastDay


class LocationMatch(ApiModel):
    """One autocomplete candidate from the provider's search endpoint."""
    id: Optional[int] = None
    name: str
    region: str = ""
    country: str = ""
    lat: float
    lon: float
    url: str = ""


# -------------------------
# Dashboard shapes
# -------------------------

class DashboardCurrent(ApiModel):
    temperature: int
    condition: str
    humidity: Union[int, float]
    wind_speed: int
    rainfall: float
    uv_index: float
    icon: str


class DashboardForecastDay(ApiModel):
    date: str
    max_temp: int
    min_temp: int
    condition: str
    chance_of_rain: float
    icon: str


class DashboardWeatherSnapshot(ApiModel):
    """
    Everything the dashboard weather widget renders for one location.
    current is mandatory; forecast and alerts are best-effort and may be empty.
    """
    current: DashboardCurrent
    forecast: List[DashboardForecastDay] = []
    alerts: List[Alert] = []
    last_updated: str


class AgriculturalInsights(ApiModel):
    """Derived judgments; recomputed on every request, never stored."""
    is_good_for_planting: bool
    irrigation_needed: bool
    pest_risk: str
    harvest_weather: str
    recommendations: List[str] = Field(..., min_length=1)


class AgriculturalWeather(ApiModel):
    current: CurrentConditions
    forecast: List[ForecastDay]
    insights: AgriculturalInsights


# -------------------------
# Response envelope
# -------------------------

class WeatherResponse(ApiModel, Generic[T]):
    """
    Tagged result used at every layer instead of raising.

    status_code is the upstream HTTP status when the provider answered with
    an error, None for transport failures. It is never serialized.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    status_code: Optional[int] = Field(None, exclude=True)

    @classmethod
    def ok(cls, data) -> "WeatherResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, message: str, status_code: Optional[int] = None) -> "WeatherResponse":
        return cls(success=False, error=error, message=message, status_code=status_code)
