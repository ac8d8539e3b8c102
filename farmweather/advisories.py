"""
Field advisories.

Smaller, single-reading judgments shown next to the raw weather data:
- current_field_insights: what today's reading means for field work
- day_field_insights: per-forecast-day planting/irrigation/harvest hints
- farm_alerts: warnings derived from the forecast itself (heat, frost, ...)

These complement provider-issued alerts, which only exist in some regions.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Sequence, Tuple

from .schemas import ApiModel, CurrentConditions, ForecastDay


class CurrentFieldInsights(ApiModel):
    irrigation_recommended: bool
    pest_risk: str
    field_work_suitable: bool
    uv_protection_needed: bool


class DayFieldInsights(ApiModel):
    best_time_for_irrigation: str
    planting_conditions: str
    harvest_suitable: bool
    pest_alert: bool
    frost_risk: bool


class FarmAlert(ApiModel):
    type: str
    severity: str
    title: str
    message: str
    date: str
    recommendations: List[str]


class IrrigationAdvice(ApiModel):
    type: str
    title: str
    message: str
    date: str
    actions: List[str]


class FarmAdvisories(ApiModel):
    alerts: List[FarmAlert] = []
    recommendations: List[IrrigationAdvice] = []


def current_field_insights(current: CurrentConditions) -> CurrentFieldInsights:
    if current.humidity > 80:
        pest_risk = "high"
    elif current.humidity > 60:
        pest_risk = "medium"
    else:
        pest_risk = "low"

    return CurrentFieldInsights(
        irrigation_recommended=current.humidity < 60 and current.precip_mm < 1,
        pest_risk=pest_risk,
        field_work_suitable=current.precip_mm < 1 and current.wind_kph < 25,
        uv_protection_needed=current.uv > 6,
    )


def day_field_insights(day: ForecastDay) -> DayFieldInsights:
    good_planting = 15 < day.max_temp_c < 35 and day.total_precip_mm < 10
    return DayFieldInsights(
        best_time_for_irrigation="morning" if day.avg_humidity < 60 else "evening",
        planting_conditions="good" if good_planting else "poor",
        harvest_suitable=day.total_precip_mm < 5 and day.avg_humidity < 80,
        pest_alert=day.avg_humidity > 80 and day.max_temp_c > 20,
        frost_risk=day.min_temp_c < 5,
    )


def _weekday(day: ForecastDay) -> str:
    try:
        return date.fromisoformat(day.date).strftime("%A")
    except ValueError:
        # Provider dates are YYYY-MM-DD; keep whatever we got otherwise.
        return day.date


# (type, severity, title, actions) for each forecast-derived warning.
_HEAT = ("heat_warning", "high", "Extreme Heat Warning",
         ["Avoid midday field work", "Increase irrigation", "Provide shade for livestock"])
_FROST = ("frost_warning", "high", "Frost Warning",
          ["Cover sensitive crops", "Harvest mature crops", "Use frost protection methods"])
_HEAVY_RAIN = ("heavy_rain", "medium", "Heavy Rain Expected",
               ["Ensure proper drainage", "Postpone harvesting", "Check for waterlogging"])
_PEST = ("pest_risk", "medium", "High Pest Activity Risk",
         ["Monitor crops closely", "Consider preventive treatments", "Check for early signs of infestation"])

_IRRIGATION_ACTIONS = ["Increase irrigation frequency", "Check soil moisture", "Mulch around plants"]


def _alert(kind: Tuple[str, str, str, List[str]], message: str, day: ForecastDay) -> FarmAlert:
    type_, severity, title, actions = kind
    return FarmAlert(type=type_, severity=severity, title=title, message=message,
                     date=day.date, recommendations=list(actions))


def farm_alerts(days: Sequence[ForecastDay]) -> FarmAdvisories:
    """
    Walk the forecast day by day. Within a day the checks run in a fixed
    order: heat, frost, heavy rain, pest risk.
    """
    alerts: List[FarmAlert] = []
    recommendations: List[IrrigationAdvice] = []

    for day in days:
        name = _weekday(day)

        if day.max_temp_c > 40:
            alerts.append(_alert(_HEAT, f"Very high temperature expected on {name} ({day.max_temp_c}°C)", day))
        if day.min_temp_c < 0:
            alerts.append(_alert(_FROST, f"Frost expected on {name} ({day.min_temp_c}°C)", day))
        if day.total_precip_mm > 25:
            alerts.append(_alert(_HEAVY_RAIN, f"Heavy rainfall expected on {name} ({day.total_precip_mm}mm)", day))

        if day.total_precip_mm < 1 and day.avg_humidity < 40:
            recommendations.append(IrrigationAdvice(
                type="irrigation_needed",
                title="Irrigation Recommended",
                message=f"Low moisture conditions on {name}",
                date=day.date,
                actions=list(_IRRIGATION_ACTIONS),
            ))

        if day.avg_humidity > 80 and 20 < day.max_temp_c < 30:
            alerts.append(_alert(_PEST, f"Conditions favorable for pest activity on {name}", day))

    return FarmAdvisories(alerts=alerts, recommendations=recommendations)


def forecast_with_field_insights(days: Sequence[ForecastDay]) -> List[Dict]:
    """Forecast days serialized for the API, each with its field insights attached."""
    out = []
    for day in days:
        item = day.model_dump(mode="json", by_alias=True, exclude_none=True)
        item["agriculturalInsights"] = day_field_insights(day).model_dump(mode="json", by_alias=True)
        out.append(item)
    return out
