"""
Agricultural insights derived from a multi-day forecast.

Everything here is a pure function of its arguments: no I/O, no clock,
no randomness. Identical inputs always produce identical insights.

The tiered judgments (pest risk, harvest weather) and the recommendation
list are ordered decision tables: rows are checked top to bottom, which
keeps the precedence explicit and easy to test row by row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from .schemas import AgriculturalInsights, CurrentConditions, ForecastDay

# Planting window (average air temperature, inclusive) and rain ceiling.
PLANTING_MIN_TEMP_C = 15
PLANTING_MAX_TEMP_C = 35
PLANTING_MAX_RAIN_MM = 50

IRRIGATION_MAX_RAIN_MM = 10
IRRIGATION_MAX_HUMIDITY = 60

HEAT_STRESS_TEMP_C = 35
FROST_RISK_TEMP_C = 10
HEAVY_RAIN_MM = 50
DRY_SPELL_RAIN_MM = 5
HUMID_PCT = 80
ARID_PCT = 40
STRONG_WIND_KPH = 25
HIGH_UV = 8

PEST_RISK_LOW = "low"
PEST_RISK_MEDIUM = "medium"
PEST_RISK_HIGH = "high"

HARVEST_EXCELLENT = "excellent"
HARVEST_GOOD = "good"
HARVEST_POOR = "poor"

# (tier, humidity strictly above, rainfall strictly above); either exceeding wins.
PEST_RISK_TABLE: Tuple[Tuple[str, float, float], ...] = (
    (PEST_RISK_HIGH, 80, 30),
    (PEST_RISK_MEDIUM, 60, 15),
)

# (tier, rainfall strictly below, humidity strictly below); both must hold.
HARVEST_WEATHER_TABLE: Tuple[Tuple[str, float, float], ...] = (
    (HARVEST_EXCELLENT, 5, 70),
    (HARVEST_GOOD, 15, 80),
)

FAVORABLE_CONDITIONS = "Weather conditions are favorable for normal farming activities"


class InsightPreconditionError(ValueError):
    """Insights were requested for an empty forecast."""
    pass


@dataclass(frozen=True)
class ForecastAggregates:
    avg_temp: float
    avg_humidity: float
    total_rainfall: float


@dataclass(frozen=True)
class RecommendationRule:
    name: str
    applies: Callable[[ForecastAggregates, CurrentConditions], bool]
    message: str


RECOMMENDATION_RULES: Tuple[RecommendationRule, ...] = (
    RecommendationRule(
        "heat_stress",
        lambda agg, cur: agg.avg_temp > HEAT_STRESS_TEMP_C,
        "High temperatures expected - increase irrigation frequency and provide shade for sensitive crops",
    ),
    RecommendationRule(
        "frost",
        lambda agg, cur: agg.avg_temp < FROST_RISK_TEMP_C,
        "Low temperatures forecasted - protect crops from frost and consider delayed planting",
    ),
    RecommendationRule(
        "heavy_rain",
        lambda agg, cur: agg.total_rainfall > HEAVY_RAIN_MM,
        "Heavy rainfall expected - ensure proper drainage and monitor for fungal diseases",
    ),
    RecommendationRule(
        "dry_spell",
        lambda agg, cur: agg.total_rainfall < DRY_SPELL_RAIN_MM,
        "Minimal rainfall forecasted - plan for increased irrigation and water conservation",
    ),
    RecommendationRule(
        "high_humidity",
        lambda agg, cur: agg.avg_humidity > HUMID_PCT,
        "High humidity levels - monitor for pest activity and fungal infections",
    ),
    RecommendationRule(
        "low_humidity",
        lambda agg, cur: agg.avg_humidity < ARID_PCT,
        "Low humidity conditions - increase watering frequency and consider mulching",
    ),
    RecommendationRule(
        "strong_wind",
        lambda agg, cur: cur.wind_kph > STRONG_WIND_KPH,
        "Strong winds expected - secure plant supports and protect young seedlings",
    ),
    RecommendationRule(
        "high_uv",
        lambda agg, cur: cur.uv > HIGH_UV,
        "High UV levels - protect workers and consider shade for sensitive crops",
    ),
)


def aggregate_forecast(forecast: Sequence[ForecastDay]) -> ForecastAggregates:
    """Means of temperature/humidity and the rainfall sum across the forecast."""
    if not forecast:
        raise InsightPreconditionError("Cannot derive insights from an empty forecast")
    n = len(forecast)
    return ForecastAggregates(
        avg_temp=sum(d.avg_temp_c for d in forecast) / n,
        avg_humidity=sum(d.avg_humidity for d in forecast) / n,
        total_rainfall=sum(d.total_precip_mm for d in forecast),
    )


def classify_pest_risk(avg_humidity: float, total_rainfall: float) -> str:
    for tier, humidity_above, rain_above in PEST_RISK_TABLE:
        if avg_humidity > humidity_above or total_rainfall > rain_above:
            return tier
    return PEST_RISK_LOW


def classify_harvest_weather(avg_humidity: float, total_rainfall: float) -> str:
    for tier, rain_below, humidity_below in HARVEST_WEATHER_TABLE:
        if total_rainfall < rain_below and avg_humidity < humidity_below:
            return tier
    return HARVEST_POOR


def is_good_for_planting(agg: ForecastAggregates) -> bool:
    return (
        PLANTING_MIN_TEMP_C <= agg.avg_temp <= PLANTING_MAX_TEMP_C
        and agg.total_rainfall < PLANTING_MAX_RAIN_MM
    )


def needs_irrigation(agg: ForecastAggregates) -> bool:
    return agg.total_rainfall < IRRIGATION_MAX_RAIN_MM and agg.avg_humidity < IRRIGATION_MAX_HUMIDITY


def generate_recommendations(agg: ForecastAggregates, current: CurrentConditions) -> List[str]:
    """
    Every matching rule, in table order. Display code may slice the list;
    the engine never does.
    """
    out = [rule.message for rule in RECOMMENDATION_RULES if rule.applies(agg, current)]
    return out or [FAVORABLE_CONDITIONS]


def compute_insights(current: CurrentConditions, forecast: Sequence[ForecastDay]) -> AgriculturalInsights:
    """
    Derive planting/irrigation/pest/harvest judgments for a forecast.

    Raises InsightPreconditionError when the forecast is empty.
    """
    agg = aggregate_forecast(forecast)
    return AgriculturalInsights(
        is_good_for_planting=is_good_for_planting(agg),
        irrigation_needed=needs_irrigation(agg),
        pest_risk=classify_pest_risk(agg.avg_humidity, agg.total_rainfall),
        harvest_weather=classify_harvest_weather(agg.avg_humidity, agg.total_rainfall),
        recommendations=generate_recommendations(agg, current),
    )
