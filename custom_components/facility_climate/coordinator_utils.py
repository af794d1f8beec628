"""
Low-level utility functions for the facility coordinator.

Responsibilities:
- Pick the preset bucket (day / night / weekend) and season for a local time.
- Compute reset-to-outdoor targets from weather snapshots.
- Resolve the seed city list, falling back to the hardcoded defaults.

No HA imports; these functions are pure data / network primitives.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime

from .api import WeatherGateway
from .api.geocoding import parse_city_list
from .const import (
    DAY_END_HOUR,
    DAY_START_HOUR,
    DEFAULT_CITIES,
    DEFAULT_TARGET_TEMPERATURE,
    SEASON_BY_MONTH,
)
from .models import Facility

_LOGGER = logging.getLogger(__name__)


def preset_bucket(now: datetime) -> str:
    """
    Return "weekend" on Saturday/Sunday, "day" for hours in
    [DAY_START_HOUR, DAY_END_HOUR), otherwise "night".
    """
    if now.weekday() >= 5:
        return "weekend"
    if DAY_START_HOUR <= now.hour < DAY_END_HOUR:
        return "day"
    return "night"


def season_for(now: datetime) -> str:
    """Meteorological season (northern hemisphere) for the month of *now*."""
    return SEASON_BY_MONTH[now.month]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (21.5 -> 22, -0.5 -> 0)."""
    return math.floor(value + 0.5)


def outdoor_target(facility: Facility) -> float:
    """Rounded outdoor temperature, or the comfort default without weather."""
    if facility.weather is None:
        return DEFAULT_TARGET_TEMPERATURE
    return float(round_half_up(facility.weather.temperature))


async def resolve_seed_cities(
    gateway: WeatherGateway, popular_cities: str | None
) -> list[tuple[str, str | None]]:
    """
    Return the (city, state) pairs to seed an empty store with.

    Tries a best-effort geocoding batch over the configured popular cities and
    returns their canonical names. Any failure, or an empty configuration,
    falls back to DEFAULT_CITIES for the rest of the session.
    """
    queries = parse_city_list(popular_cities or "")
    if not queries:
        return list(DEFAULT_CITIES)
    try:
        resolved = await gateway.async_fetch_popular_cities(queries)
    except Exception as exc:  # noqa: BLE001
        _LOGGER.warning("Popular city lookup failed, using default cities: %s", exc)
        return list(DEFAULT_CITIES)
    if not resolved:
        return list(DEFAULT_CITIES)
    # Keep the configured state code: a resolved non-US "state" is not a US scope
    return [(city.name, state) for city, (_, state) in zip(resolved, queries)]
