"""
WeatherGateway: stateless facade over the OpenWeather endpoints.

Owns nothing but the API key; every call is a single request with no retries.
"""
from __future__ import annotations

import asyncio
import logging

from custom_components.facility_climate.errors import ConfigurationError
from custom_components.facility_climate.models import ResolvedCity, WeatherSnapshot

from . import geocoding, weather

_LOGGER = logging.getLogger(__name__)


class WeatherGateway:
    """Outbound calls to current-weather and geocoding endpoints."""

    def __init__(self, api_key: str | None) -> None:
        self._api_key = (api_key or "").strip()

    def _require_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError("OpenWeather API key is not configured")
        return self._api_key

    async def async_fetch_current_weather(self, lat: float, lon: float) -> WeatherSnapshot:
        """Current conditions for a coordinate pair."""
        return await weather.fetch_current_weather(self._require_key(), lat, lon)

    async def async_resolve_city(self, city: str, state_code: str | None = None) -> ResolvedCity:
        """Geocode a city, scoped to the US when a state code is given."""
        return await geocoding.resolve_city(self._require_key(), city, state_code)

    async def async_fetch_popular_cities(
        self, queries: list[tuple[str, str | None]]
    ) -> list[ResolvedCity]:
        """
        Geocode every popular-city query concurrently.

        All-or-nothing: the first failure is raised so the caller can fall
        back to its hardcoded list.
        """
        api_key = self._require_key()
        if not queries:
            return []
        return list(
            await asyncio.gather(
                *[geocoding.resolve_city(api_key, city, state) for city, state in queries]
            )
        )
