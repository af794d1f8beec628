"""
FacilityService: facility-level operations over the gateway and the store.

Responsibilities:
- Create facilities from a city name (geocode, fetch weather, persist).
- Update a facility's target temperature and return it with fresh weather.
- Delete facilities (idempotent).
- List persisted facilities, optionally with weather fetched concurrently.
- Enforce the one-facility-per-(city, state) invariant at creation.

Every store write is a full-list read-modify-write. The read-modify-write
segment runs under a lock so concurrent creates do not drop each other's
appends; network calls stay outside it. There is no version check: the last
writer wins.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import uuid

from .api import WeatherGateway
from .const import DEFAULT_TARGET_TEMPERATURE
from .errors import DuplicateFacilityError, NotFoundError
from .models import Facility, Location
from .store import FacilityStore

_LOGGER = logging.getLogger(__name__)


class FacilityService:
    """Combines WeatherGateway and FacilityStore into facility operations."""

    def __init__(self, gateway: WeatherGateway, store: FacilityStore) -> None:
        self.gateway = gateway
        self.store = store
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def async_list(self) -> list[Facility]:
        """Persisted facilities as stored, without touching the network."""
        return await self.store.async_load()

    async def async_list_with_fresh_weather(self) -> list[Facility]:
        """
        Persisted facilities with weather fetched for each one concurrently.

        A facility whose fetch fails keeps its previous snapshot (or None);
        it is never dropped from the result.
        """
        facilities = await self.store.async_load()
        if not facilities:
            return []

        async def _with_weather(facility: Facility) -> Facility:
            try:
                weather = await self.gateway.async_fetch_current_weather(
                    facility.location.latitude, facility.location.longitude
                )
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning(
                    "Failed to update weather for %s: %s", facility.location.city, exc
                )
                return facility
            return dataclasses.replace(facility, weather=weather)

        return list(await asyncio.gather(*[_with_weather(f) for f in facilities]))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def async_create(self, city: str, state_code: str | None = None) -> Facility:
        """
        Resolve the city, fetch its weather and persist a new facility.

        Raises NotFoundError when the city does not geocode and
        DuplicateFacilityError when the resolved city/state is already tracked.
        """
        resolved = await self.gateway.async_resolve_city(city, state_code)
        weather = await self.gateway.async_fetch_current_weather(resolved.lat, resolved.lon)

        facility = Facility(
            id=uuid.uuid4().hex,
            name=f"{resolved.name} Facility",
            location=Location(
                city=resolved.name,
                state=resolved.state,
                latitude=resolved.lat,
                longitude=resolved.lon,
            ),
            target_temperature=DEFAULT_TARGET_TEMPERATURE,
            weather=weather,
        )

        async with self._write_lock:
            facilities = await self.store.async_load()
            if any(f.matches(facility.location.city, facility.location.state) for f in facilities):
                raise DuplicateFacilityError(
                    f"Facility already exists for {facility.location.city}"
                    + (f", {facility.location.state}" if facility.location.state else "")
                )
            facilities.append(facility)
            await self.store.async_save(facilities)

        _LOGGER.debug("Created facility %s (%s)", facility.id, facility.name)
        return facility

    async def async_update_temperature(self, facility_id: str, temperature: float) -> Facility:
        """
        Persist a new target temperature and return the facility with fresh weather.

        Raises NotFoundError, leaving the store untouched, for unknown ids.
        """
        async with self._write_lock:
            facilities = await self.store.async_load()
            index = next((i for i, f in enumerate(facilities) if f.id == facility_id), None)
            if index is None:
                raise NotFoundError(f"Facility not found: {facility_id}")
            updated = dataclasses.replace(facilities[index], target_temperature=float(temperature))
            facilities[index] = updated
            await self.store.async_save(facilities)

        weather = await self.gateway.async_fetch_current_weather(
            updated.location.latitude, updated.location.longitude
        )
        return dataclasses.replace(updated, weather=weather)

    async def async_delete(self, facility_id: str) -> None:
        """Remove the facility if present. Unknown ids are not an error."""
        async with self._write_lock:
            facilities = await self.store.async_load()
            remaining = [f for f in facilities if f.id != facility_id]
            await self.store.async_save(remaining)
        if len(remaining) == len(facilities):
            _LOGGER.debug("Delete of unknown facility %s ignored", facility_id)

    async def async_clear(self) -> None:
        async with self._write_lock:
            await self.store.async_clear()
