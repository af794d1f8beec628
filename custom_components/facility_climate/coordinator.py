"""
DataUpdateCoordinator for the Facility Climate integration.

Responsibilities:
- Own the in-memory facility collection and its loading / error flags.
- Initialise the session from the store, or seed it when the store is empty.
- Mediate user-initiated create / update / delete through FacilityService.
- Refresh weather for every facility every REFRESH_INTERVAL seconds.
- Apply global temperature policy (presets, seasonal profiles, energy bands)
  across the facility set, reacting to settings changes.
- Push CoordinatorData snapshots to entities after each operation resolves.

Snapshots produced by user operations and policy sweeps are pushed to the
listeners without going through async_set_updated_data, so they never
reschedule the REFRESH_INTERVAL timer. The periodic weather refresh keeps
its own cadence however often facilities are edited.

The in-memory snapshot is last-resolve-wins: each operation builds its new
snapshot from self.data as it is when the operation completes.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import datetime, timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .const import (
    CONF_ENTRY_NAME,
    CONF_GUID,
    CONF_POPULAR_CITIES,
    DOMAIN,
    ENERGY_BANDS,
    REFRESH_INTERVAL,
    SETTING_PRESETS,
    VERSION,
)
from .coordinator_data import CoordinatorData
from .coordinator_utils import outdoor_target, preset_bucket, resolve_seed_cities, season_for
from .errors import NotFoundError
from .facility_service import FacilityService
from .models import Facility, TemperaturePreset
from .settings_store import GlobalSettingsStore

_LOGGER = logging.getLogger(__name__)


class FacilityCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Coordinator for the Facility Climate integration.

    The first refresh runs the session initialisation; every later tick
    refreshes the weather of all tracked facilities.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry_data: dict,
        service: FacilityService,
        settings: GlobalSettingsStore,
        config_entry: ConfigEntry | None = None,
    ) -> None:
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=REFRESH_INTERVAL),
        )
        self.service = service
        self.settings = settings
        self._entry_data = entry_data

        # Flag to distinguish the initialisation call from periodic refreshes
        self._initial_refresh_done: bool = False

        # Background policy sweeps started by settings changes
        self._policy_tasks: set[asyncio.Task] = set()
        self._unsub_settings = settings.async_add_listener(self._handle_settings_change)

        self.data = CoordinatorData(loading=True)

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """
        Called by HA on every update_interval tick.

        First call: runs the initialisation and returns its snapshot, so
        async_config_entry_first_refresh() never fails on a bad seed.

        Later calls: refresh the weather. A failed refresh keeps the current
        snapshot and never touches the error flag.
        """
        if not self._initial_refresh_done:
            data = await self.async_initialize()
            self._initial_refresh_done = True
            return data

        facilities = await self._async_fetch_fresh()
        if facilities is None:
            return self.data
        return dataclasses.replace(self.data, facilities=facilities)

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    async def async_initialize(self) -> CoordinatorData:
        """
        Load the persisted facilities, seeding the store when it is empty.

        Always ends with loading=False. Unexpected failures set error and
        adopt an empty list rather than stale data.
        """
        self._async_publish(dataclasses.replace(self.data, loading=True, error=None))

        error: Exception | None = None
        try:
            facilities = await self.service.async_list()
            if facilities:
                _LOGGER.debug("Loaded %d persisted facilities", len(facilities))
            else:
                facilities, error = await self._async_seed()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to initialise facilities: %s", exc)
            facilities, error = [], exc

        data = dataclasses.replace(self.data, facilities=facilities, loading=False, error=error)
        self._async_publish(data)
        return data

    async def _async_seed(self) -> tuple[list[Facility], Exception | None]:
        """Create one facility per seed city, skipping the ones that fail."""
        await self.service.async_clear()
        cities = await resolve_seed_cities(
            self.service.gateway, self._entry_data.get(CONF_POPULAR_CITIES)
        )
        _LOGGER.info("Seeding %d facilities", len(cities))

        results = await asyncio.gather(
            *[self.service.async_create(city, state) for city, state in cities],
            return_exceptions=True,
        )

        created: list[Facility] = []
        failures: list[Exception] = []
        for (city, state), result in zip(cities, results):
            if isinstance(result, Exception):
                _LOGGER.warning("Failed to seed facility for %s %s: %s", city, state or "", result)
                failures.append(result)
            else:
                created.append(result)

        if failures and not created:
            return created, failures[0]
        return created, None

    # ------------------------------------------------------------------
    # User-initiated operations
    # ------------------------------------------------------------------

    async def async_add_facility(self, city: str, state_code: str | None = None) -> Facility:
        """Create a facility and append it to the snapshot."""
        self._set_error(None)
        try:
            facility = await self.service.async_create(city, state_code)
        except Exception as exc:
            _LOGGER.error("Failed to add facility for %s: %s", city, exc)
            self._set_error(exc)
            raise

        self._async_publish(
            dataclasses.replace(self.data, facilities=[*self.data.facilities, facility])
        )
        return facility

    async def async_update_facility_temperature(
        self, facility_id: str, temperature: float
    ) -> Facility:
        """Persist a new target temperature and replace the entry by id."""
        self._set_error(None)
        try:
            updated = await self.service.async_update_temperature(facility_id, temperature)
        except Exception as exc:
            _LOGGER.error("Failed to update temperature of %s: %s", facility_id, exc)
            self._set_error(exc)
            raise

        # A facility deleted while this update was in flight stays deleted
        self._async_publish(
            dataclasses.replace(
                self.data,
                facilities=[updated if f.id == facility_id else f for f in self.data.facilities],
            )
        )
        return updated

    async def async_delete_facility(self, facility_id: str) -> None:
        """Delete a facility and drop it from the snapshot."""
        self._set_error(None)
        try:
            await self.service.async_delete(facility_id)
        except Exception as exc:
            _LOGGER.error("Failed to delete facility %s: %s", facility_id, exc)
            self._set_error(exc)
            raise

        self._async_publish(
            dataclasses.replace(
                self.data,
                facilities=[f for f in self.data.facilities if f.id != facility_id],
            )
        )

    async def async_reset_to_local(self, facility_id: str | None = None) -> None:
        """
        Set targets to the rounded outdoor temperature (22 without weather)
        for one facility, or all of them, then refresh once.
        """
        self._set_error(None)
        try:
            if facility_id is None:
                targets = list(self.data.facilities)
            else:
                facility = self.data.get(facility_id)
                if facility is None:
                    raise NotFoundError(f"Facility not found: {facility_id}")
                targets = [facility]

            await self._async_apply_targets(
                {f.id: outdoor_target(f) for f in targets}, "reset to outdoor"
            )
            await self.async_refresh_weather_data()
        except Exception as exc:
            _LOGGER.error("Failed to reset facilities to outdoor temperature: %s", exc)
            self._set_error(exc)
            raise

    # ------------------------------------------------------------------
    # Weather refresh
    # ------------------------------------------------------------------

    async def async_refresh_weather_data(self) -> None:
        """Replace the snapshot with freshly fetched weather. Best-effort."""
        facilities = await self._async_fetch_fresh()
        if facilities is None:
            return
        self._async_publish(dataclasses.replace(self.data, facilities=facilities))

    async def _async_fetch_fresh(self) -> list[Facility] | None:
        try:
            return await self.service.async_list_with_fresh_weather()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("Weather refresh failed: %s", exc)
            return None

    # ------------------------------------------------------------------
    # Global policy sweeps
    # ------------------------------------------------------------------

    async def async_apply_global_presets(self, now: datetime | None = None) -> None:
        """Apply the day / night / weekend preset for *now* to every facility."""
        now = now or dt_util.now()
        bucket = preset_bucket(now)
        await self._async_apply_preset(
            self.settings.temperature_presets, bucket, f"{bucket} preset"
        )

    async def async_apply_seasonal_profile(
        self, season: str | None = None, now: datetime | None = None
    ) -> None:
        """Apply the seasonal profile (current season when omitted)."""
        now = now or dt_util.now()
        season = season or season_for(now)
        preset = self.settings.seasonal_profiles.for_season(season)
        bucket = preset_bucket(now)
        await self._async_apply_preset(preset, bucket, f"{season} {bucket} profile")

    async def async_apply_energy_band(self, band: str, now: datetime | None = None) -> None:
        """Apply the peak or off-peak band preset while energy saving is enabled."""
        if band not in ENERGY_BANDS:
            raise ValueError(f"Unknown energy band: {band}")
        bands = self.settings.energy_saving_bands
        if not bands.enabled:
            _LOGGER.info("Energy-saving bands are disabled, not applying %s", band)
            return
        preset = bands.peak_hours if band == "peak_hours" else bands.off_peak_hours
        bucket = preset_bucket(now or dt_util.now())
        await self._async_apply_preset(preset, bucket, f"{band} {bucket} band")

    async def _async_apply_preset(
        self, preset: TemperaturePreset, bucket: str, label: str
    ) -> None:
        """Background sweep: failures are logged, never surfaced as error."""
        facilities = list(self.data.facilities)
        if not facilities:
            return
        temperature = preset.for_bucket(bucket)
        _LOGGER.info(
            "Applying %s (%s°C) to %d facilities", label, temperature, len(facilities)
        )
        try:
            await self._async_apply_targets({f.id: temperature for f in facilities}, label)
            await self.async_refresh_weather_data()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("Policy sweep %s failed: %s", label, exc)

    async def _async_apply_targets(self, targets: dict[str, float], label: str) -> int:
        """
        Persist one target per facility concurrently. Individual failures are
        logged; returns the number of facilities updated.
        """
        results = await asyncio.gather(
            *[
                self.service.async_update_temperature(facility_id, temperature)
                for facility_id, temperature in targets.items()
            ],
            return_exceptions=True,
        )
        applied = 0
        for facility_id, result in zip(targets, results):
            if isinstance(result, Exception):
                _LOGGER.warning("Failed to apply %s to %s: %s", label, facility_id, result)
            else:
                applied += 1
        return applied

    @callback
    def _handle_settings_change(self, group: str) -> None:
        """Start the preset sweep when the presets change and facilities exist."""
        if group != SETTING_PRESETS or not self.data.facilities:
            return
        task = self.hass.async_create_task(self.async_apply_global_presets())
        self._policy_tasks.add(task)
        task.add_done_callback(self._policy_tasks.discard)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @callback
    def _async_publish(self, data: CoordinatorData) -> None:
        """Push a snapshot to the entities, leaving the refresh timer alone."""
        self.data = data
        self.async_update_listeners()

    def _set_error(self, error: Exception | None) -> None:
        if self.data.error is error:
            return
        self._async_publish(dataclasses.replace(self.data, error=error))

    def get_device_info(self, facility_id: str) -> dict | None:
        """Return the HA DeviceInfo dict for the given facility id."""
        facility = self.data.get(facility_id)
        if facility is None:
            return None
        location = facility.location
        return {
            "identifiers": {(DOMAIN, self.device_identifier(facility_id))},
            "name": facility.name,
            "manufacturer": "Facility Climate",
            "model": ", ".join(p for p in (location.city, location.state) if p),
            "sw_version": VERSION,
        }

    def get_integration_device_info(self) -> dict:
        """The integration-level device holding the policy switches and status."""
        return {
            "identifiers": {(DOMAIN, self._entry_data[CONF_GUID])},
            "name": self.entry_name,
            "manufacturer": "Facility Climate",
            "model": "Temperature policy",
            "sw_version": VERSION,
        }

    def device_identifier(self, facility_id: str) -> str:
        return f"{self._entry_data[CONF_GUID]}_{facility_id}"

    @property
    def entry_name(self) -> str:
        return self._entry_data.get(CONF_ENTRY_NAME, "Facility Climate")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_shutdown(self) -> None:
        """Stop listening to settings, cancel sweeps and stop the refresh timer."""
        if self._unsub_settings is not None:
            self._unsub_settings()
            self._unsub_settings = None
        for task in list(self._policy_tasks):
            task.cancel()
        if self._policy_tasks:
            await asyncio.gather(*self._policy_tasks, return_exceptions=True)
        self._policy_tasks.clear()
        await super().async_shutdown()

    @property
    def entry_data(self):
        return self._entry_data
