"""
Integration services: the outward operations of the facility coordinator
and the global settings store.

Each service resolves the coordinator of a loaded config entry (the one
named by config_entry_id, or the first loaded entry) and delegates to it.
Failures raised by the coordinator derive from HomeAssistantError and are
shown to the caller as-is.
"""
from __future__ import annotations

import dataclasses
import logging

import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant, ServiceCall, callback
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import device_registry as dr

from .const import DOMAIN, ENERGY_BANDS, SEASONS

_LOGGER = logging.getLogger(__name__)

ATTR_CONFIG_ENTRY_ID = "config_entry_id"
ATTR_FACILITY_ID = "facility_id"
ATTR_CITY = "city"
ATTR_STATE_CODE = "state_code"
ATTR_TEMPERATURE = "temperature"
ATTR_DAY = "day"
ATTR_NIGHT = "night"
ATTR_WEEKEND = "weekend"
ATTR_MIN = "min"
ATTR_MAX = "max"
ATTR_ALERT_ENABLED = "alert_enabled"
ATTR_SEASON = "season"
ATTR_BAND = "band"
ATTR_ENABLED = "enabled"

SERVICE_ADD_FACILITY = "add_facility"
SERVICE_REMOVE_FACILITY = "remove_facility"
SERVICE_SET_TARGET_TEMPERATURE = "set_target_temperature"
SERVICE_REFRESH_WEATHER = "refresh_weather"
SERVICE_RESET_TO_LOCAL = "reset_to_local"
SERVICE_SET_TEMPERATURE_PRESETS = "set_temperature_presets"
SERVICE_SET_TEMPERATURE_THRESHOLDS = "set_temperature_thresholds"
SERVICE_SET_SEASONAL_PROFILE = "set_seasonal_profile"
SERVICE_SET_ENERGY_SAVING_BANDS = "set_energy_saving_bands"
SERVICE_APPLY_SEASONAL_PROFILE = "apply_seasonal_profile"
SERVICE_APPLY_ENERGY_BAND = "apply_energy_band"

temperature = vol.All(vol.Coerce(float), vol.Range(min=-50, max=60))

_BASE = {vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string}
_PRESET_FIELDS = {
    vol.Optional(ATTR_DAY): temperature,
    vol.Optional(ATTR_NIGHT): temperature,
    vol.Optional(ATTR_WEEKEND): temperature,
}

ADD_FACILITY_SCHEMA = vol.Schema(
    {
        **_BASE,
        vol.Required(ATTR_CITY): vol.All(cv.string, vol.Length(min=1)),
        vol.Optional(ATTR_STATE_CODE): cv.string,
    }
)
FACILITY_SCHEMA = vol.Schema({**_BASE, vol.Required(ATTR_FACILITY_ID): cv.string})
SET_TARGET_TEMPERATURE_SCHEMA = vol.Schema(
    {
        **_BASE,
        vol.Required(ATTR_FACILITY_ID): cv.string,
        vol.Required(ATTR_TEMPERATURE): temperature,
    }
)
BASE_SCHEMA = vol.Schema(_BASE)
RESET_TO_LOCAL_SCHEMA = vol.Schema({**_BASE, vol.Optional(ATTR_FACILITY_ID): cv.string})
SET_TEMPERATURE_PRESETS_SCHEMA = vol.Schema({**_BASE, **_PRESET_FIELDS})
SET_TEMPERATURE_THRESHOLDS_SCHEMA = vol.Schema(
    {
        **_BASE,
        vol.Optional(ATTR_MIN): temperature,
        vol.Optional(ATTR_MAX): temperature,
        vol.Optional(ATTR_ALERT_ENABLED): cv.boolean,
    }
)
SET_SEASONAL_PROFILE_SCHEMA = vol.Schema(
    {**_BASE, vol.Required(ATTR_SEASON): vol.In(SEASONS), **_PRESET_FIELDS}
)
SET_ENERGY_SAVING_BANDS_SCHEMA = vol.Schema(
    {
        **_BASE,
        vol.Optional(ATTR_ENABLED): cv.boolean,
        vol.Optional(ATTR_BAND): vol.In(ENERGY_BANDS),
        **_PRESET_FIELDS,
    }
)
APPLY_SEASONAL_PROFILE_SCHEMA = vol.Schema({**_BASE, vol.Optional(ATTR_SEASON): vol.In(SEASONS)})
APPLY_ENERGY_BAND_SCHEMA = vol.Schema({**_BASE, vol.Required(ATTR_BAND): vol.In(ENERGY_BANDS)})


def _get_coordinator(hass: HomeAssistant, call: ServiceCall):
    """Coordinator of the requested (or first) loaded config entry."""
    entry_id = call.data.get(ATTR_CONFIG_ENTRY_ID)
    for entry in hass.config_entries.async_entries(DOMAIN):
        if entry.state is not ConfigEntryState.LOADED:
            continue
        if entry_id is None or entry.entry_id == entry_id:
            return entry.runtime_data
    raise ServiceValidationError(
        f"No loaded {DOMAIN} entry" + (f" with id {entry_id}" if entry_id else "")
    )


def _preset_from_call(current, call: ServiceCall):
    """Overlay the day / night / weekend fields of the call on a preset."""
    changes = {
        key: call.data[key] for key in (ATTR_DAY, ATTR_NIGHT, ATTR_WEEKEND) if key in call.data
    }
    return dataclasses.replace(current, **changes)


@callback
def async_register_services(hass: HomeAssistant) -> None:
    """Register every integration service once per Home Assistant instance."""
    if hass.services.has_service(DOMAIN, SERVICE_ADD_FACILITY):
        return

    async def add_facility(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        await coordinator.async_add_facility(call.data[ATTR_CITY], call.data.get(ATTR_STATE_CODE))

    async def remove_facility(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        facility_id = call.data[ATTR_FACILITY_ID]
        await coordinator.async_delete_facility(facility_id)

        device_registry = dr.async_get(hass)
        device = device_registry.async_get_device(
            identifiers={(DOMAIN, coordinator.device_identifier(facility_id))}
        )
        if device is not None:
            device_registry.async_remove_device(device.id)

    async def set_target_temperature(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        await coordinator.async_update_facility_temperature(
            call.data[ATTR_FACILITY_ID], call.data[ATTR_TEMPERATURE]
        )

    async def refresh_weather(call: ServiceCall) -> None:
        await _get_coordinator(hass, call).async_refresh_weather_data()

    async def reset_to_local(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        await coordinator.async_reset_to_local(call.data.get(ATTR_FACILITY_ID))

    async def set_temperature_presets(call: ServiceCall) -> None:
        settings = _get_coordinator(hass, call).settings
        await settings.async_set_temperature_presets(
            _preset_from_call(settings.temperature_presets, call)
        )

    async def set_temperature_thresholds(call: ServiceCall) -> None:
        settings = _get_coordinator(hass, call).settings
        changes = {
            key: call.data[key]
            for key in (ATTR_MIN, ATTR_MAX, ATTR_ALERT_ENABLED)
            if key in call.data
        }
        try:
            await settings.async_set_temperature_thresholds(
                dataclasses.replace(settings.temperature_thresholds, **changes)
            )
        except ValueError as exc:
            raise ServiceValidationError(str(exc)) from exc

    async def set_seasonal_profile(call: ServiceCall) -> None:
        settings = _get_coordinator(hass, call).settings
        season = call.data[ATTR_SEASON]
        profiles = settings.seasonal_profiles
        preset = _preset_from_call(profiles.for_season(season), call)
        await settings.async_set_seasonal_profiles(
            dataclasses.replace(profiles, **{season: preset})
        )

    async def set_energy_saving_bands(call: ServiceCall) -> None:
        settings = _get_coordinator(hass, call).settings
        bands = settings.energy_saving_bands
        changes = {}
        if ATTR_ENABLED in call.data:
            changes["enabled"] = call.data[ATTR_ENABLED]
        band = call.data.get(ATTR_BAND)
        if band is not None:
            changes[band] = _preset_from_call(getattr(bands, band), call)
        elif any(key in call.data for key in (ATTR_DAY, ATTR_NIGHT, ATTR_WEEKEND)):
            raise ServiceValidationError("A band is required to change band temperatures")
        await settings.async_set_energy_saving_bands(dataclasses.replace(bands, **changes))

    async def apply_seasonal_profile(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        await coordinator.async_apply_seasonal_profile(call.data.get(ATTR_SEASON))

    async def apply_energy_band(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        await coordinator.async_apply_energy_band(call.data[ATTR_BAND])

    services = (
        (SERVICE_ADD_FACILITY, add_facility, ADD_FACILITY_SCHEMA),
        (SERVICE_REMOVE_FACILITY, remove_facility, FACILITY_SCHEMA),
        (SERVICE_SET_TARGET_TEMPERATURE, set_target_temperature, SET_TARGET_TEMPERATURE_SCHEMA),
        (SERVICE_REFRESH_WEATHER, refresh_weather, BASE_SCHEMA),
        (SERVICE_RESET_TO_LOCAL, reset_to_local, RESET_TO_LOCAL_SCHEMA),
        (SERVICE_SET_TEMPERATURE_PRESETS, set_temperature_presets, SET_TEMPERATURE_PRESETS_SCHEMA),
        (SERVICE_SET_TEMPERATURE_THRESHOLDS, set_temperature_thresholds, SET_TEMPERATURE_THRESHOLDS_SCHEMA),
        (SERVICE_SET_SEASONAL_PROFILE, set_seasonal_profile, SET_SEASONAL_PROFILE_SCHEMA),
        (SERVICE_SET_ENERGY_SAVING_BANDS, set_energy_saving_bands, SET_ENERGY_SAVING_BANDS_SCHEMA),
        (SERVICE_APPLY_SEASONAL_PROFILE, apply_seasonal_profile, APPLY_SEASONAL_PROFILE_SCHEMA),
        (SERVICE_APPLY_ENERGY_BAND, apply_energy_band, APPLY_ENERGY_BAND_SCHEMA),
    )
    for name, handler, schema in services:
        hass.services.async_register(DOMAIN, name, handler, schema=schema)
    _LOGGER.debug("Registered %d services", len(services))
