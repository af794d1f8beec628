import logging

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady
from homeassistant.helpers import config_validation as cv

from .api import WeatherGateway
from .const import CONF_API_KEY, DOMAIN
from .coordinator import FacilityCoordinator
from .errors import (
    ConfigurationError,
    NetworkError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
)
from .facility_service import FacilityService
from .services import async_register_services
from .settings_store import GlobalSettingsStore
from .store import FacilityStore

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.NUMBER,
    Platform.BINARY_SENSOR,
    Platform.SWITCH,
    Platform.BUTTON,
]
_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

# Any well-known city works: only the HTTP status of the lookup matters
_VALIDATION_CITY = "London"


async def _validate_api_key(api_key: str | None) -> str | None:
    """
    Check the OpenWeather key with a one-result geocoding call.

    Returns None when the key works, otherwise an error key for the form:
    "api_key_required", "invalid_auth" or "cannot_connect".
    """
    gateway = WeatherGateway(api_key)
    try:
        await gateway.async_resolve_city(_VALIDATION_CITY)
    except ConfigurationError:
        return "api_key_required"
    except NotFoundError:
        return None
    except UpstreamError as exc:
        if exc.status in (401, 403):
            return "invalid_auth"
        return "cannot_connect"
    except NetworkError:
        return "cannot_connect"
    return None


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    async_register_services(hass)
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up the facility coordinator and platforms from a ConfigEntry."""
    error = await _validate_api_key(entry.data.get(CONF_API_KEY))
    if error == "invalid_auth":
        raise ConfigEntryNotReady("OpenWeather rejected the configured API key")
    if error == "api_key_required":
        raise ConfigEntryNotReady("No OpenWeather API key is configured")
    if error is not None:
        raise ConfigEntryNotReady("Could not connect to the OpenWeather API")

    settings = GlobalSettingsStore(hass, entry.entry_id)
    await settings.async_load()

    service = FacilityService(
        WeatherGateway(entry.data[CONF_API_KEY]), FacilityStore(hass, entry.entry_id)
    )
    coordinator = FacilityCoordinator(hass, dict(entry.data), service, settings, config_entry=entry)
    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady:
        await coordinator.async_shutdown()
        raise

    entry.runtime_data = coordinator
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Reload the integration when the options change."""
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_remove_config_entry_device(
    hass: core.HomeAssistant, config_entry: config_entries.ConfigEntry, device_entry
) -> bool:
    """Allow removing the device of a facility that is no longer tracked."""
    coordinator: FacilityCoordinator = config_entry.runtime_data
    for domain, identifier in device_entry.identifiers:
        if domain != DOMAIN:
            continue
        for facility_id in coordinator.data.facility_ids:
            if identifier == coordinator.device_identifier(facility_id):
                _LOGGER.warning("Facility %s is still tracked, remove it first", facility_id)
                return False
    return True


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        await entry.runtime_data.async_shutdown()
    return unloaded


async def async_remove_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> None:
    """Delete the facility and settings records owned by a removed entry."""
    try:
        await FacilityStore(hass, entry.entry_id).async_clear()
        await GlobalSettingsStore(hass, entry.entry_id).async_remove()
    except PersistenceError as exc:
        _LOGGER.warning("Could not delete stored data of %s: %s", entry.title, exc)
