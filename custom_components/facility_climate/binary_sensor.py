"""
Platform for the per-facility threshold alert and the integration status.

The alert is on while threshold alerts are enabled and the facility's target
temperature lies outside the configured [min, max] band.

The status sensor sits on the integration device and is on while the last
user operation (or the session initialisation) failed. Its attributes carry
the error kind and message, plus the loading flag.
"""
from __future__ import annotations

from homeassistant import config_entries
from homeassistant.components.binary_sensor import BinarySensorDeviceClass, BinarySensorEntity
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import CONF_GUID, DOMAIN
from .coordinator import FacilityCoordinator
from .entity import FacilityEntity, async_add_facility_entities


class FacilityThresholdAlert(FacilityEntity, BinarySensorEntity):
    _attr_device_class = BinarySensorDeviceClass.PROBLEM
    _attr_icon = "mdi:thermometer-alert"

    def __init__(self, coordinator: FacilityCoordinator, facility_id: str) -> None:
        super().__init__(coordinator, facility_id, "threshold_alert", "Threshold Alert")

    @property
    def is_on(self) -> bool | None:
        facility = self.facility
        if facility is None:
            return None
        thresholds = self.coordinator.settings.temperature_thresholds
        return thresholds.alert_enabled and not thresholds.contains(facility.target_temperature)

    @property
    def extra_state_attributes(self) -> dict:
        thresholds = self.coordinator.settings.temperature_thresholds
        return {"min": thresholds.min, "max": thresholds.max}


class FacilityClimateStatus(CoordinatorEntity[FacilityCoordinator], BinarySensorEntity):
    _attr_device_class = BinarySensorDeviceClass.PROBLEM
    _attr_icon = "mdi:alert-circle-outline"

    def __init__(self, coordinator: FacilityCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_data[CONF_GUID]}_status"
        self._attr_name = f"{coordinator.entry_name} Status"

    @property
    def device_info(self) -> DeviceInfo:
        return self.coordinator.get_integration_device_info()

    @property
    def is_on(self) -> bool:
        return self.coordinator.data.error is not None

    @property
    def extra_state_attributes(self) -> dict:
        data = self.coordinator.data
        error = data.error
        return {
            "kind": None if error is None else getattr(error, "kind", "unknown"),
            "message": None if error is None else str(error),
            "loading": data.loading,
        }


def _build(coordinator: FacilityCoordinator, facility_id: str) -> list[BinarySensorEntity]:
    return [FacilityThresholdAlert(coordinator, facility_id)]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add a threshold alert for every facility and the integration status."""
    coordinator: FacilityCoordinator = config_entry.runtime_data
    async_add_facility_entities(coordinator, config_entry, async_add_entities, _build)
    async_add_entities([FacilityClimateStatus(coordinator)])
