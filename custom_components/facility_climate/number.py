"""Platform for the per-facility target temperature control."""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.number import NumberDeviceClass, NumberEntity, NumberMode
from homeassistant.const import UnitOfTemperature
from homeassistant.core import HomeAssistant

from .const import TEMPERATURE_STEP
from .coordinator import FacilityCoordinator
from .entity import FacilityEntity, async_add_facility_entities

_LOGGER = logging.getLogger(__name__)


class FacilityTargetTemperature(FacilityEntity, NumberEntity):
    """
    Target temperature of a facility.

    The soft bounds come from the global temperature thresholds, so the
    control follows threshold changes without a reload.
    """

    _attr_device_class = NumberDeviceClass.TEMPERATURE
    _attr_native_unit_of_measurement = UnitOfTemperature.CELSIUS
    _attr_native_step = TEMPERATURE_STEP
    _attr_mode = NumberMode.BOX
    _attr_icon = "mdi:thermostat"

    def __init__(self, coordinator: FacilityCoordinator, facility_id: str) -> None:
        super().__init__(coordinator, facility_id, "target_temperature", "Target Temperature")

    @property
    def native_min_value(self) -> float:
        return self.coordinator.settings.temperature_thresholds.min

    @property
    def native_max_value(self) -> float:
        return self.coordinator.settings.temperature_thresholds.max

    @property
    def native_value(self) -> float | None:
        facility = self.facility
        return facility.target_temperature if facility is not None else None

    async def async_set_native_value(self, value: float) -> None:
        await self.coordinator.async_update_facility_temperature(self._facility_id, value)


def _build(coordinator: FacilityCoordinator, facility_id: str) -> list[NumberEntity]:
    return [FacilityTargetTemperature(coordinator, facility_id)]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add a target temperature control for every facility."""
    coordinator: FacilityCoordinator = config_entry.runtime_data
    async_add_facility_entities(coordinator, config_entry, async_add_entities, _build)
