"""Platform for the per-facility reset-to-outdoor button."""
from __future__ import annotations

from homeassistant import config_entries
from homeassistant.components.button import ButtonEntity
from homeassistant.core import HomeAssistant

from .coordinator import FacilityCoordinator
from .entity import FacilityEntity, async_add_facility_entities


class FacilityResetToOutdoorButton(FacilityEntity, ButtonEntity):
    """Sets the target to the rounded outdoor temperature (22°C without weather)."""

    _attr_icon = "mdi:thermometer-auto"

    def __init__(self, coordinator: FacilityCoordinator, facility_id: str) -> None:
        super().__init__(coordinator, facility_id, "reset_to_outdoor", "Reset To Outdoor")

    async def async_press(self) -> None:
        await self.coordinator.async_reset_to_local(self._facility_id)


def _build(coordinator: FacilityCoordinator, facility_id: str) -> list[ButtonEntity]:
    return [FacilityResetToOutdoorButton(coordinator, facility_id)]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    coordinator: FacilityCoordinator = config_entry.runtime_data
    async_add_facility_entities(coordinator, config_entry, async_add_entities, _build)
