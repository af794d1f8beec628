"""
Shared base for per-facility entities and the helper that adds entities for
facilities created after setup.
"""
from __future__ import annotations

from typing import Callable, Iterable

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers.entity import DeviceInfo, Entity
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import CONF_GUID, DOMAIN
from .coordinator import FacilityCoordinator
from .models import Facility


class FacilityEntity(CoordinatorEntity[FacilityCoordinator]):
    """An entity bound to one facility id; unavailable once it is deleted."""

    def __init__(self, coordinator: FacilityCoordinator, facility_id: str, key: str, label: str) -> None:
        super().__init__(coordinator)
        self._facility_id = facility_id
        facility = coordinator.data.get(facility_id)
        device_name = facility.name if facility is not None else facility_id
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_data[CONF_GUID]}_{facility_id}_{key}"
        self._attr_name = f"{device_name} {label}"

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        # Threshold bounds and alerts also depend on the global settings
        self.async_on_remove(
            self.coordinator.settings.async_add_listener(self._handle_settings_change)
        )

    @callback
    def _handle_settings_change(self, group: str) -> None:
        self.async_write_ha_state()

    @property
    def facility(self) -> Facility | None:
        return self.coordinator.data.get(self._facility_id)

    @property
    def available(self) -> bool:
        return super().available and self.facility is not None

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return self.coordinator.get_device_info(self._facility_id)


@callback
def async_add_facility_entities(
    coordinator: FacilityCoordinator,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
    build: Callable[[FacilityCoordinator, str], Iterable[Entity]],
) -> None:
    """
    Add entities for every current facility, then for each facility that
    appears in a later coordinator snapshot.
    """
    known: set[str] = set()

    @callback
    def _add_new_facilities() -> None:
        new_ids = [fid for fid in coordinator.data.facility_ids if fid not in known]
        if not new_ids:
            return
        known.update(new_ids)
        entities = [entity for fid in new_ids for entity in build(coordinator, fid)]
        if entities:
            async_add_entities(entities)

    _add_new_facilities()
    config_entry.async_on_unload(coordinator.async_add_listener(_add_new_facilities))
