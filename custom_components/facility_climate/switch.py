"""
Platform for the integration-level policy switches.

Two switches edit the global settings directly:
- threshold alerts on/off   (temperature_thresholds.alert_enabled)
- energy-saving bands on/off (energy_saving_bands.enabled)
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from homeassistant import config_entries
from homeassistant.components.switch import (
    SwitchDeviceClass,
    SwitchEntity,
    SwitchEntityDescription,
)
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity import DeviceInfo

from .const import CONF_GUID, DOMAIN, SETTING_ENERGY, SETTING_THRESHOLDS
from .coordinator import FacilityCoordinator
from .settings_store import GlobalSettingsStore

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class PolicySwitchDescription(SwitchEntityDescription):
    label: str
    setting_group: str
    is_on_fn: Callable[[GlobalSettingsStore], bool]
    set_fn: Callable[[GlobalSettingsStore, bool], Awaitable[None]]


def _set_alerts(settings: GlobalSettingsStore, enabled: bool) -> Awaitable[None]:
    return settings.async_set_temperature_thresholds(
        dataclasses.replace(settings.temperature_thresholds, alert_enabled=enabled)
    )


def _set_energy_saving(settings: GlobalSettingsStore, enabled: bool) -> Awaitable[None]:
    return settings.async_set_energy_saving_bands(
        dataclasses.replace(settings.energy_saving_bands, enabled=enabled)
    )


POLICY_SWITCHES: tuple[PolicySwitchDescription, ...] = (
    PolicySwitchDescription(
        key="threshold_alerts",
        label="Threshold Alerts",
        icon="mdi:bell-cog",
        setting_group=SETTING_THRESHOLDS,
        is_on_fn=lambda s: s.temperature_thresholds.alert_enabled,
        set_fn=_set_alerts,
    ),
    PolicySwitchDescription(
        key="energy_saving",
        label="Energy Saving",
        icon="mdi:leaf",
        setting_group=SETTING_ENERGY,
        is_on_fn=lambda s: s.energy_saving_bands.enabled,
        set_fn=_set_energy_saving,
    ),
)


class PolicySwitch(SwitchEntity):
    """A switch backed by one flag of the global settings."""

    entity_description: PolicySwitchDescription
    _attr_should_poll = False
    _attr_device_class = SwitchDeviceClass.SWITCH

    def __init__(self, coordinator: FacilityCoordinator, description: PolicySwitchDescription) -> None:
        self._coordinator = coordinator
        self.entity_description = description
        guid = coordinator.entry_data[CONF_GUID]
        self._attr_unique_id = f"{DOMAIN}_{guid}_{description.key}"
        self._attr_name = f"{coordinator.entry_name} {description.label}"

    @property
    def settings(self) -> GlobalSettingsStore:
        return self._coordinator.settings

    @property
    def device_info(self) -> DeviceInfo:
        return self._coordinator.get_integration_device_info()

    @property
    def is_on(self) -> bool:
        return self.entity_description.is_on_fn(self.settings)

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self.async_on_remove(self.settings.async_add_listener(self._handle_settings_change))

    @callback
    def _handle_settings_change(self, group: str) -> None:
        if group == self.entity_description.setting_group:
            self.async_write_ha_state()

    async def async_turn_on(self, **kwargs) -> None:
        """Turn the switch on."""
        await self.entity_description.set_fn(self.settings, True)

    async def async_turn_off(self, **kwargs) -> None:
        """Turn the switch off."""
        await self.entity_description.set_fn(self.settings, False)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the policy switches for the config entry."""
    coordinator: FacilityCoordinator = config_entry.runtime_data
    async_add_entities([PolicySwitch(coordinator, description) for description in POLICY_SWITCHES])
