"""
GlobalSettingsStore: user-editable temperature policy.

Four settings groups, each persisted as its own Store record scoped to the
config entry:
- temperature_presets     day / night / weekend targets
- temperature_thresholds  soft min / max and whether to alert outside them
- seasonal_profiles       one preset per season
- energy_saving_bands     peak / off-peak presets and an enabled flag

Every setter writes through immediately and then notifies listeners with the
name of the group that changed.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from .const import (
    SETTING_ENERGY,
    SETTING_PRESETS,
    SETTING_SEASONAL,
    SETTING_THRESHOLDS,
    STORAGE_KEY_ENERGY,
    STORAGE_KEY_PRESETS,
    STORAGE_KEY_SEASONAL,
    STORAGE_KEY_THRESHOLDS,
    STORAGE_VERSION,
)
from .errors import PersistenceError
from .models import (
    DEFAULT_ENERGY_SAVING_BANDS,
    DEFAULT_SEASONAL_PROFILES,
    DEFAULT_TEMPERATURE_PRESETS,
    DEFAULT_TEMPERATURE_THRESHOLDS,
    EnergySavingBands,
    SeasonalProfiles,
    TemperaturePreset,
    TemperatureThresholds,
)
from .store import entry_storage_key

_LOGGER = logging.getLogger(__name__)

# group name → (record name, model class, default value)
_GROUPS: dict[str, tuple[str, type, Any]] = {
    SETTING_PRESETS: (STORAGE_KEY_PRESETS, TemperaturePreset, DEFAULT_TEMPERATURE_PRESETS),
    SETTING_THRESHOLDS: (STORAGE_KEY_THRESHOLDS, TemperatureThresholds, DEFAULT_TEMPERATURE_THRESHOLDS),
    SETTING_SEASONAL: (STORAGE_KEY_SEASONAL, SeasonalProfiles, DEFAULT_SEASONAL_PROFILES),
    SETTING_ENERGY: (STORAGE_KEY_ENERGY, EnergySavingBands, DEFAULT_ENERGY_SAVING_BANDS),
}


class GlobalSettingsStore:
    """Holds the four policy groups in memory and persists every change."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry_id: str,
        store_factory: Callable[[str], Store] | None = None,
    ) -> None:
        if store_factory is None:
            def store_factory(record: str) -> Store:
                return Store(hass, STORAGE_VERSION, entry_storage_key(entry_id, record))
        self._stores: dict[str, Store] = {
            group: store_factory(key) for group, (key, _, _) in _GROUPS.items()
        }
        self._values: dict[str, Any] = {
            group: default for group, (_, _, default) in _GROUPS.items()
        }
        self._listeners: list[Callable[[str], None]] = []

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def async_load(self) -> None:
        """Read every group once; missing or malformed records keep defaults."""
        for group, (_, model, default) in _GROUPS.items():
            try:
                raw = await self._stores[group].async_load()
            except (HomeAssistantError, OSError, ValueError) as exc:
                _LOGGER.warning("Could not read %s, using defaults: %s", group, exc)
                continue
            if raw is None:
                continue
            try:
                self._values[group] = model.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                _LOGGER.warning("Stored %s is malformed, using defaults: %s", group, exc)
                self._values[group] = default

    async def async_remove(self) -> None:
        """Delete every group record. Used when the config entry is removed."""
        for group, store in self._stores.items():
            try:
                await store.async_remove()
            except (HomeAssistantError, OSError) as exc:
                raise PersistenceError(f"Could not remove {group}: {exc}") from exc
        self._values = {group: default for group, (_, _, default) in _GROUPS.items()}

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------

    @property
    def temperature_presets(self) -> TemperaturePreset:
        return self._values[SETTING_PRESETS]

    @property
    def temperature_thresholds(self) -> TemperatureThresholds:
        return self._values[SETTING_THRESHOLDS]

    @property
    def seasonal_profiles(self) -> SeasonalProfiles:
        return self._values[SETTING_SEASONAL]

    @property
    def energy_saving_bands(self) -> EnergySavingBands:
        return self._values[SETTING_ENERGY]

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    async def async_set_temperature_presets(self, presets: TemperaturePreset) -> None:
        await self._async_set(SETTING_PRESETS, presets)

    async def async_set_temperature_thresholds(self, thresholds: TemperatureThresholds) -> None:
        if thresholds.min > thresholds.max:
            raise ValueError(f"min {thresholds.min} above max {thresholds.max}")
        await self._async_set(SETTING_THRESHOLDS, thresholds)

    async def async_set_seasonal_profiles(self, profiles: SeasonalProfiles) -> None:
        await self._async_set(SETTING_SEASONAL, profiles)

    async def async_set_energy_saving_bands(self, bands: EnergySavingBands) -> None:
        await self._async_set(SETTING_ENERGY, bands)

    async def _async_set(self, group: str, value: Any) -> None:
        try:
            await self._stores[group].async_save(value.to_dict())
        except (HomeAssistantError, OSError) as exc:
            raise PersistenceError(f"Could not save {group}: {exc}") from exc
        self._values[group] = value
        self._notify(group)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    @callback
    def async_add_listener(self, update_callback: Callable[[str], None]) -> CALLBACK_TYPE:
        """Register a callback for setting changes; returns an unsubscribe function."""
        self._listeners.append(update_callback)

        @callback
        def remove_listener() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return remove_listener

    def _notify(self, group: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(group)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error("Settings listener failed for %s: %s", group, exc)
