"""
FacilityStore: durable persistence of the facility list.

One Home Assistant Store record per config entry holds the JSON-serialised
facility array.
An absent record is a valid empty state. Saves always overwrite the full list.
No network awareness.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from .const import DOMAIN, STORAGE_KEY_FACILITIES, STORAGE_VERSION
from .errors import PersistenceError
from .models import Facility

_LOGGER = logging.getLogger(__name__)


def entry_storage_key(entry_id: str, record: str) -> str:
    """Storage key of one record owned by a config entry."""
    return f"{DOMAIN}.{entry_id}.{record}"


class FacilityStore:
    """Load/save/clear primitives over a single storage record."""

    def __init__(self, hass: HomeAssistant, entry_id: str, store: Store | None = None) -> None:
        self._store: Store = store if store is not None else Store(
            hass, STORAGE_VERSION, entry_storage_key(entry_id, STORAGE_KEY_FACILITIES)
        )

    async def async_load(self) -> list[Facility]:
        """
        Return the persisted facilities, or [] when nothing usable is stored.

        Unreadable storage and a non-list payload are logged and treated as
        absence. Individual malformed entries are dropped.
        """
        try:
            raw: Any = await self._store.async_load()
        except (HomeAssistantError, OSError, ValueError) as exc:
            _LOGGER.warning("Stored facilities could not be read, starting empty: %s", exc)
            return []

        if raw is None:
            return []
        if not isinstance(raw, list):
            _LOGGER.warning("Stored facilities are not a list (%s), starting empty", type(raw).__name__)
            return []

        facilities: list[Facility] = []
        for entry in raw:
            try:
                facilities.append(Facility.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                _LOGGER.debug("Skipping malformed stored facility %r: %s", entry, exc)
        return facilities

    async def async_save(self, facilities: list[Facility]) -> None:
        """Overwrite the persisted list."""
        try:
            await self._store.async_save([f.to_dict() for f in facilities])
        except (HomeAssistantError, OSError) as exc:
            raise PersistenceError(f"Could not save facilities: {exc}") from exc

    async def async_clear(self) -> None:
        """Remove the record entirely. Safe to call when nothing is stored."""
        try:
            await self._store.async_remove()
        except (HomeAssistantError, OSError) as exc:
            raise PersistenceError(f"Could not clear facilities: {exc}") from exc
