"""Config flow for the Facility Climate integration."""
from __future__ import annotations
import logging
import uuid
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from . import _validate_api_key
from .const import (
    CONF_API_KEY,
    CONF_ENTRY_NAME,
    CONF_GUID,
    CONF_POPULAR_CITIES,
    DEFAULT_POPULAR_CITIES,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)
CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default='My Facilities'): cv.string,
                vol.Required(CONF_API_KEY, default=''): cv.string,
                vol.Optional(CONF_POPULAR_CITIES, default=DEFAULT_POPULAR_CITIES): cv.string,
            }
        )


def _required_field_error(user_input: Dict[str, Any]) -> Optional[str]:
    """Return the form error for the first empty required field, if any."""
    if not user_input.get(CONF_ENTRY_NAME):
        return 'entry_name_required'
    if not (user_input.get(CONF_API_KEY) or '').strip():
        return 'api_key_required'
    return None


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = dict(user_input)
            self.data[CONF_API_KEY] = self.data[CONF_API_KEY].strip()
            self.data.setdefault(CONF_POPULAR_CITIES, DEFAULT_POPULAR_CITIES)
            # Create new guid for the entry
            self.data[CONF_GUID] = str(uuid.uuid4())

            error = _required_field_error(self.data)
            if error is None:
                # One entry per API key
                self._async_abort_entries_match({CONF_API_KEY: self.data[CONF_API_KEY]})
                error = await _validate_api_key(self.data[CONF_API_KEY])
            if error is not None:
                errors['base'] = error
            else:
                return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    def _default(self, key: str, fallback: Any) -> Any:
        """Options override data; data overrides the fallback."""
        if key in self._entry.options:
            return self._entry.options[key]
        return self._entry.data.get(key, fallback)

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        if user_input is not None:
            error = _required_field_error(user_input)
            if error is None:
                error = await _validate_api_key(user_input[CONF_API_KEY].strip())
            if error is not None:
                errors['base'] = error
            else:
                new_data = {
                    CONF_GUID: self._entry.data[CONF_GUID],
                    CONF_ENTRY_NAME: user_input[CONF_ENTRY_NAME],
                    CONF_API_KEY: user_input[CONF_API_KEY].strip(),
                    CONF_POPULAR_CITIES: user_input.get(
                        CONF_POPULAR_CITIES, self._default(CONF_POPULAR_CITIES, DEFAULT_POPULAR_CITIES)
                    ),
                }

                # Rename the entry in the UI; the update listener reloads it
                self.hass.config_entries.async_update_entry(
                    self._entry,
                    data=new_data,
                    title=new_data[CONF_ENTRY_NAME],
                )

                return self.async_create_entry(title=f"{new_data[CONF_ENTRY_NAME]}", data=new_data)

        OPTIONS_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default=self._default(CONF_ENTRY_NAME, '')): cv.string,
                vol.Required(CONF_API_KEY, default=self._default(CONF_API_KEY, '')): cv.string,
                vol.Optional(
                    CONF_POPULAR_CITIES,
                    default=self._default(CONF_POPULAR_CITIES, DEFAULT_POPULAR_CITIES),
                ): cv.string,
            }
        )
        return self.async_show_form(step_id="init", data_schema=OPTIONS_SCHEMA, errors=errors)
