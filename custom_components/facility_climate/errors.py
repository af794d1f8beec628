"""
Error kinds raised by the Facility Climate core.

All errors derive from HomeAssistantError so a failing service call or entity
action shows the message to the user instead of a generic failure.
"""
from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class FacilityClimateError(HomeAssistantError):
    """Base class for every error raised by this integration."""

    kind = "unknown"


class ConfigurationError(FacilityClimateError):
    """The OpenWeather API key is missing."""

    kind = "configuration"


class NotFoundError(FacilityClimateError):
    """A city could not be geocoded, or a facility id is not tracked."""

    kind = "not_found"


class DuplicateFacilityError(FacilityClimateError):
    """A facility already exists for this city and state."""

    kind = "duplicate_facility"


class UpstreamError(FacilityClimateError):
    """An external API answered with a non-success response."""

    kind = "upstream"

    def __init__(self, status: int, body: str, url: str | None = None) -> None:
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"HTTP {status} from {url or 'upstream'}: {body[:200]}")


class NetworkError(FacilityClimateError):
    """Transport-level failure (connection refused, DNS, timeout)."""

    kind = "network"


class PersistenceError(FacilityClimateError):
    """Stored data could not be written or read."""

    kind = "persistence"
