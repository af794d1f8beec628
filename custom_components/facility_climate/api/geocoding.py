"""
Low-level city geocoding via the OpenWeather direct geocoding API.

Responsible for:
- Building the "city,state,US" or bare-city query
- Mapping the first match onto a ResolvedCity
- Parsing the configured popular-city list
"""
import logging

from custom_components.facility_climate.const import OPENWEATHER_GEOCODING_URL
from custom_components.facility_climate.errors import NotFoundError, UpstreamError
from custom_components.facility_climate.models import ResolvedCity
from custom_components.facility_climate.requests import make_request

_LOGGER = logging.getLogger(__name__)


def build_query(city: str, state_code: str | None = None) -> str:
    """US-scoped query when a state code is given, otherwise unscoped."""
    city = city.strip()
    if state_code:
        return f"{city},{state_code.strip()},US"
    return city


def parse_city_list(raw: str) -> list[tuple[str, str | None]]:
    """
    Parse "San Francisco, CA; Paris" into [("San Francisco", "CA"), ("Paris", None)].

    Entries are separated by semicolons; an optional state code follows the
    last comma of an entry. Blank entries are skipped.
    """
    cities: list[tuple[str, str | None]] = []
    for entry in (raw or "").split(";"):
        entry = entry.strip()
        if not entry:
            continue
        if "," in entry:
            city, state = entry.rsplit(",", 1)
            cities.append((city.strip(), state.strip() or None))
        else:
            cities.append((entry, None))
    return cities


async def resolve_city(api_key: str, city: str, state_code: str | None = None) -> ResolvedCity:
    """
    Resolve a city name to a single coordinate match.

    Corresponding CURL command:
    curl -X 'GET' \\
      'https://api.openweathermap.org/geo/1.0/direct?q=Chicago,IL,US&limit=1&appid=KEY'
    """
    params = {
        "q": build_query(city, state_code),
        "limit": 1,
        "appid": api_key,
    }
    raw = await make_request("GET", OPENWEATHER_GEOCODING_URL, params=params)
    if not isinstance(raw, list):
        raise UpstreamError(200, f"Expected a list of matches, got {type(raw).__name__}",
                            OPENWEATHER_GEOCODING_URL)
    if not raw:
        raise NotFoundError(f"City not found: {params['q']}")

    match = raw[0]
    try:
        return ResolvedCity(
            name=str(match["name"]),
            state=str(match.get("state") or state_code or ""),
            lat=float(match["lat"]),
            lon=float(match["lon"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        _LOGGER.warning("Unexpected geocoding match for %s: %s", params["q"], match)
        raise UpstreamError(200, f"Malformed geocoding payload: {e}", OPENWEATHER_GEOCODING_URL) from e
