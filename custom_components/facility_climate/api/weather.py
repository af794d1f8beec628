"""
Low-level current-weather fetching from the OpenWeather API.

Responsible for:
- Fetching current conditions for a coordinate pair
- Mapping the JSON response onto a WeatherSnapshot
"""
import logging

from custom_components.facility_climate.const import OPENWEATHER_UNITS, OPENWEATHER_WEATHER_URL
from custom_components.facility_climate.errors import UpstreamError
from custom_components.facility_climate.models import WeatherSnapshot
from custom_components.facility_climate.requests import make_request

_LOGGER = logging.getLogger(__name__)


async def fetch_current_weather(api_key: str, lat: float, lon: float) -> WeatherSnapshot:
    """
    Fetch current weather for (lat, lon) in metric units.

    Corresponding CURL command:
    curl -X 'GET' \\
      'https://api.openweathermap.org/data/2.5/weather?lat=LAT&lon=LON&units=metric&appid=KEY'
    """
    params = {
        "lat": lat,
        "lon": lon,
        "units": OPENWEATHER_UNITS,
        "appid": api_key,
    }
    raw = await make_request("GET", OPENWEATHER_WEATHER_URL, params=params)
    try:
        return WeatherSnapshot.from_api(raw)
    except (KeyError, TypeError, ValueError, IndexError) as e:
        _LOGGER.warning("Unexpected weather response for (%.4f, %.4f): %s", lat, lon, raw)
        raise UpstreamError(200, f"Malformed weather payload: {e}", OPENWEATHER_WEATHER_URL) from e
