DOMAIN = "facility_climate"
VERSION = "0.3.0"

# Comfort default used for new facilities and for reset-to-outdoor without weather
DEFAULT_TARGET_TEMPERATURE = 22.0

# Soft bounds and step used by the target temperature control
TEMPERATURE_STEP = 0.5

# Update intervals (seconds)
REFRESH_INTERVAL = 300       # weather refresh for every tracked facility

# Local hours [start, end) counted as "day" by the preset sweep
DAY_START_HOUR = 8
DAY_END_HOUR = 20

# Seed list used when the popular-city lookup fails: (city, state code)
DEFAULT_CITIES: list[tuple[str, str]] = [
    ("San Francisco", "CA"),
    ("New York", "NY"),
    ("Chicago", "IL"),
    ("Seattle", "WA"),
]
DEFAULT_POPULAR_CITIES = "San Francisco, CA; New York, NY; Chicago, IL; Seattle, WA"

# Meteorological seasons (northern hemisphere) by month number
SEASON_BY_MONTH: dict[int, str] = {
    12: "winter", 1: "winter", 2: "winter",
    3: "spring", 4: "spring", 5: "spring",
    6: "summer", 7: "summer", 8: "summer",
    9: "fall", 10: "fall", 11: "fall",
}
SEASONS = ("winter", "spring", "summer", "fall")
ENERGY_BANDS = ("peak_hours", "off_peak_hours")

# Persistence (Home Assistant Store records, one set per config entry:
# "<domain>.<entry_id>.<record>")
STORAGE_VERSION = 1
STORAGE_KEY_FACILITIES = "facilities"
STORAGE_KEY_PRESETS = "temperature_presets"
STORAGE_KEY_THRESHOLDS = "temperature_thresholds"
STORAGE_KEY_SEASONAL = "seasonal_profiles"
STORAGE_KEY_ENERGY = "energy_saving_bands"

# Settings group names, also passed to settings listeners
SETTING_PRESETS = "temperature_presets"
SETTING_THRESHOLDS = "temperature_thresholds"
SETTING_SEASONAL = "seasonal_profiles"
SETTING_ENERGY = "energy_saving_bands"

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_API_KEY = "api_key"
CONF_POPULAR_CITIES = "popular_cities"
CONF_GUID = "guid"

# OpenWeather
OPENWEATHER_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
OPENWEATHER_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
OPENWEATHER_UNITS = "metric"
REQUEST_TIMEOUT = 10         # seconds per outbound call
