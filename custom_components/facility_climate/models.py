"""
Domain models for the Facility Climate integration.

This module contains pure data classes representing facilities, their weather
and the global temperature policy. These classes have no dependencies on HTTP,
API logic, or Home Assistant internals.

Every model is frozen: change it with dataclasses.replace(), never in place.
from_dict() raises KeyError, TypeError or ValueError on malformed input.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

from .const import DEFAULT_TARGET_TEMPERATURE


@dataclasses.dataclass(frozen=True)
class Location:
    """Where a facility is. Immutable after creation."""

    city: str
    state: str
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Location:
        return cls(
            city=str(data["city"]),
            state=str(data.get("state") or ""),
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
        )


@dataclasses.dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions at a facility's location."""

    temperature: float
    feels_like: float
    humidity: float
    wind_speed: float
    cloud_cover: float
    sunrise: int          # UTC epoch seconds
    sunset: int           # UTC epoch seconds
    timezone_offset: int  # seconds east of UTC at the location
    condition_id: int
    condition: str
    description: str

    @classmethod
    def from_api(cls, raw: dict) -> WeatherSnapshot:
        """Build a snapshot from an OpenWeather current-weather payload."""
        main = raw["main"]
        conditions = raw.get("weather") or [{}]
        sys = raw.get("sys") or {}
        return cls(
            temperature=float(main["temp"]),
            feels_like=float(main.get("feels_like", main["temp"])),
            humidity=float(main.get("humidity", 0)),
            wind_speed=float((raw.get("wind") or {}).get("speed", 0.0)),
            cloud_cover=float((raw.get("clouds") or {}).get("all", 0)),
            sunrise=int(sys.get("sunrise", 0)),
            sunset=int(sys.get("sunset", 0)),
            timezone_offset=int(raw.get("timezone", 0)),
            condition_id=int(conditions[0].get("id", 0)),
            condition=str(conditions[0].get("main", "")),
            description=str(conditions[0].get("description", "")),
        )

    def local_time(self, timestamp: int) -> datetime:
        """Return a UTC timestamp as wall-clock time at the facility."""
        tz = timezone(timedelta(seconds=self.timezone_offset))
        return datetime.fromtimestamp(timestamp, tz=tz)

    @property
    def local_sunrise(self) -> datetime:
        return self.local_time(self.sunrise)

    @property
    def local_sunset(self) -> datetime:
        return self.local_time(self.sunset)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> WeatherSnapshot:
        return cls(
            temperature=float(data["temperature"]),
            feels_like=float(data["feels_like"]),
            humidity=float(data["humidity"]),
            wind_speed=float(data["wind_speed"]),
            cloud_cover=float(data["cloud_cover"]),
            sunrise=int(data["sunrise"]),
            sunset=int(data["sunset"]),
            timezone_offset=int(data["timezone_offset"]),
            condition_id=int(data["condition_id"]),
            condition=str(data["condition"]),
            description=str(data["description"]),
        )


@dataclasses.dataclass(frozen=True)
class Facility:
    """A tracked site with its target temperature and latest weather."""

    id: str
    name: str
    location: Location
    target_temperature: float = DEFAULT_TARGET_TEMPERATURE
    weather: WeatherSnapshot | None = None

    def matches(self, city: str, state: str) -> bool:
        """True if this facility sits in the given city/state (city case-insensitive)."""
        return (
            self.location.city.lower() == city.lower()
            and self.location.state == state
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location.to_dict(),
            "target_temperature": self.target_temperature,
            "weather": self.weather.to_dict() if self.weather is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Facility:
        weather = data.get("weather")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            location=Location.from_dict(data["location"]),
            target_temperature=float(data["target_temperature"]),
            weather=WeatherSnapshot.from_dict(weather) if weather else None,
        )


@dataclasses.dataclass(frozen=True)
class ResolvedCity:
    """A single geocoding match."""

    name: str
    state: str
    lat: float
    lon: float


# ---------------------------------------------------------------------------
# Global settings
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class TemperaturePreset:
    """Target temperatures by time bucket."""

    day: float
    night: float
    weekend: float

    def for_bucket(self, bucket: str) -> float:
        return {"day": self.day, "night": self.night, "weekend": self.weekend}[bucket]

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> TemperaturePreset:
        return cls(
            day=float(data["day"]),
            night=float(data["night"]),
            weekend=float(data["weekend"]),
        )


@dataclasses.dataclass(frozen=True)
class TemperatureThresholds:
    """Soft operating bounds and whether to alert outside them."""

    min: float
    max: float
    alert_enabled: bool

    def contains(self, temperature: float) -> bool:
        return self.min <= temperature <= self.max

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> TemperatureThresholds:
        low, high = float(data["min"]), float(data["max"])
        if low > high:
            raise ValueError(f"min {low} above max {high}")
        return cls(min=low, max=high, alert_enabled=bool(data["alert_enabled"]))


@dataclasses.dataclass(frozen=True)
class SeasonalProfiles:
    """One preset per meteorological season."""

    winter: TemperaturePreset
    spring: TemperaturePreset
    summer: TemperaturePreset
    fall: TemperaturePreset

    def for_season(self, season: str) -> TemperaturePreset:
        if season not in ("winter", "spring", "summer", "fall"):
            raise ValueError(f"Unknown season: {season}")
        return getattr(self, season)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> SeasonalProfiles:
        return cls(
            winter=TemperaturePreset.from_dict(data["winter"]),
            spring=TemperaturePreset.from_dict(data["spring"]),
            summer=TemperaturePreset.from_dict(data["summer"]),
            fall=TemperaturePreset.from_dict(data["fall"]),
        )


@dataclasses.dataclass(frozen=True)
class EnergySavingBands:
    """Peak and off-peak presets, applied only while enabled."""

    peak_hours: TemperaturePreset
    off_peak_hours: TemperaturePreset
    enabled: bool

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> EnergySavingBands:
        return cls(
            peak_hours=TemperaturePreset.from_dict(data["peak_hours"]),
            off_peak_hours=TemperaturePreset.from_dict(data["off_peak_hours"]),
            enabled=bool(data["enabled"]),
        )


DEFAULT_TEMPERATURE_PRESETS = TemperaturePreset(day=22.0, night=18.0, weekend=20.0)
DEFAULT_TEMPERATURE_THRESHOLDS = TemperatureThresholds(min=16.0, max=28.0, alert_enabled=True)
DEFAULT_SEASONAL_PROFILES = SeasonalProfiles(
    winter=TemperaturePreset(day=21.0, night=17.0, weekend=19.0),
    spring=TemperaturePreset(day=22.0, night=18.0, weekend=20.0),
    summer=TemperaturePreset(day=24.0, night=20.0, weekend=22.0),
    fall=TemperaturePreset(day=22.0, night=18.0, weekend=20.0),
)
DEFAULT_ENERGY_SAVING_BANDS = EnergySavingBands(
    peak_hours=TemperaturePreset(day=24.0, night=20.0, weekend=22.0),
    off_peak_hours=TemperaturePreset(day=20.0, night=18.0, weekend=19.0),
    enabled=False,
)
