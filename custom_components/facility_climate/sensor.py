"""
Platform for facility weather sensors.

Each facility gets outdoor temperature, feels-like, humidity, wind speed and
cloud cover sensors, all read from the facility's latest weather snapshot.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from homeassistant import config_entries
from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.const import PERCENTAGE, UnitOfSpeed, UnitOfTemperature
from homeassistant.core import HomeAssistant

from .coordinator import FacilityCoordinator
from .entity import FacilityEntity, async_add_facility_entities
from .models import WeatherSnapshot

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class WeatherSensorDescription(SensorEntityDescription):
    label: str
    value_fn: Callable[[WeatherSnapshot], float | int | None]


WEATHER_SENSORS: tuple[WeatherSensorDescription, ...] = (
    WeatherSensorDescription(
        key="outdoor_temperature",
        label="Outdoor Temperature",
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        value_fn=lambda w: w.temperature,
    ),
    WeatherSensorDescription(
        key="feels_like",
        label="Feels Like",
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        value_fn=lambda w: w.feels_like,
    ),
    WeatherSensorDescription(
        key="humidity",
        label="Humidity",
        device_class=SensorDeviceClass.HUMIDITY,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=PERCENTAGE,
        value_fn=lambda w: w.humidity,
    ),
    WeatherSensorDescription(
        key="wind_speed",
        label="Wind Speed",
        device_class=SensorDeviceClass.WIND_SPEED,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=UnitOfSpeed.METERS_PER_SECOND,
        value_fn=lambda w: w.wind_speed,
    ),
    WeatherSensorDescription(
        key="cloud_cover",
        label="Cloud Cover",
        icon="mdi:weather-cloudy",
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=PERCENTAGE,
        value_fn=lambda w: w.cloud_cover,
    ),
)


class FacilityWeatherSensor(FacilityEntity, SensorEntity):
    """One weather value of a facility; None until weather is fetched."""

    entity_description: WeatherSensorDescription

    def __init__(
        self,
        coordinator: FacilityCoordinator,
        facility_id: str,
        description: WeatherSensorDescription,
    ) -> None:
        super().__init__(coordinator, facility_id, description.key, description.label)
        self.entity_description = description

    @property
    def native_value(self) -> float | int | None:
        facility = self.facility
        if facility is None or facility.weather is None:
            return None
        return self.entity_description.value_fn(facility.weather)

    @property
    def extra_state_attributes(self) -> dict | None:
        if self.entity_description.key != "outdoor_temperature":
            return None
        facility = self.facility
        if facility is None or facility.weather is None:
            return None
        weather = facility.weather
        return {
            "condition": weather.condition,
            "description": weather.description,
            "local_sunrise": weather.local_sunrise.isoformat(),
            "local_sunset": weather.local_sunset.isoformat(),
        }


def _build(coordinator: FacilityCoordinator, facility_id: str) -> list[SensorEntity]:
    return [FacilityWeatherSensor(coordinator, facility_id, d) for d in WEATHER_SENSORS]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add weather sensors for every facility of the config entry."""
    coordinator: FacilityCoordinator = config_entry.runtime_data
    _LOGGER.debug("Setting up sensors for %d facilities", len(coordinator.data.facilities))
    async_add_facility_entities(coordinator, config_entry, async_add_entities, _build)
