"""OpenWeather API access for the Facility Climate integration."""
from .gateway import WeatherGateway

__all__ = ["WeatherGateway"]
