"""
Unit tests for the OpenWeather gateway: query building, payload mapping and
error kinds. HTTP is mocked at make_request.
"""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, patch

from custom_components.facility_climate.api import WeatherGateway
from custom_components.facility_climate.api.geocoding import build_query, parse_city_list
from custom_components.facility_climate.const import (
    OPENWEATHER_GEOCODING_URL,
    OPENWEATHER_WEATHER_URL,
)
from custom_components.facility_climate.errors import (
    ConfigurationError,
    NetworkError,
    NotFoundError,
    UpstreamError,
)

from .test_common import make_weather_payload

WEATHER_REQUEST = "custom_components.facility_climate.api.weather.make_request"
GEOCODING_REQUEST = "custom_components.facility_climate.api.geocoding.make_request"


class TestQueryHelpers(unittest.TestCase):

    def test_state_code_scopes_query_to_us(self):
        self.assertEqual(build_query("Chicago", "IL"), "Chicago,IL,US")

    def test_query_without_state_is_unscoped(self):
        self.assertEqual(build_query(" Paris "), "Paris")

    def test_parse_city_list(self):
        self.assertEqual(
            parse_city_list("San Francisco, CA; Paris;; New York,NY "),
            [("San Francisco", "CA"), ("Paris", None), ("New York", "NY")],
        )

    def test_parse_empty_city_list(self):
        self.assertEqual(parse_city_list(""), [])


class TestFetchCurrentWeather(unittest.IsolatedAsyncioTestCase):

    async def test_maps_payload_to_snapshot(self):
        gateway = WeatherGateway("key")

        with patch(WEATHER_REQUEST, new=AsyncMock(return_value=make_weather_payload(12.6))) as mock_request:
            weather = await gateway.async_fetch_current_weather(41.88, -87.63)

        self.assertEqual(weather.temperature, 12.6)
        self.assertEqual(weather.humidity, 60.0)
        self.assertEqual(weather.condition, "Clear")
        self.assertEqual(weather.timezone_offset, -28800)
        args, kwargs = mock_request.call_args
        self.assertEqual(args, ("GET", OPENWEATHER_WEATHER_URL))
        self.assertEqual(
            kwargs["params"],
            {"lat": 41.88, "lon": -87.63, "units": "metric", "appid": "key"},
        )

    async def test_missing_key_raises_configuration_error_without_request(self):
        gateway = WeatherGateway("  ")

        with patch(WEATHER_REQUEST, new=AsyncMock()) as mock_request:
            with self.assertRaises(ConfigurationError):
                await gateway.async_fetch_current_weather(0.0, 0.0)

        mock_request.assert_not_called()

    async def test_malformed_payload_raises_upstream_error(self):
        gateway = WeatherGateway("key")

        with patch(WEATHER_REQUEST, new=AsyncMock(return_value={"cod": 200})):
            with self.assertRaises(UpstreamError):
                await gateway.async_fetch_current_weather(0.0, 0.0)

    async def test_network_error_propagates(self):
        gateway = WeatherGateway("key")

        with patch(WEATHER_REQUEST, new=AsyncMock(side_effect=NetworkError("down"))):
            with self.assertRaises(NetworkError):
                await gateway.async_fetch_current_weather(0.0, 0.0)


class TestResolveCity(unittest.IsolatedAsyncioTestCase):

    async def test_returns_first_match(self):
        gateway = WeatherGateway("key")
        payload = [{"name": "Chicago", "state": "Illinois", "lat": 41.88, "lon": -87.63}]

        with patch(GEOCODING_REQUEST, new=AsyncMock(return_value=payload)) as mock_request:
            resolved = await gateway.async_resolve_city("chicago", "IL")

        self.assertEqual(resolved.name, "Chicago")
        self.assertEqual(resolved.state, "Illinois")
        self.assertEqual((resolved.lat, resolved.lon), (41.88, -87.63))
        args, kwargs = mock_request.call_args
        self.assertEqual(args, ("GET", OPENWEATHER_GEOCODING_URL))
        self.assertEqual(kwargs["params"], {"q": "chicago,IL,US", "limit": 1, "appid": "key"})

    async def test_state_falls_back_to_supplied_code_then_empty(self):
        gateway = WeatherGateway("key")

        with patch(GEOCODING_REQUEST, new=AsyncMock(return_value=[{"name": "Reno", "lat": 1, "lon": 2}])):
            with_code = await gateway.async_resolve_city("Reno", "NV")
            without_code = await gateway.async_resolve_city("Reno")

        self.assertEqual(with_code.state, "NV")
        self.assertEqual(without_code.state, "")

    async def test_zero_matches_raises_not_found(self):
        gateway = WeatherGateway("key")

        with patch(GEOCODING_REQUEST, new=AsyncMock(return_value=[])):
            with self.assertRaises(NotFoundError):
                await gateway.async_resolve_city("Atlantis")

    async def test_non_list_reply_raises_upstream_error(self):
        gateway = WeatherGateway("key")

        with patch(GEOCODING_REQUEST, new=AsyncMock(return_value={"message": "bad"})):
            with self.assertRaises(UpstreamError):
                await gateway.async_resolve_city("Denver")


class TestFetchPopularCities(unittest.IsolatedAsyncioTestCase):

    async def test_resolves_every_query(self):
        gateway = WeatherGateway("key")

        async def fake_request(method, url, params=None, **kwargs):
            city = params["q"].split(",")[0]
            return [{"name": city, "state": "X", "lat": 1.0, "lon": 2.0}]

        with patch(GEOCODING_REQUEST, new=AsyncMock(side_effect=fake_request)):
            resolved = await gateway.async_fetch_popular_cities([("Austin", "TX"), ("Paris", None)])

        self.assertEqual([c.name for c in resolved], ["Austin", "Paris"])

    async def test_any_failure_fails_the_batch(self):
        gateway = WeatherGateway("key")

        async def fake_request(method, url, params=None, **kwargs):
            if params["q"].startswith("Nowhere"):
                return []
            return [{"name": "Austin", "lat": 1.0, "lon": 2.0}]

        with patch(GEOCODING_REQUEST, new=AsyncMock(side_effect=fake_request)):
            with self.assertRaises(NotFoundError):
                await gateway.async_fetch_popular_cities([("Austin", "TX"), ("Nowhere", None)])
