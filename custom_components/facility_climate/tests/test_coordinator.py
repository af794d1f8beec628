"""
Tests for FacilityCoordinator.

Coverage:
- initialisation: adopt persisted list, seed an empty store, partial and total
  seed failure, unexpected failure, loading always cleared
- periodic refresh path through _async_update_data
- user operations: add / update / delete set error and re-raise on failure
- reset_to_local: comfort default, rounded outdoor temperature, unknown id
- global preset sweep by bucket, seasonal and energy-band sweeps
- settings listener scheduling and shutdown
- user operations notify listeners without rescheduling the refresh timer
"""

from __future__ import annotations

import asyncio
import dataclasses
import unittest
from datetime import datetime
from unittest.mock import AsyncMock, patch

from custom_components.facility_climate.const import DEFAULT_CITIES
from custom_components.facility_climate.coordinator_data import CoordinatorData
from custom_components.facility_climate.errors import (
    DuplicateFacilityError,
    NetworkError,
    NotFoundError,
    PersistenceError,
)
from custom_components.facility_climate.models import (
    DEFAULT_ENERGY_SAVING_BANDS,
    TemperaturePreset,
)

from .test_common import (
    make_coordinator,
    make_facility,
    make_gateway,
    make_resolved,
    make_weather,
)

SATURDAY = datetime(2024, 6, 8, 3)
TUESDAY_10 = datetime(2024, 6, 11, 10)
TUESDAY_22 = datetime(2024, 6, 11, 22)
PRESETS = TemperaturePreset(day=21.0, night=17.0, weekend=19.5)


def _three_facilities(weather=None):
    return [
        make_facility("a", city="Denver", weather=weather),
        make_facility("b", city="Austin", weather=weather),
        make_facility("c", city="Boise", weather=weather),
    ]


def _targets(coord) -> dict[str, float]:
    return {f.id: f.target_temperature for f in coord.data.facilities}


async def _stored_targets(coord) -> dict[str, float]:
    return {f.id: f.target_temperature for f in await coord.service.async_list()}


class TestCoordinatorInit(unittest.TestCase):

    def test_initial_snapshot_is_loading(self):
        coord = make_coordinator()
        self.assertIsInstance(coord.data, CoordinatorData)
        self.assertTrue(coord.data.loading)
        self.assertEqual(coord.data.facilities, [])
        self.assertIsNone(coord.data.error)

    def test_initial_refresh_done_is_false(self):
        coord = make_coordinator()
        self.assertFalse(coord._initial_refresh_done)


class TestInitialize(unittest.IsolatedAsyncioTestCase):

    async def test_persisted_list_adopted_without_weather_refresh(self):
        gateway = make_gateway()
        coord = make_coordinator(_three_facilities(), gateway=gateway)

        data = await coord.async_initialize()

        self.assertEqual(data.facility_ids, ["a", "b", "c"])
        self.assertFalse(data.loading)
        self.assertIsNone(data.error)
        gateway.async_fetch_current_weather.assert_not_called()
        gateway.async_resolve_city.assert_not_called()

    async def test_empty_store_seeds_fallback_cities(self):
        coord = make_coordinator()  # popular-city lookup fails

        data = await coord.async_initialize()

        self.assertEqual(
            sorted(f.location.city for f in data.facilities),
            sorted(city for city, _ in DEFAULT_CITIES),
        )
        self.assertFalse(data.loading)
        self.assertIsNone(data.error)
        self.assertEqual(len(await coord.service.async_list()), len(DEFAULT_CITIES))

    async def test_empty_store_seeds_resolved_popular_cities(self):
        gateway = make_gateway()
        gateway.async_fetch_popular_cities = AsyncMock(
            return_value=[make_resolved("San Francisco", "California"), make_resolved("New York", "New York")]
        )
        coord = make_coordinator(gateway=gateway)

        data = await coord.async_initialize()

        self.assertEqual(
            sorted(f.location.city for f in data.facilities), ["New York", "San Francisco"]
        )

    async def test_seed_skips_failing_city(self):
        gateway = make_gateway()
        resolve = gateway.async_resolve_city.side_effect

        def failing_chicago(city, state_code=None):
            if city == "Chicago":
                raise NetworkError("timeout")
            return resolve(city, state_code)

        gateway.async_resolve_city = AsyncMock(side_effect=failing_chicago)
        coord = make_coordinator(gateway=gateway)

        data = await coord.async_initialize()

        self.assertEqual(len(data.facilities), len(DEFAULT_CITIES) - 1)
        self.assertNotIn("Chicago", [f.location.city for f in data.facilities])
        self.assertIsNone(data.error)
        self.assertFalse(data.loading)

    async def test_every_seed_failing_sets_error(self):
        gateway = make_gateway()
        gateway.async_resolve_city = AsyncMock(side_effect=NotFoundError("nope"))
        coord = make_coordinator(gateway=gateway)

        data = await coord.async_initialize()

        self.assertEqual(data.facilities, [])
        self.assertIsInstance(data.error, NotFoundError)
        self.assertFalse(data.loading)

    async def test_unexpected_failure_adopts_empty_list(self):
        coord = make_coordinator(_three_facilities())
        coord.service.async_list = AsyncMock(side_effect=PersistenceError("broken"))

        data = await coord.async_initialize()

        self.assertEqual(data.facilities, [])
        self.assertIsInstance(data.error, PersistenceError)
        self.assertFalse(data.loading)

    async def test_initialize_clears_store_before_seeding(self):
        coord = make_coordinator()
        coord.service.async_clear = AsyncMock(wraps=coord.service.async_clear)

        await coord.async_initialize()

        coord.service.async_clear.assert_awaited_once()


class TestUpdateData(unittest.IsolatedAsyncioTestCase):

    async def test_first_call_initialises_then_refreshes(self):
        gateway = make_gateway(weather=make_weather(7.0))
        coord = make_coordinator(_three_facilities(), gateway=gateway)

        first = await coord._async_update_data()
        self.assertTrue(coord._initial_refresh_done)
        self.assertTrue(all(f.weather is None for f in first.facilities))

        second = await coord._async_update_data()
        self.assertTrue(all(f.weather.temperature == 7.0 for f in second.facilities))

    async def test_refresh_failure_keeps_snapshot_and_error(self):
        coord = make_coordinator(_three_facilities())
        await coord._async_update_data()
        before = coord.data
        coord.service.async_list_with_fresh_weather = AsyncMock(side_effect=PersistenceError("x"))

        result = await coord._async_update_data()

        self.assertIs(result, before)
        self.assertIsNone(result.error)

    async def test_refresh_weather_data_replaces_list(self):
        coord = make_coordinator(_three_facilities())
        await coord.async_initialize()

        await coord.async_refresh_weather_data()

        self.assertTrue(all(f.weather is not None for f in coord.data.facilities))


class TestUserOperations(unittest.IsolatedAsyncioTestCase):

    async def _ready(self, facilities=None, gateway=None):
        coord = make_coordinator(
            _three_facilities() if facilities is None else facilities, gateway=gateway
        )
        await coord.async_initialize()
        return coord

    async def test_add_appends_facility(self):
        coord = await self._ready()

        facility = await coord.async_add_facility("Reno", "NV")

        self.assertEqual(coord.data.facility_ids, ["a", "b", "c", facility.id])
        self.assertIsNone(coord.data.error)

    async def test_add_duplicate_sets_error_and_reraises(self):
        coord = await self._ready()

        with self.assertRaises(DuplicateFacilityError):
            await coord.async_add_facility("denver", "Colorado")

        self.assertIsInstance(coord.data.error, DuplicateFacilityError)
        self.assertEqual(coord.data.facility_ids, ["a", "b", "c"])

    async def test_next_operation_clears_error(self):
        coord = await self._ready()
        with self.assertRaises(DuplicateFacilityError):
            await coord.async_add_facility("Denver", "Colorado")

        await coord.async_add_facility("Reno", "NV")

        self.assertIsNone(coord.data.error)

    async def test_update_replaces_entry_by_id(self):
        coord = await self._ready()

        await coord.async_update_facility_temperature("b", 18.5)

        self.assertEqual(_targets(coord), {"a": 22.0, "b": 18.5, "c": 22.0})
        self.assertIsNotNone(coord.data.get("b").weather)

    async def test_update_unknown_id_sets_error(self):
        coord = await self._ready()

        with self.assertRaises(NotFoundError):
            await coord.async_update_facility_temperature("zzz", 18.0)

        self.assertIsInstance(coord.data.error, NotFoundError)
        self.assertEqual(await _stored_targets(coord), {"a": 22.0, "b": 22.0, "c": 22.0})

    async def test_delete_removes_entry(self):
        coord = await self._ready()

        await coord.async_delete_facility("a")
        await coord.async_delete_facility("a")

        self.assertEqual(coord.data.facility_ids, ["b", "c"])

    async def test_delete_failure_sets_error_and_keeps_list(self):
        coord = await self._ready()
        coord.service.async_delete = AsyncMock(side_effect=PersistenceError("read-only"))

        with self.assertRaises(PersistenceError):
            await coord.async_delete_facility("a")

        self.assertIsInstance(coord.data.error, PersistenceError)
        self.assertEqual(coord.data.facility_ids, ["a", "b", "c"])

    async def test_update_resolving_after_delete_does_not_resurrect(self):
        coord = await self._ready()
        updated = dataclasses.replace(coord.data.get("a"), target_temperature=30.0)
        coord.service.async_update_temperature = AsyncMock(return_value=updated)
        await coord.async_delete_facility("a")

        await coord.async_update_facility_temperature("a", 30.0)

        self.assertEqual(coord.data.facility_ids, ["b", "c"])

    async def test_user_operations_do_not_reschedule_refresh(self):
        coord = await self._ready()
        updates = []
        with patch.object(coord, "_schedule_refresh") as mock_schedule:
            coord.async_add_listener(lambda: updates.append(coord.data))
            mock_schedule.reset_mock()
            with patch.object(coord, "async_set_updated_data") as mock_set:
                await coord.async_update_facility_temperature("a", 19.0)
                await coord.async_add_facility("Reno", "NV")
                await coord.async_delete_facility("b")

        mock_set.assert_not_called()
        mock_schedule.assert_not_called()
        self.assertEqual(updates[-1].facility_ids, ["a", "c", coord.data.facilities[-1].id])
        self.assertEqual(updates[-1].get("a").target_temperature, 19.0)


class TestResetToLocal(unittest.IsolatedAsyncioTestCase):

    async def test_without_weather_every_target_is_comfort_default(self):
        facilities = [dataclasses.replace(f, target_temperature=15.0) for f in _three_facilities()]
        coord = make_coordinator(facilities)
        await coord.async_initialize()

        await coord.async_reset_to_local()

        self.assertEqual(_targets(coord), {"a": 22.0, "b": 22.0, "c": 22.0})

    async def test_with_weather_target_is_rounded_outdoor_temperature(self):
        facilities = [
            make_facility("a", city="Denver", weather=make_weather(14.5)),
            make_facility("b", city="Austin", weather=make_weather(31.2)),
            make_facility("c", city="Boise"),
        ]
        coord = make_coordinator(facilities)
        await coord.async_initialize()

        await coord.async_reset_to_local()

        self.assertEqual(_targets(coord), {"a": 15.0, "b": 31.0, "c": 22.0})

    async def test_single_facility_reset(self):
        facilities = [make_facility("a", weather=make_weather(9.7)), make_facility("b", city="Austin", target_temperature=25.0)]
        coord = make_coordinator(facilities)
        await coord.async_initialize()

        await coord.async_reset_to_local("a")

        self.assertEqual(await _stored_targets(coord), {"a": 10.0, "b": 25.0})

    async def test_one_failure_does_not_block_others(self):
        coord = make_coordinator(_three_facilities())
        await coord.async_initialize()
        update = coord.service.async_update_temperature

        async def failing_b(facility_id, temperature):
            if facility_id == "b":
                raise NetworkError("timeout")
            return await update(facility_id, temperature)

        coord.service.async_update_temperature = AsyncMock(side_effect=failing_b)
        coord.data = dataclasses.replace(
            coord.data,
            facilities=[dataclasses.replace(f, weather=make_weather(12.0)) for f in coord.data.facilities],
        )

        await coord.async_reset_to_local()

        self.assertEqual(await _stored_targets(coord), {"a": 12.0, "b": 22.0, "c": 12.0})
        self.assertIsNone(coord.data.error)

    async def test_unknown_facility_sets_error(self):
        coord = make_coordinator(_three_facilities())
        await coord.async_initialize()

        with self.assertRaises(NotFoundError):
            await coord.async_reset_to_local("zzz")

        self.assertIsInstance(coord.data.error, NotFoundError)


class TestPolicySweeps(unittest.IsolatedAsyncioTestCase):

    async def _ready(self):
        coord = make_coordinator(_three_facilities())
        # Set before initialising so the change listener sees no facilities
        await coord.settings.async_set_temperature_presets(PRESETS)
        await coord.async_initialize()
        return coord

    async def test_saturday_applies_weekend_preset(self):
        coord = await self._ready()

        await coord.async_apply_global_presets(now=SATURDAY)

        self.assertEqual(set(_targets(coord).values()), {PRESETS.weekend})

    async def test_tuesday_morning_applies_day_preset(self):
        coord = await self._ready()

        await coord.async_apply_global_presets(now=TUESDAY_10)

        self.assertEqual(set(_targets(coord).values()), {PRESETS.day})

    async def test_tuesday_evening_applies_night_preset(self):
        coord = await self._ready()

        await coord.async_apply_global_presets(now=TUESDAY_22)

        self.assertEqual(set(_targets(coord).values()), {PRESETS.night})
        self.assertEqual(set((await _stored_targets(coord)).values()), {PRESETS.night})

    async def test_sweep_failure_never_sets_error(self):
        coord = await self._ready()
        coord.service.async_update_temperature = AsyncMock(side_effect=NetworkError("down"))

        await coord.async_apply_global_presets(now=TUESDAY_10)

        self.assertIsNone(coord.data.error)

    async def test_sweep_with_no_facilities_does_nothing(self):
        coord = make_coordinator([])
        coord.data = CoordinatorData()
        coord.service.async_update_temperature = AsyncMock()

        await coord.async_apply_global_presets(now=TUESDAY_10)

        coord.service.async_update_temperature.assert_not_called()

    async def test_seasonal_profile_uses_season_preset(self):
        coord = await self._ready()

        await coord.async_apply_seasonal_profile(now=datetime(2024, 1, 9, 10))

        winter = coord.settings.seasonal_profiles.winter
        self.assertEqual(set(_targets(coord).values()), {winter.day})

    async def test_explicit_season_overrides_date(self):
        coord = await self._ready()

        await coord.async_apply_seasonal_profile("summer", now=SATURDAY)

        summer = coord.settings.seasonal_profiles.summer
        self.assertEqual(set(_targets(coord).values()), {summer.weekend})

    async def test_energy_band_is_noop_while_disabled(self):
        coord = await self._ready()
        coord.service.async_update_temperature = AsyncMock()

        await coord.async_apply_energy_band("peak_hours", now=TUESDAY_10)

        coord.service.async_update_temperature.assert_not_called()

    async def test_energy_band_applies_when_enabled(self):
        coord = await self._ready()
        await coord.settings.async_set_energy_saving_bands(
            dataclasses.replace(DEFAULT_ENERGY_SAVING_BANDS, enabled=True)
        )

        await coord.async_apply_energy_band("off_peak_hours", now=TUESDAY_22)

        self.assertEqual(
            set(_targets(coord).values()), {DEFAULT_ENERGY_SAVING_BANDS.off_peak_hours.night}
        )

    async def test_unknown_energy_band_rejected(self):
        coord = await self._ready()

        with self.assertRaises(ValueError):
            await coord.async_apply_energy_band("shoulder")


class TestSettingsListener(unittest.IsolatedAsyncioTestCase):

    async def test_preset_change_schedules_sweep(self):
        coord = make_coordinator(_three_facilities())
        await coord.async_initialize()

        with patch.object(coord, "async_apply_global_presets", new_callable=AsyncMock) as mock_sweep:
            await coord.settings.async_set_temperature_presets(PRESETS)
            await asyncio.sleep(0.05)

        mock_sweep.assert_awaited_once()

    async def test_preset_change_with_no_facilities_does_not_sweep(self):
        coord = make_coordinator([])
        coord.data = CoordinatorData()

        with patch.object(coord, "async_apply_global_presets", new_callable=AsyncMock) as mock_sweep:
            await coord.settings.async_set_temperature_presets(PRESETS)
            await asyncio.sleep(0.05)

        mock_sweep.assert_not_called()

    async def test_other_groups_do_not_sweep(self):
        coord = make_coordinator(_three_facilities())
        await coord.async_initialize()

        with patch.object(coord, "async_apply_global_presets", new_callable=AsyncMock) as mock_sweep:
            await coord.settings.async_set_energy_saving_bands(DEFAULT_ENERGY_SAVING_BANDS)
            await asyncio.sleep(0.05)

        mock_sweep.assert_not_called()

    async def test_shutdown_unsubscribes_from_settings(self):
        coord = make_coordinator(_three_facilities())
        await coord.async_initialize()

        await coord.async_shutdown()

        with patch.object(coord, "async_apply_global_presets", new_callable=AsyncMock) as mock_sweep:
            await coord.settings.async_set_temperature_presets(PRESETS)
            await asyncio.sleep(0.05)

        mock_sweep.assert_not_called()
        self.assertEqual(coord._policy_tasks, set())


class TestDeviceInfo(unittest.TestCase):

    def test_device_info_for_known_facility(self):
        coord = make_coordinator()
        coord.data = CoordinatorData(facilities=[make_facility("a", city="Denver", state="Colorado")])

        info = coord.get_device_info("a")

        self.assertEqual(info["identifiers"], {("facility_climate", "test-guid_a")})
        self.assertEqual(info["name"], "Denver Facility")
        self.assertEqual(info["model"], "Denver, Colorado")

    def test_device_info_for_unknown_facility_is_none(self):
        coord = make_coordinator()

        self.assertIsNone(coord.get_device_info("missing"))
