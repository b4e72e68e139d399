"""Tests for the EQ3Thermostat accessory properties and host entry points."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from eq3bridge.accessory import (
    Characteristic,
    CurrentHeatingCoolingState,
    EQ3Thermostat,
    TargetHeatingCoolingState,
    TemperatureDisplayUnits,
)
from eq3bridge.devices import SimulatedDriver
from eq3bridge.errors import (
    ConnectionFailedError,
    DeviceOperationError,
    InvalidValueError,
    UnsupportedCharacteristicError,
    UnsupportedModeError,
)

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from mocks.mock_thermostat import ADDRESS, make_info


class TestReads:
    """Tests for property getters."""

    @pytest.mark.asyncio
    async def test_current_heating_state(self, thermostat):
        result = await thermostat.get_current_heating_cooling_state()
        assert result.value is CurrentHeatingCoolingState.HEAT

    @pytest.mark.asyncio
    async def test_target_heating_state(self, thermostat):
        result = await thermostat.get_target_heating_cooling_state()
        assert result.value is TargetHeatingCoolingState.AUTO

    @pytest.mark.asyncio
    async def test_target_temperature(self, thermostat):
        result = await thermostat.get_target_temperature()
        assert result.value == 21.0

    @pytest.mark.asyncio
    async def test_target_temperature_clamped_when_off(self, thermostat, device):
        device.get_info.return_value = make_info(target_temperature=4.5)

        result = await thermostat.get_target_temperature()

        assert result.value == 10

    @pytest.mark.asyncio
    async def test_simultaneous_property_reads_share_one_fetch(self, thermostat, driver, device):
        results = await asyncio.gather(
            thermostat.get_current_heating_cooling_state(),
            thermostat.get_target_heating_cooling_state(),
            thermostat.get_target_temperature(),
            thermostat.get_target_temperature(),
        )

        assert not any(r.is_error for r in results)
        driver.discover.assert_awaited_once()
        device.get_info.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_read_fails_with_connection_error(self, thermostat, device):
        device.connect_and_setup.side_effect = RuntimeError("out of range")

        result = await thermostat.get_target_temperature()

        assert isinstance(result.error, ConnectionFailedError)
        device.get_info.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_display_units_default_to_celsius(self, thermostat):
        result = await thermostat.get_temperature_display_units()
        assert result.value is TemperatureDisplayUnits.CELSIUS


class TestWrites:
    """Tests for property setters."""

    @pytest.mark.asyncio
    async def test_set_target_temperature(self, thermostat, device):
        result = await thermostat.set_target_temperature(22.5)

        assert not result.is_error
        device.set_temperature.assert_awaited_once_with(22.5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "mode, command",
        [
            (TargetHeatingCoolingState.OFF, "turn_off"),
            (TargetHeatingCoolingState.HEAT, "turn_on"),
            (TargetHeatingCoolingState.AUTO, "set_auto_mode"),
        ],
    )
    async def test_set_mode_issues_matching_command(self, thermostat, device, mode, command):
        result = await thermostat.set_target_heating_cooling_state(mode)

        assert not result.is_error
        getattr(device, command).assert_awaited_once()

    @pytest.mark.asyncio
    async def test_set_mode_accepts_raw_values(self, thermostat, device):
        result = await thermostat.set_target_heating_cooling_state(3)

        assert not result.is_error
        device.set_auto_mode.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [TargetHeatingCoolingState.COOL, 7, "boost"])
    async def test_unsupported_mode_issues_no_command(self, thermostat, driver, device, mode):
        result = await thermostat.set_target_heating_cooling_state(mode)

        assert isinstance(result.error, UnsupportedModeError)
        driver.discover.assert_not_awaited()
        device.connect_and_setup.assert_not_awaited()
        device.turn_on.assert_not_awaited()
        device.turn_off.assert_not_awaited()
        device.set_auto_mode.assert_not_awaited()
        device.set_temperature.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_mode_reported_while_unreachable(self, thermostat, device):
        device.connect_and_setup.side_effect = RuntimeError("out of range")

        result = await thermostat.set_target_heating_cooling_state(7)

        assert isinstance(result.error, UnsupportedModeError)
        device.connect_and_setup.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [True, False])
    async def test_bool_is_not_a_mode(self, thermostat, device, mode):
        result = await thermostat.set_target_heating_cooling_state(mode)

        assert isinstance(result.error, UnsupportedModeError)
        device.turn_on.assert_not_awaited()
        device.turn_off.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["warm", None, float("nan"), True])
    async def test_invalid_temperature_issues_no_command(self, thermostat, driver, device, value):
        result = await thermostat.set_target_temperature(value)

        assert isinstance(result.error, InvalidValueError)
        driver.discover.assert_not_awaited()
        device.set_temperature.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_numeric_string_temperature_is_converted(self, thermostat, device):
        result = await thermostat.set_target_temperature("19.5")

        assert not result.is_error
        device.set_temperature.assert_awaited_once_with(19.5)

    @pytest.mark.asyncio
    async def test_device_write_failure(self, thermostat, device):
        device.turn_on.side_effect = RuntimeError("write not acknowledged")

        result = await thermostat.set_target_heating_cooling_state(TargetHeatingCoolingState.HEAT)

        assert isinstance(result.error, DeviceOperationError)
        assert result.error.operation == "turn_on"

    @pytest.mark.asyncio
    async def test_write_fails_with_connection_error(self, thermostat, device):
        device.connect_and_setup.side_effect = RuntimeError("out of range")

        result = await thermostat.set_target_temperature(20.0)

        assert isinstance(result.error, ConnectionFailedError)
        device.set_temperature.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_set_display_units(self, thermostat):
        await thermostat.set_temperature_display_units(TemperatureDisplayUnits.FAHRENHEIT)

        result = await thermostat.get_temperature_display_units()
        assert result.value is TemperatureDisplayUnits.FAHRENHEIT

    @pytest.mark.asyncio
    async def test_set_invalid_display_units(self, thermostat):
        result = await thermostat.set_temperature_display_units(5)

        assert isinstance(result.error, UnsupportedModeError)
        assert thermostat.temperature_display_units is TemperatureDisplayUnits.CELSIUS


class TestHostEntryPoints:
    """Tests for the (error, value) callback entry points."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "characteristic, expected",
        [
            (Characteristic.CURRENT_HEATING_COOLING_STATE, CurrentHeatingCoolingState.HEAT),
            (Characteristic.TARGET_HEATING_COOLING_STATE, TargetHeatingCoolingState.AUTO),
            (Characteristic.CURRENT_TEMPERATURE, 21.0),
            (Characteristic.TARGET_TEMPERATURE, 21.0),
            (Characteristic.HEATING_THRESHOLD_TEMPERATURE, 21.0),
            (Characteristic.TEMPERATURE_DISPLAY_UNITS, TemperatureDisplayUnits.CELSIUS),
        ],
    )
    async def test_handle_get(self, thermostat, characteristic, expected):
        callback = MagicMock()

        await thermostat.handle_get(characteristic, callback)

        callback.assert_called_once_with(None, expected)

    @pytest.mark.asyncio
    async def test_handle_get_reports_error(self, thermostat, device):
        device.connect_and_setup.side_effect = RuntimeError("out of range")
        callback = MagicMock()

        await thermostat.handle_get(Characteristic.TARGET_TEMPERATURE, callback)

        error, value = callback.call_args.args
        assert isinstance(error, ConnectionFailedError)
        assert value is None

    @pytest.mark.asyncio
    async def test_handle_set(self, thermostat, device):
        callback = MagicMock()

        await thermostat.handle_set(Characteristic.TARGET_TEMPERATURE, 19.5, callback)

        callback.assert_called_once_with(None, None)
        device.set_temperature.assert_awaited_once_with(19.5)

    @pytest.mark.asyncio
    async def test_handle_set_read_only(self, thermostat, driver):
        callback = MagicMock()

        await thermostat.handle_set(Characteristic.CURRENT_TEMPERATURE, 19.5, callback)

        error, _ = callback.call_args.args
        assert isinstance(error, UnsupportedCharacteristicError)
        driver.discover.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handle_set_non_numeric_temperature(self, thermostat, driver):
        callback = MagicMock()

        await thermostat.handle_set(Characteristic.TARGET_TEMPERATURE, "warm", callback)

        error, value = callback.call_args.args
        assert isinstance(error, InvalidValueError)
        assert value is None
        driver.discover.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handle_set_unsupported_mode(self, thermostat, driver):
        callback = MagicMock()

        await thermostat.handle_set(Characteristic.TARGET_HEATING_COOLING_STATE, 2, callback)

        error, _ = callback.call_args.args
        assert isinstance(error, UnsupportedModeError)
        driver.discover.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_failure_still_reaches_callback(self, thermostat, monkeypatch):
        monkeypatch.setattr(
            thermostat.dispatcher, "run", AsyncMock(side_effect=KeyError("internal"))
        )
        get_callback = MagicMock()
        set_callback = MagicMock()

        await thermostat.handle_get(Characteristic.TARGET_TEMPERATURE, get_callback)
        await thermostat.handle_set(Characteristic.TARGET_TEMPERATURE, 20.0, set_callback)

        assert isinstance(get_callback.call_args.args[0], KeyError)
        assert isinstance(set_callback.call_args.args[0], KeyError)

    @pytest.mark.asyncio
    async def test_handle_get_unknown(self, thermostat):
        callback = MagicMock()

        await thermostat.handle_get("RelativeHumidity", callback)

        error, _ = callback.call_args.args
        assert isinstance(error, UnsupportedCharacteristicError)

    def test_characteristics_table(self, thermostat):
        table = thermostat.characteristics()

        assert table[Characteristic.TARGET_TEMPERATURE] == {"get": True, "set": True}
        assert table[Characteristic.CURRENT_TEMPERATURE] == {"get": True, "set": False}
        assert len(table) == 6

    def test_accessory_information(self, thermostat):
        info = thermostat.accessory_information()

        assert info == {
            "manufacturer": "eq-3",
            "model": "CC-RT-BLE",
            "name": "Living Room",
            "serial_number": ADDRESS,
        }


class TestStatus:
    """Tests for the all-properties status read."""

    @pytest.mark.asyncio
    async def test_status_reads_everything_in_one_fetch(self, thermostat, device):
        status = await thermostat.status()

        assert status == {
            "current_heating_cooling_state": "HEAT",
            "target_heating_cooling_state": "AUTO",
            "target_temperature": 21.0,
            "temperature_display_units": "CELSIUS",
            "valve_position": 30,
        }
        device.get_info.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_status_raises_connection_error(self, thermostat, device):
        device.connect_and_setup.side_effect = RuntimeError("out of range")

        with pytest.raises(ConnectionFailedError):
            await thermostat.status()
        device.connect_and_setup.assert_awaited_once()


class TestWithSimulatedDriver:
    """End-to-end through connection manager, cache and simulated device."""

    @pytest.mark.asyncio
    async def test_turn_off_then_read_mode(self):
        thermostat = EQ3Thermostat.create(ADDRESS, SimulatedDriver(), timeout=1.0)

        await thermostat.set_target_heating_cooling_state(TargetHeatingCoolingState.OFF)
        thermostat.dispatcher.cache.invalidate()
        mode = await thermostat.get_target_heating_cooling_state()
        temperature = await thermostat.get_target_temperature()

        assert mode.value is TargetHeatingCoolingState.OFF
        assert temperature.value == 10
        await thermostat.dispatcher.connection.disconnect()

    @pytest.mark.asyncio
    async def test_unreachable_device_reports_connection_error(self):
        thermostat = EQ3Thermostat.create(ADDRESS, SimulatedDriver(fail_connect=True), timeout=1.0)

        result = await thermostat.get_target_temperature()

        assert isinstance(result.error, ConnectionFailedError)
