"""Tests for the mapping from device state to characteristic values."""

import pytest

from eq3bridge.accessory.characteristics import (
    CurrentHeatingCoolingState,
    TargetHeatingCoolingState,
    current_heating_state,
    display_temperature,
    target_heating_state,
)

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from mocks.mock_thermostat import make_info


class TestCurrentHeatingState:

    def test_open_valve_is_heating(self):
        assert current_heating_state(make_info(valve_position=1)) is CurrentHeatingCoolingState.HEAT

    def test_closed_valve_is_off(self):
        assert current_heating_state(make_info(valve_position=0)) is CurrentHeatingCoolingState.OFF


class TestTargetHeatingState:

    def test_off_sentinel(self):
        assert target_heating_state(make_info(target_temperature=4.5)) is TargetHeatingCoolingState.OFF

    @pytest.mark.parametrize("temperature", [4.6, 17.0, 21.5, 29.9])
    def test_schedule_range_is_auto(self, temperature):
        info = make_info(target_temperature=temperature)
        assert target_heating_state(info) is TargetHeatingCoolingState.AUTO

    def test_on_sentinel_is_heat(self):
        assert target_heating_state(make_info(target_temperature=30.0)) is TargetHeatingCoolingState.HEAT

    @pytest.mark.parametrize("temperature", [4.6, 12.0, 21.0, 29.9, 30.0])
    def test_manual_is_heat(self, temperature):
        info = make_info(target_temperature=temperature, manual=True)
        assert target_heating_state(info) is TargetHeatingCoolingState.HEAT

    def test_boost_is_heat(self):
        info = make_info(target_temperature=19.0, boost=True)
        assert target_heating_state(info) is TargetHeatingCoolingState.HEAT

    def test_off_wins_over_manual_flag(self):
        """Switching off puts the device in manual mode at the OFF sentinel."""
        info = make_info(target_temperature=4.5, manual=True)
        assert target_heating_state(info) is TargetHeatingCoolingState.OFF


class TestDisplayTemperature:

    def test_off_sentinel_clamped_to_minimum(self):
        assert display_temperature(make_info(target_temperature=4.5)) == 10

    def test_normal_value_passed_through(self):
        assert display_temperature(make_info(target_temperature=21.0)) == 21

    def test_raw_value_is_preserved(self):
        info = make_info(target_temperature=4.5)
        display_temperature(info)
        assert info.target_temperature == 4.5
