"""Accessory characteristic values and the mapping from device state."""

from enum import IntEnum

from eq3bridge.devices.base import DeviceInfo

# Target temperature the thermostat reports when switched off.
OFF_TEMPERATURE = 4.5
# At or above this target the thermostat heats permanently.
ON_TEMPERATURE = 30.0
# Lowest target temperature shown to the host.
MIN_DISPLAY_TEMPERATURE = 10.0


class Characteristic:
    """Names of the properties the thermostat accessory exposes."""

    CURRENT_HEATING_COOLING_STATE = "CurrentHeatingCoolingState"
    TARGET_HEATING_COOLING_STATE = "TargetHeatingCoolingState"
    CURRENT_TEMPERATURE = "CurrentTemperature"
    TARGET_TEMPERATURE = "TargetTemperature"
    TEMPERATURE_DISPLAY_UNITS = "TemperatureDisplayUnits"
    HEATING_THRESHOLD_TEMPERATURE = "HeatingThresholdTemperature"


class CurrentHeatingCoolingState(IntEnum):
    OFF = 0
    HEAT = 1
    COOL = 2


class TargetHeatingCoolingState(IntEnum):
    OFF = 0
    HEAT = 1
    COOL = 2
    AUTO = 3


class TemperatureDisplayUnits(IntEnum):
    CELSIUS = 0
    FAHRENHEIT = 1


def current_heating_state(info: DeviceInfo) -> CurrentHeatingCoolingState:
    """HEAT while the valve is open at all, OFF otherwise."""
    if info.valve_position > 0:
        return CurrentHeatingCoolingState.HEAT
    return CurrentHeatingCoolingState.OFF


def target_heating_state(info: DeviceInfo) -> TargetHeatingCoolingState:
    """Derive the heating mode from target temperature and mode flags."""
    if info.target_temperature <= OFF_TEMPERATURE:
        return TargetHeatingCoolingState.OFF
    if info.target_temperature >= ON_TEMPERATURE or info.status.manual or info.status.boost:
        return TargetHeatingCoolingState.HEAT
    return TargetHeatingCoolingState.AUTO


def display_temperature(info: DeviceInfo) -> float:
    """Target temperature for display; the OFF sentinel shows as the minimum."""
    return max(info.target_temperature, MIN_DISPLAY_TEMPERATURE)
