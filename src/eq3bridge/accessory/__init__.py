"""Accessory-facing view of the thermostat."""

from .characteristics import (
    Characteristic,
    CurrentHeatingCoolingState,
    TargetHeatingCoolingState,
    TemperatureDisplayUnits,
)
from .thermostat import EQ3Thermostat

__all__ = [
    "Characteristic",
    "CurrentHeatingCoolingState",
    "TargetHeatingCoolingState",
    "TemperatureDisplayUnits",
    "EQ3Thermostat",
]
