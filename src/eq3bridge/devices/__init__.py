"""Thermostat driver interface and implementations."""

from .base import DeviceDriver, DeviceHandle, DeviceInfo, DeviceStatus
from .simulated import SimulatedDriver, SimulatedThermostat

__all__ = ["DeviceDriver", "DeviceHandle", "DeviceInfo", "DeviceStatus", "SimulatedDriver", "SimulatedThermostat"]
