"""Configuration for hosting a thermostat accessory."""

from eq3bridge.bridge.config import ThermostatConfig, load_config, load_driver

__all__ = ["ThermostatConfig", "load_config", "load_driver"]
