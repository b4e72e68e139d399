"""Bridge exposing an eQ-3 Bluetooth radiator thermostat as accessory properties."""

__version__ = "0.1.0"
