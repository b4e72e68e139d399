"""Configuration loader for the thermostat bridge."""

import importlib
import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from eq3bridge.devices.base import DeviceDriver

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.eq3bridge/config.json"
DEFAULT_NAME = "Thermostat"
DEFAULT_TIMEOUT_MS = 3 * 60 * 1000
DEFAULT_DRIVER = "eq3bridge.devices.simulated:SimulatedDriver"

_ADDRESS_RE = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")


@dataclass
class ThermostatConfig:
    """Which thermostat to bridge and how to reach it."""

    address: str
    name: str = DEFAULT_NAME
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    driver: str = DEFAULT_DRIVER

    @property
    def timeout(self) -> float:
        """Connection timeout in seconds."""
        return self.timeout_ms / 1000

    def validate(self) -> None:
        """Validate address format and timeout."""
        if not _ADDRESS_RE.match(self.address):
            raise ValueError(f"Invalid thermostat address: {self.address!r}")
        if self.timeout_ms <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout_ms}")


def load_config(config_path: Optional[str] = None) -> ThermostatConfig:
    """Load thermostat configuration from file with environment variable overrides.

    Environment variables:
        EQ3_ADDRESS: Override thermostat hardware address
        EQ3_NAME: Override accessory name
        EQ3_TIMEOUT_MS: Override connection timeout (milliseconds)
        EQ3_DRIVER: Override driver class (``module:Class``)
        EQ3_CONFIG_PATH: Override config file location

    A missing config file is fine as long as ``EQ3_ADDRESS`` is set.

    Args:
        config_path: Path to config JSON file. Defaults to ~/.eq3bridge/config.json

    Returns:
        ThermostatConfig (not yet validated)
    """
    path_str = config_path or os.environ.get("EQ3_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    config_file = Path(path_str).expanduser()

    data = {}
    if config_file.exists():
        with open(config_file) as f:
            data = json.load(f)
    elif "EQ3_ADDRESS" not in os.environ:
        raise FileNotFoundError(
            f"Thermostat config not found at {config_file}. "
            f"Create it with an \"address\" entry or set EQ3_ADDRESS."
        )

    address = os.environ.get("EQ3_ADDRESS", data.get("address", ""))
    name = os.environ.get("EQ3_NAME", data.get("name", DEFAULT_NAME))
    timeout_ms = int(os.environ.get("EQ3_TIMEOUT_MS", data.get("timeout", DEFAULT_TIMEOUT_MS)))
    driver = os.environ.get("EQ3_DRIVER", data.get("driver", DEFAULT_DRIVER))

    config = ThermostatConfig(
        address=address,
        name=name,
        timeout_ms=timeout_ms,
        driver=driver,
    )

    logger.info(f"Loaded thermostat config: address={address}, name={name}, driver={driver}")
    return config


def load_driver(path: str) -> DeviceDriver:
    """Instantiate the driver class named by ``module:Class``."""
    module_name, _, class_name = path.partition(":")
    if not class_name:
        raise ValueError(f"Driver must be given as 'module:Class', got {path!r}")
    driver_cls = getattr(importlib.import_module(module_name), class_name)
    return driver_cls()
