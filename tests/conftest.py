"""Shared fixtures for thermostat bridge tests."""

import sys
from pathlib import Path

import pytest
from unittest.mock import AsyncMock

from eq3bridge.accessory import EQ3Thermostat
from eq3bridge.connection import CommandDispatcher, ConnectionManager, ReadCache
from eq3bridge.devices import SimulatedThermostat

sys.path.insert(0, str(Path(__file__).parent))
from mocks.mock_thermostat import ADDRESS, make_device


@pytest.fixture
def device():
    """A driver-side device handle whose handshake suspends briefly."""
    return make_device()


@pytest.fixture
def driver(device):
    driver = AsyncMock()
    driver.discover.return_value = device
    return driver


@pytest.fixture
def connection(driver):
    return ConnectionManager(ADDRESS, driver, timeout=1.0)


@pytest.fixture
def dispatcher(connection):
    return CommandDispatcher(connection, ReadCache())


@pytest.fixture
def thermostat(dispatcher):
    return EQ3Thermostat(dispatcher, name="Living Room")


@pytest.fixture
def tmp_state_file(tmp_path):
    """Provide a temporary state file path that doesn't touch ~/.eq3bridge/."""
    return tmp_path / "thermostat_state.json"


@pytest.fixture
def simulated_thermostat(tmp_state_file):
    """Return a SimulatedThermostat backed by a temporary state file."""
    return SimulatedThermostat(ADDRESS, state_file=tmp_state_file)
