"""Simulated eQ-3 thermostat for development and testing.

Behaves like a real radiator thermostat on the other end of a Bluetooth
link: it has to be connected before it answers, it reports valve position,
target temperature and mode flags, and it keeps its own state in a JSON file
so it survives restarts the way a physical device would.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from eq3bridge.devices.base import DeviceDriver, DeviceHandle, DeviceInfo, DeviceStatus

logger = logging.getLogger(__name__)

OFF_TEMPERATURE = 4.5
ON_TEMPERATURE = 30.0
# Temperature the simulated room sits at; the valve opens above it.
ROOM_TEMPERATURE = 19.0
# Comfort temperature the weekly schedule would select in auto mode.
SCHEDULE_TEMPERATURE = 21.0


class SimulatedThermostat(DeviceHandle):
    """In-process stand-in for a CC-RT-BLE thermostat."""

    def __init__(
        self,
        address: str,
        state_file: Optional[Path] = None,
        connect_delay: float = 0.0,
        fail_connect: bool = False,
    ):
        self.address = address
        self.state_file = state_file
        self.connect_delay = connect_delay
        self.fail_connect = fail_connect
        self.connected = False
        self.state = self._load_state()
        logger.info(f"SimulatedThermostat {address} initialized. Current state: {self.state}")

    def _load_state(self) -> Dict[str, Any]:
        if self.state_file is not None and self.state_file.exists():
            try:
                with open(self.state_file, 'r') as f:
                    state = json.load(f)
                    logger.info(f"Loaded state from {self.state_file}")
                    return state
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Could not load state file: {e}. Using default state.")

        return {
            "target_temperature": SCHEDULE_TEMPERATURE,
            "manual": False,
            "boost": False,
            "last_updated": datetime.now().isoformat()
        }

    def _save_state(self) -> None:
        self.state["last_updated"] = datetime.now().isoformat()
        if self.state_file is None:
            return
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.state_file, 'w') as f:
                json.dump(self.state, f, indent=2)
            logger.debug(f"State saved to {self.state_file}")
        except IOError as e:
            logger.error(f"Failed to save state: {e}")

    def _require_connection(self) -> None:
        if not self.connected:
            raise RuntimeError(f"thermostat {self.address} is not connected")

    async def connect_and_setup(self) -> None:
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.fail_connect:
            raise RuntimeError(f"handshake with {self.address} rejected")
        self.connected = True
        logger.info("Simulated thermostat %s connected", self.address)

    async def get_info(self) -> DeviceInfo:
        self._require_connection()
        target = self.state["target_temperature"]
        valve = 0
        if target > ROOM_TEMPERATURE:
            valve = min(100, int((target - ROOM_TEMPERATURE) * 25))
        return DeviceInfo(
            valve_position=valve,
            target_temperature=target,
            status=DeviceStatus(manual=self.state["manual"], boost=self.state["boost"]),
        )

    async def set_temperature(self, celsius: float) -> None:
        self._require_connection()
        # The device only accepts half-degree steps.
        target = round(celsius * 2) / 2
        logger.info("Setting target temperature to %.1f (simulated)", target)
        self.state["target_temperature"] = max(OFF_TEMPERATURE, min(ON_TEMPERATURE, target))
        self.state["manual"] = True
        self._save_state()

    async def turn_on(self) -> None:
        self._require_connection()
        logger.info("Turning thermostat ON (simulated)")
        self.state["target_temperature"] = ON_TEMPERATURE
        self.state["manual"] = True
        self._save_state()

    async def turn_off(self) -> None:
        self._require_connection()
        logger.info("Turning thermostat OFF (simulated)")
        self.state["target_temperature"] = OFF_TEMPERATURE
        self.state["manual"] = True
        self._save_state()

    async def set_auto_mode(self) -> None:
        self._require_connection()
        logger.info("Switching thermostat to AUTO (simulated)")
        self.state["target_temperature"] = SCHEDULE_TEMPERATURE
        self.state["manual"] = False
        self.state["boost"] = False
        self._save_state()

    async def disconnect(self) -> None:
        self.connected = False
        logger.info("Simulated thermostat %s disconnected", self.address)


class SimulatedDriver(DeviceDriver):
    """Driver that "discovers" one :class:`SimulatedThermostat` per address."""

    def __init__(
        self,
        state_dir: Optional[Path] = None,
        connect_delay: float = 0.0,
        fail_connect: bool = False,
    ):
        self.state_dir = state_dir
        self.connect_delay = connect_delay
        self.fail_connect = fail_connect
        self._devices: dict[str, SimulatedThermostat] = {}

    async def discover(self, address: str) -> SimulatedThermostat:
        device = self._devices.get(address)
        if device is None:
            state_file = None
            if self.state_dir is not None:
                state_file = self.state_dir / f"{address.replace(':', '').lower()}.json"
            device = SimulatedThermostat(
                address,
                state_file=state_file,
                connect_delay=self.connect_delay,
                fail_connect=self.fail_connect,
            )
            self._devices[address] = device
        return device
