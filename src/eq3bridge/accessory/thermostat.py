"""eQ-3 radiator thermostat exposed as accessory properties."""

import logging
import math
from typing import Any, Awaitable, Callable, Dict, Optional

from eq3bridge.accessory.characteristics import (
    Characteristic,
    TargetHeatingCoolingState,
    TemperatureDisplayUnits,
    current_heating_state,
    display_temperature,
    target_heating_state,
)
from eq3bridge.connection.dispatcher import CommandDispatcher, DeviceContext
from eq3bridge.connection.manager import ConnectionManager
from eq3bridge.connection.read_cache import ReadCache
from eq3bridge.devices.base import DeviceDriver
from eq3bridge.errors import (
    DeviceOperationError,
    InvalidValueError,
    UnsupportedCharacteristicError,
    UnsupportedModeError,
)
from eq3bridge.result import Result

logger = logging.getLogger(__name__)

MANUFACTURER = "eq-3"
MODEL = "CC-RT-BLE"

# Host callback: (error, value); error present means the call failed.
Callback = Callable[[Optional[Exception], Any], Any]

# Modes the device can be put into, and the command that does it.
_MODE_COMMANDS = {
    TargetHeatingCoolingState.OFF: "turn_off",
    TargetHeatingCoolingState.HEAT: "turn_on",
    TargetHeatingCoolingState.AUTO: "set_auto_mode",
}


class EQ3Thermostat:
    """Property getters and setters for one thermostat.

    Each handler is a plain function of the device context and is lifted
    through :class:`CommandDispatcher` so it works whether or not the
    thermostat is currently connected.
    """

    def __init__(self, dispatcher: CommandDispatcher, name: str = "Thermostat"):
        self.name = name
        self._dispatcher = dispatcher
        self.temperature_display_units = TemperatureDisplayUnits.CELSIUS

        self._getters: Dict[str, Callable[..., Awaitable[Result]]] = {
            Characteristic.CURRENT_HEATING_COOLING_STATE: self._get_current_heating_cooling_state,
            Characteristic.TARGET_HEATING_COOLING_STATE: self._get_target_heating_cooling_state,
            Characteristic.CURRENT_TEMPERATURE: self._get_target_temperature,
            Characteristic.TARGET_TEMPERATURE: self._get_target_temperature,
            Characteristic.TEMPERATURE_DISPLAY_UNITS: self._get_temperature_display_units,
            Characteristic.HEATING_THRESHOLD_TEMPERATURE: self._get_target_temperature,
        }
        self._setters: Dict[str, Callable[..., Awaitable[Result]]] = {
            Characteristic.TARGET_HEATING_COOLING_STATE: self._set_target_heating_cooling_state,
            Characteristic.TARGET_TEMPERATURE: self._set_target_temperature,
            Characteristic.TEMPERATURE_DISPLAY_UNITS: self._set_temperature_display_units,
        }
        # Checked before dispatching, so a bad value never opens a connection.
        self._validators: Dict[str, Callable[[Any], Result]] = {
            Characteristic.TARGET_HEATING_COOLING_STATE: _check_mode,
            Characteristic.TARGET_TEMPERATURE: _check_temperature,
            Characteristic.TEMPERATURE_DISPLAY_UNITS: _check_display_units,
        }

    @classmethod
    def create(
        cls,
        address: str,
        driver: DeviceDriver,
        name: str = "Thermostat",
        timeout: Optional[float] = None,
    ) -> "EQ3Thermostat":
        """Wire up connection manager, cache and dispatcher for ``address``."""
        if timeout is None:
            connection = ConnectionManager(address, driver)
        else:
            connection = ConnectionManager(address, driver, timeout=timeout)
        return cls(CommandDispatcher(connection, ReadCache()), name=name)

    @property
    def address(self) -> str:
        return self._dispatcher.connection.address

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    # Device operations

    async def _get_current_heating_cooling_state(self, ctx: Result[DeviceContext]) -> Result:
        if ctx.is_error:
            return ctx
        info = await ctx.value.snapshot()
        return Result.ok(current_heating_state(info))

    async def _get_target_heating_cooling_state(self, ctx: Result[DeviceContext]) -> Result:
        if ctx.is_error:
            return ctx
        info = await ctx.value.snapshot()
        return Result.ok(target_heating_state(info))

    async def _get_target_temperature(self, ctx: Result[DeviceContext]) -> Result:
        if ctx.is_error:
            return ctx
        info = await ctx.value.snapshot()
        return Result.ok(display_temperature(info))

    async def _get_valve_position(self, ctx: Result[DeviceContext]) -> Result:
        if ctx.is_error:
            return ctx
        info = await ctx.value.snapshot()
        return Result.ok(info.valve_position)

    async def _get_temperature_display_units(self, ctx: Result[DeviceContext]) -> Result:
        if ctx.is_error:
            return ctx
        return Result.ok(self.temperature_display_units)

    async def _set_temperature_display_units(
        self, ctx: Result[DeviceContext], units: TemperatureDisplayUnits
    ) -> Result:
        if ctx.is_error:
            return ctx
        self.temperature_display_units = units
        return Result.ok()

    async def _set_target_temperature(self, ctx: Result[DeviceContext], celsius: float) -> Result:
        if ctx.is_error:
            return ctx
        logger.info("Setting target temperature of %s to %s", self.address, celsius)
        return await _command("set_temperature", ctx.value.device.set_temperature(celsius))

    async def _set_target_heating_cooling_state(
        self, ctx: Result[DeviceContext], mode: TargetHeatingCoolingState
    ) -> Result:
        if ctx.is_error:
            return ctx
        command = _MODE_COMMANDS[mode]
        logger.info("Setting mode of %s to %s", self.address, mode.name)
        return await _command(command, getattr(ctx.value.device, command)())

    async def _write(self, characteristic: str, value: Any) -> Result:
        checked = self._validators[characteristic](value)
        if checked.is_error:
            logger.warning("Rejected %s for %s: %s", characteristic, self.address, checked.error)
            return checked
        return await self._dispatcher.run(self._setters[characteristic], checked.value)

    # Entry points for the host

    async def get_current_heating_cooling_state(self) -> Result:
        return await self._dispatcher.run(self._get_current_heating_cooling_state)

    async def get_target_heating_cooling_state(self) -> Result:
        return await self._dispatcher.run(self._get_target_heating_cooling_state)

    async def get_target_temperature(self) -> Result:
        return await self._dispatcher.run(self._get_target_temperature)

    async def get_temperature_display_units(self) -> Result:
        return await self._dispatcher.run(self._get_temperature_display_units)

    async def set_temperature_display_units(self, value) -> Result:
        return await self._write(Characteristic.TEMPERATURE_DISPLAY_UNITS, value)

    async def set_target_temperature(self, value: float) -> Result:
        return await self._write(Characteristic.TARGET_TEMPERATURE, value)

    async def set_target_heating_cooling_state(self, value) -> Result:
        """Switch to OFF, HEAT or AUTO. Any other value fails without touching the device."""
        return await self._write(Characteristic.TARGET_HEATING_COOLING_STATE, value)

    async def handle_get(self, characteristic: str, callback: Callback) -> Any:
        """Read ``characteristic`` and report it as ``callback(error, value)``.

        The callback is always invoked, also when the read fails unexpectedly.
        """
        getter = self._getters.get(characteristic)
        if getter is None:
            return callback(UnsupportedCharacteristicError(characteristic, "get"), None)
        try:
            result = await self._dispatcher.run(getter)
        except Exception as e:
            logger.exception("Reading %s from %s failed", characteristic, self.address)
            return callback(e, None)
        return callback(result.error, result.value)

    async def handle_set(self, characteristic: str, value: Any, callback: Callback) -> Any:
        """Write ``value`` to ``characteristic`` and report it as ``callback(error, None)``.

        The callback is always invoked, also when the write fails unexpectedly.
        """
        if characteristic not in self._setters:
            return callback(UnsupportedCharacteristicError(characteristic, "set"), None)
        try:
            result = await self._write(characteristic, value)
        except Exception as e:
            logger.exception("Writing %s to %s failed", characteristic, self.address)
            return callback(e, None)
        return callback(result.error, None)

    def characteristics(self) -> Dict[str, Dict[str, bool]]:
        """Which characteristics can be read and written."""
        return {
            name: {"get": name in self._getters, "set": name in self._setters}
            for name in self._getters
        }

    def accessory_information(self) -> Dict[str, str]:
        return {
            "manufacturer": MANUFACTURER,
            "model": MODEL,
            "name": self.name,
            "serial_number": self.address,
        }

    async def status(self) -> Dict[str, Any]:
        """Read every property; the reads share one device fetch.

        Raises:
            ThermostatError: connecting or reading the thermostat failed
        """
        current = await self.get_current_heating_cooling_state()
        target = await self._dispatcher.run(self._get_target_heating_cooling_state, previous=current)
        temperature = await self._dispatcher.run(self._get_target_temperature, previous=target)
        units = await self._dispatcher.run(self._get_temperature_display_units, previous=temperature)
        valve = await self._dispatcher.run(self._get_valve_position, previous=units)
        return {
            "current_heating_cooling_state": current.unwrap().name,
            "target_heating_cooling_state": target.unwrap().name,
            "target_temperature": temperature.unwrap(),
            "temperature_display_units": units.unwrap().name,
            "valve_position": valve.unwrap(),
        }


def _check_mode(value) -> Result:
    # bool is an int subclass; True would otherwise pass as HEAT.
    if isinstance(value, bool) or not isinstance(value, int) or value not in _MODE_COMMANDS:
        return Result.fail(UnsupportedModeError(value))
    return Result.ok(TargetHeatingCoolingState(value))


def _check_temperature(value) -> Result:
    if isinstance(value, bool):
        return Result.fail(InvalidValueError(Characteristic.TARGET_TEMPERATURE, value))
    try:
        celsius = float(value)
    except (TypeError, ValueError):
        return Result.fail(InvalidValueError(Characteristic.TARGET_TEMPERATURE, value))
    if not math.isfinite(celsius):
        return Result.fail(InvalidValueError(Characteristic.TARGET_TEMPERATURE, value))
    return Result.ok(celsius)


def _check_display_units(value) -> Result:
    if isinstance(value, bool):
        return Result.fail(UnsupportedModeError(value))
    try:
        return Result.ok(TemperatureDisplayUnits(value))
    except (TypeError, ValueError):
        return Result.fail(UnsupportedModeError(value))


async def _command(operation: str, call: Awaitable[None]) -> Result:
    try:
        await call
    except Exception as e:
        logger.warning("Thermostat %s failed: %s", operation, e)
        return Result.fail(DeviceOperationError(operation, e))
    return Result.ok()
