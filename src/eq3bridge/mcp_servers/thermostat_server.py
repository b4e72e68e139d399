"""MCP server for controlling an eQ-3 Bluetooth radiator thermostat."""

import logging
import os
from pathlib import Path
from fastmcp import FastMCP
from dotenv import load_dotenv

from eq3bridge.accessory import EQ3Thermostat, TargetHeatingCoolingState
from eq3bridge.bridge.config import load_config, load_driver
from eq3bridge.errors import ThermostatError
from eq3bridge.logging import DynamoStateLogger

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastMCP server
app = FastMCP("eQ-3 Thermostat Control")

ENV_FILE = Path.home() / ".eq3bridge" / ".env"

# Lazily initialized accessory instance
thermostat = None

# State logger (fire-and-forget)
state_logger = DynamoStateLogger()


def get_thermostat() -> EQ3Thermostat:
    """Get or initialize the thermostat accessory.

    Reads ~/.eq3bridge/.env into the environment, then builds the accessory
    from the configuration file. No connection is made here; the first tool
    call connects.
    """
    global thermostat
    if thermostat is not None:
        return thermostat

    load_dotenv(ENV_FILE)
    config = load_config(os.environ.get("EQ3_CONFIG_PATH"))
    config.validate()

    thermostat = EQ3Thermostat.create(
        config.address,
        load_driver(config.driver),
        name=config.name,
        timeout=config.timeout,
    )
    logger.info("Thermostat accessory ready for %s", config.address)
    return thermostat


async def _log_change(t: EQ3Thermostat, action: str, success: bool) -> None:
    state = {}
    if success:
        # The snapshot cached before the write no longer describes the device.
        t.dispatcher.cache.invalidate()
        try:
            state = await t.status()
        except ThermostatError as e:
            logger.warning("Could not read thermostat state after %s: %s", action, e)
    await state_logger.log_state_change(t.address, action, success, state)


@app.tool()
async def get_status() -> str:
    """Get the current status of the thermostat.

    Returns:
        Heating mode, valve state and target temperature
    """
    logger.info("Tool called: get_status")
    t = get_thermostat()
    try:
        status = await t.status()
    except ThermostatError as e:
        return f"✗ Could not read thermostat: {e}"

    heating = "heating" if status["current_heating_cooling_state"] == "HEAT" else "idle"
    return (
        f"🌡 {t.name} ({t.address})\n"
        f"Mode: {status['target_heating_cooling_state']}\n"
        f"Valve: {status['valve_position']}% ({heating})\n"
        f"Target Temperature: {status['target_temperature']}°C"
    )


@app.tool()
async def set_temperature(celsius: float) -> str:
    """Set the target temperature of the thermostat.

    Args:
        celsius: Target temperature in degrees Celsius (10 to 30)

    Returns:
        A message confirming the temperature was set
    """
    logger.info("Tool called: set_temperature(%.1f)", celsius)
    if not 10 <= celsius <= 30:
        return f"✗ Temperature must be 10-30°C, got {celsius}"

    t = get_thermostat()
    result = await t.set_target_temperature(celsius)
    await _log_change(t, "set_temperature", not result.is_error)

    if result.is_error:
        return f"✗ {result.error}"
    return f"✓ Target temperature set to {celsius}°C"


@app.tool()
async def set_mode(mode: str) -> str:
    """Set the heating mode of the thermostat.

    Args:
        mode: One of OFF, HEAT or AUTO

    Returns:
        A message confirming the mode was set
    """
    logger.info("Tool called: set_mode(%s)", mode)
    value = TargetHeatingCoolingState.__members__.get(mode.upper(), mode)

    t = get_thermostat()
    result = await t.set_target_heating_cooling_state(value)
    await _log_change(t, "set_mode", not result.is_error)

    if result.is_error:
        return f"✗ {result.error}"
    return f"✓ Mode set to {value.name}"


@app.tool()
async def disconnect() -> str:
    """Release the Bluetooth connection to the thermostat now.

    Returns:
        A message confirming the disconnect
    """
    logger.info("Tool called: disconnect")
    t = get_thermostat()
    await t.dispatcher.connection.disconnect()
    return "✓ Disconnected"


if __name__ == "__main__":
    app.run()
