"""Poll an eQ-3 thermostat through the bridge and log its state.

Usage:
    uv run python scripts/run_thermostat.py                 # Use configured driver
    uv run python scripts/run_thermostat.py --simulate      # Force simulated thermostat
    uv run python scripts/run_thermostat.py --interval 60   # Poll every minute

The thermostat is only connected while it is being read; the bridge drops
the connection after the configured idle timeout, so a poll interval longer
than that timeout shows the full connect / read / disconnect cycle.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from eq3bridge.accessory import EQ3Thermostat
from eq3bridge.bridge.config import load_config, load_driver
from eq3bridge.devices import SimulatedDriver
from eq3bridge.errors import ThermostatError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

BRIDGE_DIR = Path.home() / ".eq3bridge"
ENV_FILE = BRIDGE_DIR / ".env"
SIMULATOR_STATE_DIR = BRIDGE_DIR / "simulator"


async def main(args: argparse.Namespace) -> int:
    """Main entry point."""
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE)

    try:
        config = load_config(args.config)
        config.validate()
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    if args.simulate:
        logger.info("Using simulated thermostat (--simulate flag)")
        driver = SimulatedDriver(state_dir=SIMULATOR_STATE_DIR)
    else:
        driver = load_driver(config.driver)

    thermostat = EQ3Thermostat.create(
        config.address, driver, name=config.name, timeout=config.timeout
    )

    shutdown_event = asyncio.Event()

    def handle_signal():
        logger.info("Shutdown signal received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal)

    logger.info(f"Polling {config.name} ({config.address}) every {args.interval}s")
    logger.info("Press Ctrl+C to stop")

    while not shutdown_event.is_set():
        try:
            status = await thermostat.status()
            logger.info(f"Thermostat status: {status}")
        except ThermostatError as e:
            logger.warning(f"Could not read thermostat: {e}")

        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=args.interval)
        except asyncio.TimeoutError:
            pass

    logger.info("Disconnecting...")
    await thermostat.dispatcher.connection.disconnect()
    logger.info("Stopped")

    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Poll an eQ-3 thermostat through the bridge",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use the simulated thermostat instead of the configured driver",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config file (default: ~/.eq3bridge/config.json)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=30.0,
        help="Seconds between polls (default: 30)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    sys.exit(asyncio.run(main(args)))
