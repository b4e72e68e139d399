"""Connection lifecycle for a single Bluetooth thermostat."""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from eq3bridge.devices.base import DeviceDriver, DeviceHandle
from eq3bridge.errors import ConnectionFailedError, ConnectionTimeoutError

logger = logging.getLogger(__name__)

# Seconds allowed for discovery + handshake, also the default idle period.
DEFAULT_CONNECTION_TIMEOUT = 180.0


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionManager:
    """Owns the one logical session to a thermostat.

    The device supports a single session that is slow to set up, has to be
    torn down explicitly and is shared with every other Bluetooth user on
    the host. The manager therefore:

    - connects lazily, on the first ``ensure_connected()``
    - lets concurrent callers join the attempt already in flight
    - disconnects after an idle period armed by ``arm_idle_timer()``

    All methods must be called from the same event loop.
    """

    def __init__(
        self,
        address: str,
        driver: DeviceDriver,
        timeout: float = DEFAULT_CONNECTION_TIMEOUT,
    ):
        """Initialize the manager.

        Args:
            address: Hardware address of the thermostat
            driver: Driver used to discover and connect to the device
            timeout: Seconds allowed for a connection attempt, and the
                default idle period before disconnecting
        """
        self._address = address
        self._driver = driver
        self._timeout = timeout
        self._state = ConnectionState.DISCONNECTED
        self._device: Optional[DeviceHandle] = None
        self._connect_future: Optional[asyncio.Future] = None
        self._idle_timer: Optional[asyncio.TimerHandle] = None
        self._disconnect_task: Optional[asyncio.Task] = None
        self._disconnect_listeners: list[Callable[[], None]] = []

    @property
    def address(self) -> str:
        return self._address

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def device(self) -> Optional[DeviceHandle]:
        return self._device

    def add_disconnect_listener(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` whenever an established session is torn down."""
        self._disconnect_listeners.append(listener)

    async def ensure_connected(self, timeout: Optional[float] = None) -> DeviceHandle:
        """Return a connected device handle, connecting first if needed.

        Callers arriving while an attempt is in flight wait on that same
        attempt; N concurrent callers cause exactly one driver connect.

        Raises:
            ConnectionTimeoutError: handshake did not finish within ``timeout``
            ConnectionFailedError: the driver reported a failure
        """
        self._cancel_idle_timer()
        if self._state is ConnectionState.CONNECTED and self._device is not None:
            return self._device

        if self._connect_future is None:
            self._state = ConnectionState.CONNECTING
            self._connect_future = asyncio.ensure_future(
                self._connect(self._timeout if timeout is None else timeout)
            )
            self._connect_future.add_done_callback(consume_exception)

        # A cancelled waiter must not cancel the attempt the others share.
        return await asyncio.shield(self._connect_future)

    async def _connect(self, timeout: float) -> DeviceHandle:
        logger.info("Connecting to thermostat (%s)", self._address)
        attempt = asyncio.ensure_future(self._discover_and_setup())
        try:
            done, _ = await asyncio.wait({attempt}, timeout=timeout)
            if not done:
                logger.warning("Cannot connect to thermostat (%s): timed out", self._address)
                attempt.add_done_callback(self._discard_late_connection)
                raise ConnectionTimeoutError(self._address, timeout)

            try:
                device = attempt.result()
            except Exception as e:
                logger.warning("Cannot connect to thermostat (%s): %s", self._address, e)
                raise ConnectionFailedError(self._address, str(e) or "connection failed") from e

            self._device = device
            self._state = ConnectionState.CONNECTED
            logger.info("Connected to thermostat (%s)", self._address)
            return device
        finally:
            if self._state is not ConnectionState.CONNECTED:
                self._state = ConnectionState.DISCONNECTED
            self._connect_future = None

    async def _discover_and_setup(self) -> DeviceHandle:
        device = await self._driver.discover(self._address)
        await device.connect_and_setup()
        return device

    def _discard_late_connection(self, attempt: asyncio.Future) -> None:
        """Close a handshake that finished after its attempt timed out."""
        if attempt.cancelled() or attempt.exception() is not None:
            return
        device = attempt.result()
        if self._connect_future is not None:
            # A retry is in flight and may settle on this same handle.
            self._connect_future.add_done_callback(lambda _: self._drop_unless_current(device))
        else:
            self._drop_unless_current(device)

    def _drop_unless_current(self, device: DeviceHandle) -> None:
        if device is self._device:
            return
        logger.debug("Dropping late connection to thermostat (%s)", self._address)
        asyncio.ensure_future(device.disconnect()).add_done_callback(consume_exception)

    async def disconnect(self) -> None:
        """Disconnect from the thermostat. Safe to call when already disconnected.

        An attempt that is still connecting is left to finish and settle
        its waiters.
        """
        await self._close(self._detach())

    def _detach(self) -> Optional[DeviceHandle]:
        """Drop the handle and mark the session closed, before any await."""
        self._cancel_idle_timer()
        device, self._device = self._device, None
        if self._state is ConnectionState.CONNECTED:
            self._state = ConnectionState.DISCONNECTED
        if device is not None:
            for listener in self._disconnect_listeners:
                listener()
        return device

    async def _close(self, device: Optional[DeviceHandle]) -> None:
        if device is None:
            return
        try:
            await device.disconnect()
        except Exception as e:
            logger.warning(f"Error during disconnect from {self._address}: {e}")
        logger.info("Disconnected from thermostat (%s)", self._address)

    def arm_idle_timer(self, duration: Optional[float] = None) -> None:
        """(Re)schedule ``disconnect()`` after ``duration`` seconds of inactivity."""
        self._cancel_idle_timer()
        delay = self._timeout if duration is None else duration
        loop = asyncio.get_running_loop()
        self._idle_timer = loop.call_later(delay, self._on_idle_timeout)
        logger.debug("Scheduled idle disconnect of %s in %.1fs", self._address, delay)

    def _cancel_idle_timer(self) -> None:
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None

    def _on_idle_timeout(self) -> None:
        self._idle_timer = None
        logger.debug("Thermostat %s idle, disconnecting", self._address)
        device = self._detach()
        if device is not None:
            self._disconnect_task = asyncio.ensure_future(self._close(device))


def consume_exception(future: asyncio.Future) -> None:
    # Failures are delivered to the waiters; nobody may be left to retrieve them.
    if not future.cancelled():
        future.exception()
