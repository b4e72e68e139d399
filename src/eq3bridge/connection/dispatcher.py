"""Runs device operations behind a confirmed connection."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from eq3bridge.connection.manager import ConnectionManager
from eq3bridge.connection.read_cache import ReadCache
from eq3bridge.devices.base import DeviceHandle, DeviceInfo
from eq3bridge.errors import ThermostatConnectionError, ThermostatError
from eq3bridge.result import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceContext:
    """What an operation gets to work with once the link is up."""

    device: DeviceHandle
    cache: ReadCache

    async def snapshot(self) -> DeviceInfo:
        """Full device state, shared with other reads issued in the same window."""
        return await self.cache.get_snapshot(self.device)


Operation = Callable[..., Awaitable[Result]]


class CommandDispatcher:
    """Lifts plain device operations into ones that work while disconnected.

    Every operation has the signature ``op(ctx, *args) -> Result`` where
    ``ctx`` is a ``Result[DeviceContext]``. When the connection cannot be
    established the operation still runs, with a failed ``ctx``, and is
    expected to return early with that failure.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        cache: Optional[ReadCache] = None,
        idle_timeout: Optional[float] = None,
    ):
        """Initialize the dispatcher.

        Args:
            connection: Manager owning the device session
            cache: Snapshot cache for reads (a fresh one by default)
            idle_timeout: Seconds of inactivity before disconnecting;
                defaults to the connection timeout
        """
        self._connection = connection
        self._cache = cache or ReadCache()
        self._idle_timeout = idle_timeout
        connection.add_disconnect_listener(self._cache.invalidate)

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def cache(self) -> ReadCache:
        return self._cache

    async def run(
        self, operation: Operation, *args: Any, previous: Optional[Result] = None
    ) -> Result:
        """Run ``operation`` once the thermostat is connected.

        Args:
            operation: Coroutine function ``op(ctx, *args) -> Result``
            *args: Passed through to ``operation``
            previous: Result of the preceding stage in a call chain; when it
                failed, it is returned as-is and nothing else happens

        Returns:
            The operation's Result; connection errors arrive as failures
        """
        if previous is not None and previous.is_error:
            return previous

        try:
            device = await self._connection.ensure_connected()
        except ThermostatConnectionError as e:
            return await self._invoke(operation, Result.fail(e), args)

        try:
            return await self._invoke(
                operation, Result.ok(DeviceContext(device, self._cache)), args
            )
        finally:
            self._connection.arm_idle_timer(self._idle_timeout)

    async def _invoke(self, operation: Operation, ctx: Result, args: tuple) -> Result:
        try:
            return await operation(ctx, *args)
        except ThermostatError as e:
            logger.warning("%s failed: %s", getattr(operation, "__name__", operation), e)
            return Result.fail(e)
