"""Short-lived cache of the thermostat's full state read."""

import asyncio
import logging
from typing import Optional

from eq3bridge.devices.base import DeviceHandle, DeviceInfo
from eq3bridge.connection.manager import consume_exception
from eq3bridge.errors import DeviceOperationError

logger = logging.getLogger(__name__)

# Seconds a fetched snapshot may be reused before it is discarded.
SNAPSHOT_TTL = 0.25


class ReadCache:
    """Coalesces state reads so near-simultaneous reads cost one round trip.

    A host typically asks for several properties at once (mode, temperature,
    valve state); each of them is derived from the same ``get_info()`` call.
    At most one fetch is in flight at a time and its result is kept for
    ``ttl`` seconds, after which it is removed and the next read re-fetches.
    """

    def __init__(self, ttl: float = SNAPSHOT_TTL):
        self._ttl = ttl
        self._snapshot: Optional[DeviceInfo] = None
        self._expires_at = 0.0
        self._fetch: Optional[asyncio.Future] = None
        self._expiry_timer: Optional[asyncio.TimerHandle] = None
        # Bumped by invalidate(); a fetch started before that is not stored.
        self._generation = 0

    @property
    def snapshot(self) -> Optional[DeviceInfo]:
        """Current snapshot, or None when nothing valid is cached."""
        if self._snapshot is not None and asyncio.get_running_loop().time() >= self._expires_at:
            self._expire()
        return self._snapshot

    async def get_snapshot(self, device: DeviceHandle) -> DeviceInfo:
        """Return the cached snapshot, joining or starting a fetch if needed.

        Raises:
            DeviceOperationError: the device read failed; nothing is cached
        """
        snapshot = self.snapshot
        if snapshot is not None:
            return snapshot

        if self._fetch is None:
            self._fetch = asyncio.ensure_future(self._fetch_info(device, self._generation))
            self._fetch.add_done_callback(consume_exception)
        return await asyncio.shield(self._fetch)

    async def _fetch_info(self, device: DeviceHandle, generation: int) -> DeviceInfo:
        logger.debug("Getting thermostat info")
        try:
            info = await device.get_info()
        except Exception as e:
            logger.warning("Getting thermostat info failed: %s", e)
            raise DeviceOperationError("get_info", e) from e
        finally:
            if generation == self._generation:
                self._fetch = None

        logger.debug("Got thermostat info: %s", info)
        if generation == self._generation:
            self._store(info)
        return info

    def _store(self, info: DeviceInfo) -> None:
        loop = asyncio.get_running_loop()
        if self._expiry_timer is not None:
            self._expiry_timer.cancel()
        self._snapshot = info
        self._expires_at = loop.time() + self._ttl
        self._expiry_timer = loop.call_later(self._ttl, self._expire)

    def _expire(self) -> None:
        if self._expiry_timer is not None:
            self._expiry_timer.cancel()
            self._expiry_timer = None
        self._snapshot = None

    def invalidate(self) -> None:
        """Discard the cached snapshot.

        A fetch already in flight still answers the readers waiting on it, but
        its result is not cached and later readers start a fresh fetch.
        """
        self._generation += 1
        self._fetch = None
        self._expire()
