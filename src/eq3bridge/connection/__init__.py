"""Connection lifecycle, read coalescing and command dispatch."""

from eq3bridge.connection.manager import ConnectionManager, ConnectionState
from eq3bridge.connection.read_cache import ReadCache
from eq3bridge.connection.dispatcher import CommandDispatcher, DeviceContext

__all__ = ["ConnectionManager", "ConnectionState", "ReadCache", "CommandDispatcher", "DeviceContext"]
