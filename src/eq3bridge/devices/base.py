"""Driver interface for Bluetooth radiator thermostats."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DeviceStatus:
    """Mode flags reported by the thermostat."""

    manual: bool = False
    boost: bool = False


@dataclass(frozen=True)
class DeviceInfo:
    """One full read of the thermostat state."""

    valve_position: int
    target_temperature: float
    status: DeviceStatus = field(default_factory=DeviceStatus)


class DeviceHandle(ABC):
    """A discovered thermostat that can be connected to and commanded.

    All methods are coroutines. Implementations raise on failure; the
    connection layer turns those exceptions into typed bridge errors.
    """

    @abstractmethod
    async def connect_and_setup(self) -> None:
        """Connect and perform the pairing handshake."""
        pass

    @abstractmethod
    async def get_info(self) -> DeviceInfo:
        """Read valve position, target temperature and mode flags."""
        pass

    @abstractmethod
    async def set_temperature(self, celsius: float) -> None:
        """Set the target temperature in manual mode."""
        pass

    @abstractmethod
    async def turn_on(self) -> None:
        """Switch to permanent heating (30°C sentinel)."""
        pass

    @abstractmethod
    async def turn_off(self) -> None:
        """Switch off (4.5°C sentinel)."""
        pass

    @abstractmethod
    async def set_auto_mode(self) -> None:
        """Return to the device's weekly schedule."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Tear down the link."""
        pass


class DeviceDriver(ABC):
    """Finds thermostats by hardware address."""

    @abstractmethod
    async def discover(self, address: str) -> DeviceHandle:
        """Return a handle for the thermostat at ``address``.

        Args:
            address: Bluetooth hardware address (e.g. ``00:1A:22:0A:91:CF``)

        Returns:
            DeviceHandle ready for ``connect_and_setup()``
        """
        pass
