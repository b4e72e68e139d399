"""Error types raised and reported by the thermostat bridge."""


class ThermostatError(Exception):
    """Base class for every error the bridge reports to a caller."""


class ThermostatConnectionError(ThermostatError):
    """The link to the thermostat could not be established."""

    def __init__(self, address: str, message: str):
        super().__init__(f"{message} ({address})")
        self.address = address


class ConnectionTimeoutError(ThermostatConnectionError):
    """The driver did not finish the handshake within the configured window."""

    def __init__(self, address: str, timeout: float):
        super().__init__(address, f"connection timed out after {timeout:g}s")
        self.timeout = timeout


class ConnectionFailedError(ThermostatConnectionError):
    """The driver reported an explicit connection failure."""

    def __init__(self, address: str, reason: str = "connection failed"):
        super().__init__(address, reason)


class DeviceOperationError(ThermostatError):
    """A read or write failed after the connection was established."""

    def __init__(self, operation: str, cause: Exception | None = None):
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation


class UnsupportedModeError(ThermostatError):
    """Requested mode is outside the known values (e.g. not OFF, HEAT or AUTO)."""

    def __init__(self, mode):
        super().__init__(f"Unsupported mode: {mode!r}")
        self.mode = mode


class UnsupportedCharacteristicError(ThermostatError):
    """The host asked for a property the accessory does not expose."""

    def __init__(self, characteristic: str, access: str):
        super().__init__(f"Characteristic {characteristic!r} does not support {access}")
        self.characteristic = characteristic
        self.access = access


class InvalidValueError(ThermostatError):
    """A value written to a characteristic has the wrong type or is out of range."""

    def __init__(self, characteristic: str, value):
        super().__init__(f"Invalid value for {characteristic}: {value!r}")
        self.characteristic = characteristic
        self.value = value
