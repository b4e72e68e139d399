"""Success-or-error value passed through the command dispatch chain."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from eq3bridge.errors import ThermostatError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a :class:`ThermostatError`, never both.

    Failures travel as data so a chain of wrapped calls can check whether the
    preceding stage failed before doing any work.
    """

    value: Optional[T] = None
    error: Optional[ThermostatError] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: ThermostatError) -> "Result[T]":
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value, raising the carried error if this is a failure."""
        if self.error is not None:
            raise self.error
        return self.value
