"""Power policy errors, capabilities and comms messages."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

_U16_MAX = 0xFFFF


class PolicyError(Exception):
    """Base class for power policy errors."""


class InvalidDeviceError(PolicyError):
    """The requested device does not exist."""


class CannotProvideError(PolicyError):
    """A provide request was denied; carries the maximum available power."""

    def __init__(self, capability: Optional[PowerCapability] = None) -> None:
        super().__init__(f"cannot provide, maximum available: {capability}")
        self.capability = capability


class CannotConsumeError(PolicyError):
    """A consume request was denied; carries the maximum available power."""

    def __init__(self, capability: Optional[PowerCapability] = None) -> None:
        super().__init__(f"cannot consume, maximum available: {capability}")
        self.capability = capability


class InvalidStateError(PolicyError):
    """The device is not in the expected state."""

    def __init__(self, expected: StateKind, actual: StateKind) -> None:
        super().__init__(f"expected state {expected.name}, device is {actual.name}")
        self.expected = expected
        self.actual = actual


class InvalidResponseError(PolicyError):
    """A response of the wrong kind was received."""


class BusError(PolicyError):
    """The underlying bus reported an error."""


class FailedError(PolicyError):
    """Generic failure."""


class StateKind(enum.Enum):
    """The basic states of a power device."""

    DETACHED = "detached"
    IDLE = "idle"
    CONNECTED_PROVIDER = "connected_provider"
    CONNECTED_CONSUMER = "connected_consumer"


@dataclass(frozen=True)
class PowerCapability:
    """Power a device can provide or consume; ordered by maximum power."""

    voltage_mv: int
    current_ma: int

    def __post_init__(self) -> None:
        for name in ("voltage_mv", "current_ma"):
            value = getattr(self, name)
            if not 0 <= value <= _U16_MAX:
                raise ValueError(f"{name} out of range: {value}")

    def max_power_mw(self) -> int:
        """Maximum power in mW, rounded down."""
        return self.voltage_mv * self.current_ma // 1000

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PowerCapability):
            return NotImplemented
        return self.max_power_mw() < other.max_power_mw()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, PowerCapability):
            return NotImplemented
        return self.max_power_mw() <= other.max_power_mw()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, PowerCapability):
            return NotImplemented
        return self.max_power_mw() > other.max_power_mw()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, PowerCapability):
            return NotImplemented
        return self.max_power_mw() >= other.max_power_mw()


@dataclass(frozen=True)
class ConsumerDisconnected:
    """A consumer device disconnected."""

    device_id: int


@dataclass(frozen=True)
class ConsumerConnected:
    """A consumer device connected with the given capability."""

    device_id: int
    capability: PowerCapability


CommsData = Union[ConsumerDisconnected, ConsumerConnected]


@dataclass(frozen=True)
class CommsMessage:
    """Message sent through the comms service."""

    data: CommsData