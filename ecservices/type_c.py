"""Type-C errors, power data objects, contracts and default capabilities."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from .power_policy import PowerCapability

_U16_MASK = 0xFFFF


class PdError(Exception):
    """Base class for USB-PD errors."""


class InvalidParamsError(PdError):
    """Invalid parameters were given."""


class InvalidResponseError(PdError):
    """A response of the wrong kind was received."""


class InvalidControllerError(PdError):
    """The controller does not exist."""


class InvalidPortError(PdError):
    """The port does not exist."""


class PdTimeoutError(PdError):
    """The operation timed out."""


class TypecCurrent(enum.Enum):
    """Type-C advertised source current."""

    USB_DEFAULT = "usb_default"
    CURRENT_1A5 = "1a5"
    CURRENT_3A0 = "3a0"

    def to_ma(self, low_power: bool) -> int:
        """Current in mA; USB default is 500 mA for USB2 (low power), else 900 mA."""
        if self is TypecCurrent.USB_DEFAULT:
            return 500 if low_power else 900
        if self is TypecCurrent.CURRENT_1A5:
            return 1500
        return 3000


@dataclass(frozen=True)
class SourceFixedPdo:
    voltage_mv: int
    current_ma: int


@dataclass(frozen=True)
class SourceVariablePdo:
    max_voltage_mv: int
    max_current_ma: int


@dataclass(frozen=True)
class SourceBatteryPdo:
    max_voltage_mv: int
    max_power_mw: int


@dataclass(frozen=True)
class SinkFixedPdo:
    voltage_mv: int
    operational_current_ma: int


@dataclass(frozen=True)
class SinkVariablePdo:
    max_voltage_mv: int
    operational_current_ma: int


@dataclass(frozen=True)
class SinkBatteryPdo:
    max_voltage_mv: int
    operational_power_mw: int


@dataclass(frozen=True)
class SprPpsApdo:
    """SPR programmable power supply augmented PDO."""

    max_voltage_mv: int
    max_current_ma: int


@dataclass(frozen=True)
class EprAvsApdo:
    """EPR adjustable voltage supply augmented PDO."""

    max_voltage_mv: int
    pdp_mw: int


@dataclass(frozen=True)
class SprAvsApdo:
    """SPR adjustable voltage supply augmented PDO."""

    max_current_15v_ma: int
    max_current_20v_ma: int


Apdo = Union[SprPpsApdo, EprAvsApdo, SprAvsApdo]
SourcePdo = Union[SourceFixedPdo, SourceVariablePdo, SourceBatteryPdo, Apdo]
SinkPdo = Union[SinkFixedPdo, SinkVariablePdo, SinkBatteryPdo, Apdo]

_SOURCE_TYPES = (SourceFixedPdo, SourceVariablePdo, SourceBatteryPdo)
_SINK_TYPES = (SinkFixedPdo, SinkVariablePdo, SinkBatteryPdo)
_APDO_TYPES = (SprPpsApdo, EprAvsApdo, SprAvsApdo)


def _current_from_power(power_mw: int, voltage_mv: int) -> int:
    return (power_mw // voltage_mv) & _U16_MASK


def _spr_avs_max_power_capability(current_15v_ma: int, current_20v_ma: int) -> PowerCapability:
    if current_15v_ma * 15000 > current_20v_ma * 20000:
        return PowerCapability(15000, current_15v_ma)
    return PowerCapability(20000, current_20v_ma)


def capability_from_pdo(pdo: Union[SourcePdo, SinkPdo]) -> PowerCapability:
    """The maximum power capability described by a source or sink PDO."""
    if isinstance(pdo, SourceFixedPdo):
        return PowerCapability(pdo.voltage_mv, pdo.current_ma)
    if isinstance(pdo, SourceVariablePdo):
        return PowerCapability(pdo.max_voltage_mv, pdo.max_current_ma)
    if isinstance(pdo, SourceBatteryPdo):
        return PowerCapability(
            pdo.max_voltage_mv, _current_from_power(pdo.max_power_mw, pdo.max_voltage_mv)
        )
    if isinstance(pdo, SinkFixedPdo):
        return PowerCapability(pdo.voltage_mv, pdo.operational_current_ma)
    if isinstance(pdo, SinkVariablePdo):
        return PowerCapability(pdo.max_voltage_mv, pdo.operational_current_ma)
    if isinstance(pdo, SinkBatteryPdo):
        return PowerCapability(
            pdo.max_voltage_mv,
            _current_from_power(pdo.operational_power_mw, pdo.max_voltage_mv),
        )
    if isinstance(pdo, SprPpsApdo):
        return PowerCapability(pdo.max_voltage_mv, pdo.max_current_ma)
    if isinstance(pdo, EprAvsApdo):
        return PowerCapability(
            pdo.max_voltage_mv, _current_from_power(pdo.pdp_mw, pdo.max_voltage_mv)
        )
    if isinstance(pdo, SprAvsApdo):
        return _spr_avs_max_power_capability(pdo.max_current_15v_ma, pdo.max_current_20v_ma)
    raise TypeError(f"not a PDO: {pdo!r}")


def capability_from_current(current: TypecCurrent) -> PowerCapability:
    """5 V capability for a Type-C current, assuming the lower USB default."""
    return PowerCapability(5000, current.to_ma(True))


class ContractRole(enum.Enum):
    """Role of this side in a power contract."""

    SINK = "sink"
    SOURCE = "source"


@dataclass(frozen=True)
class Contract:
    """A power contract as sink or source."""

    role: ContractRole
    capability: PowerCapability


def sink_contract(pdo: SinkPdo) -> Contract:
    """Contract as sink for a sink PDO."""
    if not isinstance(pdo, _SINK_TYPES + _APDO_TYPES):
        raise TypeError(f"not a sink PDO: {pdo!r}")
    return Contract(ContractRole.SINK, capability_from_pdo(pdo))


def source_contract(pdo: SourcePdo) -> Contract:
    """Contract as source for a source PDO."""
    if not isinstance(pdo, _SOURCE_TYPES + _APDO_TYPES):
        raise TypeError(f"not a source PDO: {pdo!r}")
    return Contract(ContractRole.SOURCE, capability_from_pdo(pdo))


@dataclass(frozen=True)
class DebugAccessoryMessage:
    """A debug accessory was connected to or disconnected from a port."""

    port: int
    connected: bool


POWER_CAPABILITY_USB_DEFAULT_USB2 = PowerCapability(5000, 500)
POWER_CAPABILITY_USB_DEFAULT_USB3 = PowerCapability(5000, 900)
POWER_CAPABILITY_5V_1A5 = PowerCapability(5000, 1500)
POWER_CAPABILITY_5V_3A0 = PowerCapability(5000, 3000)