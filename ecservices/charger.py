"""Charger devices managed by the power policy service."""
from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from .intrusive_list import Node, NodeContainer
from .power_context import _Channel
from .power_policy import BusError, FailedError, PolicyError, PowerCapability

CHARGER_CHANNEL_SIZE = 1


class ChargerEvent(enum.Enum):
    """Events raised by charger hardware. OEM events are plain int state IDs."""

    INITIALIZED = "initialized"
    PSU_ATTACHED = "psu_attached"
    PSU_DETACHED = "psu_detached"
    TIMEOUT = "timeout"
    BUS_ERROR = "bus_error"


class ChargerState(enum.Enum):
    """State of a charger. OEM-specific states are plain int state IDs."""

    INIT = "init"
    IDLE = "idle"
    PSU_ATTACHED = "psu_attached"
    PSU_DETACHED = "psu_detached"


class PolicyEvent(enum.Enum):
    """Commands from the policy to a charger.

    A policy configuration is sent as a :class:`PowerCapability` and an OEM
    event as an int state ID.
    """

    INIT_REQUEST = "init_request"


PolicyCommand = Union[PolicyEvent, PowerCapability, int]
StateValue = Union[ChargerState, int]


@dataclass(frozen=True)
class InternalState:
    """Charger state together with its current capability."""

    state: StateValue
    capability: Optional[PowerCapability] = None


class ChargerError(Exception):
    """A charger command failed."""

    INVALID_STATE = "invalid_state"
    TIMEOUT = "timeout"
    BUS = "bus"

    def __init__(self, kind: str, state: Optional[StateValue] = None) -> None:
        if kind not in (self.INVALID_STATE, self.TIMEOUT, self.BUS):
            raise ValueError(f"unknown charger error kind: {kind!r}")
        if (kind == self.INVALID_STATE) != (state is not None):
            raise ValueError("a state is given with, and only with, an invalid-state error")
        detail = f" ({state})" if state is not None else ""
        super().__init__(f"charger error: {kind}{detail}")
        self.kind = kind
        self.state = state

    def to_policy_error(self) -> PolicyError:
        """The power policy error corresponding to this charger error."""
        if self.kind == self.BUS:
            return BusError(str(self))
        return FailedError(str(self))


class ChargerResponseData(enum.Enum):
    """Successful response of a charger to a policy command."""

    ACK = "ack"


ChargerResponse = Union[ChargerResponseData, ChargerError]


class ChargeController(ABC):
    """Interface a charger driver implements to join the power policy."""

    @abstractmethod
    async def wait_event(self) -> Union[ChargerEvent, int]:
        """Wait for and return the next charger event."""

    @abstractmethod
    async def init_charger(self) -> None:
        """Initialize the hardware; afterwards the charger is ready to charge."""

    @abstractmethod
    async def is_psu_attached(self) -> bool:
        """True if the hardware detects an attached power supply."""


class ChargerDevice(NodeContainer):
    """A charger registered with the power policy service."""

    def __init__(self, charger_id: int) -> None:
        self.id = charger_id
        self._node = Node()
        self._state = InternalState(ChargerState.INIT, None)
        self._commands: _Channel[PolicyCommand] = _Channel(CHARGER_CHANNEL_SIZE)
        self._response: _Channel[ChargerResponse] = _Channel(CHARGER_CHANNEL_SIZE)

    def __repr__(self) -> str:
        return f"ChargerDevice(id={self.id})"

    def get_node(self) -> Node:
        return self._node

    def get_charger(self) -> ChargerDevice:
        """Return the underlying charger device."""
        return self

    async def state(self) -> InternalState:
        """Current state of the charger."""
        return self._state

    async def set_state(self, new_state: InternalState) -> None:
        """Replace the state of the charger."""
        self._state = new_state

    async def wait_command(self) -> PolicyCommand:
        """Wait for a command from the policy."""
        return await self._commands.receive()

    async def send_command(self, policy_event: PolicyCommand) -> None:
        """Send a command to the charger."""
        await self._commands.send(policy_event)

    async def send_response(self, response: ChargerResponse) -> None:
        """Send a response, or a :class:`ChargerError`, back to the policy."""
        await self._response.send(response)

    async def execute_command(self, policy_event: PolicyCommand) -> ChargerResponseData:
        """Send a command and wait for the charger's response.

        A :class:`ChargerError` sent back as the response is raised.
        """
        await self.send_command(policy_event)
        response = await self._response.receive()
        if isinstance(response, ChargerError):
            raise response
        return response