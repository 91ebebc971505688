"""Power devices and the state-checked actions available to them.

A :class:`Device` is driven from two sides. The device driver uses the
:class:`DeviceAction` classes, which notify the power policy service. The
policy uses the :class:`PolicyAction` classes, which send requests to the
device. Each action class only offers the operations valid in its state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from .intrusive_list import Node, NodeContainer
from .power_context import (
    NotifyAttached,
    NotifyConsumerCapability,
    NotifyDetached,
    NotifyDisconnect,
    RequestProviderCapability,
    ResponseData,
    _Channel,
    send_request,
)
from .power_policy import InvalidStateError, PolicyError, PowerCapability, StateKind

logger = logging.getLogger(__name__)

DEVICE_CHANNEL_SIZE = 1

_CONNECTED_KINDS = (StateKind.CONNECTED_PROVIDER, StateKind.CONNECTED_CONSUMER)


@dataclass(frozen=True)
class State:
    """Current state of a power device; connected states carry a capability."""

    kind: StateKind
    capability: Optional[PowerCapability] = None

    def __post_init__(self) -> None:
        connected = self.kind in _CONNECTED_KINDS
        if connected and self.capability is None:
            raise ValueError(f"state {self.kind.name} needs a capability")
        if not connected and self.capability is not None:
            raise ValueError(f"state {self.kind.name} takes no capability")


@dataclass(frozen=True)
class ConnectConsumer:
    """Start consuming power on the device."""

    capability: PowerCapability


@dataclass(frozen=True)
class ConnectProvider:
    """Start providing power on the device."""

    capability: PowerCapability


@dataclass(frozen=True)
class Disconnect:
    """Stop providing or consuming power on the device."""


DeviceRequest = Union[ConnectConsumer, ConnectProvider, Disconnect]
DeviceResponse = Union[ResponseData, PolicyError]


@dataclass
class _InternalState:
    state: State
    consumer_capability: Optional[PowerCapability] = None
    in_recovery: bool = False


class Device(NodeContainer):
    """A power device registered with the power policy service."""

    def __init__(self, device_id: int) -> None:
        self.id = device_id
        self._node = Node()
        self._internal = _InternalState(State(StateKind.DETACHED))
        self._request: _Channel[DeviceRequest] = _Channel(DEVICE_CHANNEL_SIZE)
        self._response: _Channel[DeviceResponse] = _Channel(DEVICE_CHANNEL_SIZE)

    def __repr__(self) -> str:
        return f"Device(id={self.id})"

    def get_node(self) -> Node:
        return self._node

    def get_power_policy_device(self) -> Device:
        """Return the underlying power policy device."""
        return self

    async def state(self) -> State:
        """Current state of the device."""
        return self._internal.state

    async def consumer_capability(self) -> Optional[PowerCapability]:
        """Power the device can currently supply for consumption."""
        return self._internal.consumer_capability

    async def is_consumer(self) -> bool:
        """True if the device is consuming power."""
        return (await self.state()).kind is StateKind.CONNECTED_CONSUMER

    async def provider_capability(self) -> Optional[PowerCapability]:
        """Power being provided, or None if the device is not providing."""
        state = await self.state()
        if state.kind is StateKind.CONNECTED_PROVIDER:
            return state.capability
        return None

    async def is_provider(self) -> bool:
        """True if the device is providing power."""
        return (await self.state()).kind is StateKind.CONNECTED_PROVIDER

    async def is_in_recovery(self) -> bool:
        """True if the device is recovering from an error."""
        return self._internal.in_recovery

    async def enter_recovery(self) -> None:
        """Mark the device as recovering from an error."""
        self._internal.in_recovery = True

    async def exit_recovery(self) -> None:
        """Clear the recovery mark."""
        self._internal.in_recovery = False

    async def execute_device_request(self, request: DeviceRequest) -> ResponseData:
        """Send a request to the device and wait for its response.

        A :class:`PolicyError` sent back as the response is raised.
        """
        await self._request.send(request)
        response = await self._response.receive()
        if isinstance(response, PolicyError):
            raise response
        return response

    async def wait_request(self) -> DeviceRequest:
        """Wait for a request from the policy."""
        return await self._request.receive()

    async def send_response(self, response: DeviceResponse) -> None:
        """Answer a request with a response or a :class:`PolicyError`."""
        await self._response.send(response)

    async def set_state(self, new_state: State) -> None:
        """Replace the device state."""
        self._internal.state = new_state

    async def update_consumer_capability(
        self, capability: Optional[PowerCapability]
    ) -> None:
        """Replace the consumer capability."""
        self._internal.consumer_capability = capability

    async def _checked_kind(self, kind: StateKind) -> None:
        actual = (await self.state()).kind
        if actual is not kind:
            raise InvalidStateError(kind, actual)

    async def try_device_action(self, kind: StateKind) -> DeviceAction:
        """Device actions for ``kind``; raises :class:`InvalidStateError` if not in it."""
        await self._checked_kind(kind)
        return _DEVICE_ACTIONS[kind](self)

    async def device_action(self) -> DeviceAction:
        """Device actions for the current state."""
        return _DEVICE_ACTIONS[(await self.state()).kind](self)

    async def try_policy_action(self, kind: StateKind) -> PolicyAction:
        """Policy actions for ``kind``; raises :class:`InvalidStateError` if not in it."""
        await self._checked_kind(kind)
        return _POLICY_ACTIONS[kind](self)

    async def policy_action(self) -> PolicyAction:
        """Policy actions for the current state."""
        return _POLICY_ACTIONS[(await self.state()).kind](self)

    async def detach(self) -> DetachedDevice:
        """Detach the device from any state."""
        action = await self.device_action()
        if isinstance(action, DetachedDevice):
            return action
        return await action.detach()


class DeviceAction:
    """Actions the device driver may take in one particular state."""

    kind: ClassVar[StateKind]

    def __init__(self, device: Device) -> None:
        self.device = device

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.device!r})"

    async def detach(self) -> DetachedDevice:
        """Detach the device and notify the policy."""
        device = self.device
        logger.info("Received detach from device %s", device.id)
        await device.set_state(State(StateKind.DETACHED))
        await device.update_consumer_capability(None)
        await device.exit_recovery()
        (await send_request(device.id, NotifyDetached())).complete_or_err()
        return DetachedDevice(device)

    async def _disconnect_internal(self) -> None:
        device = self.device
        logger.info("Device %s disconnecting", device.id)
        await device.set_state(State(StateKind.IDLE))
        await device.exit_recovery()
        (await send_request(device.id, NotifyDisconnect())).complete_or_err()

    async def _notify_consumer_power_capability_internal(
        self, capability: Optional[PowerCapability]
    ) -> None:
        device = self.device
        logger.info("Device %s consume capability updated %s", device.id, capability)
        await device.update_consumer_capability(capability)
        response = await send_request(device.id, NotifyConsumerCapability(capability))
        response.complete_or_err()

    async def _request_provider_power_capability_internal(
        self, capability: PowerCapability
    ) -> None:
        device = self.device
        if await device.provider_capability() == capability:
            logger.debug("Device %s already requested: %s", device.id, capability)
            return
        logger.info("Request provide from device %s, %s", device.id, capability)
        response = await send_request(device.id, RequestProviderCapability(capability))
        response.complete_or_err()


class DetachedDevice(DeviceAction):
    """Device actions while nothing is attached."""

    kind = StateKind.DETACHED

    async def attach(self) -> IdleDevice:
        """Attach the device and notify the policy."""
        device = self.device
        logger.info("Received attach from device %s", device.id)
        await device.set_state(State(StateKind.IDLE))
        (await send_request(device.id, NotifyAttached())).complete_or_err()
        return IdleDevice(device)


class IdleDevice(DeviceAction):
    """Device actions while attached but neither providing nor consuming."""

    kind = StateKind.IDLE

    async def notify_consumer_power_capability(
        self, capability: Optional[PowerCapability]
    ) -> None:
        """Tell the policy how much power the device can supply."""
        await self._notify_consumer_power_capability_internal(capability)

    async def request_provider_power_capability(self, capability: PowerCapability) -> None:
        """Ask the policy to let the device provide ``capability``."""
        await self._request_provider_power_capability_internal(capability)


class ConsumerDevice(DeviceAction):
    """Device actions while consuming power."""

    kind = StateKind.CONNECTED_CONSUMER

    async def disconnect(self) -> IdleDevice:
        """Stop consuming and notify the policy."""
        await self._disconnect_internal()
        return IdleDevice(self.device)

    async def notify_consumer_power_capability(
        self, capability: Optional[PowerCapability]
    ) -> None:
        """Tell the policy how much power the device can supply."""
        await self._notify_consumer_power_capability_internal(capability)


class ProviderDevice(DeviceAction):
    """Device actions while providing power."""

    kind = StateKind.CONNECTED_PROVIDER

    async def disconnect(self) -> IdleDevice:
        """Stop providing and notify the policy."""
        await self._disconnect_internal()
        return IdleDevice(self.device)

    async def request_provider_power_capability(self, capability: PowerCapability) -> None:
        """Ask the policy to let the device provide ``capability``."""
        await self._request_provider_power_capability_internal(capability)


class PolicyAction:
    """Actions the power policy may take on a device in one particular state."""

    kind: ClassVar[StateKind]

    def __init__(self, device: Device) -> None:
        self.device = device

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.device!r})"

    async def _disconnect_internal(self) -> None:
        device = self.device
        logger.info("Device %s got disconnect request", device.id)
        (await device.execute_device_request(Disconnect())).complete_or_err()
        await device.set_state(State(StateKind.IDLE))
        await device.exit_recovery()

    async def _connect_provider_internal(self, capability: PowerCapability) -> None:
        device = self.device
        logger.info("Device %s connecting provider", device.id)
        response = await device.execute_device_request(ConnectProvider(capability))
        response.complete_or_err()
        await device.set_state(State(StateKind.CONNECTED_PROVIDER, capability))


class DetachedPolicy(PolicyAction):
    """The policy can do nothing with a detached device."""

    kind = StateKind.DETACHED


class IdlePolicy(PolicyAction):
    """Policy actions on an attached, idle device."""

    kind = StateKind.IDLE

    async def connect_consumer(self, capability: PowerCapability) -> ConsumerPolicy:
        """Have the device start consuming ``capability``."""
        device = self.device
        logger.info("Device %s connecting consumer", device.id)
        response = await device.execute_device_request(ConnectConsumer(capability))
        response.complete_or_err()
        await device.set_state(State(StateKind.CONNECTED_CONSUMER, capability))
        return ConsumerPolicy(device)

    async def connect_provider(self, capability: PowerCapability) -> ProviderPolicy:
        """Have the device start providing ``capability``."""
        await self._connect_provider_internal(capability)
        return ProviderPolicy(self.device)


class ConsumerPolicy(PolicyAction):
    """Policy actions on a consuming device."""

    kind = StateKind.CONNECTED_CONSUMER

    async def disconnect(self) -> IdlePolicy:
        """Have the device stop consuming."""
        await self._disconnect_internal()
        return IdlePolicy(self.device)


class ProviderPolicy(PolicyAction):
    """Policy actions on a providing device."""

    kind = StateKind.CONNECTED_PROVIDER

    async def disconnect(self) -> IdlePolicy:
        """Have the device stop providing; on failure it enters recovery."""
        try:
            await self._disconnect_internal()
        except PolicyError as exc:
            logger.error("Error disconnecting device %s: %r", self.device.id, exc)
            await self.device.enter_recovery()
            raise
        return IdlePolicy(self.device)

    async def connect_provider(self, capability: PowerCapability) -> None:
        """Have the device provide a new ``capability``."""
        await self._connect_provider_internal(capability)

    async def power_capability(self) -> PowerCapability:
        """The power the device is providing."""
        capability = await self.device.provider_capability()
        if capability is None:
            raise InvalidStateError(self.kind, (await self.device.state()).kind)
        return capability


_DEVICE_ACTIONS: dict[StateKind, type[DeviceAction]] = {
    StateKind.DETACHED: DetachedDevice,
    StateKind.IDLE: IdleDevice,
    StateKind.CONNECTED_CONSUMER: ConsumerDevice,
    StateKind.CONNECTED_PROVIDER: ProviderDevice,
}

_POLICY_ACTIONS: dict[StateKind, type[PolicyAction]] = {
    StateKind.DETACHED: DetachedPolicy,
    StateKind.IDLE: IdlePolicy,
    StateKind.CONNECTED_CONSUMER: ConsumerPolicy,
    StateKind.CONNECTED_PROVIDER: ProviderPolicy,
}