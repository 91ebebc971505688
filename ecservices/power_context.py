"""Shared context of the power policy service and its request channel."""
from __future__ import annotations

import asyncio
import enum
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Generic, Optional, TypeVar, Union

from .intrusive_list import IntrusiveList
from .power_policy import InvalidResponseError, PolicyError, PowerCapability

T = TypeVar("T")

POLICY_CHANNEL_SIZE = 1


class _Channel(Generic[T]):
    """Bounded FIFO channel; senders wait while it is full, receivers while empty.

    Waiters are created on whatever event loop is running at the time, so a
    channel that is idle can be used from one loop after another.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("channel capacity must be at least 1")
        self._capacity = capacity
        self._items: Deque[T] = deque()
        self._getters: Deque[asyncio.Future[None]] = deque()
        self._putters: Deque[asyncio.Future[None]] = deque()

    @staticmethod
    def _wake_one(waiters: Deque[asyncio.Future[None]]) -> None:
        while waiters:
            waiter = waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return

    async def _wait(
        self,
        waiters: Deque[asyncio.Future[None]],
        others: Deque[asyncio.Future[None]],
    ) -> None:
        waiter = asyncio.get_running_loop().create_future()
        waiters.append(waiter)
        try:
            await waiter
        except BaseException:
            if waiter in waiters:
                waiters.remove(waiter)
            elif waiter.done() and not waiter.cancelled():
                # Woken but not going to act on it: pass the wake-up on.
                self._wake_one(waiters)
            raise

    async def send(self, item: T) -> None:
        """Queue ``item``, waiting for room if the channel is full."""
        while len(self._items) >= self._capacity:
            await self._wait(self._putters, self._getters)
        self._items.append(item)
        self._wake_one(self._getters)

    async def receive(self) -> T:
        """Take the oldest item, waiting for one if the channel is empty."""
        while not self._items:
            await self._wait(self._getters, self._putters)
        item = self._items.popleft()
        self._wake_one(self._putters)
        return item

    def __len__(self) -> int:
        return len(self._items)


@dataclass(frozen=True)
class NotifyAttached:
    """A device has attached."""


@dataclass(frozen=True)
class NotifyConsumerCapability:
    """The power a device can supply for consumption has changed."""

    capability: Optional[PowerCapability]


@dataclass(frozen=True)
class RequestProviderCapability:
    """A device asks to provide the given power."""

    capability: PowerCapability


@dataclass(frozen=True)
class NotifyDisconnect:
    """A device can no longer consume or provide power."""


@dataclass(frozen=True)
class NotifyDetached:
    """A device has detached."""


RequestData = Union[
    NotifyAttached,
    NotifyConsumerCapability,
    RequestProviderCapability,
    NotifyDisconnect,
    NotifyDetached,
]


@dataclass(frozen=True)
class Request:
    """A request to the power policy service from a device."""

    device_id: int
    data: RequestData


class ResponseData(enum.Enum):
    """Response of the power policy service to a request."""

    COMPLETE = "complete"

    def complete_or_err(self) -> None:
        """Raise :class:`InvalidResponseError` unless the response is complete."""
        if self is not ResponseData.COMPLETE:
            raise InvalidResponseError(f"unexpected response {self.name}")


PolicyResponse = Union[ResponseData, PolicyError]


@dataclass(eq=False)
class Context:
    """Registered devices and chargers, and the policy request/response channels."""

    devices: IntrusiveList = field(default_factory=IntrusiveList)
    chargers: IntrusiveList = field(default_factory=IntrusiveList)
    policy_request: _Channel[Request] = field(
        default_factory=lambda: _Channel(POLICY_CHANNEL_SIZE)
    )
    policy_response: _Channel[PolicyResponse] = field(
        default_factory=lambda: _Channel(POLICY_CHANNEL_SIZE)
    )


_CONTEXT: Optional[Context] = None


def init() -> None:
    """Create the power policy context; later calls leave it unchanged."""
    global _CONTEXT
    if _CONTEXT is None:
        _CONTEXT = Context()


def context() -> Context:
    """Return the power policy context.

    Raises :class:`RuntimeError` if :func:`init` has not been called.
    """
    if _CONTEXT is None:
        raise RuntimeError("power policy context is not initialized")
    return _CONTEXT


async def send_request(device_id: int, data: RequestData) -> ResponseData:
    """Send a request to the power policy service and wait for its response.

    A :class:`PolicyError` sent back as the response is raised.
    """
    ctx = context()
    await ctx.policy_request.send(Request(device_id, data))
    response = await ctx.policy_response.receive()
    if isinstance(response, PolicyError):
        raise response
    return response