import asyncio

import pytest

from ecservices import power_context
from ecservices.power_context import (
    NotifyAttached,
    NotifyConsumerCapability,
    NotifyDetached,
    NotifyDisconnect,
    Request,
    RequestProviderCapability,
    ResponseData,
    context,
    init,
    send_request,
)
from ecservices.power_policy import (
    CannotProvideError,
    InvalidDeviceError,
    PowerCapability,
)


@pytest.fixture(autouse=True)
def fresh_context(monkeypatch):
    monkeypatch.setattr(power_context, "_CONTEXT", None)
    init()
    yield


def test_init_is_idempotent():
    first = context()
    init()
    assert context() is first


def test_context_before_init_raises(monkeypatch):
    monkeypatch.setattr(power_context, "_CONTEXT", None)
    with pytest.raises(RuntimeError):
        context()


def test_new_context_has_empty_lists():
    ctx = context()
    assert list(ctx.devices) == []
    assert list(ctx.chargers) == []


def test_complete_or_err_on_complete():
    assert ResponseData.COMPLETE.complete_or_err() is None


def test_request_equality():
    cap = PowerCapability(5000, 1500)
    assert Request(1, NotifyConsumerCapability(cap)) == Request(
        1, NotifyConsumerCapability(cap)
    )
    assert Request(1, NotifyAttached()) != Request(1, NotifyDetached())
    assert NotifyDisconnect() == NotifyDisconnect()


async def _respond(response):
    ctx = context()
    request = await ctx.policy_request.receive()
    await ctx.policy_response.send(response)
    return request


@pytest.mark.asyncio
async def test_send_request_round_trip():
    task = asyncio.create_task(_respond(ResponseData.COMPLETE))
    result = await send_request(3, NotifyAttached())
    request = await task
    assert result is ResponseData.COMPLETE
    assert request == Request(3, NotifyAttached())


@pytest.mark.asyncio
async def test_send_request_carries_capability():
    cap = PowerCapability(20000, 3000)
    task = asyncio.create_task(_respond(ResponseData.COMPLETE))
    await send_request(7, RequestProviderCapability(cap))
    request = await task
    assert request.device_id == 7
    assert request.data.capability == cap


@pytest.mark.asyncio
async def test_send_request_raises_error_response():
    task = asyncio.create_task(_respond(InvalidDeviceError()))
    with pytest.raises(InvalidDeviceError):
        await send_request(2, NotifyDetached())
    request = await task
    assert request == Request(2, NotifyDetached())


@pytest.mark.asyncio
async def test_error_response_keeps_payload():
    cap = PowerCapability(5000, 500)
    task = asyncio.create_task(_respond(CannotProvideError(cap)))
    with pytest.raises(CannotProvideError) as info:
        await send_request(1, RequestProviderCapability(cap))
    await task
    assert info.value.capability == cap


@pytest.mark.asyncio
async def test_request_channel_holds_one_item():
    ctx = context()
    first = Request(1, NotifyAttached())
    second = Request(2, NotifyAttached())
    await ctx.policy_request.send(first)
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(ctx.policy_request.send(second), 0.05)
    assert await ctx.policy_request.receive() == first
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(ctx.policy_request.receive(), 0.05)


@pytest.mark.asyncio
async def test_blocked_sender_resumes_after_receive():
    ctx = context()
    requests = [Request(n, NotifyDisconnect()) for n in range(3)]

    async def sender():
        for request in requests:
            await ctx.policy_request.send(request)

    task = asyncio.create_task(sender())
    received = [await ctx.policy_request.receive() for _ in requests]
    await task
    assert received == requests