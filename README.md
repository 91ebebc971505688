# ecservices

Building blocks for embedded-controller style services, written for `asyncio`:

- `ecservices.intrusive_list` – an append-only registration list. An object that
  implements `NodeContainer.get_node()` can be pushed once; a second push, to any
  list, raises `NodeAlreadyInListError`. Iterating an `IntrusiveList` yields nodes,
  newest first, and `Node.data(kind)` returns the owner if it is a `kind`.
- `ecservices.power_policy` – `PowerCapability` (voltage in mV, current in mA,
  ordered by `max_power_mw()`), `StateKind`, the comms messages
  `ConsumerConnected` / `ConsumerDisconnected` / `CommsMessage`, and the
  `PolicyError` family (`InvalidDeviceError`, `InvalidStateError`, `BusError`, ...).
- `ecservices.power_context` – the shared power policy `Context` (registered
  devices and chargers, plus a one-slot request channel and response channel),
  created by `init()` and returned by `context()`, and `send_request()`.
- `ecservices.power_device` – power devices and their state-checked actions:
  the device side (`DetachedDevice.attach()`, `IdleDevice.request_provider_power_capability(...)`,
  `ConsumerDevice.disconnect()`, ...) and the policy side
  (`IdlePolicy.connect_consumer(...)`, `ProviderPolicy.disconnect()`, ...).
- `ecservices.charger` – `ChargerDevice`, which exchanges `PolicyEvent` commands and
  responses with the policy, and the `ChargeController` interface for drivers.
- `ecservices.type_c` – USB-PD power data objects, `capability_from_pdo()`,
  `capability_from_current()`, `sink_contract()` / `source_contract()`, the
  default Type-C capabilities and the `PdError` family.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

A device talks to the power policy through the shared context. Each request goes
through one request channel and waits for one response, so a policy task must
answer each request before the next can go through.

```python
import asyncio

from ecservices import power_context
from ecservices.power_device import Device


async def main():
    power_context.init()
    ctx = power_context.context()
    device = Device(1)
    ctx.devices.push(device)

    async def policy():
        request = await ctx.policy_request.receive()
        print("policy got", request)
        await ctx.policy_response.send(power_context.ResponseData.COMPLETE)

    task = asyncio.create_task(policy())
    detached = await device.device_action()
    await detached.attach()
    await task
    print(await device.state())  # State(kind=StateKind.IDLE, capability=None)


asyncio.run(main())
```

Failures are raised as exceptions. A `PolicyError` sent back as a response is
raised by `send_request()` and `Device.execute_device_request()`; a
`ChargerError` sent back to a charger command is raised by
`ChargerDevice.execute_command()`, and `ChargerError.to_policy_error()` maps it
to `BusError` or `FailedError`.

Converting a power data object to a capability:

```python
from ecservices.type_c import SourceFixedPdo, SprAvsApdo, capability_from_pdo, sink_contract
from ecservices.power_policy import PowerCapability

assert capability_from_pdo(SourceFixedPdo(5000, 3000)) == PowerCapability(5000, 3000)
assert capability_from_pdo(SprAvsApdo(3000, 2250)) == PowerCapability(20000, 2250)
print(sink_contract(SprAvsApdo(3000, 2250)))

cap = PowerCapability(voltage_mv=5000, current_ma=3000)
assert cap.max_power_mw() == 15000
```

## What this package does not do

- There are no helpers that register devices or chargers by ID and reject
  duplicates, and no single policy-side handle: a policy implementation works
  with `power_context.context()` and the `Device` methods directly.
- There is no per-port event tracking and no PD controller command routing,
  port status queries or timeouts; `ecservices.type_c` covers only the data
  types and power conversions.
- It talks to no hardware and provides no command-line program.