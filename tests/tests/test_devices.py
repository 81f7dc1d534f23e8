#!/usr/bin/env python3
"""Meross IoT - Test devices: their creation, and the processing of their messages."""

import logging

import pytest

from meross_iot import Gateway, Message, StateChange
from meross_iot.const import (
    CacheState,
    FeatureKind,
    Method,
    Namespace,
    OnlineStatus,
    Source,
)
from meross_iot.device import Device, HubDevice, device_factory
from meross_iot.exceptions import CommandError

from .helpers import (
    DEVICE_UUID,
    GARAGE_UUID,
    PLUG_INFO,
    FakeClock,
    FakeTransport,
    error_reply,
    push,
)

SYSTEM_ALL_REPLY = {
    "all": {
        "system": {
            "hardware": {
                "type": "mss425e",
                "version": "2.0.0",
                "uuid": DEVICE_UUID,
                "macAddress": "48:e1:e9:10:0c:f1",
            },
            "firmware": {"version": "2.1.4", "innerIp": "192.168.1.2"},
            "online": {"status": 1},
        },
        "digest": {
            "togglex": [
                {"channel": 0, "onoff": 1, "lmTime": 1700000000},
                {"channel": 1, "onoff": 0, "lmTime": 1700000000},
            ],
            "timerx": [{"id": "abc", "channel": 0, "enable": 1}],
            "triggerx": [],
        },
    }
}


def test_device_factory(gwy: Gateway) -> None:
    device = device_factory(gwy, PLUG_INFO)

    assert type(device) is Device
    assert device.id == DEVICE_UUID
    assert device.name == "Power strip"
    assert device.device_type == "mss425e"
    assert device.online_status == OnlineStatus.ONLINE
    assert device.has_ability(Namespace.CONTROL_TOGGLEX)
    assert str(device) == f"{DEVICE_UUID} (device)"


def test_device_factory_snake_case(gwy: Gateway) -> None:
    info = {
        "uuid": DEVICE_UUID,
        "dev_name": "Power strip",
        "device_type": "MSS425E",
        "abilities": [Namespace.CONTROL_TOGGLEX],  # a list will do
    }
    device = device_factory(gwy, info)

    assert device.name == "Power strip"
    assert device.device_type == "mss425e"
    assert device.online_status == OnlineStatus.UNKNOWN
    assert device.abilities == {Namespace.CONTROL_TOGGLEX: {}}


def test_device_factory_not_a_hub(
    gwy: Gateway, caplog: pytest.LogCaptureFixture
) -> None:
    info = PLUG_INFO | {"subdevices": [{"subDeviceId": "01", "subDeviceType": "ms100"}]}

    with caplog.at_level(logging.WARNING):
        device = device_factory(gwy, info)

    assert not isinstance(device, HubDevice)
    assert "is not a hub" in caplog.text


def test_add_device(gwy: Gateway, plug: Device) -> None:
    assert gwy.add_device(PLUG_INFO) is plug
    assert gwy.devices == [plug]
    assert gwy.get_device(DEVICE_UUID) is plug
    assert gwy.get_device(GARAGE_UUID) is None


async def test_togglex_push(gwy: Gateway, plug: Device) -> None:
    events: list[StateChange] = []
    gwy.add_listener(events.append)

    payload = {"togglex": {"channel": 1, "onoff": 1, "lmTime": 1700000000}}
    notification = await gwy.on_message(Namespace.CONTROL_TOGGLEX, payload, DEVICE_UUID)

    assert notification is not None
    assert plug.is_on(1) is True
    assert plug.is_on(0) is None

    assert len(events) == 1
    assert events[0]["type"] == FeatureKind.TOGGLE
    assert events[0]["scope_id"] == DEVICE_UUID
    assert events[0]["channel"] == 1
    assert events[0]["source"] == Source.PUSH

    await gwy.on_message(Namespace.CONTROL_TOGGLEX, payload, DEVICE_UUID)
    assert len(events) == 1  # no change, so no event


async def test_handle_message(gwy: Gateway, plug: Device) -> None:
    payload = {"togglex": [{"channel": 0, "onoff": 1}]}

    msg = Message.from_dict(push(Namespace.CONTROL_TOGGLEX, payload, "someone-else"))
    await gwy.handle_message(msg)
    assert plug.is_on(0) is None

    msg = Message.from_dict(push(Namespace.CONTROL_TOGGLEX, payload, DEVICE_UUID))
    await gwy.handle_message(msg)
    assert plug.is_on(0) is True

    msg = Message.from_dict(push(Namespace.CONTROL_TOGGLEX, payload, "someone-else"))
    await plug.handle_message(msg)  # the device checks the src, too
    assert plug.is_on(0) is True


async def test_system_all_push(gwy: Gateway, plug: Device, clock: FakeClock) -> None:
    events: list[StateChange] = []
    gwy.add_listener(events.append)

    assert plug.last_full_update is None

    result = await gwy.on_message(Namespace.SYSTEM_ALL, SYSTEM_ALL_REPLY, DEVICE_UUID)

    assert result is None
    assert plug.last_full_update == clock()
    assert plug.is_on(0) is True and plug.is_on(1) is False
    assert {e["source"] for e in events} == {Source.POLL}


async def test_refresh_state(plug: Device, transport: FakeTransport) -> None:
    transport.reply(Namespace.SYSTEM_ALL, SYSTEM_ALL_REPLY)

    await plug.refresh_state()

    assert transport.calls == [(DEVICE_UUID, Method.GET, Namespace.SYSTEM_ALL, {})]

    assert plug.hardware.mac_address == "48:e1:e9:10:0c:f1"
    assert plug.firmware.version == "2.1.4"
    assert plug.is_on(0) is True
    assert plug.is_on(1) is False
    assert plug.timers(0) == [{"id": "abc", "channel": 0, "enable": 1}]
    assert plug.cache.peek(0, FeatureKind.TOGGLE).source == Source.POLL


async def test_refresh_state_invalid_reply(
    plug: Device, transport: FakeTransport
) -> None:
    transport.reply(Namespace.SYSTEM_ALL, {"system": {}})

    with pytest.raises(CommandError):
        await plug.refresh_state()
    assert plug.last_full_update is None


async def test_system_all_abilities(plug: Device) -> None:
    abilities = {Namespace.CONTROL_TOGGLEX: {}, Namespace.CONTROL_LIGHT: {}}
    plug._handle_system_all(SYSTEM_ALL_REPLY | {"ability": abilities}, Source.POLL)

    assert plug.abilities == abilities


async def test_online_status(gwy: Gateway, plug: Device) -> None:
    await gwy.on_message(
        Namespace.CONTROL_TOGGLEX, {"togglex": {"channel": 0, "onoff": 1}}, DEVICE_UUID
    )
    assert plug.cache_state(0, FeatureKind.TOGGLE) == CacheState.FRESH

    await gwy.on_message(Namespace.SYSTEM_ONLINE, {"online": {"status": 2}}, DEVICE_UUID)

    assert plug.online_status == OnlineStatus.OFFLINE
    assert not plug.is_online
    assert plug.cache_state(0, FeatureKind.TOGGLE) == CacheState.STALE
    assert plug.is_on(0) is True  # the last known value is kept

    await gwy.on_message(Namespace.SYSTEM_ONLINE, {"online": {"status": 9}}, DEVICE_UUID)
    assert plug.online_status == OnlineStatus.UNKNOWN


async def test_bind_push(gwy: Gateway, plug: Device) -> None:
    payload = {
        "bind": {
            "hardware": {"type": "mss425e", "macAddress": "48:e1:e9:10:0c:f1"},
            "firmware": {"version": "2.1.5"},
        }
    }
    await gwy.on_message(Namespace.CONTROL_BIND, payload, DEVICE_UUID)

    assert plug.hardware.mac_address == "48:e1:e9:10:0c:f1"
    assert plug.firmware.version == "2.1.5"


async def test_is_push_active(gwy: Gateway, plug: Device, clock: FakeClock) -> None:
    assert not plug.is_push_active

    await gwy.on_message(
        Namespace.CONTROL_TOGGLEX, {"togglex": {"channel": 0, "onoff": 1}}, DEVICE_UUID
    )
    assert plug.is_push_active

    clock.advance(60)
    assert not plug.is_push_active


async def test_command_error(plug: Device, transport: FakeTransport) -> None:
    transport.reply(Namespace.CONTROL_TOGGLEX, error_reply(Namespace.CONTROL_TOGGLEX))

    with pytest.raises(CommandError) as exc_info:
        await plug.turn_on(1)

    assert exc_info.value.error_payload == {"error": {"code": 5000}}
    assert exc_info.value.device_uuid == DEVICE_UUID
    assert plug.is_on(1) is None  # the cache is unchanged


async def test_validate_state(
    transport: FakeTransport, clock: FakeClock, caplog: pytest.LogCaptureFixture
) -> None:
    gwy = Gateway(transport.fetch, clock=clock)  # validate_state is True by default
    plug = gwy.add_device(PLUG_INFO)

    with caplog.at_level(logging.WARNING):
        plug.is_on(0)
        plug.is_on(1)

    assert caplog.text.count("before the first full refresh") == 1  # warns only once
