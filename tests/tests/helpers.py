#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client."""

import copy
from typing import Any

from meross_iot.const import Method, Namespace

DEVICE_UUID = "2112190736491290843748e1e9100cf1"  # a 4-channel power strip
HUB_UUID = "2005149712485890834148e1e9288aa7"
GARAGE_UUID = "1912271614175351084548e1e91ab5c2"

PLUG_INFO = {
    "uuid": DEVICE_UUID,
    "devName": "Power strip",
    "deviceType": "mss425e",
    "onlineStatus": 1,
    "abilities": {
        Namespace.SYSTEM_ALL: {},
        Namespace.SYSTEM_ONLINE: {},
        Namespace.CONTROL_BIND: {},
        Namespace.CONTROL_TOGGLEX: {},
        Namespace.CONTROL_TIMERX: {"sumMaxNum": 64},
        Namespace.CONTROL_TRIGGERX: {},
        Namespace.DIGEST_TIMERX: {},
    },
}

HUB_INFO = {
    "uuid": HUB_UUID,
    "devName": "Smart hub",
    "deviceType": "msh300",
    "onlineStatus": 1,
    "abilities": {
        Namespace.SYSTEM_ALL: {},
        Namespace.SYSTEM_ONLINE: {},
        Namespace.HUB_SUBDEVICE_LIST: {},
        Namespace.HUB_ONLINE: {},
        Namespace.HUB_BATTERY: {},
        Namespace.HUB_TOGGLEX: {},
        Namespace.HUB_EXCEPTION: {},
        Namespace.HUB_SENSOR_ALL: {},
        Namespace.HUB_SENSOR_TEMP_HUM: {},
        Namespace.HUB_SENSOR_SMOKE: {},
        Namespace.HUB_SENSOR_WATER_LEAK: {},
        Namespace.HUB_MTS100_ALL: {},
        Namespace.HUB_MTS100_MODE: {},
        Namespace.HUB_MTS100_TEMPERATURE: {},
        Namespace.HUB_MTS100_ADJUST: {},
        Namespace.CONTROL_SENSOR_LATESTX: {},
    },
    "subdevices": [
        {"subDeviceId": "01", "subDeviceType": "ms100", "subDeviceName": "Lounge"},
        {"subDeviceId": "02", "subDeviceType": "mts100v3", "subDeviceName": "Radiator"},
        {"subDeviceId": "03", "subDeviceType": "ms400"},
        {"subDeviceId": "04", "subDeviceType": "ma151"},
    ],
}

GARAGE_INFO = {
    "uuid": GARAGE_UUID,
    "devName": "Garage",
    "deviceType": "msg100",
    "onlineStatus": 1,
    "abilities": {
        Namespace.SYSTEM_ALL: {},
        Namespace.GARAGE_DOOR_STATE: {},
        Namespace.GARAGE_DOOR_MULTIPLE_CONFIG: {},
        Namespace.GARAGE_DOOR_CONFIG: {},
    },
}


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Stands in for the MQTT transport: records each command, and replies to it.

    Replies are scripted per namespace (and optionally per method): a reply may be a
    payload, an exception (to raise), or a callable of the command's payload.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Method, str, Any]] = []
        self._replies: dict[tuple[Method | None, str], Any] = {}

    def reply(self, namespace: str, reply: Any, method: Method | None = None) -> None:
        self._replies[(method, namespace)] = reply

    async def fetch(
        self, device_uuid: str, method: Method, namespace: str, payload: Any
    ) -> Any:
        self.calls.append((device_uuid, method, namespace, copy.deepcopy(payload)))

        reply = self._replies.get(
            (method, namespace), self._replies.get((None, namespace), {})
        )
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(payload)
        return copy.deepcopy(reply)

    def calls_to(self, namespace: str) -> list[tuple[str, Method, str, Any]]:
        return [c for c in self.calls if c[2] == namespace]


def push(namespace: str, payload: Any, src: str, message_id: str = "0" * 32) -> dict:
    """Return a PUSH message (as a dict), as received via MQTT."""

    return {
        "header": {
            "namespace": namespace,
            "method": "PUSH",
            "messageId": message_id,
            "from": f"/appliance/{src}/publish",
            "timestamp": 1700000000,
            "payloadVersion": 1,
        },
        "payload": payload,
    }


def error_reply(namespace: str, payload: Any | None = None) -> dict:
    """Return an ERROR reply (as a dict), as returned by the transport."""

    return {
        "header": {"namespace": namespace, "method": "ERROR", "messageId": "1" * 32},
        "payload": payload or {"error": {"code": 5000}},
    }
