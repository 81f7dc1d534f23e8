#!/usr/bin/env python3
"""Meross IoT - Test the decoding/validation of message envelopes."""

import json
from datetime import datetime as dt

import pytest

from meross_tx import Message, Method, Namespace
from meross_tx.exceptions import MessageHeaderInvalid, MessageInvalid
from meross_tx.notifications import ToggleXNotification

from .helpers import DEVICE_UUID, HUB_UUID, push

TOGGLEX_PAYLOAD = {"togglex": {"channel": 1, "onoff": 1, "lmTime": 1700000000}}


def test_from_dict() -> None:
    msg = Message.from_dict(push(Namespace.CONTROL_TOGGLEX, TOGGLEX_PAYLOAD, DEVICE_UUID))

    assert msg.namespace == Namespace.CONTROL_TOGGLEX
    assert msg.method == Method.PUSH
    assert msg.is_push and not msg.is_error
    assert msg.payload == TOGGLEX_PAYLOAD
    assert msg.dtm == dt.fromtimestamp(1700000000)

    assert msg.is_from(DEVICE_UUID)
    assert not msg.is_from(HUB_UUID)


def test_from_json() -> None:
    msg_json = json.dumps(push(Namespace.CONTROL_TOGGLEX, TOGGLEX_PAYLOAD, DEVICE_UUID))

    assert Message.from_json(msg_json).payload == TOGGLEX_PAYLOAD
    assert Message.from_json(msg_json.encode()).payload == TOGGLEX_PAYLOAD


def test_method_is_case_insensitive() -> None:
    msg_dict = push(Namespace.CONTROL_TOGGLEX, TOGGLEX_PAYLOAD, DEVICE_UUID)
    msg_dict["header"]["method"] = "push"

    assert Message.from_dict(msg_dict).method == Method.PUSH


def test_message_without_src() -> None:
    msg_dict = push(Namespace.CONTROL_TOGGLEX, TOGGLEX_PAYLOAD, DEVICE_UUID)
    del msg_dict["header"]["from"]

    msg = Message.from_dict(msg_dict)
    assert msg.src == ""
    assert msg.is_from(DEVICE_UUID)  # if no src, assume it is from the device


def test_notification() -> None:
    msg = Message.from_dict(push(Namespace.CONTROL_TOGGLEX, TOGGLEX_PAYLOAD, DEVICE_UUID))

    notification = msg.notification(DEVICE_UUID)
    assert isinstance(notification, ToggleXNotification)
    assert msg.notification(DEVICE_UUID) is notification  # is decoded only once

    msg_dict = push(Namespace.CONTROL_TOGGLEX, TOGGLEX_PAYLOAD, DEVICE_UUID)
    msg_dict["header"]["method"] = "SETACK"
    assert Message.from_dict(msg_dict).notification(DEVICE_UUID) is None


@pytest.mark.parametrize(
    "header",
    [
        {"namespace": "Control.ToggleX", "method": "PUSH", "messageId": "x"},
        {"namespace": "Appliance.Control.ToggleX", "method": "POKE", "messageId": "x"},
        {"namespace": "Appliance.Control.ToggleX", "method": "PUSH", "messageId": ""},
        {"namespace": "Appliance.Control.ToggleX", "method": "PUSH"},
        "header",
    ],
)
def test_invalid_header(header: object) -> None:
    with pytest.raises(MessageHeaderInvalid):
        Message.from_dict({"header": header, "payload": {}})


def test_invalid_message() -> None:
    with pytest.raises(MessageHeaderInvalid):
        Message.from_dict({"payload": {}})

    with pytest.raises(MessageInvalid):
        Message.from_dict(["header", "payload"])

    msg_dict = push(Namespace.CONTROL_TOGGLEX, TOGGLEX_PAYLOAD, DEVICE_UUID)
    msg_dict["payload"] = "togglex"
    with pytest.raises(MessageInvalid):
        Message.from_dict(msg_dict)

    with pytest.raises(MessageInvalid):
        Message.from_json("{'header': None")
