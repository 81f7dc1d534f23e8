#!/usr/bin/env python3
"""Meross IoT - Test the various helper APIs."""

import logging
from pathlib import Path

import pytest

from meross_iot import exceptions as exc
from meross_iot.helpers import (
    int_to_rgb,
    raise_for_error,
    rgb_to_int,
    schedule_task,
    shallow_merge,
    validate_required,
)
from meross_tx import MSG_LOGGER, set_message_logging_config
from meross_tx.logger import set_logging

from .helpers import error_reply


def test_shallow_merge() -> None:
    old = {"isOn": True, "rgb": (255, 0, 0), "extra": {"a": 1}}

    assert shallow_merge(old, {"rgb": (0, 0, 255), "extra": {"b": 2}}) == {
        "isOn": True,
        "rgb": (0, 0, 255),
        "extra": {"b": 2},  # not a deep merge
    }
    assert old["rgb"] == (255, 0, 0)
    assert shallow_merge(None, {"isOn": False}) == {"isOn": False}


def test_validate_required() -> None:
    validate_required({"onoff": 0, "channel": 1}, ("onoff",))

    with pytest.raises(exc.ValidationError, match="onoff"):
        validate_required({"onoff": None}, ("onoff",))

    with pytest.raises(exc.ValidationError, match="position, channel"):
        validate_required({}, ("position", "channel"))


def test_rgb() -> None:
    assert int_to_rgb(0xFF8000) == (255, 128, 0)
    assert rgb_to_int((255, 128, 0)) == 0xFF8000
    assert rgb_to_int([0, 0, 1]) == 1
    assert rgb_to_int(0x00FF00) == 0x00FF00


def test_raise_for_error() -> None:
    payload = {"togglex": {"channel": 0, "onoff": 1}}
    assert raise_for_error(payload) == payload  # only a payload
    assert raise_for_error(None) is None

    reply = {"header": {"namespace": "Appliance.Control.ToggleX", "method": "SETACK"}}
    assert raise_for_error(reply | {"payload": payload}) == payload

    with pytest.raises(exc.CommandError) as exc_info:
        raise_for_error(error_reply("Appliance.Control.ToggleX"), device_uuid="abc")

    assert exc_info.value.error_payload == {"error": {"code": 5000}}
    assert exc_info.value.device_uuid == "abc"


def test_exception_hints() -> None:
    err = exc.SubdeviceNotRegistered("01 is not registered")

    assert str(err) == "01 is not registered (hint: refresh the hub's subdevice list)"
    assert isinstance(err, LookupError)
    assert isinstance(err, exc.MerossException)

    assert str(exc.CommandTimeoutError()) == "Hint: is the device online?"
    assert str(exc.ValidationError("missing")) == "missing"
    assert str(exc.ValidationError()) == ""

    assert issubclass(exc.PayloadInvalid, exc.MessageInvalid)
    assert issubclass(exc.MessageHeaderInvalid, exc.MessageInvalid)


async def test_schedule_task() -> None:
    results: list[int] = []

    async def append(value: int) -> None:
        results.append(value)

    await schedule_task(results.append, 1)
    await schedule_task(append, 2)
    await schedule_task(append, value=3, delay=0.001)

    assert results == [1, 2, 3]


async def test_message_logging(tmp_path: Path) -> None:
    file_name = tmp_path / "messages.log"

    try:
        logger = await set_message_logging_config(file_name=str(file_name))

        assert logger is MSG_LOGGER
        assert logger.propagate is False
        assert [type(h) for h in logger.handlers] == [logging.FileHandler]

        logger.info("a message")
        logger.info("another message", extra={"device": "abc"})
        logger.debug("is filtered out")
        logger.handlers[0].flush()

        lines = file_name.read_text().splitlines()
        assert len(lines) == 3  # incl. the initial line (the version)
        assert lines[1].endswith("a message")
        assert lines[2].endswith("another message < abc")

    finally:
        for handler in MSG_LOGGER.handlers:
            handler.close()
        set_logging(MSG_LOGGER)  # i.e. disabled

    assert MSG_LOGGER.handlers == []
    assert MSG_LOGGER.level == logging.CRITICAL
