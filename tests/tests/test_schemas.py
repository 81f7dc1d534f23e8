#!/usr/bin/env python3
"""Meross IoT - Test the schemas (of the gateway config, and of device info)."""

import pytest
import voluptuous as vol

from meross_iot.const import Namespace
from meross_iot.schemas import SCH_DEVICE_INFO, SCH_GATEWAY_CONFIG, SCH_SUBDEVICE_INFO
from meross_tx.schemas import SCH_MESSAGE_LOG


def test_gateway_config_defaults() -> None:
    assert SCH_GATEWAY_CONFIG({}) == {
        "cache_max_age": {"garage_door": 5.0},
        "log_unregistered_subdevices": True,
        "push_inactivity_timeout": 60.0,
        "validate_state": True,
    }


def test_gateway_config() -> None:
    config = SCH_GATEWAY_CONFIG(
        {
            "cache_max_age": {"toggle": 2, "light": "1.5"},
            "push_inactivity_timeout": 30,
            "log_unregistered_subdevices": False,
            "enable_eavesdrop": True,  # not a config option
        }
    )

    assert config["cache_max_age"] == {"garage_door": 5.0, "toggle": 2.0, "light": 1.5}
    assert config["push_inactivity_timeout"] == 30.0
    assert config["log_unregistered_subdevices"] is False
    assert "enable_eavesdrop" not in config

    config = SCH_GATEWAY_CONFIG({"cache_max_age": {"garage_door": 0}})
    assert config["cache_max_age"] == {"garage_door": 0.0}


@pytest.mark.parametrize(
    "config",
    [
        {"cache_max_age": {"fridge": 5}},
        {"cache_max_age": {"toggle": -1}},
        {"cache_max_age": 5},
        {"push_inactivity_timeout": "soon"},
        {"validate_state": "yes"},
    ],
)
def test_gateway_config_invalid(config: dict) -> None:
    with pytest.raises(vol.Invalid):
        SCH_GATEWAY_CONFIG(config)


def test_device_info() -> None:
    camel = SCH_DEVICE_INFO(
        {
            "uuid": "abc",
            "devName": "Lamp",
            "deviceType": "MSL120",
            "onlineStatus": 1,
            "abilities": [Namespace.CONTROL_LIGHT, Namespace.CONTROL_TOGGLEX],
            "region": "eu",
        }
    )
    snake = SCH_DEVICE_INFO(
        {
            "uuid": "abc",
            "dev_name": "Lamp",
            "device_type": "msl120",
            "online_status": 1,
            "abilities": {Namespace.CONTROL_LIGHT: {}, Namespace.CONTROL_TOGGLEX: {}},
            "region": "eu",
        }
    )

    assert camel == snake
    assert camel["device_type"] == "msl120"
    assert camel["abilities"] == {
        Namespace.CONTROL_LIGHT: {},
        Namespace.CONTROL_TOGGLEX: {},
    }
    assert camel["subdevices"] == []
    assert camel["region"] == "eu"  # extra keys are kept


def test_device_info_defaults() -> None:
    info = SCH_DEVICE_INFO({"uuid": "abc"})

    assert info["dev_name"] is None
    assert info["device_type"] is None
    assert info["online_status"] == -1
    assert info["abilities"] == {}


@pytest.mark.parametrize(
    "info",
    [
        {},
        {"uuid": ""},
        {"uuid": 123},
        {"uuid": "abc", "abilities": {"Control.Toggle": {}}},
        {"uuid": "abc", "subdevices": [{"type": "ms100"}]},
        "abc",
    ],
)
def test_device_info_invalid(info: dict) -> None:
    with pytest.raises(vol.Invalid):
        SCH_DEVICE_INFO(info)


@pytest.mark.parametrize(
    "info",
    [
        {"id": "01", "type": "MS100", "name": "Lounge"},
        {"subId": "01", "type": "ms100", "name": "Lounge"},
        {"subDeviceId": "01", "subDeviceType": "ms100", "subDeviceName": "Lounge"},
        {"subdevice_id": "01", "subdevice_type": "ms100", "subdevice_name": "Lounge"},
    ],
)
def test_subdevice_info(info: dict) -> None:
    result = SCH_SUBDEVICE_INFO(info)

    assert result["subdevice_id"] == "01"
    assert result["subdevice_type"] == "ms100"
    assert result["subdevice_name"] == "Lounge"


def test_subdevice_info_coerced() -> None:
    assert SCH_SUBDEVICE_INFO({"id": 1, "type": "MS100"}) == {
        "subdevice_id": "1",
        "subdevice_type": "ms100",
        "subdevice_name": None,
    }

    with pytest.raises(vol.Invalid):
        SCH_SUBDEVICE_INFO({"id": ""})


def test_message_log_config() -> None:
    assert SCH_MESSAGE_LOG(None) == {
        "cc_console": False,
        "file_name": None,
        "rotate_backups": 0,
        "rotate_bytes": None,
    }
    assert SCH_MESSAGE_LOG("messages.log")["file_name"] == "messages.log"
    assert SCH_MESSAGE_LOG({"file_name": "messages.log", "rotate_backups": 7}) == {
        "cc_console": False,
        "file_name": "messages.log",
        "rotate_backups": 7,
        "rotate_bytes": None,
    }

    with pytest.raises(vol.Invalid):
        SCH_MESSAGE_LOG({"file_name": "messages.log", "rotate_hourly": True})
    with pytest.raises(vol.Invalid):
        SCH_MESSAGE_LOG({"rotate_backups": -1})
