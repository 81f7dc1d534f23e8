#!/usr/bin/env python3
"""Meross IoT - namespaces, methods and other protocol constants."""

from __future__ import annotations

from enum import EnumCheck, IntEnum, StrEnum, verify
from typing import Final

__dev_mode__ = False  # NOTE: this is const.py


@verify(EnumCheck.UNIQUE)
class Method(StrEnum):
    GET = "GET"
    SET = "SET"
    PUSH = "PUSH"
    GETACK = "GETACK"
    SETACK = "SETACK"
    DELETE = "DELETE"
    DELETEACK = "DELETEACK"
    ERROR = "ERROR"


@verify(EnumCheck.UNIQUE)
class Namespace(StrEnum):
    #
    # System namespaces (all devices)
    SYSTEM_ALL = "Appliance.System.All"
    SYSTEM_ABILITY = "Appliance.System.Ability"
    SYSTEM_ONLINE = "Appliance.System.Online"
    SYSTEM_HARDWARE = "Appliance.System.Hardware"
    SYSTEM_FIRMWARE = "Appliance.System.Firmware"
    SYSTEM_TIME = "Appliance.System.Time"
    SYSTEM_REPORT = "Appliance.System.Report"
    SYSTEM_DEBUG = "Appliance.System.Debug"
    SYSTEM_RUNTIME = "Appliance.System.Runtime"
    SYSTEM_DND_MODE = "Appliance.System.DNDMode"
    #
    # Control namespaces (standalone devices)
    CONTROL_BIND = "Appliance.Control.Bind"
    CONTROL_UNBIND = "Appliance.Control.Unbind"
    CONTROL_ALARM = "Appliance.Control.Alarm"
    CONTROL_TOGGLE = "Appliance.Control.Toggle"
    CONTROL_TOGGLEX = "Appliance.Control.ToggleX"
    CONTROL_TIMERX = "Appliance.Control.TimerX"
    CONTROL_TRIGGERX = "Appliance.Control.TriggerX"
    CONTROL_LIGHT = "Appliance.Control.Light"
    CONTROL_SPRAY = "Appliance.Control.Spray"
    CONTROL_DIFFUSER_LIGHT = "Appliance.Control.Diffuser.Light"
    CONTROL_DIFFUSER_SPRAY = "Appliance.Control.Diffuser.Spray"
    CONTROL_THERMOSTAT_MODE = "Appliance.Control.Thermostat.Mode"
    CONTROL_SENSOR_LATESTX = "Appliance.Control.Sensor.LatestX"
    CONTROL_PRESENCE_STUDY = "Appliance.Control.Presence.Study"
    DIGEST_TIMERX = "Appliance.Digest.TimerX"
    DIGEST_TRIGGERX = "Appliance.Digest.TriggerX"
    #
    # Cover namespaces
    GARAGE_DOOR_STATE = "Appliance.GarageDoor.State"
    GARAGE_DOOR_CONFIG = "Appliance.GarageDoor.Config"
    GARAGE_DOOR_MULTIPLE_CONFIG = "Appliance.GarageDoor.MultipleConfig"
    ROLLER_SHUTTER_STATE = "Appliance.RollerShutter.State"
    ROLLER_SHUTTER_POSITION = "Appliance.RollerShutter.Position"
    #
    # Hub namespaces (hubs, and their subdevices)
    HUB_ONLINE = "Appliance.Hub.Online"
    HUB_TOGGLEX = "Appliance.Hub.ToggleX"
    HUB_BATTERY = "Appliance.Hub.Battery"
    HUB_EXCEPTION = "Appliance.Hub.Exception"
    HUB_SUBDEVICE_LIST = "Appliance.Hub.SubdeviceList"
    HUB_SENSOR_ALL = "Appliance.Hub.Sensor.All"
    HUB_SENSOR_TEMP_HUM = "Appliance.Hub.Sensor.TempHum"
    HUB_SENSOR_ALERT = "Appliance.Hub.Sensor.Alert"
    HUB_SENSOR_SMOKE = "Appliance.Hub.Sensor.Smoke"
    HUB_SENSOR_WATER_LEAK = "Appliance.Hub.Sensor.WaterLeak"
    HUB_MTS100_ALL = "Appliance.Hub.Mts100.All"
    HUB_MTS100_MODE = "Appliance.Hub.Mts100.Mode"
    HUB_MTS100_TEMPERATURE = "Appliance.Hub.Mts100.Temperature"
    HUB_MTS100_ADJUST = "Appliance.Hub.Mts100.Adjust"


class OnlineStatus(IntEnum):
    NOT_ONLINE = 0
    ONLINE = 1
    OFFLINE = 2
    UPGRADING = 3
    UNKNOWN = -1

    @classmethod
    def _missing_(cls, value: object) -> OnlineStatus:
        return cls.UNKNOWN


class SmokeAlarmStatus(IntEnum):
    NORMAL = 23
    MUTE_TEMPERATURE_ALARM = 26
    MUTE_SMOKE_ALARM = 27
    INTERCONNECTION_STATUS = 170


class PresenceState(IntEnum):
    ABSENCE = 1
    PRESENCE = 2


# The ability that marks a device as a hub (i.e. has subdevices)
HUB_DISCRIMINATING_ABILITY: Final = Namespace.HUB_SUBDEVICE_LIST

# Hub notifications carry their per-subdevice items under these keys
HUB_NAMESPACE_DATA_KEYS: Final[dict[str, str]] = {
    Namespace.HUB_ONLINE: "online",
    Namespace.HUB_TOGGLEX: "togglex",
    Namespace.HUB_BATTERY: "battery",
    Namespace.HUB_SENSOR_ALL: "all",
    Namespace.HUB_SENSOR_TEMP_HUM: "tempHum",
    Namespace.HUB_SENSOR_ALERT: "alert",
    Namespace.HUB_SENSOR_SMOKE: "smokeAlarm",
    Namespace.HUB_SENSOR_WATER_LEAK: "waterLeak",
    Namespace.HUB_MTS100_ALL: "all",
    Namespace.HUB_MTS100_MODE: "mode",
    Namespace.HUB_MTS100_TEMPERATURE: "temperature",
    Namespace.HUB_SUBDEVICE_LIST: "subdeviceList",
    Namespace.CONTROL_SENSOR_LATESTX: "latest",
}

# Sentinel battery values reported by subdevices that can't measure it
BATTERY_UNKNOWN_VALUES: Final = (0xFFFFFFFF, -1)

#
# Header keys
SZ_HEADER: Final = "header"
SZ_PAYLOAD: Final = "payload"
SZ_NAMESPACE: Final = "namespace"
SZ_METHOD: Final = "method"
SZ_MESSAGE_ID: Final = "messageId"
SZ_FROM: Final = "from"
SZ_TIMESTAMP: Final = "timestamp"
SZ_PAYLOAD_VERSION: Final = "payloadVersion"

#
# Payload keys (as sent by devices, i.e. camelCase)
SZ_ALL: Final = "all"
SZ_ABILITY: Final = "ability"
SZ_ALARM: Final = "alarm"
SZ_BIND: Final = "bind"
SZ_CHANNEL: Final = "channel"
SZ_CONFIG: Final = "config"
SZ_DATA: Final = "data"
SZ_DIGEST: Final = "digest"
SZ_EVENT: Final = "event"
SZ_FIRMWARE: Final = "firmware"
SZ_HARDWARE: Final = "hardware"
SZ_ID: Final = "id"
SZ_INTER_CONN: Final = "interConn"
SZ_LATEST: Final = "latest"
SZ_LIGHT: Final = "light"
SZ_MODE: Final = "mode"
SZ_ONLINE: Final = "online"
SZ_ONOFF: Final = "onoff"
SZ_POSITION: Final = "position"
SZ_SOURCE: Final = "source"
SZ_SPRAY: Final = "spray"
SZ_STATE: Final = "state"
SZ_STATUS: Final = "status"
SZ_STUDY: Final = "study"
SZ_SUB_ID: Final = "subId"
SZ_SUBDEVICE: Final = "subdevice"
SZ_SUBDEVICE_LIST: Final = "subdeviceList"
SZ_SYSTEM: Final = "system"
SZ_TIME: Final = "time"
SZ_TIMERX: Final = "timerx"
SZ_TOGGLE: Final = "toggle"
SZ_TOGGLEX: Final = "togglex"
SZ_TRIGGERX: Final = "triggerx"
SZ_VALUE: Final = "value"
#
# Payload keys of the System.All digest, and of subdevice items
SZ_ADJUST: Final = "adjust"
SZ_BATTERY: Final = "battery"
SZ_DIFFUSER: Final = "diffuser"
SZ_GARAGE_DOOR: Final = "garageDoor"
SZ_HUMIDITY: Final = "humidity"
SZ_OPEN: Final = "open"
SZ_ROLLER_SHUTTER: Final = "rollerShutter"
SZ_SMOKE_ALARM: Final = "smokeAlarm"
SZ_TEMPERATURE: Final = "temperature"
SZ_THERMOSTAT: Final = "thermostat"
SZ_UUID: Final = "uuid"
SZ_WATER_LEAK: Final = "waterLeak"
