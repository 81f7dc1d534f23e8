#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client."""

from __future__ import annotations

from enum import EnumCheck, IntEnum, IntFlag, StrEnum, verify
from typing import Final

from meross_tx.const import (  # noqa: F401, isort: skip, pylint: disable=unused-import
    HUB_DISCRIMINATING_ABILITY,
    HUB_NAMESPACE_DATA_KEYS,
    Method,
    Namespace,
    OnlineStatus,
    PresenceState,
    SmokeAlarmStatus,
)

__dev_mode__ = False  # NOTE: this is const.py


@verify(EnumCheck.UNIQUE)
class Source(StrEnum):
    """The provenance of a write to the state cache."""

    PUSH = "push"
    POLL = "poll"
    RESPONSE = "response"


@verify(EnumCheck.UNIQUE)
class FeatureKind(StrEnum):
    """The kinds of feature state that are cached (per channel)."""

    TOGGLE = "toggle"
    LIGHT = "light"
    GARAGE_DOOR = "garage_door"
    GARAGE_DOOR_CONFIG = "garage_door_config"
    ROLLER_SHUTTER = "roller_shutter"
    DIFFUSER_LIGHT = "diffuser_light"
    DIFFUSER_SPRAY = "diffuser_spray"
    SPRAY = "spray"
    THERMOSTAT_MODE = "thermostat_mode"
    PRESENCE = "presence"
    TIMER = "timer"
    TRIGGER = "trigger"
    ALARM = "alarm"
    #
    # subdevice features
    ONLINE = "online"
    BATTERY = "battery"
    TEMP_HUM = "temp_hum"
    VALVE = "valve"
    WATER_LEAK = "water_leak"
    SMOKE_ALARM = "smoke_alarm"


class LightMode(IntFlag):
    """The capacity of a light (which of its fields are valid)."""

    RGB = 1
    TEMPERATURE = 2
    LUMINANCE = 4


class DiffuserLightMode(IntEnum):
    ROTATING_COLORS = 0
    FIXED_RGB = 1
    FIXED_LUMINANCE = 2


class DiffuserSprayMode(IntEnum):
    LIGHT = 0
    STRONG = 1
    OFF = 2


class SprayMode(IntEnum):
    OFF = 0
    CONTINUOUS = 1
    INTERMITTENT = 2


class RollerShutterStatus(IntEnum):
    UNKNOWN = -1
    IDLE = 0
    OPENING = 1
    CLOSING = 2


class ThermostatMode(IntEnum):
    HEAT = 0
    COOL = 1
    ECONOMY = 2
    AUTO = 3
    MANUAL = 4


@verify(EnumCheck.UNIQUE)
class CacheState(StrEnum):
    UNINITIALIZED = "uninitialized"
    FRESH = "fresh"
    STALE = "stale"


# Only changes to these fields are observable (others are noise, e.g. timestamps)
SIGNIFICANT_FIELDS: Final[dict[str, tuple[str, ...]]] = {
    FeatureKind.TOGGLE: ("isOn",),
    FeatureKind.LIGHT: ("isOn", "rgb", "luminance", "temperature", "capacity"),
    FeatureKind.GARAGE_DOOR: ("isOpen",),
    FeatureKind.ROLLER_SHUTTER: ("state", "position"),
    FeatureKind.DIFFUSER_LIGHT: ("isOn", "mode", "rgb", "luminance"),
    FeatureKind.DIFFUSER_SPRAY: ("mode",),
    FeatureKind.SPRAY: ("mode",),
    FeatureKind.THERMOSTAT_MODE: (
        "isOn",
        "mode",
        "state",
        "currentTemperature",
        "targetTemperature",
    ),
    FeatureKind.PRESENCE: ("isPresent", "distance", "light"),
    FeatureKind.ALARM: ("value",),
    FeatureKind.ONLINE: ("status",),
    FeatureKind.BATTERY: ("battery",),
    FeatureKind.TEMP_HUM: ("temperature", "humidity", "light"),
    FeatureKind.VALVE: (
        "isOn",
        "mode",
        "isHeating",
        "isWindowOpen",
        "currentTemperature",
        "targetTemperature",
        "adjust",
    ),
    FeatureKind.WATER_LEAK: ("isLeaking",),
    FeatureKind.SMOKE_ALARM: ("status", "interConn", "isMuted"),
}

# For any other kind of feature, all fields are significant except these
NOISE_FIELDS: Final[tuple[str, ...]] = (
    "messageId",
    "timestamp",
    "lmTime",
    "syncedTime",
    "sampleTime",
    "lastUpdate",
)

DEFAULT_CACHE_MAX_AGE: Final[dict[str, float]] = {FeatureKind.GARAGE_DOOR: 5.0}
DEFAULT_PUSH_INACTIVITY_TIMEOUT: Final[float] = 60.0

# state change listeners are called with these keys
SZ_TYPE: Final = "type"
SZ_SCOPE_ID: Final = "scope_id"
SZ_CHANNEL: Final = "channel"
SZ_OLD_VALUE: Final = "old_value"
SZ_NEW_VALUE: Final = "new_value"
SZ_CHANGES: Final = "changes"
SZ_SOURCE: Final = "source"
SZ_TIMESTAMP: Final = "timestamp"

# device info keys
SZ_ABILITIES: Final = "abilities"
SZ_DEVICE_TYPE: Final = "device_type"
SZ_DEV_NAME: Final = "dev_name"
SZ_ONLINE_STATUS: Final = "online_status"
SZ_SUBDEVICES: Final = "subdevices"
SZ_SUBDEVICE_ID: Final = "subdevice_id"
SZ_SUBDEVICE_NAME: Final = "subdevice_name"
SZ_SUBDEVICE_TYPE: Final = "subdevice_type"
SZ_UUID: Final = "uuid"

# config keys
SZ_CACHE_MAX_AGE: Final = "cache_max_age"
SZ_LOG_UNREGISTERED_SUBDEVICES: Final = "log_unregistered_subdevices"
SZ_PUSH_INACTIVITY_TIMEOUT: Final = "push_inactivity_timeout"
SZ_VALIDATE_STATE: Final = "validate_state"
