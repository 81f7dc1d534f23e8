#!/usr/bin/env python3
"""Meross IoT - Decode a push notification (payload into a typed notification).

Each namespace that is known to be pushed by devices has its own notification class,
all others are decoded as a GenericNotification (which is also the fallback for any
payload that can't be decoded by its class).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Final

from . import exceptions as exc
from .const import (
    HUB_NAMESPACE_DATA_KEYS,
    SZ_ALARM,
    SZ_BIND,
    SZ_CHANNEL,
    SZ_DATA,
    SZ_EVENT,
    SZ_FIRMWARE,
    SZ_HARDWARE,
    SZ_INTER_CONN,
    SZ_LATEST,
    SZ_LIGHT,
    SZ_MODE,
    SZ_ONLINE,
    SZ_ONOFF,
    SZ_SOURCE,
    SZ_SPRAY,
    SZ_STATUS,
    SZ_STUDY,
    SZ_SUB_ID,
    SZ_SUBDEVICE,
    SZ_SUBDEVICE_LIST,
    SZ_TIME,
    SZ_TIMERX,
    SZ_TIMESTAMP,
    SZ_TOGGLEX,
    SZ_TRIGGERX,
    SZ_VALUE,
    Namespace,
    PresenceState,
)
from .helpers import (
    class_by_attr,
    normalize_dict,
    normalize_key,
    normalize_to_array,
    subdevice_id_of,
)

__all__ = [
    "GenericNotification",
    "Notification",
    "NOTIFICATION_CLASS_BY_NAMESPACE",
    "extract_hub_items",
    "parse_notification",
]

# feature kinds, as used by extract_changes()
SZ_DIFFUSER_LIGHT: Final = "diffuser_light"
SZ_DIFFUSER_SPRAY: Final = "diffuser_spray"
SZ_PRESENCE: Final = "presence"
SZ_TOGGLE: Final = "toggle"

_LOGGER = logging.getLogger(__name__)


ChangesT = dict[str, dict[int, Any]]


@dataclass(frozen=True)
class HardwareInfo:
    version: str | None = None
    uuid: str | None = None
    type: str | None = None
    sub_type: str | None = None
    mac_address: str | None = None
    chip_type: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> HardwareInfo | None:
        if not isinstance(data, Mapping):
            return None
        return cls(
            version=normalize_key(data, "version"),
            uuid=normalize_key(data, "uuid"),
            type=normalize_key(data, "type"),
            sub_type=normalize_key(data, "subType"),
            mac_address=normalize_key(data, "macAddress"),
            chip_type=normalize_key(data, "chipType"),
        )


@dataclass(frozen=True)
class FirmwareInfo:
    version: str | None = None
    wifi_mac: str | None = None
    user_id: int | None = None
    server: str | None = None
    port: int | None = None
    inner_ip: str | None = None
    compile_time: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FirmwareInfo | None:
        if not isinstance(data, Mapping):
            return None
        return cls(
            version=normalize_key(data, "version"),
            wifi_mac=normalize_key(data, "wifiMac"),
            user_id=normalize_key(data, "userId"),
            server=normalize_key(data, "server"),
            port=normalize_key(data, "port"),
            inner_ip=normalize_key(data, "innerIp"),
            compile_time=normalize_key(data, "compileTime"),
        )


@dataclass(frozen=True)
class TimeInfo:
    timezone: str | None = None
    timestamp: int | None = None
    time_rule: list[Any] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> TimeInfo | None:
        if not isinstance(data, Mapping):
            return None
        return cls(
            timezone=normalize_key(data, "timezone"),
            timestamp=normalize_key(data, "timestamp"),
            time_rule=normalize_key(data, "timeRule"),
        )


class Notification:
    """The base class for all push notifications.

    A notification is created once per inbound message and is not altered thereafter.
    """

    NAMESPACE: ClassVar[str | None] = None

    def __init__(self, device_uuid: str, raw_data: Any, namespace: str | None = None):
        self._namespace: str = namespace or self.NAMESPACE  # type: ignore[assignment]
        self._device_uuid = device_uuid
        self._raw_data: Any = {} if raw_data is None else raw_data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._namespace}, {self._device_uuid})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Notification):
            return NotImplemented
        return (
            self.__class__ is other.__class__
            and self._namespace == other._namespace
            and self._device_uuid == other._device_uuid
            and self._raw_data == other._raw_data
        )

    __hash__ = None  # type: ignore[assignment]

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def device_uuid(self) -> str:
        """Return the uuid of the hub/device that originated the notification."""
        return self._device_uuid

    @property
    def raw_data(self) -> Any:
        return self._raw_data

    @property
    def is_hub_scoped(self) -> bool:
        """Return True if the notification carries items destined for subdevices."""
        return self._namespace in HUB_NAMESPACE_DATA_KEYS

    def extract_changes(self) -> ChangesT:
        """Return any state changes, as {feature_kind: {channel: value}}."""
        return {}


class GenericNotification(Notification):
    """A notification with an unknown namespace, or an undecodable payload."""


class _ListNotification(Notification):
    """A notification whose data key may be a single item, or an array of items.

    The payload is copied, and the data key rewritten to be an array of dicts.
    """

    _DATA_KEY: ClassVar[str]

    def __init__(self, device_uuid: str, raw_data: Any) -> None:
        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, Mapping):
            raise exc.PayloadInvalid(f"payload is not a dict: {raw_data!r}")

        items = normalize_to_array(raw_data.get(self._DATA_KEY))
        if not isinstance(items, list) or not all(isinstance(i, Mapping) for i in items):
            raise exc.PayloadInvalid(
                f"{self._DATA_KEY} is not a dict, or a list of dicts: {items!r}"
            )

        super().__init__(device_uuid, {**raw_data, self._DATA_KEY: items})
        self._items: list[dict[str, Any]] = items

    @property
    def items(self) -> list[dict[str, Any]]:
        return self._items


#
# Device-scoped notifications
class OnlineNotification(Notification):
    NAMESPACE = Namespace.SYSTEM_ONLINE

    @property
    def status(self) -> int | None:
        if not isinstance(self._raw_data, Mapping):
            return None
        return normalize_key(self._raw_data.get(SZ_ONLINE) or {}, SZ_STATUS)


class AlarmNotification(_ListNotification):
    NAMESPACE = Namespace.CONTROL_ALARM
    _DATA_KEY = SZ_ALARM

    def __init__(self, device_uuid: str, raw_data: Any) -> None:
        super().__init__(device_uuid, raw_data)

        self.channel: int | None = None
        self.value: Any = None
        self.timestamp: int | None = None
        self.subdevice_id: str | None = None

        if not self._items:
            return

        event = self._items[0]
        self.channel = event.get(SZ_CHANNEL)

        inter_conn = (event.get(SZ_EVENT) or {}).get(SZ_INTER_CONN)
        if not isinstance(inter_conn, Mapping):
            return

        self.value = inter_conn.get(SZ_VALUE)
        self.timestamp = inter_conn.get(SZ_TIMESTAMP)
        if sources := normalize_to_array(inter_conn.get(SZ_SOURCE)):
            self.subdevice_id = normalize_key(sources[0], SZ_SUB_ID)

    @property
    def alarm_data(self) -> list[dict[str, Any]]:
        return self._items


class BindNotification(Notification):
    NAMESPACE = Namespace.CONTROL_BIND

    def _bind(self, key: str) -> Any:
        if not isinstance(self._raw_data, Mapping):
            return None
        return (self._raw_data.get(SZ_BIND) or {}).get(key)

    @property
    def time(self) -> TimeInfo | None:
        return TimeInfo.from_dict(self._bind(SZ_TIME))

    @property
    def hwinfo(self) -> HardwareInfo | None:
        return HardwareInfo.from_dict(self._bind(SZ_HARDWARE))

    @property
    def fwinfo(self) -> FirmwareInfo | None:
        return FirmwareInfo.from_dict(self._bind(SZ_FIRMWARE))


class UnbindNotification(Notification):
    NAMESPACE = Namespace.CONTROL_UNBIND


class ToggleXNotification(_ListNotification):
    NAMESPACE = Namespace.CONTROL_TOGGLEX
    _DATA_KEY = SZ_TOGGLEX

    @property
    def togglex_data(self) -> list[dict[str, Any]]:
        return self._items

    def extract_changes(self) -> ChangesT:
        if not self._items:
            return {}
        return {
            SZ_TOGGLE: {i.get(SZ_CHANNEL, 0): i.get(SZ_ONOFF) == 1 for i in self._items}
        }


class TimerXNotification(_ListNotification):
    NAMESPACE = Namespace.CONTROL_TIMERX
    _DATA_KEY = SZ_TIMERX

    @property
    def timerx_data(self) -> list[dict[str, Any]]:
        return self._items


class TriggerXNotification(_ListNotification):
    NAMESPACE = Namespace.CONTROL_TRIGGERX
    _DATA_KEY = SZ_TRIGGERX

    @property
    def triggerx_data(self) -> list[dict[str, Any]]:
        return self._items


class PresenceStudyNotification(_ListNotification):
    NAMESPACE = Namespace.CONTROL_PRESENCE_STUDY
    _DATA_KEY = SZ_STUDY

    @property
    def study_data(self) -> list[dict[str, Any]]:
        return self._items


class SensorLatestXNotification(_ListNotification):
    """The latest readings of a presence sensor (also pushed via hubs)."""

    NAMESPACE = Namespace.CONTROL_SENSOR_LATESTX
    _DATA_KEY = SZ_LATEST

    @property
    def latest_data(self) -> list[dict[str, Any]]:
        return self._items

    def extract_changes(self) -> ChangesT:
        presence: dict[int, Any] = {}

        for entry in self._items:
            if not isinstance(data := entry.get(SZ_DATA), Mapping):
                continue

            change: dict[str, Any] = {}

            readings = normalize_to_array(data.get(SZ_PRESENCE))
            if readings and isinstance(reading := readings[0], Mapping):
                change["isPresent"] = reading.get(SZ_VALUE) == PresenceState.PRESENCE
                change["distance"] = reading.get("distance")
                change["timestamp"] = reading.get(SZ_TIMESTAMP)
                change["times"] = reading.get("times")

            readings = normalize_to_array(data.get(SZ_LIGHT))
            if readings and isinstance(reading := readings[0], Mapping):
                change["light"] = reading.get(SZ_VALUE)
                change["lightTimestamp"] = reading.get(SZ_TIMESTAMP)

            if change:
                presence[entry.get(SZ_CHANNEL, 0)] = change

        return {SZ_PRESENCE: presence} if self._items else {}


class DiffuserLightNotification(_ListNotification):
    NAMESPACE = Namespace.CONTROL_DIFFUSER_LIGHT
    _DATA_KEY = SZ_LIGHT

    @property
    def light_data(self) -> list[dict[str, Any]]:
        return self._items

    def extract_changes(self) -> ChangesT:
        if not self._items:
            return {}

        result: dict[int, Any] = {}
        for item in self._items:
            change = normalize_dict(item, ("mode", "rgb", "luminance"))
            if item.get(SZ_ONOFF) is not None:
                change = {"isOn": item[SZ_ONOFF] == 1} | change
            if change:
                result[item.get(SZ_CHANNEL, 0)] = change
        return {SZ_DIFFUSER_LIGHT: result}


class DiffuserSprayNotification(_ListNotification):
    NAMESPACE = Namespace.CONTROL_DIFFUSER_SPRAY
    _DATA_KEY = SZ_SPRAY

    @property
    def spray_data(self) -> list[dict[str, Any]]:
        return self._items

    def extract_changes(self) -> ChangesT:
        if not self._items:
            return {}
        return {
            SZ_DIFFUSER_SPRAY: {
                i.get(SZ_CHANNEL, 0): {SZ_MODE: i[SZ_MODE]}
                for i in self._items
                if i.get(SZ_MODE) is not None
            }
        }


#
# Hub-scoped notifications (their items are routed to subdevices)
class HubOnlineNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_ONLINE
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_ONLINE]

    @property
    def online_data(self) -> list[dict[str, Any]]:
        return self._items


class HubToggleXNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_TOGGLEX
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_TOGGLEX]

    @property
    def togglex_data(self) -> list[dict[str, Any]]:
        return self._items


class HubBatteryNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_BATTERY
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_BATTERY]

    @property
    def battery_data(self) -> list[dict[str, Any]]:
        return self._items


class HubSensorAllNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_SENSOR_ALL
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_SENSOR_ALL]

    @property
    def all_data(self) -> list[dict[str, Any]]:
        return self._items


class HubSensorTempHumNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_SENSOR_TEMP_HUM
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_SENSOR_TEMP_HUM]

    @property
    def temp_hum_data(self) -> list[dict[str, Any]]:
        return self._items


class HubSensorAlertNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_SENSOR_ALERT
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_SENSOR_ALERT]

    @property
    def alert_data(self) -> list[dict[str, Any]]:
        return self._items


class HubSensorSmokeNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_SENSOR_SMOKE
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_SENSOR_SMOKE]

    def __init__(self, device_uuid: str, raw_data: Any) -> None:
        super().__init__(device_uuid, raw_data)

        event = self._items[0] if self._items else {}

        self.subdevice_id: str | None = subdevice_id_of(event)
        self.status: int | None = event.get(SZ_STATUS)
        self.inter_conn: int | None = normalize_key(event, SZ_INTER_CONN)
        self.timestamp: int | None = event.get(SZ_TIMESTAMP)
        self.test_event: Any = (event.get(SZ_EVENT) or {}).get("test")

    @property
    def smoke_alarm_data(self) -> list[dict[str, Any]]:
        return self._items


class HubSensorWaterLeakNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_SENSOR_WATER_LEAK
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_SENSOR_WATER_LEAK]

    def __init__(self, device_uuid: str, raw_data: Any) -> None:
        super().__init__(device_uuid, raw_data)

        event = self._items[0] if self._items else {}

        self.subdevice_id: str | None = subdevice_id_of(event)
        self.latest_sample_is_leak: int | None = normalize_key(event, "latestWaterLeak")
        self.latest_sample_time: int | None = normalize_key(event, "latestSampleTime")
        self.synced_time: int | None = normalize_key(event, "syncedTime")
        self.samples: list[Any] | None = event.get("sample")

    @property
    def water_leak_data(self) -> list[dict[str, Any]]:
        return self._items


class HubMts100AllNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_MTS100_ALL
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_MTS100_ALL]

    @property
    def all_data(self) -> list[dict[str, Any]]:
        return self._items


class HubMts100ModeNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_MTS100_MODE
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_MTS100_MODE]

    @property
    def mode_data(self) -> list[dict[str, Any]]:
        return self._items


class HubMts100TemperatureNotification(_ListNotification):
    NAMESPACE = Namespace.HUB_MTS100_TEMPERATURE
    _DATA_KEY = HUB_NAMESPACE_DATA_KEYS[Namespace.HUB_MTS100_TEMPERATURE]

    @property
    def temperature_data(self) -> list[dict[str, Any]]:
        return self._items


class HubSubdeviceListNotification(Notification):
    """The hub's list of subdevices (which may be wrapped as {subdevice: [...]})."""

    NAMESPACE = Namespace.HUB_SUBDEVICE_LIST

    @property
    def subdevice_list_data(self) -> list[Any]:
        return extract_hub_items(self._namespace, self._raw_data) or []


NOTIFICATION_CLASS_BY_NAMESPACE: dict[str, type[Notification]] = class_by_attr(
    __name__, "NAMESPACE"
)

# every hub-scoped namespace must have its own class
assert not set(HUB_NAMESPACE_DATA_KEYS) - set(NOTIFICATION_CLASS_BY_NAMESPACE)


def _extract_subdevice_list(raw_data: Mapping[str, Any]) -> Any:
    if isinstance(value := raw_data.get(SZ_SUBDEVICE_LIST), Mapping):
        return normalize_to_array(value.get(SZ_SUBDEVICE))
    return value


_HUB_ITEM_EXTRACTORS = {
    Namespace.HUB_SUBDEVICE_LIST: _extract_subdevice_list,
}


def extract_hub_items(namespace: str, raw_data: Any) -> list[Any] | None:
    """Return the per-subdevice items of a hub notification payload.

    Returns None if the namespace isn't hub-scoped, or if its items aren't an array.
    """

    if not isinstance(raw_data, Mapping):
        return None

    if extractor := _HUB_ITEM_EXTRACTORS.get(namespace):
        items = extractor(raw_data)
    elif data_key := HUB_NAMESPACE_DATA_KEYS.get(namespace):
        items = raw_data.get(data_key)
    else:
        return None

    return items if isinstance(items, list) else None


def parse_notification(
    namespace: str, raw_payload: Any, device_uuid: str
) -> Notification | None:
    """Return a notification, decoded from a push message's namespace and payload.

    Returns None only if the namespace or device uuid is missing, otherwise never
    raises: any payload that can't be decoded by its class becomes a generic
    notification (as does any unknown namespace).
    """

    if not namespace or not isinstance(namespace, str):
        return None
    if not device_uuid or not isinstance(device_uuid, str):
        return None

    if not (cls := NOTIFICATION_CLASS_BY_NAMESPACE.get(namespace)):
        return GenericNotification(device_uuid, raw_payload, namespace=namespace)

    try:
        return cls(device_uuid, raw_payload)

    except (
        exc.MerossException,
        AttributeError,
        LookupError,
        TypeError,
        ValueError,
    ) as err:
        _LOGGER.warning("%s < %s(%s)", namespace, err.__class__.__name__, err)
        return GenericNotification(device_uuid, raw_payload, namespace=namespace)
