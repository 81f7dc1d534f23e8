#!/usr/bin/env python3
"""Meross IoT - the subdevices of a hub (e.g. sensors, valves).

A subdevice has no network identity of its own: it is addressed via its hub, and its
state arrives in the hub's (hub-scoped) notifications, as one item per subdevice.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Final

from meross_tx import normalize_to_array, subdevice_id_of
from meross_tx.const import (
    BATTERY_UNKNOWN_VALUES,
    SZ_ADJUST,
    SZ_BATTERY,
    SZ_CHANNEL,
    SZ_DATA,
    SZ_EVENT,
    SZ_HUMIDITY,
    SZ_ID,
    SZ_INTER_CONN,
    SZ_LIGHT,
    SZ_MODE,
    SZ_ONLINE,
    SZ_ONOFF,
    SZ_SMOKE_ALARM,
    SZ_STATE,
    SZ_STATUS,
    SZ_TEMPERATURE,
    SZ_TOGGLEX,
    SZ_VALUE,
    SZ_WATER_LEAK,
)

from .. import exceptions as exc
from ..abilities import require_ability, subdevice_abilities
from ..const import (
    SZ_SUBDEVICE_ID,
    SZ_SUBDEVICE_NAME,
    SZ_SUBDEVICE_TYPE,
    FeatureKind,
    Method,
    Namespace,
    OnlineStatus,
    SmokeAlarmStatus,
    Source,
)
from ..entity_base import Entity, reply_items

if TYPE_CHECKING:
    from .hub import HubDevice


_LOGGER = logging.getLogger(__name__)


SZ_LAST_ACTIVE_TIME = "lastActiveTime"
SZ_TIMESTAMP = "timestamp"


class SubDevice(Entity):
    """The SubDevice base class - can also be used for unknown subdevice types."""

    _SLUG: str = "subdevice"
    _TYPES: ClassVar[tuple[str, ...]] = ()

    _HANDLES = {
        Namespace.HUB_ONLINE: (None, "_update_online"),
        Namespace.HUB_BATTERY: (None, "_update_battery"),
    }

    def __init__(
        self,
        hub: HubDevice,
        subdevice_id: str,
        *,
        subdevice_type: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(
            hub._gwy,
            subdevice_id,
            abilities=subdevice_abilities(subdevice_type, hub.abilities),
        )

        self._hub = hub
        self.type = subdevice_type
        self.name = name or subdevice_id

        self._online_status = OnlineStatus.UNKNOWN

    def __str__(self) -> str:
        return f"{self._hub.id}/{self.id} ({self.type or self._SLUG})"

    @property
    def hub(self) -> HubDevice:
        return self._hub

    @property
    def online_status(self) -> OnlineStatus:
        """Return the subdevice's online status (is the hub's, if it is not online)."""

        if self._hub.online_status != OnlineStatus.ONLINE:
            return self._hub.online_status
        return self._online_status

    @property
    def is_online(self) -> bool:
        return self.online_status == OnlineStatus.ONLINE

    def update_abilities(self, hub_abilities: Mapping[str, Any]) -> None:
        self.abilities = subdevice_abilities(self.type, hub_abilities)

    def _update_online(self, data: Any, source: Source) -> None:
        """Update the online status, from an item as {status} or as {online: {status}}."""

        if not isinstance(data, Mapping):
            return
        if isinstance(online := data.get(SZ_ONLINE), Mapping):
            data = online
        if (status := data.get(SZ_STATUS)) is None:
            return

        status = OnlineStatus(status)
        if status != self._online_status:
            _LOGGER.info("%s: online status changed to %s", self, status.name)
            self._online_status = status
            if status != OnlineStatus.ONLINE:
                self.cache.invalidate()

        self.cache.update(
            0,
            FeatureKind.ONLINE,
            {SZ_STATUS: int(status), SZ_LAST_ACTIVE_TIME: data.get(SZ_LAST_ACTIVE_TIME)},
            source=source,
        )

    def _set_battery(self, value: Any, source: Source) -> None:
        if value is None or value in BATTERY_UNKNOWN_VALUES:  # can't report its battery
            return
        self.cache.update(0, FeatureKind.BATTERY, {SZ_BATTERY: value}, source=source)

    def _update_battery(self, data: Any, source: Source) -> None:
        if isinstance(data, Mapping):
            self._set_battery(data.get(SZ_VALUE), source)

    def _update_digest(self, item: Mapping[str, Any], source: Source) -> None:
        """Update the state from the subdevice's item in its hub's System.All digest."""
        self._update_online(item, source)

    @property
    def battery(self) -> int | None:
        """Return the battery level (%), if known."""
        return self._cached(0, FeatureKind.BATTERY, SZ_BATTERY)  # type: ignore[no-any-return]

    async def get_battery(self) -> int | None:
        """Fetch the battery level (%), via the hub."""

        require_ability(self, Namespace.HUB_BATTERY)

        reply = await self.publish(
            Method.GET, Namespace.HUB_BATTERY, {SZ_BATTERY: [{SZ_ID: self.id}]}
        )
        for item in reply_items(reply, SZ_BATTERY):
            if subdevice_id_of(item) == self.id:
                self._update_battery(item, Source.RESPONSE)
        return self.battery

    async def publish(self, method: Method, namespace: str, payload: Any) -> Any:
        return await self._hub.publish(method, namespace, payload)

    async def refresh_state(self) -> None:
        await self._hub.refresh_state()

    async def handle_notification(
        self, namespace: str, item: Mapping[str, Any], source: Source = Source.PUSH
    ) -> None:
        """Apply the subdevice's item of a hub-scoped notification to its state."""

        if not self._dispatch(namespace, item, source):
            _LOGGER.debug("%s < %s: no handler for this subdevice type", self, namespace)


def _first_reading(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    readings = normalize_to_array(data.get(key))
    if not readings or not isinstance(reading := readings[0], Mapping):
        return None
    return reading if reading.get(SZ_VALUE) is not None else None


def _temperature(value: Any) -> float | None:
    """Convert a sensor's temperature to Celsius (some report tenths, some hundredths)."""

    if value is None:
        return None
    value = float(value)
    return value / 100 if value > 1000 else value / 10


class HubTempHumSensor(SubDevice):
    """A temperature & humidity sensor (e.g. MS100)."""

    _SLUG: str = "temp_hum"
    _TYPES = ("ms100", "ms100f", "ms130")

    _HANDLES = {
        Namespace.HUB_SENSOR_ALL: (None, "_update_sensor_all"),
        Namespace.HUB_SENSOR_TEMP_HUM: (None, "_update_sensor_all"),
        Namespace.CONTROL_SENSOR_LATESTX: (None, "_update_latest"),
    }

    def _update_sensor_all(self, data: Mapping[str, Any], source: Source) -> None:
        self._update_online(data, source)
        self._set_battery(data.get(SZ_BATTERY), source)

        value: dict[str, Any] = {}

        if isinstance(temp := data.get(SZ_TEMPERATURE), Mapping):
            if (latest := temp.get("latest")) is not None:
                value["temperature"] = _temperature(latest)
            if temp.get("min") is not None:
                value["minTemperature"] = temp["min"] / 10
            if temp.get("max") is not None:
                value["maxTemperature"] = temp["max"] / 10
            if temp.get("latestSampleTime") is not None:
                value["sampleTime"] = temp["latestSampleTime"]

        if isinstance(humi := data.get(SZ_HUMIDITY), Mapping):
            if (latest := humi.get("latest")) is not None:
                value["humidity"] = latest / 10

        if isinstance(samples := data.get("sample"), list):
            value["samples"] = [self._sample(s) for s in samples if len(s) >= 4]

        if data.get("syncedTime") is not None:
            value["syncedTime"] = data["syncedTime"]

        if value:
            self.cache.update(0, FeatureKind.TEMP_HUM, value, source=source)

    @staticmethod
    def _sample(sample: list[Any]) -> dict[str, Any]:
        temp, humi, from_ts, to_ts = sample[:4]
        return {
            "fromTs": from_ts,
            "toTs": to_ts,
            "temperature": float(temp) / 10 if temp else None,
            "humidity": float(humi) / 10 if humi else None,
        }

    def _update_latest(self, data: Mapping[str, Any], source: Source) -> None:
        if not isinstance(readings := data.get(SZ_DATA), Mapping):
            return

        value: dict[str, Any] = {}

        if reading := _first_reading(readings, "temp"):
            value["temperature"] = _temperature(reading[SZ_VALUE])
            if reading.get(SZ_TIMESTAMP) is not None:
                value["sampleTime"] = reading[SZ_TIMESTAMP]
        if reading := _first_reading(readings, "humi"):
            value["humidity"] = float(reading[SZ_VALUE]) / 10
        if reading := _first_reading(readings, SZ_LIGHT):
            value["light"] = reading[SZ_VALUE]

        if value:
            self.cache.update(0, FeatureKind.TEMP_HUM, value, source=source)

    @property
    def temperature(self) -> float | None:
        """Return the last sampled temperature (in Celsius)."""
        return self._cached(0, FeatureKind.TEMP_HUM, "temperature")  # type: ignore[no-any-return]

    @property
    def humidity(self) -> float | None:
        """Return the last sampled relative humidity (%)."""
        return self._cached(0, FeatureKind.TEMP_HUM, "humidity")  # type: ignore[no-any-return]

    @property
    def lux(self) -> int | None:
        return self._cached(0, FeatureKind.TEMP_HUM, "light")  # type: ignore[no-any-return]

    @property
    def min_temperature(self) -> float | None:
        return self._cached(0, FeatureKind.TEMP_HUM, "minTemperature")  # type: ignore[no-any-return]

    @property
    def max_temperature(self) -> float | None:
        return self._cached(0, FeatureKind.TEMP_HUM, "maxTemperature")  # type: ignore[no-any-return]

    @property
    def samples(self) -> list[dict[str, Any]]:
        return self._cached(0, FeatureKind.TEMP_HUM, "samples") or []

    @property
    def last_sampled_time(self) -> int | None:
        return self._cached(0, FeatureKind.TEMP_HUM, "sampleTime") or self._cached(  # type: ignore[no-any-return]
            0, FeatureKind.TEMP_HUM, "syncedTime"
        )


VALVE_PRESETS: Final = ("custom", "comfort", "economy", "away")


def _valve_temperature(data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a valve's temperature dict (tenths of a degree) to its cached value."""

    result: dict[str, Any] = {}

    for key, field in (
        ("room", "currentTemperature"),
        ("currentSet", "targetTemperature"),
        ("min", "minTemperature"),
        ("max", "maxTemperature"),
    ):
        if data.get(key) is not None:
            result[field] = data[key] / 10
    for preset in VALVE_PRESETS:
        if data.get(preset) is not None:
            result[f"{preset}Temperature"] = data[preset] / 10

    if data.get("heating") is not None:
        result["isHeating"] = data["heating"] == 1
    if data.get("openWindow") is not None:
        result["isWindowOpen"] = data["openWindow"] == 1
    return result


class HubThermostatValve(SubDevice):
    """A thermostatic radiator valve (e.g. MTS100)."""

    _SLUG: str = "valve"
    _TYPES = ("mts100v3",)

    _HANDLES = {
        Namespace.HUB_MTS100_ALL: (None, "_update_mts100_all"),
        Namespace.HUB_TOGGLEX: (None, "_update_togglex"),
        Namespace.HUB_MTS100_MODE: (None, "_update_mode"),
        Namespace.HUB_MTS100_TEMPERATURE: (None, "_update_temperature"),
    }

    def _update_valve(self, value: dict[str, Any], source: Source) -> None:
        if value:
            self.cache.update(0, FeatureKind.VALVE, value, source=source)

    def _update_mts100_all(self, data: Mapping[str, Any], source: Source) -> None:
        self._update_online(data, source)

        value: dict[str, Any] = {}

        if isinstance(togglex := data.get(SZ_TOGGLEX), Mapping) and (
            togglex.get(SZ_ONOFF) is not None
        ):
            value["isOn"] = togglex[SZ_ONOFF] == 1
        if isinstance(mode := data.get(SZ_MODE), Mapping) and mode.get(SZ_STATE) is not None:
            value[SZ_MODE] = mode[SZ_STATE]
        if isinstance(temp := data.get(SZ_TEMPERATURE), Mapping):
            value |= _valve_temperature(temp)
        if isinstance(adjust := data.get(SZ_ADJUST), Mapping):
            if adjust.get(SZ_TEMPERATURE) is not None:
                value[SZ_ADJUST] = adjust[SZ_TEMPERATURE] / 100
        if data.get("scheduleBMode") is not None:
            value["scheduleBMode"] = data["scheduleBMode"]

        self._update_valve(value, source)

    def _update_togglex(self, data: Mapping[str, Any], source: Source) -> None:
        if data.get(SZ_ONOFF) is not None:
            self._update_valve({"isOn": data[SZ_ONOFF] == 1}, source)

    def _update_mode(self, data: Mapping[str, Any], source: Source) -> None:
        if data.get(SZ_STATE) is not None:
            self._update_valve({SZ_MODE: data[SZ_STATE]}, source)

    def _update_temperature(self, data: Mapping[str, Any], source: Source) -> None:
        self._update_valve(_valve_temperature(data), source)

    def _update_digest(self, item: Mapping[str, Any], source: Source) -> None:
        super()._update_digest(item, source)
        self._update_togglex(item, source)

    def is_on(self) -> bool | None:
        return self._cached(0, FeatureKind.VALVE, "isOn")  # type: ignore[no-any-return]

    @property
    def mode(self) -> int | None:
        return self._cached(0, FeatureKind.VALVE, SZ_MODE)  # type: ignore[no-any-return]

    @property
    def current_temperature(self) -> float | None:
        return self._cached(0, FeatureKind.VALVE, "currentTemperature")  # type: ignore[no-any-return]

    @property
    def target_temperature(self) -> float | None:
        return self._cached(0, FeatureKind.VALVE, "targetTemperature")  # type: ignore[no-any-return]

    @property
    def min_temperature(self) -> float | None:
        return self._cached(0, FeatureKind.VALVE, "minTemperature")  # type: ignore[no-any-return]

    @property
    def max_temperature(self) -> float | None:
        return self._cached(0, FeatureKind.VALVE, "maxTemperature")  # type: ignore[no-any-return]

    @property
    def is_heating(self) -> bool | None:
        return self._cached(0, FeatureKind.VALVE, "isHeating")  # type: ignore[no-any-return]

    @property
    def is_window_open(self) -> bool | None:
        return self._cached(0, FeatureKind.VALVE, "isWindowOpen")  # type: ignore[no-any-return]

    @property
    def adjust(self) -> float | None:
        return self._cached(0, FeatureKind.VALVE, SZ_ADJUST)  # type: ignore[no-any-return]

    def preset_temperature(self, preset: str) -> float | None:
        if preset not in VALVE_PRESETS:
            return None
        return self._cached(0, FeatureKind.VALVE, f"{preset}Temperature")  # type: ignore[no-any-return]

    async def set_on(self, on: bool) -> Any:
        require_ability(self, Namespace.HUB_TOGGLEX)

        reply = await self.publish(
            Method.SET,
            Namespace.HUB_TOGGLEX,
            {SZ_TOGGLEX: [{SZ_ID: self.id, SZ_ONOFF: 1 if on else 0, SZ_CHANNEL: 0}]},
        )
        self._update_valve({"isOn": bool(on)}, Source.RESPONSE)
        return reply

    async def toggle(self) -> Any:
        return await self.set_on(self.is_on() is not True)

    async def set_mode(self, mode: int) -> Any:
        require_ability(self, Namespace.HUB_MTS100_MODE)

        reply = await self.publish(
            Method.SET,
            Namespace.HUB_MTS100_MODE,
            {SZ_MODE: [{SZ_ID: self.id, SZ_STATE: int(mode)}]},
        )
        self._update_valve({SZ_MODE: int(mode)}, Source.RESPONSE)
        return reply

    async def set_target_temperature(self, temperature: float) -> Any:
        return await self._set_temperature("custom", temperature, "targetTemperature")

    async def set_preset_temperature(self, preset: str, temperature: float) -> Any:
        if preset not in VALVE_PRESETS:
            raise exc.ValidationError(
                f"{self}: preset {preset} is not one of: {', '.join(VALVE_PRESETS)}"
            )
        return await self._set_temperature(preset, temperature, f"{preset}Temperature")

    async def _set_temperature(self, key: str, temperature: float, field: str) -> Any:
        require_ability(self, Namespace.HUB_MTS100_TEMPERATURE)

        reply = await self.publish(
            Method.SET,
            Namespace.HUB_MTS100_TEMPERATURE,
            {SZ_TEMPERATURE: [{SZ_ID: self.id, key: int(round(temperature * 10))}]},
        )
        self._update_valve({field: temperature}, Source.RESPONSE)
        return reply

    async def set_adjust(self, temperature: float) -> Any:
        """Set the offset (in Celsius) of the valve's temperature sensor."""

        require_ability(self, Namespace.HUB_MTS100_ADJUST)

        reply = await self.publish(
            Method.SET,
            Namespace.HUB_MTS100_ADJUST,
            {SZ_ADJUST: [{SZ_ID: self.id, SZ_TEMPERATURE: int(round(temperature * 100))}]},
        )
        self._update_valve({SZ_ADJUST: temperature}, Source.RESPONSE)
        return reply


MAX_WATER_LEAK_EVENTS: Final = 30


class HubWaterLeakSensor(SubDevice):
    """A water leak sensor (e.g. MS400)."""

    _SLUG: str = "water_leak"
    _TYPES = ("ms400", "ms405")

    _HANDLES = {
        Namespace.HUB_SENSOR_WATER_LEAK: (None, "_update_water_leak"),
        Namespace.HUB_SENSOR_ALL: (None, "_update_sensor_all"),
    }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        self._events: deque[dict[str, Any]] = deque(maxlen=MAX_WATER_LEAK_EVENTS)

    def _update_water_leak(self, data: Mapping[str, Any], source: Source) -> None:
        if (timestamp := data.get("latestSampleTime")) is not None:
            self._leak_sample(data.get("latestWaterLeak") == 1, timestamp, source)

    def _update_sensor_all(self, data: Mapping[str, Any], source: Source) -> None:
        self._update_online(data, source)
        if isinstance(leak := data.get(SZ_WATER_LEAK), Mapping):
            self._update_water_leak(leak, source)

    def _leak_sample(self, leaking: bool, timestamp: int, source: Source) -> None:
        """Record a sample, unless it is older than the latest one (samples may repeat)."""

        if (latest := self.latest_sample_time) is not None and timestamp <= latest:
            return

        value: dict[str, Any] = {"isLeaking": leaking, "latestSampleTime": timestamp}
        if leaking:
            value["latestLeakTime"] = timestamp

        self.cache.update(0, FeatureKind.WATER_LEAK, value, source=source)
        self._events.append({"leaking": leaking, SZ_TIMESTAMP: timestamp})

    @property
    def is_leaking(self) -> bool | None:
        return self._cached(0, FeatureKind.WATER_LEAK, "isLeaking")  # type: ignore[no-any-return]

    @property
    def latest_sample_time(self) -> int | None:
        if (value := self.cache.value(0, FeatureKind.WATER_LEAK)) is None:
            return None
        return value.get("latestSampleTime")

    @property
    def latest_leak_time(self) -> int | None:
        return self._cached(0, FeatureKind.WATER_LEAK, "latestLeakTime")  # type: ignore[no-any-return]

    @property
    def events(self) -> list[dict[str, Any]]:
        """Return the most recent samples (oldest first)."""
        return list(self._events)


MAX_SMOKE_TEST_EVENTS: Final = 10


class HubSmokeDetector(SubDevice):
    """A smoke alarm (e.g. MA151)."""

    _SLUG: str = "smoke_alarm"
    _TYPES = ("ma151",)

    _HANDLES = {
        Namespace.HUB_SENSOR_SMOKE: (None, "_update_smoke"),
        Namespace.HUB_SENSOR_ALL: (None, "_update_sensor_all"),
    }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        self._test_events: deque[dict[str, Any]] = deque(maxlen=MAX_SMOKE_TEST_EVENTS)

    def _update_smoke(self, data: Mapping[str, Any], source: Source) -> None:
        timestamp = data.get(SZ_TIMESTAMP)

        if (
            timestamp is not None
            and (latest := self.last_status_update) is not None
            and timestamp <= latest
        ):
            return

        value: dict[str, Any] = {}
        if (status := data.get(SZ_STATUS)) is not None:
            value[SZ_STATUS] = status
            value["isMuted"] = status in (
                SmokeAlarmStatus.MUTE_SMOKE_ALARM,
                SmokeAlarmStatus.MUTE_TEMPERATURE_ALARM,
            )
        if (inter_conn := data.get(SZ_INTER_CONN)) is not None:
            value[SZ_INTER_CONN] = inter_conn
        if timestamp is not None:
            value[SZ_TIMESTAMP] = timestamp

        if value:
            self.cache.update(0, FeatureKind.SMOKE_ALARM, value, source=source)

        if isinstance(event := data.get(SZ_EVENT), Mapping) and isinstance(
            test := event.get("test"), Mapping
        ):
            self._test_events.append(
                {"type": test.get("type"), SZ_TIMESTAMP: test.get(SZ_TIMESTAMP)}
            )

    def _update_sensor_all(self, data: Mapping[str, Any], source: Source) -> None:
        self._update_online(data, source)
        for item in normalize_to_array(data.get(SZ_SMOKE_ALARM))[:1]:
            if isinstance(item, Mapping):
                self._update_smoke(item, source)

    @property
    def smoke_alarm_status(self) -> SmokeAlarmStatus | int | None:
        if (status := self._cached(0, FeatureKind.SMOKE_ALARM, SZ_STATUS)) is None:
            return None
        try:
            return SmokeAlarmStatus(status)
        except ValueError:
            return status  # type: ignore[no-any-return]

    @property
    def inter_conn(self) -> int | None:
        return self._cached(0, FeatureKind.SMOKE_ALARM, SZ_INTER_CONN)  # type: ignore[no-any-return]

    @property
    def is_muted(self) -> bool | None:
        return self._cached(0, FeatureKind.SMOKE_ALARM, "isMuted")  # type: ignore[no-any-return]

    @property
    def last_status_update(self) -> int | None:
        if (value := self.cache.value(0, FeatureKind.SMOKE_ALARM)) is None:
            return None
        return value.get(SZ_TIMESTAMP)

    @property
    def test_events(self) -> list[dict[str, Any]]:
        return list(self._test_events)

    async def mute_alarm(self, mute_smoke: bool = True) -> Any:
        """Mute the smoke (or else the temperature) alarm."""

        require_ability(self, Namespace.HUB_SENSOR_SMOKE)

        status = (
            SmokeAlarmStatus.MUTE_SMOKE_ALARM
            if mute_smoke
            else SmokeAlarmStatus.MUTE_TEMPERATURE_ALARM
        )
        reply = await self.publish(
            Method.SET,
            Namespace.HUB_SENSOR_SMOKE,
            {SZ_SMOKE_ALARM: [{SZ_ID: self.id, SZ_STATUS: int(status)}]},
        )
        self.cache.update(
            0,
            FeatureKind.SMOKE_ALARM,
            {SZ_STATUS: int(status), "isMuted": True},
            source=Source.RESPONSE,
        )
        return reply

    async def refresh_alarm_status(self) -> Any:
        require_ability(self, Namespace.HUB_SENSOR_SMOKE)

        reply = await self.publish(
            Method.GET, Namespace.HUB_SENSOR_SMOKE, {SZ_SMOKE_ALARM: [{SZ_ID: self.id}]}
        )
        for item in reply_items(reply, SZ_SMOKE_ALARM):
            if subdevice_id_of(item) in (None, self.id):
                self._update_smoke(item, Source.RESPONSE)
        return reply


SUBDEVICE_CLASS_BY_TYPE: Final[dict[str, type[SubDevice]]] = {
    t: cls
    for cls in (HubTempHumSensor, HubThermostatValve, HubWaterLeakSensor, HubSmokeDetector)
    for t in cls._TYPES
}


def subdevice_factory(hub: HubDevice, info: Mapping[str, Any]) -> SubDevice:
    """Return a subdevice of the best class for its (validated) info."""

    subdevice_type = info.get(SZ_SUBDEVICE_TYPE)

    if (cls := SUBDEVICE_CLASS_BY_TYPE.get((subdevice_type or "").lower())) is None:
        _LOGGER.warning(
            "%s: %s (%s): %s",
            hub,
            info[SZ_SUBDEVICE_ID],
            subdevice_type,
            exc.UnknownDeviceTypeError("the subdevice type is not known"),
        )
        cls = SubDevice

    return cls(
        hub,
        info[SZ_SUBDEVICE_ID],
        subdevice_type=subdevice_type,
        name=info.get(SZ_SUBDEVICE_NAME),
    )
