#!/usr/bin/env python3
"""Meross IoT - a hub, and the registry of its subdevices."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import voluptuous as vol

from meross_tx import Notification, extract_hub_items, subdevice_id_of
from meross_tx.const import (
    SZ_ALL,
    SZ_CHANNEL,
    SZ_DATA,
    SZ_DIGEST,
    SZ_ID,
    SZ_LATEST,
    SZ_SUB_ID,
    SZ_SUBDEVICE,
    SZ_SUBDEVICE_LIST,
)

from .. import exceptions as exc
from ..const import SZ_SUBDEVICE_ID, SZ_SUBDEVICE_TYPE, Method, Namespace, Source
from ..dispatcher import route
from ..schemas import SCH_SUBDEVICE_INFO
from .base import Device
from .subdevice import (
    SUBDEVICE_CLASS_BY_TYPE,
    HubTempHumSensor,
    HubThermostatValve,
    SubDevice,
    subdevice_factory,
)

_LOGGER = logging.getLogger(__name__)


SZ_HUB = "hub"

LATEST_DATA_TYPES = ("light", "temp", "humi")


def _infer_type(item: Mapping[str, Any]) -> str | None:
    """Return the type of a subdevice whose item has it only as a key, e.g. {ms100: {}}."""
    return next((k for k in item if k in SUBDEVICE_CLASS_BY_TYPE), None)


class HubDevice(Device):
    """A hub - a device with subdevices (it has the Hub.SubdeviceList ability)."""

    _SLUG: str = "hub"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        self.subdevice_by_id: dict[str, SubDevice] = {}

    @property
    def subdevices(self) -> list[SubDevice]:
        return list(self.subdevice_by_id.values())

    def get_subdevice(self, subdevice_id: str | int) -> SubDevice | None:
        return self.subdevice_by_id.get(str(subdevice_id))

    def register_subdevice(self, subdevice: SubDevice) -> None:
        """Register a subdevice (a second subdevice with the same id is ignored)."""

        if subdevice.id in self.subdevice_by_id:
            _LOGGER.info(
                "%s: subdevice %s has already been registered to this hub", self, subdevice.id
            )
            return
        self.subdevice_by_id[subdevice.id] = subdevice

    def unregister_subdevice(self, subdevice_id: str | int) -> SubDevice:
        try:
            return self.subdevice_by_id.pop(str(subdevice_id))
        except KeyError as err:
            raise exc.SubdeviceNotRegistered(
                f"{self}: subdevice {subdevice_id} is not registered"
            ) from err

    def add_subdevice(self, info: Mapping[str, Any]) -> SubDevice:
        """Create (and register) a subdevice, unless it is already registered."""

        info = dict(info)
        if info.get(SZ_SUBDEVICE_TYPE) is None and (inferred := _infer_type(info)):
            info[SZ_SUBDEVICE_TYPE] = inferred

        info = SCH_SUBDEVICE_INFO(info)

        if subdevice := self.get_subdevice(info[SZ_SUBDEVICE_ID]):
            return subdevice

        subdevice = subdevice_factory(self, info)
        self.register_subdevice(subdevice)
        return subdevice

    def sync_subdevices(self, items: Iterable[Any]) -> None:
        """Reconcile the registry with the hub's list of subdevices.

        Subdevices not yet registered are created, and those no longer listed are
        removed.
        """

        listed: set[str] = set()

        for item in items:
            if not isinstance(item, Mapping):
                _LOGGER.debug("%s: ignoring subdevice list item: %s", self, item)
                continue
            try:
                subdevice = self.add_subdevice(item)
            except vol.Invalid as err:
                _LOGGER.warning("%s: %s < %s(%s)", self, item, err.__class__.__name__, err)
                continue
            listed.add(subdevice.id)

        for sub_id in set(self.subdevice_by_id) - listed:
            _LOGGER.info("%s: subdevice %s is no longer listed, removing it", self, sub_id)
            self.unregister_subdevice(sub_id)

    def _sync_from_list(self, payload: Any) -> bool:
        """Sync the registry from a Hub.SubdeviceList payload. Return False if invalid.

        A payload without an array of subdevices is ignored, rather than treated as an
        empty list.
        """

        if (items := extract_hub_items(Namespace.HUB_SUBDEVICE_LIST, payload)) is None:
            _LOGGER.warning("%s: invalid subdevice list (ignored): %s", self, payload)
            return False

        self.sync_subdevices(items)
        return True

    def update_abilities(self, abilities: Mapping[str, Any]) -> None:
        super().update_abilities(abilities)

        for subdevice in self.subdevice_by_id.values():
            subdevice.update_abilities(self.abilities)

    async def handle_notification(self, notification: Notification) -> None:
        """Apply a push notification to the hub, or route it to its subdevices."""

        if notification.namespace == Namespace.HUB_SUBDEVICE_LIST:
            self._last_push = self._gwy._clock()
            self._sync_from_list(notification.raw_data)
            return

        if not notification.is_hub_scoped:
            await super().handle_notification(notification)
            return

        self._last_push = self._gwy._clock()
        await route(
            notification,
            self,
            log_unregistered=self._gwy.config.log_unregistered_subdevices,
        )

    def _handle_system_all(self, payload: Mapping[str, Any], source: Source) -> None:
        super()._handle_system_all(payload, source)

        if not isinstance(data := payload.get(SZ_ALL), Mapping):
            return

        hub = (data.get(SZ_DIGEST) or {}).get(SZ_HUB)
        if not isinstance(hub, Mapping):
            return

        items = extract_hub_items(
            Namespace.HUB_SUBDEVICE_LIST, {SZ_SUBDEVICE_LIST: hub.get(SZ_SUBDEVICE)}
        )
        for item in items or []:
            if (sub_id := subdevice_id_of(item)) is None:
                continue
            if (subdevice := self.get_subdevice(sub_id)) is None:
                _LOGGER.debug("%s: digest has unregistered subdevice %s", self, sub_id)
                continue
            try:
                subdevice._update_digest(item, source)
            except (exc.MerossException, vol.Invalid) as err:  # each item is isolated
                _LOGGER.warning("%s < %s(%s)", subdevice, err.__class__.__name__, err)
                continue
            except (AttributeError, LookupError, TypeError, ValueError) as err:
                _LOGGER.exception("%s < %s(%s)", subdevice, err.__class__.__name__, err)
                continue
            subdevice.last_full_update = self.last_full_update

    async def _route_reply(self, namespace: str, reply: Any) -> None:
        """Pass each item of a (hub-scoped) reply to its subdevice."""

        for item in extract_hub_items(namespace, reply) or []:
            if (sub_id := subdevice_id_of(item)) is None:
                continue
            if subdevice := self.get_subdevice(sub_id):
                await subdevice.handle_notification(namespace, item, Source.RESPONSE)

    async def get_subdevice_list(self) -> list[SubDevice]:
        """Fetch the hub's list of subdevices, and reconcile the registry with it."""

        reply = await self.publish(Method.GET, Namespace.HUB_SUBDEVICE_LIST, {})

        if not self._sync_from_list(reply):
            raise exc.CommandError(
                f"{Namespace.HUB_SUBDEVICE_LIST}: the reply has no list of subdevices",
                error_payload=reply,
                device_uuid=self.id,
            )
        return self.subdevices

    async def get_hub_exception(self) -> Any:
        return await self.publish(Method.GET, Namespace.HUB_EXCEPTION, {})

    async def get_hub_battery(self) -> Any:
        """Fetch the battery level of all subdevices."""

        reply = await self.publish(Method.GET, Namespace.HUB_BATTERY, {"battery": []})
        await self._route_reply(Namespace.HUB_BATTERY, reply)
        return reply

    async def get_all_sensors(self, subdevice_ids: Iterable[str]) -> Any:
        reply = await self.publish(
            Method.GET,
            Namespace.HUB_SENSOR_ALL,
            {SZ_ALL: [{SZ_ID: i} for i in subdevice_ids]},
        )
        await self._route_reply(Namespace.HUB_SENSOR_ALL, reply)
        return reply

    async def get_latest_sensor_readings(
        self,
        subdevice_ids: Iterable[str],
        data_types: Iterable[str] = LATEST_DATA_TYPES,
    ) -> Any:
        data_types = list(data_types)
        reply = await self.publish(
            Method.GET,
            Namespace.CONTROL_SENSOR_LATESTX,
            {
                SZ_LATEST: [
                    {SZ_SUB_ID: i, SZ_CHANNEL: 0, SZ_DATA: data_types}
                    for i in subdevice_ids
                ]
            },
        )
        await self._route_reply(Namespace.CONTROL_SENSOR_LATESTX, reply)
        return reply

    async def get_mts100_all(self, subdevice_ids: Iterable[str]) -> Any:
        reply = await self.publish(
            Method.GET,
            Namespace.HUB_MTS100_ALL,
            {SZ_ALL: [{SZ_ID: i} for i in subdevice_ids]},
        )
        await self._route_reply(Namespace.HUB_MTS100_ALL, reply)
        return reply

    async def refresh_subdevices(self) -> None:
        """Fetch the state of all the subdevices (sensors, then valves)."""

        valves = [s.id for s in self.subdevices if isinstance(s, HubThermostatValve)]
        sensors = [s.id for s in self.subdevices if not isinstance(s, HubThermostatValve)]

        if sensors and self.has_ability(Namespace.HUB_SENSOR_ALL):
            await self.get_all_sensors(sensors)

            temp_hums = [s.id for s in self.subdevices if isinstance(s, HubTempHumSensor)]
            if temp_hums and self.has_ability(Namespace.CONTROL_SENSOR_LATESTX):
                try:
                    await self.get_latest_sensor_readings(temp_hums)
                except exc.CommandError as err:
                    _LOGGER.debug("%s: latest readings < %s", self, err)

            if self.has_ability(Namespace.HUB_BATTERY):
                try:
                    await self.get_hub_battery()
                except exc.CommandError as err:
                    _LOGGER.debug("%s: battery < %s", self, err)

        if valves and self.has_ability(Namespace.HUB_MTS100_ALL):
            await self.get_mts100_all(valves)

    async def refresh_state(self) -> None:
        """Fetch the full state of the hub, and then of its subdevices."""

        await super().refresh_state()

        try:
            await self.refresh_subdevices()
        except (exc.CommandError, exc.CommandTimeoutError) as err:
            _LOGGER.error(
                "%s: subdevice refresh failed < %s(%s)", self, err.__class__.__name__, err
            )

