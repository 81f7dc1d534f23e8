#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client.

Base for all devices.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from meross_tx import Message, Notification
from meross_tx.const import (
    SZ_ALL,
    SZ_DIGEST,
    SZ_FIRMWARE,
    SZ_HARDWARE,
    SZ_ONLINE,
    SZ_STATUS,
    SZ_SYSTEM,
)
from meross_tx.notifications import BindNotification, FirmwareInfo, HardwareInfo

from .. import exceptions as exc
from ..const import FeatureKind, Method, Namespace, OnlineStatus, Source
from ..entity_base import Entity
from ..features import (
    Alarm,
    Diffuser,
    GarageDoor,
    Light,
    Presence,
    RollerShutter,
    Spray,
    Thermostat,
    Timers,
)
from ..schemas import SCH_ABILITIES

if TYPE_CHECKING:
    from ..gateway import Gateway


_LOGGER = logging.getLogger(__name__)


SZ_ABILITY = "ability"


class DeviceBase(Entity):
    """The Device base class - a directly connected device (i.e. not a subdevice)."""

    _SLUG: str = "device"

    _HANDLES = {
        Namespace.SYSTEM_ONLINE: (SZ_ONLINE, "_update_online"),
        Namespace.CONTROL_BIND: (None, "_update_bind"),
    }

    def __init__(
        self,
        gwy: Gateway,
        uuid: str,
        *,
        dev_name: str | None = None,
        device_type: str | None = None,
        abilities: Mapping[str, Any] | None = None,
        online_status: int = OnlineStatus.UNKNOWN,
    ) -> None:
        super().__init__(gwy, uuid, abilities=abilities)

        self.name = dev_name or uuid
        self.device_type = device_type

        self._online_status = OnlineStatus(online_status)
        self.hardware: HardwareInfo | None = None
        self.firmware: FirmwareInfo | None = None

        self._last_push: float | None = None

    @property
    def online_status(self) -> OnlineStatus:
        return self._online_status

    @property
    def is_online(self) -> bool:
        return self.online_status == OnlineStatus.ONLINE

    def _set_online_status(self, status: Any, source: Source) -> None:
        status = OnlineStatus(status)  # an unknown value is OnlineStatus.UNKNOWN

        if status != self._online_status:
            _LOGGER.info(
                "%s: online status changed from %s to %s",
                self,
                self._online_status.name,
                status.name,
            )
            self._online_status = status
            if status != OnlineStatus.ONLINE:  # its cached state is now stale
                self.cache.invalidate()

        self.cache.update(0, FeatureKind.ONLINE, {SZ_STATUS: int(status)}, source=source)

    def _update_online(self, data: Any, source: Source) -> None:
        if isinstance(data, Mapping) and data.get(SZ_STATUS) is not None:
            self._set_online_status(data[SZ_STATUS], source)

    def _update_bind(self, data: Any, source: Source) -> None:
        notification = BindNotification(self.id, data)

        self.hardware = notification.hwinfo or self.hardware
        self.firmware = notification.fwinfo or self.firmware

    def update_abilities(self, abilities: Mapping[str, Any]) -> None:
        """Replace the abilities of the device (keep the old ones if invalid)."""

        try:
            self.abilities = SCH_ABILITIES(dict(abilities))
        except vol.Invalid as err:
            _LOGGER.warning(
                "%s < abilities ignored: %s(%s)", self, err.__class__.__name__, err
            )

    async def publish(self, method: Method, namespace: str, payload: Any) -> Any:
        return await self._gwy._publish(self.id, method, namespace, payload)

    async def handle_message(self, msg: Message) -> None:
        """Process a message from (or purportedly from) this device."""

        if not msg.is_from(self.id):
            _LOGGER.debug("%r < Ignored (not from %s, src=%s)", msg, self.id, msg.src)
            return

        if msg.namespace == Namespace.SYSTEM_ALL and isinstance(msg.payload, Mapping):
            self._handle_system_all(msg.payload, Source.POLL)
            return

        if msg.is_push:
            if (notification := msg.notification(self.id)) is not None:
                await self.handle_notification(notification)
            return

        if msg.is_error:
            _LOGGER.warning("%r < The device reported an error: %s", msg, msg.payload)
        else:  # command replies are returned via the transport, not here
            _LOGGER.debug("%r < Ignored (not a push)", msg)

    def _handle_system_all(self, payload: Mapping[str, Any], source: Source) -> None:
        """Update the device's state from a System.All payload (the full state)."""

        if not isinstance(data := payload.get(SZ_ALL), Mapping):
            _LOGGER.warning("%s < System.All has no %s: %s", self, SZ_ALL, payload)
            return

        if isinstance(abilities := payload.get(SZ_ABILITY), Mapping):
            self.update_abilities(abilities)

        if isinstance(system := data.get(SZ_SYSTEM), Mapping):
            self.hardware = HardwareInfo.from_dict(system.get(SZ_HARDWARE)) or self.hardware
            self.firmware = FirmwareInfo.from_dict(system.get(SZ_FIRMWARE)) or self.firmware
            self._update_online(system.get(SZ_ONLINE), source)

        if isinstance(digest := data.get(SZ_DIGEST), Mapping):
            self._route_digest(digest, source)

        self.last_full_update = self._gwy._clock()

    async def handle_notification(self, notification: Notification) -> None:
        """Apply a push notification to the device's cached state."""

        self._last_push = self._gwy._clock()

        if changes := notification.extract_changes():
            self._apply_changes(changes, Source.PUSH)

        elif not self._dispatch(notification.namespace, notification.raw_data, Source.PUSH):
            _LOGGER.debug("%s < %s: no handler for this namespace", self, notification)

    async def refresh_state(self) -> None:
        """Fetch the full state of the device (via System.All)."""

        reply = await self.publish(Method.GET, Namespace.SYSTEM_ALL, {})

        if not isinstance(reply, Mapping) or not isinstance(reply.get(SZ_ALL), Mapping):
            raise exc.CommandError(
                f"{Namespace.SYSTEM_ALL}: the reply has no {SZ_ALL}",
                error_payload=reply,
                device_uuid=self.id,
            )
        self._handle_system_all(reply, Source.POLL)

    @property
    def is_push_active(self) -> bool:
        """Return True if the device has sent a push recently (so polling can be eased)."""

        if self._last_push is None:
            return False
        timeout = self._gwy.config.push_inactivity_timeout
        return self._gwy._clock() - self._last_push < timeout


class Device(
    Alarm,
    Diffuser,
    GarageDoor,
    Light,
    Presence,
    RollerShutter,
    Spray,
    Thermostat,
    Timers,
    DeviceBase,
):
    """A device with any of the known features (each is gated by its abilities)."""
