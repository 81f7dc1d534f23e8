#!/usr/bin/env python3
"""Meross IoT - the gateway: the entry point for inbound messages/notifications.

The gateway owns the devices (and, via hubs, their subdevices). It is transport
agnostic: inbound messages are passed to on_message()/handle_message(), and commands
are sent via an injected (coroutine) fetch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from types import SimpleNamespace
from typing import Any

import voluptuous as vol

from meross_tx import Message, Notification, parse_notification

from . import exceptions as exc
from .cache import ListenerT, StateChange
from .const import Method, Namespace, Source
from .device import Device, device_factory
from .dispatcher import process_msg
from .helpers import raise_for_error, schedule_task
from .schemas import SCH_GATEWAY_CONFIG

_LOGGER = logging.getLogger(__name__)


FetchT = Callable[[str, Method, str, Any], Awaitable[Any]]


class Gateway:
    """The gateway class."""

    def __init__(
        self,
        fetch: FetchT,
        config: Mapping[str, Any] | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetch = fetch
        self._clock = clock

        self.config = SimpleNamespace(**SCH_GATEWAY_CONFIG(dict(config or {})))

        self.devices: list[Device] = []
        self.device_by_id: dict[str, Device] = {}

        self._listeners: list[ListenerT] = []
        self._tasks: list[asyncio.Task[Any]] = []

    def __repr__(self) -> str:
        return f"Gateway(devices={len(self.devices)})"

    def add_device(self, info: Mapping[str, Any]) -> Device:
        """Create a device (or a hub, with its subdevices) from its info.

        If the device already exists, it is returned as is.
        """

        device = device_factory(self, info)

        if existing := self.device_by_id.get(device.id):
            _LOGGER.debug("%s: is already known", existing)
            return existing

        self.devices.append(device)
        self.device_by_id[device.id] = device
        return device

    def get_device(self, device_uuid: str) -> Device | None:
        return self.device_by_id.get(device_uuid)

    def add_listener(self, listener: ListenerT) -> Callable[[], None]:
        """Add a listener for the state changes of every device/subdevice.

        Returns a callable that will remove the listener.
        """

        self._listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener

    def _handle_state_change(self, event: StateChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as err:  # each listener is isolated
                _LOGGER.exception(
                    "Listener %s failed: %s(%s)", listener, err.__class__.__name__, err
                )

    async def on_message(
        self, namespace: str, payload: Any, device_uuid: str
    ) -> Notification | None:
        """Process an inbound push (a namespace, and its payload) from a device.

        Returns the notification (None if it was not processed).
        """

        if (device := self.device_by_id.get(device_uuid)) is None:
            _LOGGER.debug("%s < No known device: %s", namespace, device_uuid)
            return None

        if namespace == Namespace.SYSTEM_ALL and isinstance(payload, Mapping):
            try:
                device._handle_system_all(payload, Source.POLL)
            except (exc.MerossException, vol.Invalid) as err:
                _LOGGER.warning("%s < %s(%s)", namespace, err.__class__.__name__, err)
            except (AttributeError, LookupError, TypeError, ValueError) as err:
                _LOGGER.exception("%s < %s(%s)", namespace, err.__class__.__name__, err)
            return None

        if (notification := parse_notification(namespace, payload, device_uuid)) is None:
            return None

        try:
            await device.handle_notification(notification)

        except (exc.MerossException, vol.Invalid) as err:
            _LOGGER.warning("%s < %s(%s)", notification, err.__class__.__name__, err)

        except (AttributeError, LookupError, TypeError, ValueError) as err:
            _LOGGER.exception("%s < %s(%s)", notification, err.__class__.__name__, err)

        return notification

    async def handle_message(self, msg: Message, device_uuid: str | None = None) -> Any:
        """Process an inbound message (the device is determined by its from)."""
        return await process_msg(self, msg, device_uuid=device_uuid)

    async def _publish(
        self, device_uuid: str, method: Method, namespace: str, payload: Any
    ) -> Any:
        """Send a command via the transport, and return the reply payload."""

        _LOGGER.debug("%s > %s %s: %s", device_uuid, method, namespace, payload)

        reply = await self._fetch(device_uuid, method, namespace, payload)
        return raise_for_error(reply, device_uuid=device_uuid)

    async def _poll_devices(self) -> None:
        for device in self.devices:
            if not device.is_online or device.is_push_active:
                continue
            try:
                await device.refresh_state()
            except (exc.MerossException, vol.Invalid, OSError, TimeoutError) as err:
                _LOGGER.warning("%s: poll < %s(%s)", device, err.__class__.__name__, err)
            except (AttributeError, LookupError, TypeError, ValueError) as err:
                _LOGGER.exception("%s: poll < %s(%s)", device, err.__class__.__name__, err)

    def start_polling(self, interval: float) -> asyncio.Task[Any]:
        """Periodically refresh the state of the devices that are not pushing."""

        task = schedule_task(self._poll_devices, period=interval)
        self._tasks.append(task)
        return task

    async def stop(self) -> None:
        """Stop any polling, and tidy up."""

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
