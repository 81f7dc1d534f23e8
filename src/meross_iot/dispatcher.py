#!/usr/bin/env python3
"""Meross IoT - Route a message/notification to its device, or to a hub's subdevices."""

from __future__ import annotations

import logging
from enum import EnumCheck, StrEnum, verify
from typing import TYPE_CHECKING, Any, Final, NamedTuple

import voluptuous as vol

from meross_tx import Message, Notification, extract_hub_items, subdevice_id_of
from meross_tx.logger import MSG_LOGGER

from . import exceptions as exc

if TYPE_CHECKING:
    from .device import HubDevice
    from .gateway import Gateway

#
# NOTE: All debug flags should be False for deployment to end-users
_DBG_FORCE_LOG_MESSAGES: Final[bool] = False  # useful for dev/test

_LOGGER = logging.getLogger(__name__)


__all__ = ["RouteOutcome", "RouteResult", "process_msg", "route"]


@verify(EnumCheck.UNIQUE)
class RouteOutcome(StrEnum):
    DELIVERED = "delivered"
    SKIPPED_UNREGISTERED = "skipped-unregistered"
    SKIPPED_NO_ID = "skipped-no-id"
    HANDLER_ERROR = "handler-error"


class RouteResult(NamedTuple):
    subdevice_id: str | None
    outcome: RouteOutcome
    error: BaseException | None = None


async def route(
    notification: Notification,
    hub: HubDevice,
    *,
    log_unregistered: bool = True,
) -> list[RouteResult]:
    """Dispatch each item of a hub notification to its subdevice, in array order.

    Returns the outcome of each item. A device-scoped notification is not routed (and
    the result is empty). The failure of one item's handler does not affect the others.
    """

    if not notification.is_hub_scoped:
        return []

    items = extract_hub_items(notification.namespace, notification.raw_data)
    if items is None:
        _LOGGER.debug("%s < No items to route (is not an array)", notification)
        return []

    results: list[RouteResult] = []

    for item in items:
        if (sub_id := subdevice_id_of(item)) is None:
            _LOGGER.debug("%s < Item has no subdevice id: %s", notification, item)
            results.append(RouteResult(None, RouteOutcome.SKIPPED_NO_ID))
            continue

        if (subdevice := hub.get_subdevice(sub_id)) is None:
            (_LOGGER.warning if log_unregistered else _LOGGER.debug)(
                "%s < Received an update for subdevice %s, that has not been "
                "registered with hub %s: update will be skipped",
                notification,
                sub_id,
                hub.id,
            )
            results.append(RouteResult(sub_id, RouteOutcome.SKIPPED_UNREGISTERED))
            continue

        try:
            await subdevice.handle_notification(notification.namespace, item)

        except Exception as err:  # each item is isolated
            _LOGGER.error(
                "%s < Error routing to subdevice %s: %s(%s)",
                notification,
                sub_id,
                err.__class__.__name__,
                err,
                exc_info=not isinstance(err, exc.MerossException),
            )
            results.append(RouteResult(sub_id, RouteOutcome.HANDLER_ERROR, err))

        else:
            results.append(RouteResult(sub_id, RouteOutcome.DELIVERED))

    return results


async def process_msg(gwy: Gateway, msg: Message, device_uuid: str | None = None) -> Any:
    """Route a message to the device that sent it (as determined by its src)."""

    def log_msg(msg: Message, device_id: str) -> None:
        if _DBG_FORCE_LOG_MESSAGES:
            MSG_LOGGER.warning(msg, extra={"device": device_id})
        else:
            MSG_LOGGER.info(msg, extra={"device": device_id})

    if device_uuid is None:
        device = next((d for d in gwy.devices if msg.is_from(d.id)), None)
    else:
        device = gwy.device_by_id.get(device_uuid)

    if device is None:
        _LOGGER.debug("%r < No known device for this message (src=%s)", msg, msg.src)
        return None

    try:
        result = await device.handle_message(msg)

    except (exc.MerossException, NotImplementedError, vol.Invalid) as err:
        _LOGGER.warning("%r < %s(%s)", msg, err.__class__.__name__, err)
        return None

    except (AttributeError, LookupError, TypeError, ValueError) as err:
        _LOGGER.exception("%r < %s(%s)", msg, err.__class__.__name__, err)
        return None

    else:
        log_msg(msg, device.id)
        return result
