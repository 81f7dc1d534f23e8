#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client."""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING, Any

from .const import (
    HUB_DISCRIMINATING_ABILITY,
    HUB_NAMESPACE_DATA_KEYS,
    Method,
    Namespace,
    OnlineStatus,
    PresenceState,
    SmokeAlarmStatus,
)
from .helpers import (
    camel_to_snake,
    normalize_channel,
    normalize_key,
    normalize_to_array,
    subdevice_id_of,
)
from .logger import MSG_LOGGER, set_logging
from .message import Message
from .notifications import (
    NOTIFICATION_CLASS_BY_NAMESPACE,
    GenericNotification,
    Notification,
    extract_hub_items,
    parse_notification,
)
from .schemas import SCH_MESSAGE_LOG
from .version import VERSION

__all__ = [
    "VERSION",
    #
    "HUB_DISCRIMINATING_ABILITY",
    "HUB_NAMESPACE_DATA_KEYS",
    "NOTIFICATION_CLASS_BY_NAMESPACE",
    #
    "Method",
    "Namespace",
    "OnlineStatus",
    "PresenceState",
    "SmokeAlarmStatus",
    #
    "GenericNotification",
    "Message",
    "Notification",
    #
    "camel_to_snake",
    "extract_hub_items",
    "normalize_channel",
    "normalize_key",
    "normalize_to_array",
    "parse_notification",
    "subdevice_id_of",
    #
    "set_message_logging_config",
]


if TYPE_CHECKING:
    from logging import Logger


async def set_message_logging_config(
    message_log: None | str | dict[str, Any] = None, **config: Any
) -> Logger:
    """Set up message logging to a file and/or the console.

    The config is either a file name, or a dict of file_name, rotate_backups,
    rotate_bytes and cc_console. Runs in an executor, as opening the log file is a
    blocking call.
    """

    config = SCH_MESSAGE_LOG(message_log if message_log is not None else config)

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, partial(set_logging, MSG_LOGGER, **config))
    return MSG_LOGGER
