#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client.

Schema processor for the message layer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Final

import voluptuous as vol

from .const import (
    SZ_FROM,
    SZ_HEADER,
    SZ_MESSAGE_ID,
    SZ_METHOD,
    SZ_NAMESPACE,
    SZ_PAYLOAD,
    SZ_PAYLOAD_VERSION,
    SZ_TIMESTAMP,
    Method,
)

#
# 1/2: Schemas for message envelopes
SZ_SIGN: Final = "sign"
SZ_TRIGGER_SRC: Final = "triggerSrc"
SZ_UUID: Final = "uuid"

SCH_NAMESPACE = vol.All(str, vol.Match(r"^Appliance(\.[A-Za-z0-9]+)+$"))
SCH_METHOD = vol.All(vol.Upper, vol.In([str(m) for m in Method]))

SCH_MSG_HEADER = vol.Schema(
    {
        vol.Required(SZ_NAMESPACE): SCH_NAMESPACE,
        vol.Required(SZ_METHOD): SCH_METHOD,
        vol.Required(SZ_MESSAGE_ID): vol.All(str, vol.Length(min=1)),
        vol.Optional(SZ_FROM, default=""): str,
        vol.Optional(SZ_TIMESTAMP): vol.Any(int, float),
        vol.Optional(SZ_PAYLOAD_VERSION): int,
        vol.Optional(SZ_SIGN): str,
        vol.Optional(SZ_TRIGGER_SRC): str,
        vol.Optional(SZ_UUID): str,
    },
    extra=vol.ALLOW_EXTRA,
)

SCH_MSG_ENVELOPE = vol.Schema(
    {
        vol.Required(SZ_HEADER): SCH_MSG_HEADER,
        vol.Optional(SZ_PAYLOAD, default={}): vol.Any(None, dict, list),
    },
    extra=vol.REMOVE_EXTRA,
)


#
# 2/2: Schemas for the message logger
SZ_CC_CONSOLE: Final = "cc_console"
SZ_FILE_NAME: Final = "file_name"
SZ_ROTATE_BACKUPS: Final = "rotate_backups"
SZ_ROTATE_BYTES: Final = "rotate_bytes"


def NormaliseMessageLog() -> Callable[[Any], dict[str, Any]]:
    """Convert a file name (a str) to a message log dict, and None to an empty dict."""

    def normalise_message_log(node_value: None | str | dict[str, Any]) -> dict[str, Any]:
        if node_value is None:
            return {}
        if isinstance(node_value, str):
            return {SZ_FILE_NAME: node_value}
        return node_value

    return normalise_message_log


SCH_MESSAGE_LOG_CONFIG = vol.Schema(
    {
        vol.Optional(SZ_CC_CONSOLE, default=False): bool,
        vol.Optional(SZ_FILE_NAME, default=None): vol.Any(None, str),
        vol.Optional(SZ_ROTATE_BACKUPS, default=0): vol.All(int, vol.Range(min=0)),
        vol.Optional(SZ_ROTATE_BYTES, default=None): vol.Any(
            None, vol.All(int, vol.Range(min=1))
        ),
    },
    extra=vol.PREVENT_EXTRA,
)

SCH_MESSAGE_LOG = vol.All(NormaliseMessageLog(), SCH_MESSAGE_LOG_CONFIG)
