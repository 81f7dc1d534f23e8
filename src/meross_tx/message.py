#!/usr/bin/env python3
"""Meross IoT - Decode/validate a message envelope (header and payload)."""

from __future__ import annotations

import json
import logging
from datetime import datetime as dt
from typing import Any

import voluptuous as vol

from . import exceptions as exc
from .const import (
    SZ_FROM,
    SZ_HEADER,
    SZ_MESSAGE_ID,
    SZ_METHOD,
    SZ_NAMESPACE,
    SZ_PAYLOAD,
    SZ_TIMESTAMP,
    Method,
)
from .notifications import Notification, parse_notification
from .schemas import SCH_MSG_ENVELOPE

__all__ = ["Message"]


_LOGGER = logging.getLogger(__name__)


class Message:
    """The Message class; will raise MessageInvalid for any invalid envelope."""

    def __init__(self, header: dict[str, Any], payload: Any) -> None:
        self._header = header
        self._payload = payload

        self.namespace: str = header[SZ_NAMESPACE]
        self.method = Method(header[SZ_METHOD])
        self.message_id: str = header[SZ_MESSAGE_ID]
        self.src: str = header.get(SZ_FROM) or ""

        self._notification: Notification | None = None

    def __repr__(self) -> str:
        return f"{self.method:<6} {self.namespace} ({self.message_id})"

    def __str__(self) -> str:
        return f"{self!r} {self._payload}"

    @classmethod
    def from_dict(cls, msg_dict: Any) -> Message:
        """Create a message from a (decoded JSON) dict, after validating it.

        Will raise MessageInvalid (or MessageHeaderInvalid) if it is invalid.
        """

        if not isinstance(msg_dict, dict):
            raise exc.MessageInvalid(f"message is not a dict: {msg_dict!r}")

        try:
            msg_dict = SCH_MSG_ENVELOPE(msg_dict)
        except vol.MultipleInvalid as err:
            if err.path and err.path[0] == SZ_HEADER:
                raise exc.MessageHeaderInvalid(f"{err}") from err
            raise exc.MessageInvalid(f"{err}") from err

        return cls(msg_dict[SZ_HEADER], msg_dict[SZ_PAYLOAD])

    @classmethod
    def from_json(cls, json_str: bytes | str) -> Message:
        """Create a message from its JSON representation (e.g. an MQTT payload)."""

        try:
            msg_dict = json.loads(json_str)
        except (TypeError, ValueError) as err:  # json.JSONDecodeError is a ValueError
            raise exc.MessageInvalid(f"message is not valid JSON: {err}") from err

        return cls.from_dict(msg_dict)

    @property
    def header(self) -> dict[str, Any]:
        return self._header

    @property
    def payload(self) -> Any:
        return self._payload

    @property
    def dtm(self) -> dt | None:
        """Return the timestamp of the message (as sent by the device), if any."""
        if (timestamp := self._header.get(SZ_TIMESTAMP)) is None:
            return None
        return dt.fromtimestamp(timestamp)

    @property
    def is_push(self) -> bool:
        return self.method == Method.PUSH

    @property
    def is_error(self) -> bool:
        return self.method == Method.ERROR

    def is_from(self, device_uuid: str) -> bool:
        """Return True if the message was sent by the device (if no src, assume so)."""
        return not self.src or device_uuid in self.src

    def notification(self, device_uuid: str) -> Notification | None:
        """Return the message as a push notification (is None if it isn't a PUSH)."""

        if not self.is_push:
            return None
        if self._notification is None:
            self._notification = parse_notification(
                self.namespace, self._payload, device_uuid
            )
        return self._notification
