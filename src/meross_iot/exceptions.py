#!/usr/bin/env python3
"""Meross IoT - exceptions above the message/notification layer."""

from __future__ import annotations

from typing import Any

from meross_tx.exceptions import (
    MerossException as MerossException,
    MessageHeaderInvalid as MessageHeaderInvalid,
    MessageInvalid as MessageInvalid,
    NotificationError as NotificationError,
    PayloadInvalid as PayloadInvalid,
)


class _MerossUpperError(MerossException):
    """A failure in the upper layer (devices, state cache, gateway)."""


########################################################################################
# Errors when sending commands to a device (via the transport)


class CommandError(_MerossUpperError):
    """The device replied to a command with an ERROR."""

    def __init__(
        self,
        *args: object,
        error_payload: Any = None,
        device_uuid: str | None = None,
    ) -> None:
        super().__init__(*args)
        self.error_payload = error_payload
        self.device_uuid = device_uuid


class CommandTimeoutError(_MerossUpperError):
    """The device did not reply to a command in time."""

    HINT = "is the device online?"

    def __init__(
        self,
        *args: object,
        device_uuid: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(*args)
        self.device_uuid = device_uuid
        self.timeout = timeout


########################################################################################
# Errors when using a device, incl. its features and subdevices


class UnknownDeviceTypeError(_MerossUpperError):
    """The device (or subdevice) type is not known."""

    HINT = "it will be treated as a generic device"


class ValidationError(_MerossUpperError):
    """A command is missing a required option, or has an invalid one."""


class UnsupportedFeatureError(_MerossUpperError):
    """The device does not have the ability required by the feature."""


class SubdeviceNotRegistered(_MerossUpperError, LookupError):
    """The hub has no subdevice with this id."""

    HINT = "refresh the hub's subdevice list"
