#!/usr/bin/env python3
"""Meross IoT - exceptions within the message/notification layer."""

from __future__ import annotations


class _MerossBaseException(Exception):
    """Base class for all meross_tx exceptions."""

    pass


class MerossException(_MerossBaseException):
    """Base class for all meross_tx exceptions."""

    HINT: None | str = None

    def __init__(self, *args: object):
        super().__init__(*args)
        self.message: str | None = args[0] if args else None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self.message and self.HINT:
            return f"{self.message} (hint: {self.HINT})"
        if self.message:
            return self.message
        if self.HINT:
            return f"Hint: {self.HINT}"
        return ""


class _MerossLowerError(MerossException):
    """A failure in the lower layer (envelope, payload, notification)."""


########################################################################################
# Errors at/below the message layer, incl. envelope processing


class MessageInvalid(_MerossLowerError):
    """The message is corrupt/not internally consistent."""


class MessageHeaderInvalid(MessageInvalid):
    """The message's header is missing, or has an invalid field."""


class PayloadInvalid(MessageInvalid):
    """The message's payload is not of the expected shape."""


########################################################################################
# Errors at/below the message layer, incl. notification processing


class NotificationError(_MerossLowerError):
    """The push notification cannot be processed without error."""

    HINT = "the notification will be treated as a generic notification"
