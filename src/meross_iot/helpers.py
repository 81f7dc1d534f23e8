#!/usr/bin/env python3
"""Meross IoT - Helper functions."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from inspect import iscoroutinefunction
from typing import Any

from meross_tx.const import SZ_HEADER, SZ_METHOD, SZ_PAYLOAD

from . import exceptions as exc
from .const import Method

RgbT = tuple[int, int, int]


def validate_required(options: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Raise a ValidationError if any of the fields is missing (or is None)."""

    if missing := [f for f in fields if options.get(f) is None]:
        raise exc.ValidationError(f"missing required option(s): {', '.join(missing)}")


def shallow_merge(old: Mapping[str, Any] | None, new: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict: the old dict overwritten by only those fields in new."""
    return {**(old or {}), **new}


def raise_for_error(reply: Any, device_uuid: str | None = None) -> Any:
    """Return the payload of a reply, raising a CommandError if it is an ERROR.

    The reply may be a whole message (a dict with a header), or only its payload.
    """

    if not isinstance(reply, Mapping) or not isinstance(
        header := reply.get(SZ_HEADER), Mapping
    ):
        return reply

    if header.get(SZ_METHOD) == Method.ERROR:
        raise exc.CommandError(
            f"{header.get('namespace')}: the device replied with an error",
            error_payload=reply.get(SZ_PAYLOAD),
            device_uuid=device_uuid,
        )
    return reply.get(SZ_PAYLOAD)


def int_to_rgb(value: int) -> RgbT:
    """Convert an rgb value (e.g. 0xFF8000) to an (r, g, b) tuple."""
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def rgb_to_int(rgb: int | Iterable[int]) -> int:
    """Convert an (r, g, b) tuple to an rgb value (an int is returned as is)."""

    if isinstance(rgb, int):
        return rgb
    red, green, blue = rgb
    return (red << 16) | (green << 8) | blue


def schedule_task(
    fnc: Awaitable[Any] | Callable[..., Any],
    *args: Any,
    delay: float | None = None,
    period: float | None = None,
    **kwargs: Any,
) -> asyncio.Task[Any]:
    """Call fnc (a callback or a coroutine function) in a task.

    The first call is after delay seconds, and is repeated every period seconds, if any.
    """

    async def call_fnc() -> None:
        result = fnc(*args, **kwargs)  # type: ignore[operator]
        if iscoroutinefunction(fnc):
            await result

    async def run() -> None:
        await asyncio.sleep(delay or 0)
        await call_fnc()
        while period:
            await asyncio.sleep(period)
            await call_fnc()

    return asyncio.create_task(run(), name=f"schedule_task({fnc!r})")
