#!/usr/bin/env python3
"""Meross IoT - the timer & trigger features (Control.TimerX, Control.TriggerX).

The timers (and triggers) of a channel are cached as a single value: {id: timer}.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Final

from meross_tx import normalize_channel, normalize_to_array
from meross_tx.const import SZ_CHANNEL, SZ_ID, SZ_TIMERX, SZ_TRIGGERX

from .. import exceptions as exc
from ..abilities import require_ability
from ..const import FeatureKind, Method, Namespace, Source
from ..entity_base import Entity, reply_items
from ..helpers import validate_required

_LOGGER = logging.getLogger(__name__)


TIMER_TYPE_SINGLE_POINT_WEEKLY_CYCLE: Final = 1
WEEK_REPEAT_BIT: Final = 0x80

_DAYS: Final = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_DAY_GROUPS: Final[dict[str, int]] = {
    "weekday": 0x1F,
    "weekend": 0x60,
    "daily": 0x7F,
    "everyday": 0x7F,
}

_DAY_NUMBERS: Final[dict[str, int]] = {d: i for i, d in enumerate(_DAYS)} | {
    d[:3]: i for i, d in enumerate(_DAYS)
}

_HH_MM_REGEX: Final = re.compile(r"^(\d{1,2}):(\d{2})$")


def time_to_minutes(value: str | datetime | int) -> int:
    """Convert a time (HH:MM, a datetime, or minutes) to minutes since midnight."""

    if isinstance(value, datetime):
        return value.hour * 60 + value.minute

    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value < 24 * 60:
            raise exc.ValidationError(f"invalid time: {value} (must be 0-1439 minutes)")
        return value

    if isinstance(value, str) and (match := _HH_MM_REGEX.match(value.strip())):
        hours, minutes = int(match[1]), int(match[2])
        if hours < 24 and minutes < 60:
            return hours * 60 + minutes

    raise exc.ValidationError(f"invalid time: {value!r} (expected HH:MM)")


def minutes_to_time(minutes: int) -> str:
    if not 0 <= minutes < 24 * 60:
        raise exc.ValidationError(f"invalid minutes: {minutes} (must be 0-1439)")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def days_to_week_mask(days: Iterable[str | int] | int, repeat: bool = True) -> int:
    """Convert days of the week (names, or numbers where 0 is Monday) to a bitmask.

    Bits 0-6 are Monday-Sunday, and bit 7 is set if the timer repeats weekly. A
    bitmask is returned as is, except for its repeat bit.
    """

    if isinstance(days, int):
        week = days
    else:
        if not (days := list(days)):
            raise exc.ValidationError("days must not be empty")

        week = 0
        for day in days:
            if isinstance(day, str) and day.lower() in _DAY_GROUPS:
                week |= _DAY_GROUPS[day.lower()]
            elif isinstance(day, str) and day.lower() in _DAY_NUMBERS:
                week |= 1 << _DAY_NUMBERS[day.lower()]
            elif isinstance(day, int) and 0 <= day < 7:
                week |= 1 << day
            else:
                raise exc.ValidationError(f"invalid day: {day!r}")

    return week | WEEK_REPEAT_BIT if repeat else week & ~WEEK_REPEAT_BIT


def generate_timer_id() -> str:
    return secrets.token_hex(8)


def create_timer(
    *,
    channel: int = 0,
    time_of_day: str | datetime | int = "12:00",
    days: Iterable[str | int] | int = _DAYS,
    on: bool = True,
    enabled: bool = True,
    repeat: bool = True,
    alias: str = "My Timer",
    timer_type: int = TIMER_TYPE_SINGLE_POINT_WEEKLY_CYCLE,
    id: str | None = None,
) -> dict[str, Any]:
    """Return a timer (a timerx item) that will switch a channel on/off."""

    return {
        SZ_ID: id or generate_timer_id(),
        SZ_CHANNEL: channel,
        "type": timer_type,
        "time": time_to_minutes(time_of_day),
        "week": days_to_week_mask(days, repeat=repeat),
        "duration": 0,
        "sunOffset": 0,
        "enable": 1 if enabled else 0,
        "alias": alias,
        "createTime": int(time.time()),
        "extend": {"toggle": {"onoff": 1 if on else 0, "lmTime": 0}},
    }


class Timers(Entity):
    _HANDLES = {
        Namespace.CONTROL_TIMERX: (SZ_TIMERX, "_update_timers"),
        Namespace.DIGEST_TIMERX: (SZ_TIMERX, "_update_timers"),
        Namespace.CONTROL_TRIGGERX: (SZ_TRIGGERX, "_update_triggers"),
        Namespace.DIGEST_TRIGGERX: (SZ_TRIGGERX, "_update_triggers"),
    }
    _DIGESTS = {
        (SZ_TIMERX,): "_update_timers",
        (SZ_TRIGGERX,): "_update_triggers",
    }

    def _update_by_id(self, kind: str, data: Any, source: Source) -> None:
        """Merge (per channel) the items of a payload into the cache, keyed by id."""

        by_channel: dict[int, dict[str, Any]] = {}
        for item in normalize_to_array(data):
            if not isinstance(item, Mapping) or item.get(SZ_ID) is None:
                continue
            channel = normalize_channel(item.get(SZ_CHANNEL))
            items = by_channel.setdefault(channel, {})
            old = (self.cache.value(channel, kind) or {}).get(item[SZ_ID]) or {}
            items[item[SZ_ID]] = {**old, **item}  # a digest item has only a few fields

        for channel, items in by_channel.items():
            self.cache.update(channel, kind, items, source=source)

    def _update_timers(self, data: Any, source: Source) -> None:
        self._update_by_id(FeatureKind.TIMER, data, source)

    def _update_triggers(self, data: Any, source: Source) -> None:
        self._update_by_id(FeatureKind.TRIGGER, data, source)

    def _forget(self, kind: str, channel: int, id: str) -> None:
        if (items := self.cache.value(channel, kind)) is None or id not in items:
            return
        self.cache.update(
            channel,
            kind,
            {k: v for k, v in items.items() if k != id},
            source=Source.RESPONSE,
            replace=True,
        )

    #
    # Timers
    async def get_timers(self, channel: int = 0) -> list[dict[str, Any]]:
        """Fetch the timers of a channel."""

        require_ability(self, Namespace.CONTROL_TIMERX)

        reply = await self.publish(
            Method.GET, Namespace.CONTROL_TIMERX, {SZ_TIMERX: {SZ_CHANNEL: channel}}
        )
        self._update_timers(reply_items(reply, SZ_TIMERX), Source.RESPONSE)
        return self.timers(channel)

    def timers(self, channel: int = 0) -> list[dict[str, Any]]:
        """Return the cached timers of a channel."""

        self.validate_state()
        return list((self.cache.value(channel, FeatureKind.TIMER) or {}).values())

    async def set_timer(self, **options: Any) -> Any:
        """Add (or update) a timer (requires timerx, see create_timer())."""

        validate_required(options, (SZ_TIMERX,))
        require_ability(self, Namespace.CONTROL_TIMERX)

        timer = options[SZ_TIMERX]
        reply = await self.publish(Method.SET, Namespace.CONTROL_TIMERX, {SZ_TIMERX: timer})
        self._update_timers(reply_items(reply, SZ_TIMERX) or timer, Source.RESPONSE)
        return reply

    async def delete_timer(self, timer_id: str, channel: int = 0) -> Any:
        if not timer_id:
            raise exc.ValidationError("missing required option(s): timer_id")
        require_ability(self, Namespace.CONTROL_TIMERX)

        reply = await self.publish(
            Method.DELETE, Namespace.CONTROL_TIMERX, {SZ_TIMERX: {SZ_ID: timer_id}}
        )
        self._forget(FeatureKind.TIMER, channel, timer_id)
        return reply

    #
    # Triggers
    async def get_triggers(self, channel: int = 0) -> list[dict[str, Any]]:
        require_ability(self, Namespace.CONTROL_TRIGGERX)

        reply = await self.publish(
            Method.GET, Namespace.CONTROL_TRIGGERX, {SZ_TRIGGERX: {SZ_CHANNEL: channel}}
        )
        self._update_triggers(reply_items(reply, SZ_TRIGGERX), Source.RESPONSE)
        return self.triggers(channel)

    def triggers(self, channel: int = 0) -> list[dict[str, Any]]:
        self.validate_state()
        return list((self.cache.value(channel, FeatureKind.TRIGGER) or {}).values())

    async def set_trigger(self, **options: Any) -> Any:
        """Add (or update) a trigger (requires triggerx)."""

        validate_required(options, (SZ_TRIGGERX,))
        require_ability(self, Namespace.CONTROL_TRIGGERX)

        trigger = options[SZ_TRIGGERX]
        reply = await self.publish(
            Method.SET, Namespace.CONTROL_TRIGGERX, {SZ_TRIGGERX: trigger}
        )
        self._update_triggers(reply_items(reply, SZ_TRIGGERX) or trigger, Source.RESPONSE)
        return reply

    async def delete_trigger(self, trigger_id: str, channel: int = 0) -> Any:
        if not trigger_id:
            raise exc.ValidationError("missing required option(s): trigger_id")
        require_ability(self, Namespace.CONTROL_TRIGGERX)

        reply = await self.publish(
            Method.DELETE, Namespace.CONTROL_TRIGGERX, {SZ_TRIGGERX: {SZ_ID: trigger_id}}
        )
        self._forget(FeatureKind.TRIGGER, channel, trigger_id)
        return reply
