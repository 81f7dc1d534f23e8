#!/usr/bin/env python3
"""Meross IoT - the alarm feature (Control.Alarm), e.g. of a siren."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping
from typing import Any, Final

from meross_tx import normalize_channel, normalize_to_array
from meross_tx.const import SZ_ALARM, SZ_CHANNEL, SZ_CONFIG, SZ_EVENT, SZ_VALUE

from ..abilities import require_ability
from ..const import FeatureKind, Method, Namespace, Source
from ..entity_base import Entity
from ..helpers import validate_required

_LOGGER = logging.getLogger(__name__)


MAX_ALARM_EVENTS: Final = 10

SZ_SECURITY = "security"
SZ_CONFIG_ALARM = "Appliance.Config.Alarm"

ALARM_ON: Final = 1
ALARM_OFF: Final = 2


def _alarm_value(item: Mapping[str, Any]) -> dict[str, Any]:
    """Return the value & timestamp of an alarm event (interConn, or security)."""

    if not isinstance(event := item.get(SZ_EVENT), Mapping):
        return {}
    for key in ("interConn", SZ_SECURITY):
        if isinstance(detail := event.get(key), Mapping) and SZ_VALUE in detail:
            return {SZ_VALUE: detail[SZ_VALUE], "timestamp": detail.get("timestamp")}
    return {}


class Alarm(Entity):
    _HANDLES = {Namespace.CONTROL_ALARM: (SZ_ALARM, "_update_alarm")}

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        self._alarm_events: deque[dict[str, Any]] = deque(maxlen=MAX_ALARM_EVENTS)

    def _update_alarm(self, data: Any, source: Source) -> None:
        for item in normalize_to_array(data):
            if not isinstance(item, Mapping):
                continue
            self._alarm_events.appendleft(dict(item))
            if value := _alarm_value(item):
                channel = normalize_channel(item.get(SZ_CHANNEL))
                self.cache.update(channel, FeatureKind.ALARM, value, source=source)

    @property
    def alarm_events(self) -> list[dict[str, Any]]:
        """Return the most recent alarm events (most recent first)."""
        return list(self._alarm_events)

    def alarm_value(self, channel: int = 0) -> int | None:
        return self._cached(channel, FeatureKind.ALARM, SZ_VALUE)  # type: ignore[no-any-return]

    async def get_alarm(self, channel: int = 0) -> Any:
        require_ability(self, Namespace.CONTROL_ALARM)
        return await self.publish(
            Method.GET, Namespace.CONTROL_ALARM, {SZ_ALARM: [{SZ_CHANNEL: channel}]}
        )

    async def set_alarm(
        self, channel: int = 0, *, on: bool, duration: int | None = None
    ) -> Any:
        """Sound (or silence) an alarm, optionally for duration seconds."""

        require_ability(self, Namespace.CONTROL_ALARM)

        security: dict[str, Any] = {SZ_VALUE: ALARM_ON if on else ALARM_OFF}
        if duration is not None:
            security["time"] = duration

        reply = await self.publish(
            Method.SET,
            Namespace.CONTROL_ALARM,
            {SZ_ALARM: [{SZ_CHANNEL: channel, SZ_EVENT: {SZ_SECURITY: security}}]},
        )
        if isinstance(reply, Mapping) and reply.get(SZ_ALARM):
            self._update_alarm(reply[SZ_ALARM], Source.RESPONSE)
        return reply

    async def set_alarm_config(self, channel: int = 0, **options: Any) -> Any:
        """Set the volume & ringtone of an alarm (requires enable, volume & song)."""

        validate_required(options, ("enable", "volume", "song"))
        require_ability(self, SZ_CONFIG_ALARM)

        config = {SZ_CHANNEL: channel} | {
            k: options[k] for k in ("enable", "volume", "song")
        }
        return await self.publish(Method.SET, SZ_CONFIG_ALARM, {SZ_CONFIG: [config]})
