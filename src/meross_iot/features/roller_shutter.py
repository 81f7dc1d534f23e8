#!/usr/bin/env python3
"""Meross IoT - the roller shutter feature."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final

from meross_tx import normalize_channel
from meross_tx.const import SZ_CHANNEL, SZ_POSITION, SZ_ROLLER_SHUTTER, SZ_STATE

from ..abilities import require_ability
from ..const import FeatureKind, Method, Namespace, RollerShutterStatus, Source
from ..entity_base import Entity, reply_items
from ..helpers import validate_required

_LOGGER = logging.getLogger(__name__)


POSITION_OPEN: Final = 100
POSITION_CLOSED: Final = 0
POSITION_STOP: Final = -1  # a command, not a position


def _state_value(item: Mapping[str, Any]) -> dict[str, Any]:
    return {k: item[k] for k in (SZ_STATE, SZ_POSITION) if item.get(k) is not None}


def _position_value(item: Mapping[str, Any]) -> dict[str, Any]:
    if (position := item.get(SZ_POSITION)) is None or position == POSITION_STOP:
        return {}
    return {SZ_POSITION: position}


class RollerShutter(Entity):
    _HANDLES = {
        Namespace.ROLLER_SHUTTER_STATE: (SZ_STATE, "_update_roller_shutter_state"),
        Namespace.ROLLER_SHUTTER_POSITION: (
            SZ_POSITION,
            "_update_roller_shutter_position",
        ),
    }
    _DIGESTS = {
        (SZ_ROLLER_SHUTTER, SZ_STATE): "_update_roller_shutter_state",
        (SZ_ROLLER_SHUTTER, SZ_POSITION): "_update_roller_shutter_position",
    }

    def _update_roller_shutter_state(self, data: Any, source: Source) -> None:
        self._update_items(FeatureKind.ROLLER_SHUTTER, data, _state_value, source)

    def _update_roller_shutter_position(self, data: Any, source: Source) -> None:
        self._update_items(FeatureKind.ROLLER_SHUTTER, data, _position_value, source)

    async def get_roller_shutter_state(self, channel: int = 0) -> dict[str, Any]:
        """Return the state (and position) of a shutter, fetching it if required."""

        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.ROLLER_SHUTTER_STATE)
            return await self._fetch_channel(
                Namespace.ROLLER_SHUTTER_STATE,
                {},
                SZ_STATE,
                channel,
                FeatureKind.ROLLER_SHUTTER,
                _state_value,
            )

        return await self.cache.get(channel, FeatureKind.ROLLER_SHUTTER, fetch)

    async def get_roller_shutter_position(self, channel: int = 0) -> int | None:
        """Fetch the position of a shutter (0 is closed, 100 is open)."""

        require_ability(self, Namespace.ROLLER_SHUTTER_POSITION)
        value = await self._fetch_channel(
            Namespace.ROLLER_SHUTTER_POSITION,
            {},
            SZ_POSITION,
            channel,
            FeatureKind.ROLLER_SHUTTER,
            _position_value,
        )
        return value.get(SZ_POSITION)  # type: ignore[no-any-return]

    def roller_shutter_status(self, channel: int = 0) -> RollerShutterStatus | None:
        if (state := self._cached(channel, FeatureKind.ROLLER_SHUTTER, SZ_STATE)) is None:
            return None
        try:
            return RollerShutterStatus(state)
        except ValueError:
            return RollerShutterStatus.UNKNOWN

    def roller_shutter_position(self, channel: int = 0) -> int | None:
        return self._cached(channel, FeatureKind.ROLLER_SHUTTER, SZ_POSITION)  # type: ignore[no-any-return]

    async def set_roller_shutter_position(self, **options: Any) -> Any:
        """Move a shutter to a position (requires position, -1 will stop it)."""

        validate_required(options, (SZ_POSITION,))
        require_ability(self, Namespace.ROLLER_SHUTTER_POSITION)

        channel = normalize_channel(options)
        item = {SZ_POSITION: options[SZ_POSITION], SZ_CHANNEL: channel}

        reply = await self.publish(
            Method.SET, Namespace.ROLLER_SHUTTER_POSITION, {SZ_POSITION: item}
        )
        self._update_roller_shutter_position(
            reply_items(reply, SZ_POSITION) or item, Source.RESPONSE
        )
        return reply

    async def open_roller_shutter(self, channel: int = 0) -> Any:
        return await self.set_roller_shutter_position(
            channel=channel, position=POSITION_OPEN
        )

    async def close_roller_shutter(self, channel: int = 0) -> Any:
        return await self.set_roller_shutter_position(
            channel=channel, position=POSITION_CLOSED
        )

    async def stop_roller_shutter(self, channel: int = 0) -> Any:
        return await self.set_roller_shutter_position(
            channel=channel, position=POSITION_STOP
        )
