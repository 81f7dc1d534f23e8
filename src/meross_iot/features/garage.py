#!/usr/bin/env python3
"""Meross IoT - the garage door opener feature.

The door state is served from the cache if it is younger than the garage door's
freshness window (see the cache_max_age config), otherwise it is fetched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final

from meross_tx import normalize_channel
from meross_tx.const import (
    SZ_CHANNEL,
    SZ_CONFIG,
    SZ_GARAGE_DOOR,
    SZ_OPEN,
    SZ_STATE,
    SZ_UUID,
)

from ..abilities import require_ability
from ..const import FeatureKind, Method, Namespace, Source
from ..entity_base import Entity, reply_items
from ..helpers import validate_required

_LOGGER = logging.getLogger(__name__)


# the (camelCase) options of a garage door's config
GARAGE_DOOR_CONFIG_KEYS: Final = (
    "signalDuration",
    "buzzerEnable",
    "doorOpenDuration",
    "doorCloseDuration",
)


def _garage_door_value(item: Mapping[str, Any]) -> dict[str, Any]:
    if (is_open := item.get(SZ_OPEN)) is None:
        return {}
    return {"isOpen": is_open == 1}


def _garage_door_config(item: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if k != SZ_CHANNEL}


class GarageDoor(Entity):
    _HANDLES = {
        Namespace.GARAGE_DOOR_STATE: (SZ_STATE, "_update_garage_door"),
        Namespace.GARAGE_DOOR_MULTIPLE_CONFIG: (SZ_CONFIG, "_update_garage_door_config"),
    }
    _DIGESTS = {(SZ_GARAGE_DOOR,): "_update_garage_door"}

    def _update_garage_door(self, data: Any, source: Source) -> None:
        self._update_items(FeatureKind.GARAGE_DOOR, data, _garage_door_value, source)

    def _update_garage_door_config(self, data: Any, source: Source) -> None:
        self._update_items(
            FeatureKind.GARAGE_DOOR_CONFIG, data, _garage_door_config, source
        )

    async def get_garage_door_state(self, channel: int = 0) -> dict[str, Any]:
        """Return the state of a door, fetching it only if the cached state is old."""

        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.GARAGE_DOOR_STATE)
            return await self._fetch_channel(
                Namespace.GARAGE_DOOR_STATE,
                {SZ_STATE: {SZ_CHANNEL: channel}},
                SZ_STATE,
                channel,
                FeatureKind.GARAGE_DOOR,
                _garage_door_value,
            )

        return await self.cache.get(channel, FeatureKind.GARAGE_DOOR, fetch)

    async def set_garage_door(self, **options: Any) -> Any:
        """Open/close a door (requires open, channel is optional)."""

        validate_required(options, (SZ_OPEN,))
        require_ability(self, Namespace.GARAGE_DOOR_STATE)

        channel = normalize_channel(options)
        state = {SZ_CHANNEL: channel, SZ_OPEN: 1 if options[SZ_OPEN] else 0}

        reply = await self.publish(
            Method.SET,
            Namespace.GARAGE_DOOR_STATE,
            {SZ_STATE: state | {SZ_UUID: self.id}},
        )
        self._update_garage_door(reply_items(reply, SZ_STATE) or state, Source.RESPONSE)
        return reply

    def is_open(self, channel: int = 0) -> bool | None:
        return self._cached(channel, FeatureKind.GARAGE_DOOR, "isOpen")  # type: ignore[no-any-return]

    def is_closed(self, channel: int = 0) -> bool | None:
        if (is_open := self.is_open(channel)) is None:
            return None
        return not is_open

    async def open_door(self, channel: int = 0) -> Any:
        return await self.set_garage_door(channel=channel, open=True)

    async def close_door(self, channel: int = 0) -> Any:
        return await self.set_garage_door(channel=channel, open=False)

    async def toggle_door(self, channel: int = 0) -> Any:
        """Close the door if it is (thought to be) open, otherwise open it."""
        return await self.set_garage_door(channel=channel, open=self.is_open(channel) is not True)

    async def get_garage_door_multiple_config(self) -> Any:
        """Fetch the config of every door (and cache it, per channel)."""

        require_ability(self, Namespace.GARAGE_DOOR_MULTIPLE_CONFIG)

        reply = await self.publish(Method.GET, Namespace.GARAGE_DOOR_MULTIPLE_CONFIG, {})
        self._update_garage_door_config(reply_items(reply, SZ_CONFIG), Source.RESPONSE)
        return reply

    def garage_door_config(self, channel: int = 0) -> dict[str, Any] | None:
        """Return the cached config of a door (from get_garage_door_multiple_config)."""
        return self.cache.value(channel, FeatureKind.GARAGE_DOOR_CONFIG)

    async def get_garage_door_config(self) -> Any:
        require_ability(self, Namespace.GARAGE_DOOR_CONFIG)
        return await self.publish(Method.GET, Namespace.GARAGE_DOOR_CONFIG, {})

    async def set_garage_door_config(self, **options: Any) -> Any:
        """Set the door config: either config_data, or any of its (camelCase) keys."""

        require_ability(self, Namespace.GARAGE_DOOR_CONFIG)

        if (config := options.get("config_data")) is None:
            config = {k: options[k] for k in GARAGE_DOOR_CONFIG_KEYS if k in options}
        if not config:
            validate_required(options, ("config_data",))

        return await self.publish(
            Method.SET, Namespace.GARAGE_DOOR_CONFIG, {SZ_CONFIG: config}
        )
