#!/usr/bin/env python3
"""Meross IoT - the on/off feature (ToggleX, or the legacy Toggle)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from meross_tx import normalize_channel
from meross_tx.const import SZ_CHANNEL, SZ_ONOFF, SZ_TOGGLE, SZ_TOGGLEX

from .. import exceptions as exc
from ..abilities import require_ability
from ..const import FeatureKind, Method, Namespace, Source
from ..entity_base import Entity, reply_items
from ..helpers import validate_required

_LOGGER = logging.getLogger(__name__)


def _toggle_value(item: Mapping[str, Any]) -> dict[str, Any]:
    if (onoff := item.get(SZ_ONOFF)) is None:
        return {}
    return {"isOn": onoff == 1}


class Toggle(Entity):
    """An entity with one or more switchable channels.

    ToggleX pushes are applied via the notification's changes, the legacy Toggle
    namespace has no channels (so is channel 0).
    """

    _HANDLES = {Namespace.CONTROL_TOGGLE: (SZ_TOGGLE, "_update_toggle")}
    _DIGESTS = {(SZ_TOGGLEX,): "_update_toggle"}

    def _update_toggle(self, data: Any, source: Source) -> None:
        self._update_items(FeatureKind.TOGGLE, data, _toggle_value, source)

    def is_on(self, channel: int = 0) -> bool | None:
        """Return the cached on/off state of a channel (None if not known)."""
        return self._cached(channel, FeatureKind.TOGGLE, "isOn")  # type: ignore[no-any-return]

    async def get_toggle_state(self, channel: int = 0) -> dict[str, Any]:
        """Return the on/off state of a channel, fetching it if required."""

        async def fetch() -> dict[str, Any]:
            namespace = require_ability(
                self, Namespace.CONTROL_TOGGLEX, Namespace.CONTROL_TOGGLE
            )
            if namespace == Namespace.CONTROL_TOGGLEX:
                payload: dict[str, Any] = {SZ_TOGGLEX: {SZ_CHANNEL: channel}}
                key = SZ_TOGGLEX
            else:
                payload, key = {}, SZ_TOGGLE

            return await self._fetch_channel(
                namespace, payload, key, channel, FeatureKind.TOGGLE, _toggle_value
            )

        return await self.cache.get(channel, FeatureKind.TOGGLE, fetch)

    async def set_togglex(self, **options: Any) -> Any:
        """Switch a channel on/off via ToggleX (requires onoff, channel is optional)."""

        validate_required(options, (SZ_ONOFF,))
        require_ability(self, Namespace.CONTROL_TOGGLEX)

        channel = normalize_channel(options)
        item = {SZ_CHANNEL: channel, SZ_ONOFF: 1 if options[SZ_ONOFF] else 0}

        reply = await self.publish(
            Method.SET, Namespace.CONTROL_TOGGLEX, {SZ_TOGGLEX: item}
        )
        self._update_toggle(reply_items(reply, SZ_TOGGLEX) or item, Source.RESPONSE)
        return reply

    async def set_toggle(self, **options: Any) -> Any:
        """Switch the device on/off via the legacy Toggle (requires onoff)."""

        validate_required(options, (SZ_ONOFF,))
        require_ability(self, Namespace.CONTROL_TOGGLE)

        item = {SZ_ONOFF: 1 if options[SZ_ONOFF] else 0}

        reply = await self.publish(Method.SET, Namespace.CONTROL_TOGGLE, {SZ_TOGGLE: item})
        self._update_toggle(reply_items(reply, SZ_TOGGLE) or item, Source.RESPONSE)
        return reply

    async def _set_onoff(self, channel: int, onoff: bool) -> Any:
        namespace = require_ability(
            self, Namespace.CONTROL_TOGGLEX, Namespace.CONTROL_TOGGLE
        )
        if namespace == Namespace.CONTROL_TOGGLEX:
            return await self.set_togglex(channel=channel, onoff=onoff)
        if channel != 0:
            raise exc.ValidationError(f"{self}: the legacy toggle has only channel 0")
        return await self.set_toggle(onoff=onoff)

    async def turn_on(self, channel: int = 0) -> Any:
        return await self._set_onoff(channel, True)

    async def turn_off(self, channel: int = 0) -> Any:
        return await self._set_onoff(channel, False)

    async def toggle(self, channel: int = 0) -> Any:
        """Invert the (cached) state of a channel; if unknown, switch it on."""
        return await self._set_onoff(channel, self.is_on(channel) is not True)
