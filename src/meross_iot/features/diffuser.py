#!/usr/bin/env python3
"""Meross IoT - the diffuser features (an oil diffuser's light & spray), and sprays.

Diffuser pushes are applied via their notification's changes, so the same decoding
is used here for the System.All digest, and for the replies to commands.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from meross_tx.const import (
    SZ_CHANNEL,
    SZ_DIFFUSER,
    SZ_LIGHT,
    SZ_MODE,
    SZ_ONOFF,
    SZ_SPRAY,
    SZ_UUID,
)
from meross_tx.notifications import (
    DiffuserLightNotification,
    DiffuserSprayNotification,
    Notification,
)

from .. import exceptions as exc
from ..abilities import require_ability
from ..const import (
    DiffuserLightMode,
    DiffuserSprayMode,
    FeatureKind,
    Method,
    Namespace,
    Source,
    SprayMode,
)
from ..entity_base import Entity, reply_items
from ..helpers import rgb_to_int

_LOGGER = logging.getLogger(__name__)


SZ_LUMINANCE = "luminance"
SZ_RGB = "rgb"


class Diffuser(Entity):
    _HANDLES = {
        Namespace.CONTROL_DIFFUSER_LIGHT: (SZ_LIGHT, "_update_diffuser_light"),
        Namespace.CONTROL_DIFFUSER_SPRAY: (SZ_SPRAY, "_update_diffuser_spray"),
    }
    _DIGESTS = {
        (SZ_DIFFUSER, SZ_LIGHT): "_update_diffuser_light",
        (SZ_DIFFUSER, SZ_SPRAY): "_update_diffuser_spray",
    }

    def _apply_notification(
        self, cls: type[Notification], key: str, data: Any, source: Source
    ) -> None:
        try:
            notification = cls(self.id, {key: data})  # type: ignore[call-arg]
        except exc.PayloadInvalid as err:
            _LOGGER.warning("%s < %s(%s)", self, err.__class__.__name__, err)
            return
        self._apply_changes(notification.extract_changes(), source)

    def _update_diffuser_light(self, data: Any, source: Source) -> None:
        self._apply_notification(DiffuserLightNotification, SZ_LIGHT, data, source)

    def _update_diffuser_spray(self, data: Any, source: Source) -> None:
        self._apply_notification(DiffuserSprayNotification, SZ_SPRAY, data, source)

    async def get_diffuser_light_state(self, channel: int = 0) -> dict[str, Any]:
        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.CONTROL_DIFFUSER_LIGHT)
            reply = await self.publish(Method.GET, Namespace.CONTROL_DIFFUSER_LIGHT, {})
            self._update_diffuser_light(reply_items(reply, SZ_LIGHT), Source.RESPONSE)
            return self._fetched(reply, SZ_LIGHT, channel, FeatureKind.DIFFUSER_LIGHT)

        return await self.cache.get(channel, FeatureKind.DIFFUSER_LIGHT, fetch)

    async def get_diffuser_spray_state(self, channel: int = 0) -> dict[str, Any]:
        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.CONTROL_DIFFUSER_SPRAY)
            reply = await self.publish(Method.GET, Namespace.CONTROL_DIFFUSER_SPRAY, {})
            self._update_diffuser_spray(reply_items(reply, SZ_SPRAY), Source.RESPONSE)
            return self._fetched(reply, SZ_SPRAY, channel, FeatureKind.DIFFUSER_SPRAY)

        return await self.cache.get(channel, FeatureKind.DIFFUSER_SPRAY, fetch)

    def _fetched(self, reply: Any, key: str, channel: int, kind: str) -> dict[str, Any]:
        """Return the value of one channel, once a GET reply is in the cache."""

        if (value := self.cache.value(channel, kind)) is None:
            raise exc.CommandError(
                f"{kind}: the reply has no {key} for channel {channel}",
                error_payload=reply,
                device_uuid=self.id,
            )
        return value

    def diffuser_light_is_on(self, channel: int = 0) -> bool | None:
        return self._cached(channel, FeatureKind.DIFFUSER_LIGHT, "isOn")  # type: ignore[no-any-return]

    def diffuser_light_mode(self, channel: int = 0) -> DiffuserLightMode | None:
        if (mode := self._cached(channel, FeatureKind.DIFFUSER_LIGHT, SZ_MODE)) is None:
            return None
        return DiffuserLightMode(mode)

    def diffuser_light_rgb(self, channel: int = 0) -> int | None:
        return self._cached(channel, FeatureKind.DIFFUSER_LIGHT, SZ_RGB)  # type: ignore[no-any-return]

    def diffuser_light_luminance(self, channel: int = 0) -> int | None:
        return self._cached(channel, FeatureKind.DIFFUSER_LIGHT, SZ_LUMINANCE)  # type: ignore[no-any-return]

    def diffuser_spray_mode(self, channel: int = 0) -> DiffuserSprayMode | None:
        if (mode := self._cached(channel, FeatureKind.DIFFUSER_SPRAY, SZ_MODE)) is None:
            return None
        return DiffuserSprayMode(mode)

    async def set_diffuser_light(
        self,
        channel: int = 0,
        *,
        onoff: bool | None = None,
        mode: DiffuserLightMode | int | None = None,
        rgb: int | Iterable[int] | None = None,
        luminance: int | None = None,
    ) -> Any:
        """Set the light of a diffuser (only the given options are sent)."""

        require_ability(self, Namespace.CONTROL_DIFFUSER_LIGHT)

        item: dict[str, Any] = {SZ_CHANNEL: channel, SZ_UUID: self.id}
        if onoff is not None:
            item[SZ_ONOFF] = 1 if onoff else 0
        if mode is not None:
            item[SZ_MODE] = int(mode)
        if rgb is not None:
            item[SZ_RGB] = rgb_to_int(rgb)
        if luminance is not None:
            item[SZ_LUMINANCE] = luminance

        reply = await self.publish(
            Method.SET, Namespace.CONTROL_DIFFUSER_LIGHT, {SZ_LIGHT: [item]}
        )
        self._update_diffuser_light(reply_items(reply, SZ_LIGHT) or [item], Source.RESPONSE)
        return reply

    async def set_diffuser_spray(
        self, channel: int = 0, mode: DiffuserSprayMode | int = DiffuserSprayMode.OFF
    ) -> Any:
        require_ability(self, Namespace.CONTROL_DIFFUSER_SPRAY)

        item = {SZ_CHANNEL: channel, SZ_MODE: int(mode), SZ_UUID: self.id}

        reply = await self.publish(
            Method.SET, Namespace.CONTROL_DIFFUSER_SPRAY, {SZ_SPRAY: [item]}
        )
        self._update_diffuser_spray(reply_items(reply, SZ_SPRAY) or [item], Source.RESPONSE)
        return reply


def _spray_value(item: Mapping[str, Any]) -> dict[str, Any]:
    if (mode := item.get(SZ_MODE)) is None:
        return {}
    return {SZ_MODE: mode}


class Spray(Entity):
    """A humidifier's spray (not that of a diffuser)."""

    _HANDLES = {Namespace.CONTROL_SPRAY: (SZ_SPRAY, "_update_spray")}
    _DIGESTS = {(SZ_SPRAY,): "_update_spray"}

    def _update_spray(self, data: Any, source: Source) -> None:
        self._update_items(FeatureKind.SPRAY, data, _spray_value, source)

    async def get_spray_state(self, channel: int = 0) -> dict[str, Any]:
        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.CONTROL_SPRAY)
            return await self._fetch_channel(
                Namespace.CONTROL_SPRAY, {}, SZ_SPRAY, channel, FeatureKind.SPRAY, _spray_value
            )

        return await self.cache.get(channel, FeatureKind.SPRAY, fetch)

    def spray_mode(self, channel: int = 0) -> SprayMode | None:
        if (mode := self._cached(channel, FeatureKind.SPRAY, SZ_MODE)) is None:
            return None
        return SprayMode(mode)

    async def set_spray_mode(
        self, mode: SprayMode | int, channel: int = 0
    ) -> Any:
        require_ability(self, Namespace.CONTROL_SPRAY)

        item = {SZ_CHANNEL: channel, SZ_MODE: int(mode)}

        reply = await self.publish(Method.SET, Namespace.CONTROL_SPRAY, {SZ_SPRAY: item})
        self._update_spray(reply_items(reply, SZ_SPRAY) or item, Source.RESPONSE)
        return reply
