#!/usr/bin/env python3
"""Meross IoT - the light feature (bulbs & LED strips).

A light that also has a toggle ability is switched on/off via the toggle, and its
Control.Light state then carries only its colour & brightness.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from meross_tx import normalize_channel
from meross_tx.const import SZ_CHANNEL, SZ_LIGHT, SZ_ONOFF

from ..abilities import require_ability
from ..const import FeatureKind, LightMode, Method, Namespace, Source
from ..entity_base import reply_items
from ..helpers import RgbT, int_to_rgb, rgb_to_int, validate_required
from .toggle import Toggle

_LOGGER = logging.getLogger(__name__)


SZ_CAPACITY = "capacity"
SZ_GRADUAL = "gradual"
SZ_LUMINANCE = "luminance"
SZ_RGB = "rgb"
SZ_TEMPERATURE = "temperature"


def _light_value(item: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}

    if (onoff := item.get(SZ_ONOFF)) is not None:
        result["isOn"] = onoff == 1
    if (rgb := item.get(SZ_RGB)) is not None:
        result[SZ_RGB] = int_to_rgb(rgb) if isinstance(rgb, int) else tuple(rgb)
    for key in (SZ_LUMINANCE, SZ_TEMPERATURE, SZ_CAPACITY):
        if (value := item.get(key)) is not None:
            result[key] = value
    return result


class Light(Toggle):
    _HANDLES = {Namespace.CONTROL_LIGHT: (SZ_LIGHT, "_update_light")}
    _DIGESTS = {(SZ_LIGHT,): "_update_light"}

    def _update_light(self, data: Any, source: Source) -> None:
        self._update_items(FeatureKind.LIGHT, data, _light_value, source)

    @property
    def _has_toggle(self) -> bool:
        return self.has_ability(Namespace.CONTROL_TOGGLEX) or self.has_ability(
            Namespace.CONTROL_TOGGLE
        )

    def supports_light_mode(self, mode: LightMode) -> bool:
        """Return True if the light supports a mode (e.g. RGB).

        If its ability doesn't declare a capacity, all modes are assumed.
        """

        ability = self.abilities.get(Namespace.CONTROL_LIGHT)
        if not isinstance(ability, Mapping) or ability.get(SZ_CAPACITY) is None:
            return Namespace.CONTROL_LIGHT in self.abilities
        return bool(LightMode(ability[SZ_CAPACITY] & 7) & mode)

    async def get_light_state(self, channel: int = 0) -> dict[str, Any]:
        """Return the state of a light, fetching it if required."""

        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.CONTROL_LIGHT)
            return await self._fetch_channel(
                Namespace.CONTROL_LIGHT,
                {},
                SZ_LIGHT,
                channel,
                FeatureKind.LIGHT,
                _light_value,
            )

        return await self.cache.get(channel, FeatureKind.LIGHT, fetch)

    def light_is_on(self, channel: int = 0) -> bool | None:
        if self._has_toggle:
            return self.is_on(channel)
        return self._cached(channel, FeatureKind.LIGHT, "isOn")  # type: ignore[no-any-return]

    def light_rgb(self, channel: int = 0) -> RgbT | None:
        return self._cached(channel, FeatureKind.LIGHT, SZ_RGB)  # type: ignore[no-any-return]

    def light_luminance(self, channel: int = 0) -> int | None:
        return self._cached(channel, FeatureKind.LIGHT, SZ_LUMINANCE)  # type: ignore[no-any-return]

    def light_temperature(self, channel: int = 0) -> int | None:
        return self._cached(channel, FeatureKind.LIGHT, SZ_TEMPERATURE)  # type: ignore[no-any-return]

    async def set_light(self, **options: Any) -> Any:
        """Send a raw Control.Light payload (requires light)."""

        validate_required(options, (SZ_LIGHT,))
        require_ability(self, Namespace.CONTROL_LIGHT)

        light = options[SZ_LIGHT]
        reply = await self.publish(Method.SET, Namespace.CONTROL_LIGHT, {SZ_LIGHT: light})
        self._update_light(reply_items(reply, SZ_LIGHT) or light, Source.RESPONSE)
        return reply

    async def set_light_color(
        self,
        channel: int = 0,
        *,
        onoff: bool | None = None,
        rgb: int | Iterable[int] | None = None,
        luminance: int | None = None,
        temperature: int | None = None,
        gradual: bool | None = None,
    ) -> Any:
        """Set the colour/brightness of a light (and switch it on/off).

        Any mode that the light doesn't support is ignored.
        """

        require_ability(self, Namespace.CONTROL_LIGHT)
        channel = normalize_channel(channel)

        reply = None
        if self._has_toggle and onoff is not None:
            if onoff != self.light_is_on(channel):
                reply = await self._set_onoff(channel, onoff)
            if not onoff:  # nothing else to set on a light that is off
                return reply

        light: dict[str, Any] = {SZ_CHANNEL: channel}
        capacity = LightMode(0)

        if not self._has_toggle and onoff is not None:
            light[SZ_ONOFF] = 1 if onoff else 0
        if rgb is not None and self.supports_light_mode(LightMode.RGB):
            light[SZ_RGB] = rgb_to_int(rgb)
            capacity |= LightMode.RGB
        if luminance is not None and self.supports_light_mode(LightMode.LUMINANCE):
            light[SZ_LUMINANCE] = luminance
            capacity |= LightMode.LUMINANCE
        if temperature is not None and self.supports_light_mode(LightMode.TEMPERATURE):
            light[SZ_TEMPERATURE] = temperature
            capacity |= LightMode.TEMPERATURE

        if capacity:
            light[SZ_CAPACITY] = int(capacity)
        if gradual is not None:
            light[SZ_GRADUAL] = 1 if gradual else 0

        if len(light) == 1:  # only the channel, so nothing to send
            _LOGGER.debug("%s: no light change to send (channel %s)", self, channel)
            return reply

        return await self.set_light(light=light)

    async def turn_on(self, channel: int = 0) -> Any:
        if self._has_toggle or not self.has_ability(Namespace.CONTROL_LIGHT):
            return await super().turn_on(channel)
        return await self.set_light_color(channel, onoff=True)

    async def turn_off(self, channel: int = 0) -> Any:
        if self._has_toggle or not self.has_ability(Namespace.CONTROL_LIGHT):
            return await super().turn_off(channel)
        return await self.set_light_color(channel, onoff=False)
