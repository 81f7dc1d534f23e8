#!/usr/bin/env python3
"""Meross IoT - the thermostat feature (Control.Thermostat.Mode).

Devices report temperatures in tenths of a degree Celsius, this feature converts them
to (and from) degrees.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final

from meross_tx.const import SZ_CHANNEL, SZ_MODE, SZ_ONOFF, SZ_STATE, SZ_THERMOSTAT

from ..abilities import require_ability
from ..const import FeatureKind, Method, Namespace, Source, ThermostatMode
from ..entity_base import Entity, reply_items

_LOGGER = logging.getLogger(__name__)


# device field: cached field, both in tenths of a degree
_TEMPERATURES: Final[dict[str, str]] = {
    "currentTemp": "currentTemperature",
    "targetTemp": "targetTemperature",
    "heatTemp": "heatTemperature",
    "coolTemp": "coolTemperature",
    "ecoTemp": "ecoTemperature",
    "manualTemp": "manualTemperature",
    "min": "minTemperature",
    "max": "maxTemperature",
}

# the presets that can be set via set_thermostat_mode()
THERMOSTAT_PRESETS: Final[dict[str, str]] = {
    "heat_temperature": "heatTemp",
    "cool_temperature": "coolTemp",
    "eco_temperature": "ecoTemp",
    "manual_temperature": "manualTemp",
}


def _thermostat_value(item: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}

    if (onoff := item.get(SZ_ONOFF)) is not None:
        result["isOn"] = onoff == 1
    for key in (SZ_MODE, SZ_STATE, "working", "warning"):
        if (value := item.get(key)) is not None:
            result[key] = value
    for key, field in _TEMPERATURES.items():
        if (value := item.get(key)) is not None:
            result[field] = value / 10
    return result


def _to_tenths(value: float) -> int:
    return int(round(value * 10))


class Thermostat(Entity):
    _HANDLES = {Namespace.CONTROL_THERMOSTAT_MODE: (SZ_MODE, "_update_thermostat_mode")}
    _DIGESTS = {(SZ_THERMOSTAT, SZ_MODE): "_update_thermostat_mode"}

    def _update_thermostat_mode(self, data: Any, source: Source) -> None:
        self._update_items(FeatureKind.THERMOSTAT_MODE, data, _thermostat_value, source)

    async def get_thermostat_mode(self, channel: int = 0) -> dict[str, Any]:
        """Return the state of a thermostat, fetching it if required."""

        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.CONTROL_THERMOSTAT_MODE)
            return await self._fetch_channel(
                Namespace.CONTROL_THERMOSTAT_MODE,
                {SZ_MODE: [{SZ_CHANNEL: channel}]},
                SZ_MODE,
                channel,
                FeatureKind.THERMOSTAT_MODE,
                _thermostat_value,
            )

        return await self.cache.get(channel, FeatureKind.THERMOSTAT_MODE, fetch)

    async def set_thermostat_mode(
        self,
        channel: int = 0,
        *,
        mode: ThermostatMode | int | None = None,
        onoff: bool | None = None,
        target_temperature: float | None = None,
        **presets: float,
    ) -> Any:
        """Set the mode, on/off and/or temperatures (in Celsius) of a thermostat.

        The presets are any of: heat_temperature, cool_temperature, eco_temperature
        and manual_temperature.
        """

        require_ability(self, Namespace.CONTROL_THERMOSTAT_MODE)

        item: dict[str, Any] = {SZ_CHANNEL: channel}
        if mode is not None:
            item[SZ_MODE] = int(mode)
        if onoff is not None:
            item[SZ_ONOFF] = 1 if onoff else 0
        if target_temperature is not None:
            item["targetTemp"] = _to_tenths(target_temperature)
        for key, value in presets.items():
            if key not in THERMOSTAT_PRESETS:
                raise TypeError(f"set_thermostat_mode() got an unexpected option: {key}")
            if value is not None:
                item[THERMOSTAT_PRESETS[key]] = _to_tenths(value)

        reply = await self.publish(
            Method.SET, Namespace.CONTROL_THERMOSTAT_MODE, {SZ_MODE: [item]}
        )
        self._update_thermostat_mode(reply_items(reply, SZ_MODE) or [item], Source.RESPONSE)
        return reply

    def thermostat_is_on(self, channel: int = 0) -> bool | None:
        return self._cached(channel, FeatureKind.THERMOSTAT_MODE, "isOn")  # type: ignore[no-any-return]

    def thermostat_mode(self, channel: int = 0) -> ThermostatMode | None:
        if (mode := self._cached(channel, FeatureKind.THERMOSTAT_MODE, SZ_MODE)) is None:
            return None
        return ThermostatMode(mode)

    def thermostat_is_heating(self, channel: int = 0) -> bool | None:
        if (state := self._cached(channel, FeatureKind.THERMOSTAT_MODE, SZ_STATE)) is None:
            return None
        return state == 1

    def current_temperature(self, channel: int = 0) -> float | None:
        return self._cached(channel, FeatureKind.THERMOSTAT_MODE, "currentTemperature")  # type: ignore[no-any-return]

    def target_temperature(self, channel: int = 0) -> float | None:
        return self._cached(channel, FeatureKind.THERMOSTAT_MODE, "targetTemperature")  # type: ignore[no-any-return]

    def thermostat_temperature_range(
        self, channel: int = 0
    ) -> tuple[float | None, float | None]:
        """Return the (min, max) settable temperature of a thermostat."""
        return (
            self._cached(channel, FeatureKind.THERMOSTAT_MODE, "minTemperature"),
            self._cached(channel, FeatureKind.THERMOSTAT_MODE, "maxTemperature"),
        )
