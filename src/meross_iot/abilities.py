#!/usr/bin/env python3
"""Meross IoT - the capability gate.

A device's abilities (the namespaces it supports) are set once, at discovery time. A
hub's abilities include those of all its subdevices: each subdevice type is allowed
only the subset of those abilities that applies to it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final

from . import exceptions as exc
from .const import FeatureKind, Namespace

if TYPE_CHECKING:
    from .entity_base import Entity

_HUB_ANY: Final = (Namespace.HUB_ONLINE, Namespace.HUB_BATTERY)

_HUB_SENSOR_TEMP_HUM: Final = (
    *_HUB_ANY,
    Namespace.HUB_SENSOR_TEMP_HUM,
    Namespace.HUB_SENSOR_ALL,
    Namespace.CONTROL_SENSOR_LATESTX,
)
_HUB_SENSOR_SMOKE: Final = (*_HUB_ANY, Namespace.HUB_SENSOR_SMOKE, Namespace.HUB_SENSOR_ALL)
_HUB_SENSOR_LEAK: Final = (
    *_HUB_ANY,
    Namespace.HUB_SENSOR_WATER_LEAK,
    Namespace.HUB_SENSOR_ALL,
)
_HUB_MTS100: Final = (
    *_HUB_ANY,
    Namespace.HUB_TOGGLEX,
    Namespace.HUB_MTS100_ALL,
    Namespace.HUB_MTS100_TEMPERATURE,
    Namespace.HUB_MTS100_MODE,
    Namespace.HUB_MTS100_ADJUST,
)

# The hub abilities that are relevant to each type of subdevice
SUBDEVICE_ABILITIES: Final[dict[str, tuple[str, ...]]] = {
    "ms100": _HUB_SENSOR_TEMP_HUM,
    "ms100f": _HUB_SENSOR_TEMP_HUM,
    "ms130": _HUB_SENSOR_TEMP_HUM,
    "ma151": _HUB_SENSOR_SMOKE,
    "ms400": _HUB_SENSOR_LEAK,
    "ms405": _HUB_SENSOR_LEAK,
    "mts100v3": _HUB_MTS100,
}

# The abilities that enable each (device-scoped) feature, any one will do
FEATURE_ABILITIES: Final[dict[str, tuple[str, ...]]] = {
    FeatureKind.TOGGLE: (Namespace.CONTROL_TOGGLEX, Namespace.CONTROL_TOGGLE),
    FeatureKind.LIGHT: (Namespace.CONTROL_LIGHT,),
    FeatureKind.GARAGE_DOOR: (Namespace.GARAGE_DOOR_STATE,),
    FeatureKind.GARAGE_DOOR_CONFIG: (
        Namespace.GARAGE_DOOR_MULTIPLE_CONFIG,
        Namespace.GARAGE_DOOR_CONFIG,
    ),
    FeatureKind.ROLLER_SHUTTER: (
        Namespace.ROLLER_SHUTTER_STATE,
        Namespace.ROLLER_SHUTTER_POSITION,
    ),
    FeatureKind.DIFFUSER_LIGHT: (Namespace.CONTROL_DIFFUSER_LIGHT,),
    FeatureKind.DIFFUSER_SPRAY: (Namespace.CONTROL_DIFFUSER_SPRAY,),
    FeatureKind.SPRAY: (Namespace.CONTROL_SPRAY,),
    FeatureKind.THERMOSTAT_MODE: (Namespace.CONTROL_THERMOSTAT_MODE,),
    FeatureKind.PRESENCE: (Namespace.CONTROL_SENSOR_LATESTX,),
    FeatureKind.TIMER: (Namespace.CONTROL_TIMERX, Namespace.DIGEST_TIMERX),
    FeatureKind.TRIGGER: (Namespace.CONTROL_TRIGGERX, Namespace.DIGEST_TRIGGERX),
    FeatureKind.ALARM: (Namespace.CONTROL_ALARM,),
}


def subdevice_abilities(
    subdevice_type: str | None, hub_abilities: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Return the hub's abilities that are relevant to a type of subdevice."""

    if not isinstance(hub_abilities, Mapping):
        return {}

    namespaces = SUBDEVICE_ABILITIES.get((subdevice_type or "").lower(), ())
    return {ns: hub_abilities[ns] for ns in namespaces if ns in hub_abilities}


def has_ability(entity: Entity, namespace: str) -> bool:
    """Return True if the device/subdevice exposes the ability (namespace)."""
    return namespace in (entity.abilities or {})


def supports_feature(entity: Entity, kind: str) -> bool:
    """Return True if the device/subdevice has any ability that enables the feature."""
    return any(has_ability(entity, ns) for ns in FEATURE_ABILITIES.get(kind, ()))


def require_ability(entity: Entity, *namespaces: str) -> str:
    """Return the first of the namespaces that the device/subdevice supports.

    Raise an UnsupportedFeatureError if it supports none of them.
    """

    for namespace in namespaces:
        if has_ability(entity, namespace):
            return namespace
    raise exc.UnsupportedFeatureError(
        f"{entity} does not support any of: {', '.join(namespaces)}"
    )
