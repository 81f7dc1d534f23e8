#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client.

Schema processor for upper layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import voluptuous as vol

from meross_tx.helpers import camel_to_snake

from .const import (
    DEFAULT_CACHE_MAX_AGE,
    DEFAULT_PUSH_INACTIVITY_TIMEOUT,
    SZ_ABILITIES,
    SZ_CACHE_MAX_AGE,
    SZ_DEV_NAME,
    SZ_DEVICE_TYPE,
    SZ_LOG_UNREGISTERED_SUBDEVICES,
    SZ_ONLINE_STATUS,
    SZ_PUSH_INACTIVITY_TIMEOUT,
    SZ_SUBDEVICE_ID,
    SZ_SUBDEVICE_NAME,
    SZ_SUBDEVICE_TYPE,
    SZ_SUBDEVICES,
    SZ_UUID,
    SZ_VALIDATE_STATE,
    FeatureKind,
)

_LOGGER = logging.getLogger(__name__)


def NormaliseKeys(
    aliases: Mapping[str, str] | None = None,
) -> Callable[[Any], dict[str, Any]]:
    """Convert the (camelCase) keys of a dict to snake_case, renaming any aliases.

    If both spellings of a key are present, the first one (usu. camelCase) is kept.
    """

    aliases = aliases or {}

    def normalise_keys(node_value: Any) -> dict[str, Any]:
        if not isinstance(node_value, Mapping):
            raise vol.Invalid(f"expected a dict, got: {node_value!r}")

        result: dict[str, Any] = {}
        for key, value in node_value.items():
            key = camel_to_snake(key) if isinstance(key, str) else key
            result.setdefault(aliases.get(key, key), value)
        return result

    return normalise_keys


def NormaliseAbilities() -> Callable[[Any], dict[str, Any]]:
    """Convert a list of abilities (namespaces) to a dict."""

    def normalise_abilities(node_value: Any) -> dict[str, Any]:
        if isinstance(node_value, list | tuple | set):
            return {k: {} for k in node_value}
        return node_value  # type: ignore[no-any-return]

    return normalise_abilities


#
# 1/3: Schemas for the abilities of a device
SCH_ABILITIES = vol.All(
    NormaliseAbilities(),
    vol.Schema({vol.Match(r"^Appliance\."): vol.Any(None, dict)}),
)


#
# 2/3: Schemas for devices and subdevices (accepts camelCase or snake_case keys)
SCH_SUBDEVICE_INFO = vol.All(
    NormaliseKeys(
        aliases={
            "id": SZ_SUBDEVICE_ID,
            "sub_id": SZ_SUBDEVICE_ID,
            "sub_device_id": SZ_SUBDEVICE_ID,
            "type": SZ_SUBDEVICE_TYPE,
            "sub_device_type": SZ_SUBDEVICE_TYPE,
            "name": SZ_SUBDEVICE_NAME,
            "sub_device_name": SZ_SUBDEVICE_NAME,
        }
    ),
    vol.Schema(
        {
            vol.Required(SZ_SUBDEVICE_ID): vol.All(
                vol.Any(str, int), vol.Coerce(str), vol.Length(min=1)
            ),
            vol.Optional(SZ_SUBDEVICE_TYPE, default=None): vol.Any(
                None, vol.All(str, vol.Lower)
            ),
            vol.Optional(SZ_SUBDEVICE_NAME, default=None): vol.Any(None, str),
        },
        extra=vol.ALLOW_EXTRA,
    ),
)

SCH_DEVICE_INFO = vol.All(
    NormaliseKeys(aliases={"dev_type": SZ_DEVICE_TYPE, "type": SZ_DEVICE_TYPE}),
    vol.Schema(
        {
            vol.Required(SZ_UUID): vol.All(str, vol.Length(min=1)),
            vol.Optional(SZ_DEV_NAME, default=None): vol.Any(None, str),
            vol.Optional(SZ_DEVICE_TYPE, default=None): vol.Any(
                None, vol.All(str, vol.Lower)
            ),
            vol.Optional(SZ_ONLINE_STATUS, default=-1): int,
            vol.Optional(SZ_ABILITIES, default={}): SCH_ABILITIES,
            vol.Optional(SZ_SUBDEVICES, default=[]): [SCH_SUBDEVICE_INFO],
        },
        extra=vol.ALLOW_EXTRA,
    ),
)


#
# 3/3: Gateway (parser/state) configuration
SCH_CACHE_MAX_AGE = vol.Schema(
    {vol.In([str(k) for k in FeatureKind]): vol.All(vol.Coerce(float), vol.Range(min=0))}
)

SCH_GATEWAY_DICT = {
    vol.Optional(SZ_CACHE_MAX_AGE, default=DEFAULT_CACHE_MAX_AGE): vol.All(
        SCH_CACHE_MAX_AGE, lambda v: DEFAULT_CACHE_MAX_AGE | v
    ),
    vol.Optional(SZ_LOG_UNREGISTERED_SUBDEVICES, default=True): bool,
    vol.Optional(
        SZ_PUSH_INACTIVITY_TIMEOUT, default=DEFAULT_PUSH_INACTIVITY_TIMEOUT
    ): vol.All(vol.Coerce(float), vol.Range(min=0)),
    vol.Optional(SZ_VALIDATE_STATE, default=True): bool,
}
SCH_GATEWAY_CONFIG = vol.Schema(SCH_GATEWAY_DICT, extra=vol.REMOVE_EXTRA)
