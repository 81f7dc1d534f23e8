#!/usr/bin/env python3
"""Meross IoT - devices & subdevices."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..const import (
    HUB_DISCRIMINATING_ABILITY,
    SZ_ABILITIES,
    SZ_DEV_NAME,
    SZ_DEVICE_TYPE,
    SZ_ONLINE_STATUS,
    SZ_SUBDEVICES,
    SZ_UUID,
)
from ..schemas import SCH_DEVICE_INFO
from .base import Device, DeviceBase
from .hub import HubDevice
from .subdevice import (
    SUBDEVICE_CLASS_BY_TYPE,
    HubSmokeDetector,
    HubTempHumSensor,
    HubThermostatValve,
    HubWaterLeakSensor,
    SubDevice,
    subdevice_factory,
)

if TYPE_CHECKING:
    from ..gateway import Gateway

__all__ = [
    "Device",
    "DeviceBase",
    "HubDevice",
    "HubSmokeDetector",
    "HubTempHumSensor",
    "HubThermostatValve",
    "HubWaterLeakSensor",
    "SubDevice",
    #
    "SUBDEVICE_CLASS_BY_TYPE",
    #
    "device_factory",
    "subdevice_factory",
]

_LOGGER = logging.getLogger(__name__)


def device_factory(gwy: Gateway, info: Mapping[str, Any]) -> Device:
    """Return a device (or a hub, with its subdevices) from its device info.

    A device is a hub if it has the Hub.SubdeviceList ability.
    """

    info = SCH_DEVICE_INFO(dict(info))

    cls: type[Device] = (
        HubDevice if HUB_DISCRIMINATING_ABILITY in info[SZ_ABILITIES] else Device
    )

    device = cls(
        gwy,
        info[SZ_UUID],
        dev_name=info[SZ_DEV_NAME],
        device_type=info[SZ_DEVICE_TYPE],
        abilities=info[SZ_ABILITIES],
        online_status=info[SZ_ONLINE_STATUS],
    )

    if isinstance(device, HubDevice):
        for sub_info in info[SZ_SUBDEVICES]:
            device.add_subdevice(sub_info)

    elif info[SZ_SUBDEVICES]:
        _LOGGER.warning(
            "%s: has subdevices, but is not a hub (they will be ignored)", device
        )

    _LOGGER.debug("Created %r (%s)", device, device.device_type)
    return device
