#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client.

Works with (amongst others):
- smart plugs & switches (toggle), bulbs (light)
- garage door openers, roller shutters
- diffusers, humidifiers (spray), thermostats, presence sensors
- hubs, and their subdevices (temp/humidity sensors, radiator valves, water leak
  sensors, smoke alarms)
"""

from __future__ import annotations

import logging

from meross_tx import Message, Notification, parse_notification  # noqa: F401
from meross_tx.version import VERSION  # noqa: F401

from .cache import StateCache, StateChange  # noqa: F401
from .device import Device, HubDevice, SubDevice  # noqa: F401
from .dispatcher import RouteOutcome, RouteResult, route  # noqa: F401
from .gateway import Gateway  # noqa: F401

from .const import (  # noqa: F401, isort: skip, pylint: disable=unused-import
    FeatureKind,
    Method,
    Namespace,
    OnlineStatus,
    Source,
)

_LOGGER = logging.getLogger(__name__)
