#!/usr/bin/env python3
"""Meross IoT - the features of a device (each is a mixin of Entity)."""

from __future__ import annotations

from .alarm import Alarm
from .diffuser import Diffuser, Spray
from .garage import GarageDoor
from .light import Light
from .presence import Presence
from .roller_shutter import RollerShutter
from .thermostat import Thermostat
from .timer import Timers, create_timer
from .toggle import Toggle

__all__ = [
    "Alarm",
    "Diffuser",
    "GarageDoor",
    "Light",
    "Presence",
    "RollerShutter",
    "Spray",
    "Thermostat",
    "Timers",
    "Toggle",
    #
    "create_timer",
]
