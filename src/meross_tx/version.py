#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client."""

__version__ = "0.4.2"
VERSION = __version__
