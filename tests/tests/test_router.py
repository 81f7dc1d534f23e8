#!/usr/bin/env python3
"""Meross IoT - Test the routing of hub notifications to subdevices."""

import logging
from typing import Any

import pytest

from meross_iot import RouteOutcome, route
from meross_iot.const import Namespace
from meross_iot.device import HubDevice
from meross_tx import GenericNotification, parse_notification

from .helpers import HUB_UUID


async def test_route_battery(hub: HubDevice) -> None:
    payload = {
        "battery": [
            {"id": "01", "value": 80},
            {"id": "99", "value": 50},  # not registered
            {"value": 10},  # no id
            {"subId": "03", "value": 70},
            {"id": "02", "value": 0xFFFFFFFF},  # the valve can't measure it
        ]
    }
    notification = parse_notification(Namespace.HUB_BATTERY, payload, HUB_UUID)

    results = await route(notification, hub)

    assert [(r.subdevice_id, r.outcome) for r in results] == [
        ("01", RouteOutcome.DELIVERED),
        ("99", RouteOutcome.SKIPPED_UNREGISTERED),
        (None, RouteOutcome.SKIPPED_NO_ID),
        ("03", RouteOutcome.DELIVERED),
        ("02", RouteOutcome.DELIVERED),
    ]

    assert hub.get_subdevice("01").battery == 80
    assert hub.get_subdevice("03").battery == 70
    assert hub.get_subdevice("02").battery is None
    assert hub.get_subdevice("04").battery is None


async def test_route_handler_error(
    hub: HubDevice, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def handle_notification(*args: Any, **kwargs: Any) -> None:
        raise ValueError("a bad item")

    monkeypatch.setattr(hub.get_subdevice("01"), "handle_notification", handle_notification)

    payload = {"battery": [{"id": "01", "value": 80}, {"id": "03", "value": 70}]}
    notification = parse_notification(Namespace.HUB_BATTERY, payload, HUB_UUID)

    results = await route(notification, hub)

    assert results[0].outcome == RouteOutcome.HANDLER_ERROR
    assert isinstance(results[0].error, ValueError)
    assert results[1].outcome == RouteOutcome.DELIVERED  # the others are unaffected

    assert hub.get_subdevice("03").battery == 70


async def test_route_device_scoped(hub: HubDevice) -> None:
    payload = {"togglex": [{"id": "01", "channel": 0, "onoff": 1}]}
    notification = parse_notification(Namespace.CONTROL_TOGGLEX, payload, HUB_UUID)

    assert await route(notification, hub) == []


async def test_route_not_an_array(hub: HubDevice) -> None:
    notification = GenericNotification(
        HUB_UUID, {"battery": "80"}, namespace=Namespace.HUB_BATTERY
    )
    assert notification.is_hub_scoped

    assert await route(notification, hub) == []


async def test_route_unregistered_logging(
    hub: HubDevice, caplog: pytest.LogCaptureFixture
) -> None:
    payload = {"online": [{"id": "99", "status": 1}]}
    notification = parse_notification(Namespace.HUB_ONLINE, payload, HUB_UUID)

    with caplog.at_level(logging.DEBUG, logger="meross_iot.dispatcher"):
        await route(notification, hub, log_unregistered=True)
        await route(notification, hub, log_unregistered=False)

    levels = [
        r.levelno for r in caplog.records if "not been registered" in r.getMessage()
    ]
    assert levels == [logging.WARNING, logging.DEBUG]
