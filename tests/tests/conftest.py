#!/usr/bin/env python3
"""Meross IoT - a push notification decoder & device state client."""

from collections.abc import AsyncGenerator

import pytest

from meross_iot import Gateway
from meross_iot.device import Device, HubDevice

from .helpers import GARAGE_INFO, HUB_INFO, PLUG_INFO, FakeClock, FakeTransport


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
async def gwy(  # NOTE: async to get running loop
    transport: FakeTransport, clock: FakeClock
) -> AsyncGenerator[Gateway, None]:
    """Return a gateway with no devices (and a fake transport & clock)."""

    gwy = Gateway(transport.fetch, config={"validate_state": False}, clock=clock)
    try:
        yield gwy
    finally:
        await gwy.stop()


@pytest.fixture
def plug(gwy: Gateway) -> Device:
    return gwy.add_device(PLUG_INFO)


@pytest.fixture
def hub(gwy: Gateway) -> HubDevice:
    hub = gwy.add_device(HUB_INFO)
    assert isinstance(hub, HubDevice)
    return hub


@pytest.fixture
def garage(gwy: Gateway) -> Device:
    return gwy.add_device(GARAGE_INFO)
