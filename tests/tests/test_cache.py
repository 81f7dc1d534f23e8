#!/usr/bin/env python3
"""Meross IoT - Test the state cache (merging, change detection & freshness)."""

from typing import Any

import pytest

from meross_iot.cache import StateCache, StateChange, significant_changes
from meross_iot.const import CacheState, FeatureKind, Source
from meross_iot.exceptions import CommandError

from .helpers import DEVICE_UUID, FakeClock


@pytest.fixture
def events() -> list[StateChange]:
    return []


@pytest.fixture
def cache(clock: FakeClock, events: list[StateChange]) -> StateCache:
    cache = StateCache(
        DEVICE_UUID, max_age={FeatureKind.GARAGE_DOOR: 5.0}, clock=clock
    )
    cache.add_listener(events.append)
    return cache


def test_update_is_idempotent(cache: StateCache, events: list[StateChange]) -> None:
    result = cache.update(0, FeatureKind.TOGGLE, {"isOn": True})
    assert result.changed and result.changes == ("isOn",)

    result = cache.update(0, FeatureKind.TOGGLE, {"isOn": True})
    assert not result.changed

    assert len(events) == 1
    assert events[0] == {
        "type": FeatureKind.TOGGLE,
        "scope_id": DEVICE_UUID,
        "channel": 0,
        "old_value": None,
        "new_value": {"isOn": True},
        "changes": ("isOn",),
        "source": Source.PUSH,
        "timestamp": 1_700_000_000.0,
    }


def test_update_merges(cache: StateCache, events: list[StateChange]) -> None:
    cache.update(0, FeatureKind.LIGHT, {"isOn": True, "luminance": 50})
    cache.update(0, FeatureKind.LIGHT, {"luminance": 60}, source=Source.RESPONSE)

    assert cache.value(0, FeatureKind.LIGHT) == {"isOn": True, "luminance": 60}

    assert events[-1]["old_value"] == {"isOn": True, "luminance": 50}
    assert events[-1]["changes"] == ("luminance",)
    assert events[-1]["source"] == Source.RESPONSE


def test_update_replaces(cache: StateCache) -> None:
    cache.update(0, FeatureKind.TIMER, {"a": {"id": "a"}, "b": {"id": "b"}})
    cache.update(0, FeatureKind.TIMER, {"b": {"id": "b"}}, replace=True)

    assert cache.value(0, FeatureKind.TIMER) == {"b": {"id": "b"}}


def test_noise_is_not_a_change(cache: StateCache, events: list[StateChange]) -> None:
    cache.update(0, FeatureKind.TOGGLE, {"isOn": True, "lmTime": 1})
    cache.update(0, FeatureKind.TOGGLE, {"isOn": True, "lmTime": 2})

    assert len(events) == 1
    assert cache.value(0, FeatureKind.TOGGLE) == {"isOn": True, "lmTime": 2}

    # an unknown kind: all fields are significant, except the noise
    cache.update(0, "custom", {"level": 1, "timestamp": 1})
    cache.update(0, "custom", {"level": 1, "timestamp": 2})
    cache.update(0, "custom", {"level": 2, "timestamp": 3})

    assert [e["changes"] for e in events[1:]] == [("level",), ("level",)]


def test_significant_changes() -> None:
    assert significant_changes(FeatureKind.TOGGLE, None, {"isOn": False}) == ("isOn",)
    assert significant_changes(FeatureKind.TOGGLE, {"isOn": False}, {}) == ("isOn",)
    assert significant_changes("custom", {"a": 1}, {"a": 1, "b": None}) == ("b",)


def test_channels_are_separate(cache: StateCache) -> None:
    cache.update(0, FeatureKind.TOGGLE, {"isOn": True})
    cache.update(1, FeatureKind.TOGGLE, {"isOn": False})
    cache.update(0, FeatureKind.LIGHT, {"luminance": 10})

    assert cache.channels(FeatureKind.TOGGLE) == [0, 1]
    assert cache.snapshot() == {
        FeatureKind.TOGGLE: {0: {"isOn": True}, 1: {"isOn": False}},
        FeatureKind.LIGHT: {0: {"luminance": 10}},
    }
    assert len(cache) == 3


async def test_freshness(cache: StateCache, clock: FakeClock) -> None:
    calls: list[float] = []

    async def fetch() -> dict[str, Any]:
        calls.append(clock())
        return {"isOpen": len(calls) % 2 == 1}

    assert cache.state(0, FeatureKind.GARAGE_DOOR) == CacheState.UNINITIALIZED

    assert await cache.get(0, FeatureKind.GARAGE_DOOR, fetch) == {"isOpen": True}
    assert cache.state(0, FeatureKind.GARAGE_DOOR) == CacheState.FRESH
    assert cache.peek(0, FeatureKind.GARAGE_DOOR).source == Source.RESPONSE

    clock.advance(4)
    assert await cache.get(0, FeatureKind.GARAGE_DOOR, fetch) == {"isOpen": True}
    assert len(calls) == 1  # served from the cache

    clock.advance(1)
    assert cache.state(0, FeatureKind.GARAGE_DOOR) == CacheState.STALE
    assert await cache.get(0, FeatureKind.GARAGE_DOOR, fetch) == {"isOpen": False}
    assert len(calls) == 2

    # a max_age of 0 means always fetch
    await cache.get(0, FeatureKind.GARAGE_DOOR, fetch, max_age=0)
    assert len(calls) == 3


async def test_no_freshness_window(cache: StateCache) -> None:
    calls = 0

    async def fetch() -> dict[str, Any]:
        nonlocal calls
        calls += 1
        return {"isOn": True}

    await cache.get(0, FeatureKind.TOGGLE, fetch)
    await cache.get(0, FeatureKind.TOGGLE, fetch)
    assert calls == 2

    await cache.get(0, FeatureKind.TOGGLE, fetch, max_age=10)
    assert calls == 2


async def test_fetch_failure(cache: StateCache, clock: FakeClock) -> None:
    cache.update(0, FeatureKind.GARAGE_DOOR, {"isOpen": True})
    clock.advance(10)

    async def fetch() -> dict[str, Any]:
        raise CommandError("the device replied with an error")

    with pytest.raises(CommandError):
        await cache.get(0, FeatureKind.GARAGE_DOOR, fetch)

    assert cache.value(0, FeatureKind.GARAGE_DOOR) == {"isOpen": True}
    assert cache.state(0, FeatureKind.GARAGE_DOOR) == CacheState.STALE


async def test_invalidate(cache: StateCache) -> None:
    cache.update(0, FeatureKind.GARAGE_DOOR, {"isOpen": True})
    cache.update(1, FeatureKind.GARAGE_DOOR, {"isOpen": False})
    assert cache.is_fresh(0, FeatureKind.GARAGE_DOOR)

    cache.invalidate(channel=0)
    assert cache.state(0, FeatureKind.GARAGE_DOOR) == CacheState.STALE
    assert cache.state(1, FeatureKind.GARAGE_DOOR) == CacheState.FRESH
    assert cache.value(0, FeatureKind.GARAGE_DOOR) == {"isOpen": True}  # still known

    async def fetch() -> dict[str, Any]:
        return {"isOpen": False}

    assert await cache.get(0, FeatureKind.GARAGE_DOOR, fetch) == {"isOpen": False}
    assert cache.state(0, FeatureKind.GARAGE_DOOR) == CacheState.FRESH

    cache.invalidate()
    assert cache.state(0, FeatureKind.GARAGE_DOOR) == CacheState.STALE
    assert cache.state(1, FeatureKind.GARAGE_DOOR) == CacheState.STALE


def test_remove_listener(cache: StateCache, events: list[StateChange]) -> None:
    more_events: list[StateChange] = []
    remove_listener = cache.add_listener(more_events.append)

    cache.update(0, FeatureKind.TOGGLE, {"isOn": True})
    remove_listener()
    remove_listener()  # is harmless
    cache.update(0, FeatureKind.TOGGLE, {"isOn": False})

    assert len(events) == 2
    assert len(more_events) == 1


def test_failing_listener(cache: StateCache, events: list[StateChange]) -> None:
    def bad_listener(event: StateChange) -> None:
        raise RuntimeError("a bad listener")

    cache._listeners.insert(0, bad_listener)

    result = cache.update(0, FeatureKind.TOGGLE, {"isOn": True})

    assert result.changed
    assert len(events) == 1  # the other listeners are still called
    assert cache.value(0, FeatureKind.TOGGLE) == {"isOn": True}
