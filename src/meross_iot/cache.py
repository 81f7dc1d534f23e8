#!/usr/bin/env python3
"""Meross IoT - the per-device (or per-subdevice) state cache.

Each device/subdevice owns its own cache (i.e. the cache is sharded by scope), which
holds the last known value of each feature, per channel. Writes are shallow-merged
into the stored value, and listeners are notified only if a significant field of the
value has changed.

The cache has no locks, and assumes it is used from within a single event loop.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple, TypedDict

from .const import NOISE_FIELDS, SIGNIFICANT_FIELDS, CacheState, Source
from .helpers import shallow_merge

_LOGGER = logging.getLogger(__name__)


_MISSING = object()


class StateChange(TypedDict):
    """The event passed to state change listeners."""

    type: str  # the feature kind
    scope_id: str  # the device uuid, or the subdevice id
    channel: int | str
    old_value: dict[str, Any] | None
    new_value: dict[str, Any]
    changes: tuple[str, ...]  # the significant fields that changed
    source: Source
    timestamp: float


ListenerT = Callable[[StateChange], Any]
FetchT = Callable[[], Awaitable[Mapping[str, Any]]]


class UpdateResult(NamedTuple):
    changed: bool
    value: dict[str, Any]
    changes: tuple[str, ...] = ()


@dataclass
class CacheEntry:
    value: dict[str, Any]
    timestamp: float
    source: Source
    stale: bool = field(default=False)


def significant_changes(
    kind: str, old: Mapping[str, Any] | None, new: Mapping[str, Any]
) -> tuple[str, ...]:
    """Return the significant fields whose values differ between old and new.

    For unknown kinds of feature, all fields are significant except the noise fields.
    """

    old = old or {}

    if (fields := SIGNIFICANT_FIELDS.get(kind)) is None:
        keys = dict.fromkeys([*old, *new])  # preserve order, without duplicates
        fields = tuple(k for k in keys if k not in NOISE_FIELDS)

    return tuple(
        f for f in fields if old.get(f, _MISSING) != new.get(f, _MISSING)
    )


class StateCache:
    """Maintain a device's (or subdevice's) feature state, keyed by channel & kind."""

    def __init__(
        self,
        scope_id: str,
        *,
        max_age: Mapping[str, float] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.scope_id = scope_id

        self._max_age: dict[str, float] = dict(max_age or {})
        self._clock = clock

        self._entries: dict[tuple[int | str, str], CacheEntry] = {}
        self._listeners: list[ListenerT] = []

    def __repr__(self) -> str:
        return f"StateCache({self.scope_id}, entries={len(self._entries)})"

    def __len__(self) -> int:
        return len(self._entries)

    def add_listener(self, listener: ListenerT) -> Callable[[], None]:
        """Add a state change listener, and return a callable that will remove it."""

        self._listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener

    def max_age(self, kind: str) -> float:
        """Return the freshness window (in seconds) of a kind of feature."""
        return self._max_age.get(kind, 0)

    def update(
        self,
        channel: int | str,
        kind: str,
        partial: Mapping[str, Any],
        source: Source = Source.PUSH,
        *,
        replace: bool = False,
    ) -> UpdateResult:
        """Merge a (partial) value into the cache, notifying listeners of any changes.

        Only the fields present in the partial value are overwritten (unless replace is
        True). The last writer wins, and any changes are relative to the value at the
        time of the write.
        """

        entry = self._entries.get((channel, kind))
        old_value = entry.value if entry else None
        new_value = dict(partial) if replace else shallow_merge(old_value, partial)

        changes = significant_changes(kind, old_value, new_value)
        timestamp = self._clock()

        self._entries[(channel, kind)] = CacheEntry(new_value, timestamp, Source(source))

        if not changes:
            return UpdateResult(False, new_value)

        _LOGGER.debug(
            "%s: %s[%s] changed %s (via %s)", self.scope_id, kind, channel, changes, source
        )

        self._notify(
            StateChange(
                type=kind,
                scope_id=self.scope_id,
                channel=channel,
                old_value=old_value,
                new_value=new_value,
                changes=changes,
                source=Source(source),
                timestamp=timestamp,
            )
        )
        return UpdateResult(True, new_value, changes)

    def _notify(self, event: StateChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as err:
                _LOGGER.exception(
                    "%s: listener %s failed: %s(%s)",
                    self.scope_id,
                    listener,
                    err.__class__.__name__,
                    err,
                )

    def peek(self, channel: int | str, kind: str) -> CacheEntry | None:
        """Return the cache entry (if any), without regard to its freshness."""
        return self._entries.get((channel, kind))

    def value(self, channel: int | str, kind: str) -> dict[str, Any] | None:
        """Return the last known value (if any), without regard to its freshness."""
        if entry := self._entries.get((channel, kind)):
            return entry.value
        return None

    def state(self, channel: int | str, kind: str) -> CacheState:
        """Return the state of a cache entry: uninitialized, fresh or stale."""

        if not (entry := self._entries.get((channel, kind))):
            return CacheState.UNINITIALIZED
        if entry.stale:
            return CacheState.STALE
        if (max_age := self.max_age(kind)) and self._clock() - entry.timestamp >= max_age:
            return CacheState.STALE
        return CacheState.FRESH

    def is_fresh(
        self, channel: int | str, kind: str, max_age: float | None = None
    ) -> bool:
        """Return True if the entry is young enough to avoid a fetch."""

        if max_age is None:
            max_age = self.max_age(kind)
        if not max_age or not (entry := self._entries.get((channel, kind))):
            return False
        return not entry.stale and self._clock() - entry.timestamp < max_age

    async def get(
        self,
        channel: int | str,
        kind: str,
        fetch: FetchT,
        *,
        max_age: float | None = None,
    ) -> dict[str, Any]:
        """Return the value, fetching it first unless the cached value is fresh.

        The fetched value is written to the cache (source=response). Any exception
        raised by fetch is not caught, and leaves the cache entry as it was.
        """

        if self.is_fresh(channel, kind, max_age=max_age):
            return self._entries[(channel, kind)].value

        value = await fetch()
        return self.update(channel, kind, value, source=Source.RESPONSE).value

    def invalidate(self, channel: int | str | None = None, kind: str | None = None) -> None:
        """Mark entries as stale (all of them, by default)."""

        for (chan, knd), entry in self._entries.items():
            if (channel is None or chan == channel) and (kind is None or knd == kind):
                entry.stale = True

    def channels(self, kind: str) -> list[int | str]:
        """Return the channels for which there is a value of this kind."""
        return [c for c, k in self._entries if k == kind]

    def snapshot(self) -> dict[str, dict[int | str, dict[str, Any]]]:
        """Return all the cached values, as {kind: {channel: value}}."""

        result: dict[str, dict[int | str, dict[str, Any]]] = {}
        for (channel, kind), entry in self._entries.items():
            result.setdefault(kind, {})[channel] = entry.value
        return result
