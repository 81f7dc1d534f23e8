#!/usr/bin/env python3
"""Meross IoT - the base class of devices & subdevices (and their features)."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

import voluptuous as vol

from meross_tx import normalize_channel, normalize_to_array

from . import exceptions as exc
from .abilities import has_ability, supports_feature
from .cache import StateCache
from .const import SZ_CHANNEL, CacheState, Method, Source

if TYPE_CHECKING:
    from .gateway import Gateway


_LOGGER = logging.getLogger(__name__)


# namespace: (payload key, handler name), a key of None means the whole payload
HandlersT = dict[str, tuple[str | None, str]]
# digest path: handler name, e.g. ("diffuser", "light"): "_update_diffuser_light"
DigestsT = dict[tuple[str, ...], str]


def reply_items(reply: Any, key: str) -> list[dict[str, Any]]:
    """Return the items (dicts) under a key of a reply payload, as a list."""

    if not isinstance(reply, Mapping):
        return []
    return [i for i in normalize_to_array(reply.get(key)) if isinstance(i, Mapping)]


def _collect(cls: type, attr: str) -> dict[Any, Any]:
    """Merge a class attr (a dict) from every class in the MRO (subclasses win)."""

    result: dict[Any, Any] = {}
    for klass in reversed(cls.__mro__):
        result.update(klass.__dict__.get(attr, {}))
    return result


class Entity:
    """The Device/SubDevice base class.

    Features are mixins of this class, and each declares the push namespaces (and the
    System.All digest paths) that it handles, and the name of its handler for them.
    """

    _SLUG: ClassVar[str] = "entity"

    _HANDLES: ClassVar[HandlersT] = {}
    _DIGESTS: ClassVar[DigestsT] = {}

    _handler_by_namespace: ClassVar[HandlersT] = {}
    _handler_by_digest: ClassVar[DigestsT] = {}

    # send a command (via the gateway's transport), and return the reply payload
    publish: Callable[[Method, str, Any], Awaitable[Any]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        cls._handler_by_namespace = _collect(cls, "_HANDLES")
        cls._handler_by_digest = _collect(cls, "_DIGESTS")

    def __init__(
        self, gwy: Gateway, id: str, *, abilities: Mapping[str, Any] | None = None
    ) -> None:
        self._gwy = gwy
        self.id = id

        self.abilities: dict[str, Any] = dict(abilities or {})

        self.cache = StateCache(id, max_age=gwy.config.cache_max_age, clock=gwy._clock)
        self.cache.add_listener(gwy._handle_state_change)

        self.last_full_update: float | None = None
        self._state_warned = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.id})"

    def __str__(self) -> str:
        return f"{self.id} ({self._SLUG})"

    def has_ability(self, namespace: str) -> bool:
        return has_ability(self, namespace)

    def supports(self, kind: str) -> bool:
        """Return True if the entity has any of the abilities a feature requires."""
        return supports_feature(self, kind)

    def validate_state(self) -> None:
        """Warn (once) if cached state is being read before a full refresh."""

        if self.last_full_update is not None or self._state_warned:
            return
        if not self._gwy.config.validate_state:
            return

        self._state_warned = True
        _LOGGER.warning(
            "%s: cached state was read before the first full refresh (the value may "
            "be missing or out of date, consider calling refresh_state() first)",
            self,
        )

    def _cached(self, channel: int, kind: str, key: str) -> Any:
        """Return a field of a cached value (None if there is no cached value)."""

        self.validate_state()
        if (value := self.cache.value(channel, kind)) is None:
            return None
        return value.get(key)

    def cache_state(self, channel: int, kind: str) -> CacheState:
        return self.cache.state(channel, kind)

    def _dispatch(self, namespace: str, payload: Any, source: Source) -> bool:
        """Pass a payload to its handler, if any. Return True if it was handled."""

        if not (handler := self._handler_by_namespace.get(namespace)):
            return False

        key, method = handler
        if key is not None:
            if not isinstance(payload, Mapping) or (payload := payload.get(key)) is None:
                return False

        getattr(self, method)(payload, source)
        return True

    def _route_digest(self, digest: Mapping[str, Any], source: Source) -> None:
        """Pass each part of a System.All digest to its handler, if any."""

        for path, method in self._handler_by_digest.items():
            value: Any = digest
            for key in path:
                value = value.get(key) if isinstance(value, Mapping) else None
            if not value:
                continue
            try:
                getattr(self, method)(value, source)
            except (exc.MerossException, vol.Invalid) as err:  # each part is isolated
                _LOGGER.warning(
                    "%s < %s: %s(%s)", self, path, err.__class__.__name__, err
                )
            except (AttributeError, LookupError, TypeError, ValueError) as err:
                _LOGGER.exception(
                    "%s < %s: %s(%s)", self, path, err.__class__.__name__, err
                )

    def _update_items(
        self,
        kind: str,
        data: Any,
        build: Callable[[Mapping[str, Any]], dict[str, Any]],
        source: Source,
    ) -> None:
        """Update the cache from each (per-channel) item of a payload.

        An item without a channel is for the default channel (0).
        """

        for item in normalize_to_array(data):
            if not isinstance(item, Mapping):
                _LOGGER.debug("%s: ignoring %s item (not a dict): %s", self, kind, item)
                continue
            try:
                channel = normalize_channel(item.get(SZ_CHANNEL))
            except (TypeError, ValueError):
                _LOGGER.warning(
                    "%s: ignoring %s item (invalid channel): %s", self, kind, item
                )
                continue
            if value := build(item):
                self.cache.update(channel, kind, value, source=source)

    def _apply_changes(
        self, changes: Mapping[str, Mapping[int, Any]], source: Source
    ) -> None:
        """Update the cache from a notification's changes, {kind: {channel: value}}."""

        for kind, values in changes.items():
            for channel, value in values.items():
                if not isinstance(value, Mapping):  # i.e. toggle
                    value = {"isOn": bool(value)}
                self.cache.update(channel, kind, value, source=source)

    async def _fetch_channel(
        self,
        namespace: str,
        payload: Any,
        key: str,
        channel: int,
        kind: str,
        build: Callable[[Mapping[str, Any]], dict[str, Any]],
    ) -> dict[str, Any]:
        """GET a feature's state, and return the value of one of its channels.

        The other channels of the reply (if any) are also written to the cache.
        """

        reply = await self.publish(Method.GET, namespace, payload)

        items = reply_items(reply, key)
        self._update_items(kind, items, build, Source.RESPONSE)

        for item in items:
            if normalize_channel(item.get(SZ_CHANNEL)) == channel and (
                value := build(item)
            ):
                return value

        raise exc.CommandError(
            f"{namespace}: the reply has no {key} for channel {channel}",
            error_payload=reply,
            device_uuid=self.id,
        )

    @property
    def unified_state(self) -> dict[str, dict[int | str, dict[str, Any]]]:
        """Return all the cached state of the entity, as {kind: {channel: value}}."""
        return self.cache.snapshot()
