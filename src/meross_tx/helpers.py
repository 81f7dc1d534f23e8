#!/usr/bin/env python3
"""Meross IoT - Protocol-specific helper functions.

Devices are inconsistent about the shape of their payloads: the same field may be a
single object, or an array of them, and the same key may be camelCase or snake_case.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import lru_cache
from inspect import getmembers, isclass
from sys import modules
from types import ModuleType
from typing import Any, TypeVar

_T = TypeVar("_T")

_RE_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def normalize_to_array(raw: _T | list[_T] | None) -> list[_T]:
    """Return the raw field as a list (of zero or more items).

    A list is returned as is (the same object), None becomes an empty list, and any
    other value is wrapped as the only item of a new list.
    """

    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    return [raw]  # type: ignore[list-item]


@lru_cache(maxsize=256)
def camel_to_snake(key: str) -> str:
    """Convert a camelCase key (e.g. 'subdeviceList') to snake_case ('subdevice_list').

    >>> camel_to_snake("latestSampleTime")
    'latest_sample_time'
    """
    return _RE_CAMEL_BOUNDARY.sub("_", key).lower()


@lru_cache(maxsize=256)
def snake_to_camel(key: str) -> str:
    """Convert a snake_case key (e.g. 'sub_id') to camelCase ('subId')."""
    head, *tail = key.split("_")
    return head + "".join(w[:1].upper() + w[1:] for w in tail)


def normalize_key(data: Mapping[str, Any], camel_key: str, *alternatives: str) -> Any:
    """Return the first non-None value of a key, trying each of its spellings in turn.

    The camelCase key is tried first, then any alternatives (if none are given, its
    snake_case equivalent is used). Returns None if no spelling has a value.
    """

    if not isinstance(data, Mapping):
        return None

    keys: Iterable[str] = (camel_key, *(alternatives or (camel_to_snake(camel_key),)))
    for key in keys:
        if (value := data.get(key)) is not None:
            return value
    return None


def normalize_dict(data: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """Return a dict of the wanted (camelCase) keys, whichever spelling was used."""
    return {k: v for k in keys if (v := normalize_key(data, k)) is not None}


def subdevice_id_of(item: Any) -> str | None:
    """Return the subdevice id of a hub payload item (prefer subId, then id).

    Returns None if the item has no (usable) id.
    """

    if not isinstance(item, Mapping):
        return None
    sub_id = normalize_key(item, "subId", "sub_id", "id")
    if sub_id is None or isinstance(sub_id, bool):
        return None
    if not isinstance(sub_id, int | str) or sub_id == "":
        return None
    return str(sub_id)


def normalize_channel(value: Any, default: int = 0) -> int:
    """Return a channel number, using the default if none was given."""

    if value is None:
        return default
    if isinstance(value, Mapping):
        value = value.get("channel")
        return default if value is None else int(value)
    return int(value)


def class_by_attr(name: str, attr: str) -> dict[str, Any]:
    """Return a mapping of a (unique) attr of classes in a module to that class."""

    def predicate(m: ModuleType) -> bool:
        return isclass(m) and m.__module__ == name and getattr(m, attr, None)  # type: ignore[return-value]

    return {getattr(c[1], attr): c[1] for c in getmembers(modules[name], predicate)}
