#!/usr/bin/env python3
"""Meross IoT - the presence sensor feature (Control.Sensor.LatestX)."""

from __future__ import annotations

import logging
from typing import Any

from meross_tx.const import SZ_CHANNEL, SZ_DATA, SZ_LATEST, SZ_STUDY
from meross_tx.notifications import SensorLatestXNotification

from .. import exceptions as exc
from ..abilities import require_ability
from ..const import FeatureKind, Method, Namespace, Source
from ..entity_base import Entity, reply_items

_LOGGER = logging.getLogger(__name__)


class Presence(Entity):
    """A presence sensor (that also measures the light level)."""

    async def get_presence_state(self, channel: int = 0) -> dict[str, Any]:
        """Return the latest readings of a sensor, fetching them if required."""

        async def fetch() -> dict[str, Any]:
            require_ability(self, Namespace.CONTROL_SENSOR_LATESTX)

            reply = await self.publish(
                Method.GET,
                Namespace.CONTROL_SENSOR_LATESTX,
                {SZ_LATEST: [{SZ_CHANNEL: channel, SZ_DATA: ["presence", "light"]}]},
            )
            try:
                changes = SensorLatestXNotification(self.id, reply).extract_changes()
            except exc.PayloadInvalid as err:
                raise exc.CommandError(
                    f"{Namespace.CONTROL_SENSOR_LATESTX}: {err}",
                    error_payload=reply,
                    device_uuid=self.id,
                ) from err

            self._apply_changes(changes, Source.RESPONSE)

            if (value := changes.get(FeatureKind.PRESENCE, {}).get(channel)) is None:
                raise exc.CommandError(
                    f"{Namespace.CONTROL_SENSOR_LATESTX}: no readings for channel {channel}",
                    error_payload=reply,
                    device_uuid=self.id,
                )
            return value  # type: ignore[no-any-return]

        return await self.cache.get(channel, FeatureKind.PRESENCE, fetch)

    def is_present(self, channel: int = 0) -> bool | None:
        return self._cached(channel, FeatureKind.PRESENCE, "isPresent")  # type: ignore[no-any-return]

    def presence_distance(self, channel: int = 0) -> int | None:
        """Return the distance (in mm) to whatever is present."""
        return self._cached(channel, FeatureKind.PRESENCE, "distance")  # type: ignore[no-any-return]

    def presence_light(self, channel: int = 0) -> int | None:
        """Return the light level (in lux)."""
        return self._cached(channel, FeatureKind.PRESENCE, "light")  # type: ignore[no-any-return]

    async def get_presence_study(self) -> list[dict[str, Any]]:
        require_ability(self, Namespace.CONTROL_PRESENCE_STUDY)

        reply = await self.publish(Method.GET, Namespace.CONTROL_PRESENCE_STUDY, {})
        return reply_items(reply, SZ_STUDY)

    async def set_presence_study(
        self, channel: int = 0, *, value: int = 1, start: bool = True
    ) -> Any:
        """Start (or stop) the sensor's study of its surroundings (value is 1-3)."""

        require_ability(self, Namespace.CONTROL_PRESENCE_STUDY)

        return await self.publish(
            Method.SET,
            Namespace.CONTROL_PRESENCE_STUDY,
            {SZ_STUDY: [{SZ_CHANNEL: channel, "value": value, "status": 1 if start else 0}]},
        )
