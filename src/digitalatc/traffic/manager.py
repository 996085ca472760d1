"""Spawns and retires traffic movers as scenario events arrive."""

import logging
from typing import Any

from digitalatc.physics.geodesy import geodetic_to_local
from digitalatc.physics.units import FT_TO_M
from digitalatc.scenario.scenario import Scenario
from digitalatc.scenario.timeline import TimelineListener
from digitalatc.traffic.movement import TrafficContact, TrafficMovement, TrafficPosition

logger = logging.getLogger(__name__)


class TrafficManager(TimelineListener):
    """Owns the traffic movers of the running scenario.

    Contacts appear on ADD_TRAFFIC and disappear on REMOVE_TRAFFIC. All
    contacts are dropped when a scenario loads or playback resets, and they
    only move while playback is running.
    """

    def __init__(
        self,
        origin_lat: float | None = None,
        origin_lon: float | None = None,
        origin_altitude_m: float = 0.0,
    ) -> None:
        self.origin_lat = origin_lat
        self.origin_lon = origin_lon
        self.origin_altitude_m = origin_altitude_m

        self._movers: dict[str, TrafficMovement] = {}
        self._contacts: dict[str, TrafficContact] = {}
        self._active = False
        self._last_timestamp_ms: float | None = None
        self._spawned = 0

    def __len__(self) -> int:
        return len(self._movers)

    def __contains__(self, traffic_id: object) -> bool:
        return str(traffic_id) in self._movers

    def clear(self) -> None:
        self._movers.clear()
        self._contacts.clear()

    # Timeline hooks

    def on_load(self, scenario: Scenario | None, duration: float) -> None:
        self.clear()
        self._active = False
        if scenario is not None:
            start = scenario.resolved_start_state
            self.origin_lat, self.origin_lon = start.lat, start.lon

    def on_start(self) -> None:
        self._active = True
        self._last_timestamp_ms = None

    def on_pause(self) -> None:
        self._active = False

    def on_reset(self) -> None:
        self.clear()
        self._active = False

    def on_add_traffic(self, contact: dict[str, Any] | None) -> None:
        if not isinstance(contact, dict):
            logger.warning("ADD_TRAFFIC without a traffic mapping: %r", contact)
            return

        self._spawned += 1
        parsed = TrafficContact.from_dict(contact, fallback_id=f"TFC{self._spawned}")
        x, y, z = self._local_position(parsed)
        if parsed.id in self._movers:
            logger.info("Replacing traffic contact %s", parsed.id)

        self._movers[parsed.id] = TrafficMovement(x, y, z, parsed.heading_deg, parsed.speed_kt)
        self._contacts[parsed.id] = parsed
        logger.info(
            "Traffic %s added at (%.0f, %.0f, %.0f) heading %.0f, %.0f kt",
            parsed.id, x, y, z, parsed.heading_deg, parsed.speed_kt,
        )

    def on_remove_traffic(self, traffic_id: Any) -> None:
        key = str(traffic_id)
        if self._movers.pop(key, None) is None:
            logger.warning("REMOVE_TRAFFIC for unknown contact %r", traffic_id)
            return
        self._contacts.pop(key, None)
        logger.info("Traffic %s removed", key)

    def _local_position(self, contact: TrafficContact) -> tuple[float, float, float]:
        if contact.x is not None or contact.y is not None:
            x, y = contact.x or 0.0, contact.y or 0.0
        elif contact.lat is not None and contact.lon is not None and self.origin_lat is not None:
            x, y = geodetic_to_local(contact.lat, contact.lon, self.origin_lat, self.origin_lon)
        else:
            x, y = 0.0, 0.0

        if contact.z is not None:
            z = contact.z
        elif contact.altitude_ft is not None:
            z = contact.altitude_ft * FT_TO_M - self.origin_altitude_m
        else:
            z = 0.0
        return x, y, z

    # Frame

    def tick(self, timestamp_ms: float) -> None:
        """Advance every contact by the interval since the previous frame."""
        if not self._active:
            return
        previous_ms = self._last_timestamp_ms
        self._last_timestamp_ms = timestamp_ms
        if previous_ms is None:
            return

        dt = (timestamp_ms - previous_ms) / 1000.0
        for mover in self._movers.values():
            mover.update(dt)

    def positions(self) -> list[TrafficPosition]:
        """Current positions of all contacts, in spawn order."""
        result = []
        for traffic_id, mover in self._movers.items():
            x, y, z, heading = mover.get_position()
            contact = self._contacts[traffic_id]
            result.append(
                TrafficPosition(traffic_id, x, y, z, heading, mover.speed_kt, contact.callsign)
            )
        return result
