"""Scenario documents: start state, flight plan and timed ATC events.

A scenario is declarative data. It is read from YAML or JSON (see
digitalatc.scenario.loader) using the camelCase keys of the scenario
format, and turned into the typed records below.

Typical usage:
    from digitalatc.scenario import Scenario

    scenario = Scenario.from_dict({
        "id": "oak-departure",
        "title": "Oakland departure",
        "events": [{"t": 5, "type": "ATC", "text": "turn left heading 270"}],
    })
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ScenarioError(Exception):
    """Raised when a scenario document cannot be read or is malformed."""


class EventType(Enum):
    """Event types understood by the timeline.

    Attributes:
        ATC: Controller transmission; payload carries `text`.
        ADD_TFR: Temporary flight restriction appears.
        REMOVE_TFR: Temporary flight restriction is lifted.
        ADD_TRAFFIC: Traffic contact appears; payload carries `traffic`.
        REMOVE_TRAFFIC: Traffic contact leaves; payload carries `trafficId`.
        NOTE: Instructor note, no effect on the simulation.
    """

    ATC = "ATC"
    ADD_TFR = "ADD_TFR"
    REMOVE_TFR = "REMOVE_TFR"
    ADD_TRAFFIC = "ADD_TRAFFIC"
    REMOVE_TRAFFIC = "REMOVE_TRAFFIC"
    NOTE = "NOTE"


class EventStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class StartState:
    """Initial conditions of the own ship.

    Attributes:
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        altitude_ft: Altitude in feet MSL.
        heading_deg: Heading in degrees.
        groundspeed_kt: Groundspeed in knots.
        vs_fpm: Vertical speed in feet per minute.
        phase: Flight phase label, e.g. "departure" or "enroute".
    """

    lat: float
    lon: float
    altitude_ft: float
    heading_deg: float
    groundspeed_kt: float
    vs_fpm: float = 0.0
    phase: str = "enroute"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StartState":
        """Build from a camelCase mapping, filling gaps from the default start state.

        Raises:
            ScenarioError: If a numeric field is not a number.
        """
        base = DEFAULT_START_STATE
        try:
            return cls(
                lat=float(data.get("lat", base.lat)),
                lon=float(data.get("lon", base.lon)),
                altitude_ft=float(data.get("altitudeFt", base.altitude_ft)),
                heading_deg=float(data.get("headingDeg", base.heading_deg)),
                groundspeed_kt=float(data.get("groundspeedKt", base.groundspeed_kt)),
                vs_fpm=float(data.get("vsFpm", base.vs_fpm)),
                phase=str(data.get("phase", base.phase)),
            )
        except (TypeError, ValueError) as e:
            raise ScenarioError(f"Invalid startState: {e}") from e


DEFAULT_START_STATE = StartState(
    lat=37.7148,
    lon=-122.2152,
    altitude_ft=400.0,
    heading_deg=300.0,
    groundspeed_kt=160.0,
    vs_fpm=1200.0,
    phase="departure",
)


@dataclass(frozen=True)
class FlightPlanEntry:
    """One fix of the filed flight plan."""

    name: str
    altitude: float
    time_seconds: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlightPlanEntry":
        try:
            return cls(
                name=str(data["name"]),
                altitude=float(data.get("altitude", 0.0)),
                time_seconds=float(data.get("timeSeconds", 0.0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ScenarioError(f"Invalid flightPlan entry {data!r}: {e}") from e


@dataclass
class ScenarioEvent:
    """A timed scenario event.

    Attributes:
        t: Seconds from scenario start.
        type: Event type name as written in the document. Unknown names are
            kept so the timeline can report and skip them.
        payload: Type-specific fields (everything except `t` and `type`).
        index: Position in the sorted timeline, assigned on load.
        status: Dispatch status, assigned on load.
    """

    t: float
    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    index: int = -1
    status: EventStatus = EventStatus.PENDING

    @property
    def event_type(self) -> EventType | None:
        """The EventType, or None for an unrecognized type."""
        try:
            return EventType(self.type)
        except ValueError:
            return None

    @property
    def text(self) -> str:
        return str(self.payload.get("text", ""))

    @property
    def traffic(self) -> dict[str, Any] | None:
        return self.payload.get("traffic")

    @property
    def traffic_id(self) -> Any:
        """Id of the contact to remove, falling back to the event's own id."""
        if self.payload.get("trafficId") is not None:
            return self.payload["trafficId"]
        return self.payload.get("id")

    @property
    def is_pending(self) -> bool:
        return self.status is EventStatus.PENDING

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScenarioEvent":
        """Build from a document mapping. A missing or null `t` counts as 0.

        Raises:
            ScenarioError: If the entry is not a mapping or `t` is not a number.
        """
        if not isinstance(data, dict):
            raise ScenarioError(f"Scenario event must be a mapping, got {type(data).__name__}")

        raw_t = data.get("t")
        try:
            t = float(raw_t) if raw_t is not None else 0.0
        except (TypeError, ValueError) as e:
            raise ScenarioError(f"Invalid event time {raw_t!r}") from e

        payload = {k: v for k, v in data.items() if k not in ("t", "type")}
        return cls(t=t, type=str(data.get("type", "")), payload=payload)


@dataclass
class Scenario:
    """A complete scenario document.

    Attributes:
        id: Scenario identifier.
        title: Human-readable title.
        events: Timed events, in document order.
        callsign: Own-ship callsign.
        start_state: Initial conditions, or None for the default start state.
        duration_sec: Explicit duration; computed from events when None.
        flight_plan: Filed route, informational.
    """

    id: str
    title: str
    events: list[ScenarioEvent] = field(default_factory=list)
    callsign: str | None = None
    start_state: StartState | None = None
    duration_sec: float | None = None
    flight_plan: list[FlightPlanEntry] = field(default_factory=list)

    @property
    def resolved_start_state(self) -> StartState:
        return self.start_state or DEFAULT_START_STATE

    def max_event_time(self) -> float:
        return max([0.0, *(event.t for event in self.events)])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scenario":
        """Build a scenario from a parsed document.

        Raises:
            ScenarioError: If the document is not a mapping or a field is malformed.
        """
        if not isinstance(data, dict):
            raise ScenarioError("Scenario document must be a mapping")

        events = data.get("events") or []
        if not isinstance(events, list):
            raise ScenarioError("Scenario 'events' must be a list")

        start_state = data.get("startState")
        duration = data.get("durationSec")
        if duration is not None and (isinstance(duration, bool) or not isinstance(duration, (int, float))):
            raise ScenarioError(f"Scenario 'durationSec' must be a number, got {duration!r}")

        scenario = cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", data.get("id", ""))),
            events=[ScenarioEvent.from_dict(event) for event in events],
            callsign=data.get("callsign"),
            start_state=StartState.from_dict(start_state) if start_state else None,
            duration_sec=float(duration) if duration is not None else None,
            flight_plan=[FlightPlanEntry.from_dict(fix) for fix in data.get("flightPlan") or []],
        )
        logger.debug("Parsed scenario %s with %d events", scenario.id, len(scenario.events))
        return scenario


DEFAULT_DURATION_SEC = 180.0
MIN_COMPUTED_DURATION_SEC = 90.0
DURATION_PADDING_SEC = 30.0


def compute_duration(scenario: Scenario | None) -> float:
    """Resolve a scenario's playback duration in seconds.

    An explicit `duration_sec` wins. Otherwise the scenario runs 30 s past
    its last event, and at least 90 s.

    Examples:
        >>> compute_duration(Scenario("s", "s", [ScenarioEvent(60, "NOTE"), ScenarioEvent(200, "NOTE")]))
        230.0
    """
    if scenario is None:
        return DEFAULT_DURATION_SEC
    if scenario.duration_sec is not None:
        return scenario.duration_sec
    return max(MIN_COMPUTED_DURATION_SEC, scenario.max_event_time() + DURATION_PADDING_SEC)
