"""Translate pilot intents into autopilot targets.

An intent is what the pilot agent decided to do after hearing an ATC
transmission: new heading, altitude and/or speed targets, plus optional
mode hints. Applying an intent only touches the targets it names; anything
it leaves out keeps its current target. The special action
"resumeOwnNavigation" hands the aircraft back to its own navigation by
clearing the heading, altitude and speed targets.

Typical usage:
    intent = PilotIntent.from_dict({"targetHeadingDeg": 270, "targetAltitudeFt": 5000})
    IntentApplier(engine).apply(intent)
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from digitalatc.core.logging_system import get_logger
from digitalatc.physics.state import SimulationState
from digitalatc.scenario.scenario import ScenarioEvent

logger = get_logger(__name__)

RESUME_OWN_NAVIGATION = "resumeOwnNavigation"


def _finite(value: Any) -> float | None:
    """Return value as a float if it is a finite number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


@dataclass(frozen=True)
class PilotIntent:
    """Targets produced by the pilot agent.

    Attributes:
        target_heading_deg: New heading, degrees.
        target_track_deg: New ground track, degrees; flown as a heading.
        target_altitude_ft: New absolute altitude, feet.
        target_speed_kt: New speed, knots.
        vertical_mode: Vertical mode hint such as "climb", "descend" or "level".
        special_action: Named action such as "resumeOwnNavigation".
    """

    target_heading_deg: float | None = None
    target_track_deg: float | None = None
    target_altitude_ft: float | None = None
    target_speed_kt: float | None = None
    vertical_mode: str | None = None
    special_action: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PilotIntent":
        """Parse the producer's camelCase record. Non-finite numbers count as absent."""
        return cls(
            target_heading_deg=_finite(data.get("targetHeadingDeg")),
            target_track_deg=_finite(data.get("targetTrackDeg")),
            target_altitude_ft=_finite(data.get("targetAltitudeFt")),
            target_speed_kt=_finite(data.get("targetSpeedKt")),
            vertical_mode=data.get("verticalMode") or None,
            special_action=data.get("specialAction") or None,
        )

    @property
    def resumes_own_navigation(self) -> bool:
        return self.special_action == RESUME_OWN_NAVIGATION


class TargetSink(Protocol):
    """The part of the dynamics engine an intent drives."""

    def set_heading(self, heading_deg: float) -> None: ...
    def set_altitude(self, altitude_ft: float) -> None: ...
    def set_speed(self, speed_kt: float) -> None: ...
    def clear_heading(self) -> None: ...
    def clear_altitude(self) -> None: ...
    def clear_speed(self) -> None: ...


class IntentApplier:
    """Applies intents to a dynamics engine."""

    def __init__(self, engine: TargetSink) -> None:
        self.engine = engine

    def apply(self, intent: PilotIntent | None) -> None:
        """Set the targets named by the intent.

        With "resumeOwnNavigation" the heading, altitude and speed targets
        are cleared and any numeric targets in the same intent are ignored.
        Otherwise, a track target is flown as a heading and overrides a
        heading target given alongside it.
        """
        if intent is None:
            return

        if intent.resumes_own_navigation:
            self.engine.clear_heading()
            self.engine.clear_altitude()
            self.engine.clear_speed()
            logger.info("Resuming own navigation, automation targets cleared")
            return

        heading = intent.target_track_deg if intent.target_track_deg is not None else intent.target_heading_deg
        if heading is not None:
            self.engine.set_heading(heading)
        if intent.target_altitude_ft is not None:
            self.engine.set_altitude(intent.target_altitude_ft)
        if intent.target_speed_kt is not None:
            self.engine.set_speed(intent.target_speed_kt)

        if intent.special_action:
            logger.info("Special action requested: %s", intent.special_action)


IntentProvider = Callable[[str, SimulationState, ScenarioEvent | None], PilotIntent | None]
"""Anything that turns an ATC transmission into an intent.

The real provider is the external pilot agent; it is called with the
transmission text, the current aircraft state and the originating event.
"""


class ScriptedIntentProvider:
    """Offline provider reading the intent embedded in the ATC event.

    Scenario authors can attach an `intent` mapping to an ATC event, which
    lets scenarios run without the pilot agent.
    """

    def __call__(
        self, text: str, state: SimulationState, event: ScenarioEvent | None = None
    ) -> PilotIntent | None:
        if event is None:
            return None
        scripted = event.payload.get("intent")
        if not isinstance(scripted, dict):
            logger.debug("No scripted intent for ATC event #%d", event.index)
            return None
        return PilotIntent.from_dict(scripted)
