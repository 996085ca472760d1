"""Scenario documents and their playback timeline.

Typical usage:
    from digitalatc.scenario import ScenarioTimeline, load_scenario_file

    timeline = ScenarioTimeline()
    timeline.load_scenario(load_scenario_file("scenarios/oak_departure.yaml"))
"""

from digitalatc.scenario.loader import discover_scenarios, load_scenario_file
from digitalatc.scenario.scenario import (
    DEFAULT_START_STATE,
    EventStatus,
    EventType,
    FlightPlanEntry,
    Scenario,
    ScenarioError,
    ScenarioEvent,
    StartState,
    compute_duration,
)
from digitalatc.scenario.timeline import ScenarioTimeline, TimelineListener, TimelineSnapshot

__all__ = [
    "DEFAULT_START_STATE",
    "EventStatus",
    "EventType",
    "FlightPlanEntry",
    "Scenario",
    "ScenarioError",
    "ScenarioEvent",
    "ScenarioTimeline",
    "StartState",
    "TimelineListener",
    "TimelineSnapshot",
    "compute_duration",
    "discover_scenarios",
    "load_scenario_file",
]
