"""Typed event-bus events mirroring the timeline listener hooks.

EventBusBridge is a timeline listener that republishes every notification
on an EventBus, so renderers, loggers and the pilot agent can subscribe to
just the events they need without knowing about the timeline.

Typical usage:
    bus = EventBus()
    timeline.add_listener(EventBusBridge(bus))
    bus.subscribe(AtcMessageEvent, lambda e: print(e.text))
"""

from dataclasses import dataclass
from typing import Any

from digitalatc.core.event_bus import Event, EventBus
from digitalatc.scenario.scenario import Scenario, ScenarioEvent
from digitalatc.scenario.timeline import TimelineListener


@dataclass
class ScenarioLoadedEvent(Event):
    scenario: Scenario | None = None
    duration: float = 0.0


@dataclass
class PlaybackStartedEvent(Event):
    pass


@dataclass
class PlaybackPausedEvent(Event):
    pass


@dataclass
class PlaybackResetEvent(Event):
    pass


@dataclass
class TimelineTickEvent(Event):
    elapsed: float = 0.0
    duration: float = 0.0


@dataclass
class ScenarioCompletedEvent(Event):
    pass


@dataclass
class AtcMessageEvent(Event):
    """Controller transmission to be handed to the pilot agent."""

    text: str = ""
    event: ScenarioEvent | None = None


@dataclass
class TfrAddedEvent(Event):
    event: ScenarioEvent | None = None


@dataclass
class TfrRemovedEvent(Event):
    event: ScenarioEvent | None = None


@dataclass
class TrafficAddedEvent(Event):
    contact: dict[str, Any] | None = None


@dataclass
class TrafficRemovedEvent(Event):
    traffic_id: Any = None


@dataclass
class NoteEvent(Event):
    event: ScenarioEvent | None = None


class EventBusBridge(TimelineListener):
    """Republishes timeline notifications as EventBus events.

    Tick events are high-frequency, so they are only published when
    publish_ticks is set.
    """

    def __init__(self, bus: EventBus, publish_ticks: bool = False) -> None:
        self.bus = bus
        self.publish_ticks = publish_ticks

    def on_load(self, scenario: Scenario | None, duration: float) -> None:
        self.bus.publish(ScenarioLoadedEvent(scenario=scenario, duration=duration))

    def on_start(self) -> None:
        self.bus.publish(PlaybackStartedEvent())

    def on_pause(self) -> None:
        self.bus.publish(PlaybackPausedEvent())

    def on_reset(self) -> None:
        self.bus.publish(PlaybackResetEvent())

    def on_tick(self, elapsed: float, duration: float) -> None:
        if self.publish_ticks:
            self.bus.publish(TimelineTickEvent(elapsed=elapsed, duration=duration))

    def on_complete(self) -> None:
        self.bus.publish(ScenarioCompletedEvent())

    def on_atc(self, text: str, event: ScenarioEvent) -> None:
        self.bus.publish(AtcMessageEvent(text=text, event=event))

    def on_add_tfr(self, event: ScenarioEvent) -> None:
        self.bus.publish(TfrAddedEvent(event=event))

    def on_remove_tfr(self, event: ScenarioEvent) -> None:
        self.bus.publish(TfrRemovedEvent(event=event))

    def on_add_traffic(self, contact: dict[str, Any] | None) -> None:
        self.bus.publish(TrafficAddedEvent(contact=contact))

    def on_remove_traffic(self, traffic_id: Any) -> None:
        self.bus.publish(TrafficRemovedEvent(traffic_id=traffic_id))

    def on_note(self, event: ScenarioEvent) -> None:
        self.bus.publish(NoteEvent(event=event))
