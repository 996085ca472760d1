"""Scenario playback clock with exactly-once event dispatch.

The timeline owns the sorted event list of the loaded scenario and a
pausable playback clock. On each frame it computes the elapsed scenario
time and hands every event that has come due to its listeners, in
ascending time order (ties keep document order). An event fires at most
once per load, however often playback is paused and resumed; only reset()
or loading a new scenario makes events pending again.

State machine:
    Loaded(idle) <-> Running <-> Paused
    Running -> Complete (until reset() or load_scenario())

Typical usage:
    timeline = ScenarioTimeline(clock=scheduler.clock)
    timeline.add_listener(traffic_manager)
    timeline.load_scenario(scenario)
    scheduler.register(timeline)
    timeline.start()
"""

from dataclasses import dataclass, replace
from typing import Any

from digitalatc.core.frame_scheduler import Clock, MonotonicClock
from digitalatc.core.logging_system import get_logger
from digitalatc.scenario.scenario import (
    EventStatus,
    EventType,
    Scenario,
    ScenarioEvent,
    compute_duration,
)

logger = get_logger(__name__)


class TimelineListener:
    """Receiver of timeline notifications.

    Every hook is a no-op here; subclasses override the ones they care
    about. Listeners are called synchronously inside the timeline's frame.
    """

    def on_load(self, scenario: Scenario | None, duration: float) -> None:
        pass

    def on_start(self) -> None:
        pass

    def on_pause(self) -> None:
        pass

    def on_reset(self) -> None:
        pass

    def on_tick(self, elapsed: float, duration: float) -> None:
        pass

    def on_complete(self) -> None:
        pass

    def on_atc(self, text: str, event: ScenarioEvent) -> None:
        pass

    def on_add_tfr(self, event: ScenarioEvent) -> None:
        pass

    def on_remove_tfr(self, event: ScenarioEvent) -> None:
        pass

    def on_add_traffic(self, contact: dict[str, Any] | None) -> None:
        pass

    def on_remove_traffic(self, traffic_id: Any) -> None:
        pass

    def on_note(self, event: ScenarioEvent) -> None:
        pass


@dataclass(frozen=True)
class TimelineSnapshot:
    """Read-only view of the timeline for UI consumers."""

    scenario: Scenario | None
    events: tuple[ScenarioEvent, ...]
    elapsed: float
    duration: float
    current_event_index: int
    is_running: bool
    is_complete: bool


class ScenarioTimeline:
    """Playback clock and dispatcher for one scenario at a time.

    The timeline never raises during playback: listener failures are
    logged and dispatch carries on, unknown event types are logged and
    skipped.

    Examples:
        >>> clock = ManualClock()
        >>> timeline = ScenarioTimeline(clock=clock)
        >>> timeline.load_scenario(scenario)
        >>> timeline.start()
        >>> clock.advance(12.0)
        >>> timeline.tick(clock.now_ms())
    """

    def __init__(
        self,
        listeners: list[Any] | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize an empty timeline.

        Args:
            listeners: Initial listeners (TimelineListener subclasses or any
                object exposing some of its hook methods).
            clock: Millisecond time source shared with the frame scheduler.
        """
        self._listeners: list[Any] = list(listeners or [])
        self._clock = clock or MonotonicClock()

        self._scenario: Scenario | None = None
        self._events: list[ScenarioEvent] = []
        self._elapsed = 0.0
        self._duration = compute_duration(None)
        self._next_event_pointer = 0
        self._running = False
        self._complete = False

        self._start_timestamp_ms = 0.0
        self._pause_offset_ms = 0.0

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Any) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Any) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, hook: str, *args: Any) -> None:
        for listener in list(self._listeners):
            callback = getattr(listener, hook, None)
            if not callable(callback):
                continue
            try:
                callback(*args)
            except Exception:
                logger.error(
                    "Timeline listener %s failed in %s", type(listener).__name__, hook, exc_info=True
                )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def scenario(self) -> Scenario | None:
        return self._scenario

    @property
    def events(self) -> tuple[ScenarioEvent, ...]:
        return tuple(self._events)

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_complete(self) -> bool:
        return self._complete

    @property
    def current_event_index(self) -> int:
        """Index of the first pending event, or the event count if none remain."""
        for event in self._events:
            if event.is_pending:
                return event.index
        return len(self._events)

    def get_state(self) -> TimelineSnapshot:
        return TimelineSnapshot(
            scenario=self._scenario,
            events=tuple(replace(event) for event in self._events),
            elapsed=self._elapsed,
            duration=self._duration,
            current_event_index=self.current_event_index,
            is_running=self._running,
            is_complete=self._complete,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_scenario(self, scenario: Scenario | None) -> None:
        """Replace the active scenario and rewind the clock.

        Events are sorted by time (stable, so ties keep document order),
        indexed and marked pending. Playback is left idle.
        """
        self._scenario = scenario
        self._duration = compute_duration(scenario)
        self._reset_events()
        self._elapsed = 0.0
        self._pause_offset_ms = 0.0
        self._start_timestamp_ms = 0.0
        self._running = False
        self._complete = False

        if scenario is not None:
            logger.info(
                "Scenario '%s' loaded: %d events, %.0fs",
                scenario.title,
                len(self._events),
                self._duration,
            )
        self._notify("on_load", scenario, self._duration)

    def _reset_events(self) -> None:
        source = self._scenario.events if self._scenario else []
        ordered = sorted(source, key=lambda event: event.t)
        self._events = [
            replace(event, index=index, status=EventStatus.PENDING)
            for index, event in enumerate(ordered)
        ]
        self._next_event_pointer = 0

    def start(self) -> None:
        """Begin or resume playback. No-op when running, complete or empty."""
        if self._scenario is None or self._running or self._complete:
            return

        self._start_timestamp_ms = self._clock.now_ms() - self._pause_offset_ms
        self._running = True
        logger.info("Scenario playback started at %.1fs", self._pause_offset_ms / 1000.0)
        self._notify("on_start")

    def pause(self) -> None:
        """Freeze playback, keeping the elapsed offset. No-op when not running."""
        self._pause(self._clock.now_ms())

    def _pause(self, now_ms: float) -> None:
        if not self._running:
            return
        self._running = False
        self._pause_offset_ms = now_ms - self._start_timestamp_ms
        logger.info("Scenario playback paused at %.1fs", self._pause_offset_ms / 1000.0)
        self._notify("on_pause")

    def reset(self) -> None:
        """Pause, rewind to zero and make every event pending again."""
        self.pause()
        self._pause_offset_ms = 0.0
        self._start_timestamp_ms = 0.0
        self._elapsed = 0.0
        self._complete = False
        self._reset_events()
        logger.info("Scenario playback reset")
        self._notify("on_reset")

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------

    def tick(self, timestamp_ms: float) -> None:
        """Advance playback to a frame timestamp and dispatch due events."""
        if not self._running:
            return

        self._elapsed = (timestamp_ms - self._start_timestamp_ms) / 1000.0
        self._notify("on_tick", self._elapsed, self._duration)
        self._process_events(self._elapsed)

        if self._elapsed >= self._duration:
            self._pause(timestamp_ms)
            self._complete = True
            logger.info("Scenario complete after %.1fs", self._elapsed)
            self._notify("on_complete")

    def _process_events(self, elapsed: float) -> None:
        events = self._events
        while self._next_event_pointer < len(events):
            event = events[self._next_event_pointer]
            if event.t > elapsed:
                break

            self._trigger(event)
            if self._events is not events:
                # A listener reset or reloaded playback from inside the hook.
                return
            event.status = EventStatus.COMPLETED
            self._next_event_pointer += 1

    def _trigger(self, event: ScenarioEvent) -> None:
        event_type = event.event_type
        logger.debug("Dispatching event #%d %s at t=%.1f", event.index, event.type, event.t)

        if event_type is EventType.ATC:
            self._notify("on_atc", event.text, event)
        elif event_type is EventType.ADD_TFR:
            self._notify("on_add_tfr", event)
        elif event_type is EventType.REMOVE_TFR:
            self._notify("on_remove_tfr", event)
        elif event_type is EventType.ADD_TRAFFIC:
            self._notify("on_add_traffic", event.traffic)
        elif event_type is EventType.REMOVE_TRAFFIC:
            self._notify("on_remove_traffic", event.traffic_id)
        elif event_type is EventType.NOTE:
            self._notify("on_note", event)
        else:
            logger.warning("Skipping event #%d with unknown type %r", event.index, event.type)
