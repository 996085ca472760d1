"""Simulation session: the one object that owns a running simulation.

The session wires the dynamics engine, scenario timeline and traffic
manager to a shared frame scheduler and event bus, and routes ATC
transmissions through an intent provider into the autopilot. Consumers
read state through snapshot() or subscribe to engine states and bus
events; nothing is shared through module-level globals.

Typical usage:
    session = SimulationSession(clock=ManualClock(), intent_provider=ScriptedIntentProvider())
    session.load_scenario(load_scenario_file("scenarios/oak_departure.yaml"))
    session.start()
    session.run_headless(step=1 / 60)
"""

from dataclasses import dataclass
from typing import Any

from digitalatc.autopilot.intent import IntentApplier, IntentProvider, PilotIntent
from digitalatc.core.event_bus import Event, EventBus
from digitalatc.core.frame_scheduler import Clock, FrameScheduler, ManualClock, MonotonicClock
from digitalatc.core.logging_system import LoggerMixin
from digitalatc.physics.dynamics import AircraftDynamicsEngine, StateObserver
from digitalatc.physics.state import ControlTargets, FlightEnvelope, SimulationState
from digitalatc.physics.units import FT_TO_M, KT_TO_MPS
from digitalatc.scenario.events import EventBusBridge
from digitalatc.scenario.scenario import Scenario, ScenarioEvent
from digitalatc.scenario.timeline import ScenarioTimeline, TimelineListener, TimelineSnapshot
from digitalatc.traffic.manager import TrafficManager
from digitalatc.traffic.movement import TrafficPosition


@dataclass
class IntentAppliedEvent(Event):
    """Published after an ATC transmission produced an intent."""

    text: str = ""
    intent: PilotIntent | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything a UI needs to draw one frame."""

    callsign: str | None
    phase: str | None
    aircraft: SimulationState
    targets: ControlTargets
    timeline: TimelineSnapshot
    traffic: tuple[TrafficPosition, ...]
    last_atc_text: str | None
    special_action: str | None


class SimulationSession(TimelineListener, LoggerMixin):
    """Owns the engine, timeline and traffic of one simulation.

    Examples:
        >>> session = SimulationSession(clock=ManualClock())
        >>> session.load_scenario(scenario)
        >>> session.start()
        >>> session.run_headless()
        >>> session.timeline.is_complete
        True
    """

    def __init__(
        self,
        envelope: FlightEnvelope | None = None,
        clock: Clock | None = None,
        intent_provider: IntentProvider | None = None,
        event_bus: EventBus | None = None,
        target_fps: int = 60,
    ) -> None:
        """Create the session and wire its components.

        Args:
            envelope: Flight envelope for the dynamics engine.
            clock: Shared time source. Use a ManualClock for headless runs.
            intent_provider: Turns ATC text into intents; ATC events are
                only logged when None.
            event_bus: Bus receiving timeline and intent events.
            target_fps: Frame rate for real-time runs.
        """
        self.attach_logger("digitalatc.session")

        self.clock = clock or MonotonicClock()
        self.bus = event_bus or EventBus()
        self.scheduler = FrameScheduler(clock=self.clock, target_fps=target_fps)

        self.engine = AircraftDynamicsEngine(envelope=envelope, clock=self.clock)
        self.traffic = TrafficManager()
        self.timeline = ScenarioTimeline(
            listeners=[self, self.traffic, EventBusBridge(self.bus)],
            clock=self.clock,
        )
        self.intent_provider = intent_provider
        self._applier = IntentApplier(self.engine)

        # Order matters: the timeline dispatches before the engine integrates
        self.scheduler.register(self.timeline)
        self.scheduler.register(self.engine)
        self.scheduler.register(self.traffic)

        self._last_atc_text: str | None = None
        self._special_action: str | None = None

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def load_scenario(self, scenario: Scenario) -> None:
        """Load a scenario and place the aircraft at its start state."""
        self.engine.stop()
        start = scenario.resolved_start_state
        self.engine.update_origin_altitude(0.0)
        self.traffic.origin_altitude_m = 0.0
        self.engine.configure_initial_state(
            heading_deg=start.heading_deg,
            altitude_m=start.altitude_ft * FT_TO_M,
            speed_mps=start.groundspeed_kt * KT_TO_MPS,
        )
        self._last_atc_text = None
        self._special_action = None
        self.timeline.load_scenario(scenario)

    def start(self) -> None:
        self.engine.start()
        self.timeline.start()

    def pause(self) -> None:
        self.timeline.pause()
        self.engine.stop()

    def reset(self) -> None:
        self.timeline.reset()
        self.engine.reset()
        self._last_atc_text = None
        self._special_action = None

    def apply_intent(self, intent: PilotIntent | None) -> None:
        """Apply an intent from any source, recording its special action."""
        if intent is None:
            return
        self._applier.apply(intent)
        self._special_action = intent.special_action

    def subscribe_state(self, observer: StateObserver) -> None:
        self.engine.subscribe(observer)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run_headless(self, step: float = 1.0 / 60.0, max_seconds: float | None = None) -> int:
        """Run fixed-step frames until the scenario completes.

        Args:
            step: Frame step in seconds (must stay within the engine's
                stall limit to integrate).
            max_seconds: Simulated time limit; defaults to the scenario
                duration plus one second.

        Returns:
            Number of frames executed.

        Raises:
            TypeError: If the session clock is not a ManualClock.
        """
        if not isinstance(self.clock, ManualClock):
            raise TypeError("run_headless() requires a session built with a ManualClock")
        limit = max_seconds if max_seconds is not None else self.timeline.duration + 1.0
        frames = self.scheduler.run_for(limit, step=step, until=lambda: self.timeline.is_complete)
        self.log_info("Headless run finished after %d frames", frames)
        return frames

    def run_realtime(self) -> None:
        """Run in real time until the scenario completes or is interrupted."""
        self.scheduler.run(until=lambda: self.timeline.is_complete)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        scenario = self.timeline.scenario
        return SessionSnapshot(
            callsign=scenario.callsign if scenario else None,
            phase=scenario.resolved_start_state.phase if scenario else None,
            aircraft=self.engine.get_state(),
            targets=self.engine.get_targets(),
            timeline=self.timeline.get_state(),
            traffic=tuple(self.traffic.positions()),
            last_atc_text=self._last_atc_text,
            special_action=self._special_action,
        )

    # ------------------------------------------------------------------
    # Timeline hooks
    # ------------------------------------------------------------------

    def on_atc(self, text: str, event: ScenarioEvent) -> None:
        self._last_atc_text = text
        self.log_info("ATC [t=%.0f]: %s", event.t, text)

        if self.intent_provider is None:
            return

        intent = self.intent_provider(text, self.engine.get_state(), event)
        if intent is None:
            self.log_debug("No intent for ATC event #%d", event.index)
            return

        self.apply_intent(intent)
        self.bus.publish(IntentAppliedEvent(text=text, intent=intent))

    def on_note(self, event: ScenarioEvent) -> None:
        self.log_info("Note [t=%.0f]: %s", event.t, event.text)

    def on_add_tfr(self, event: ScenarioEvent) -> None:
        self.log_info("TFR added: %s", event.payload.get("id", event.payload.get("name", "?")))

    def on_remove_tfr(self, event: ScenarioEvent) -> None:
        self.log_info("TFR removed: %s", event.payload.get("id", event.payload.get("name", "?")))

    def on_complete(self) -> None:
        self.engine.stop()
        state = self.engine.get_state()
        self.log_info(
            "Scenario complete: heading %.0f, %.0f ft, %.0f kt",
            state.heading_deg, state.altitude_ft, state.speed_kt,
        )

    def describe(self) -> dict[str, Any]:
        """Flat summary of the current state, for logs and the CLI."""
        state = self.engine.get_state()
        targets = self.engine.get_targets()
        return {
            "elapsed_s": round(self.timeline.elapsed, 1),
            "heading_deg": round(state.heading_deg, 1),
            "altitude_ft": round(state.altitude_ft),
            "speed_kt": round(state.speed_kt),
            "vs_fpm": round(state.vertical_speed_fpm),
            "target_heading_deg": targets.heading_deg,
            "target_altitude_ft": targets.altitude_ft,
            "target_speed_kt": targets.speed_kt,
            "traffic": len(self.traffic),
            "events_done": self.timeline.current_event_index,
            "events_total": len(self.timeline.events),
        }
