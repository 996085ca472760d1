"""Integration tests for SimulationSession."""

from pathlib import Path

import pytest

from digitalatc.autopilot.intent import PilotIntent, ScriptedIntentProvider
from digitalatc.core.event_bus import EventBus
from digitalatc.core.frame_scheduler import ManualClock, MonotonicClock
from digitalatc.physics.state import FlightEnvelope
from digitalatc.physics.units import FT_TO_M
from digitalatc.scenario.events import AtcMessageEvent
from digitalatc.scenario.loader import load_scenario_file
from digitalatc.session import IntentAppliedEvent, SimulationSession

SCENARIOS_DIR = Path(__file__).resolve().parents[1] / "scenarios"


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def session(clock, bus) -> SimulationSession:
    return SimulationSession(clock=clock, intent_provider=ScriptedIntentProvider(), event_bus=bus)


@pytest.fixture
def scenario(make_scenario):
    return make_scenario(
        [
            {"t": 1, "type": "ATC", "text": "turn right heading 090, speed 250",
             "intent": {"targetHeadingDeg": 90, "targetSpeedKt": 250}},
            {"t": 2, "type": "ADD_TRAFFIC",
             "traffic": {"id": "T1", "x": 0, "y": 1000, "z": 500, "headingDeg": 90}},
            {"t": 3, "type": "NOTE", "text": "traffic in sight"},
            {"t": 4, "type": "REMOVE_TRAFFIC", "trafficId": "T1"},
            {"t": 5, "type": "ATC", "text": "say altitude"},
        ],
        callsign="N123AB",
        durationSec=8,
        startState={"altitudeFt": 3000, "headingDeg": 0, "groundspeedKt": 200, "phase": "enroute"},
    )


class TestSessionPlayback:
    """Tests for running a scenario end to end."""

    def test_load_places_aircraft_at_start_state(self, session, scenario) -> None:
        session.load_scenario(scenario)

        state = session.engine.get_state()
        assert state.heading_deg == 0.0
        assert state.position.z == pytest.approx(3000 * FT_TO_M)
        assert state.speed_kt == pytest.approx(200.0)
        assert not session.engine.is_running

    def test_headless_run(self, session, scenario, bus) -> None:
        """Test ATC intents steer the aircraft and the run stops at completion."""
        applied = []
        atc = []
        bus.subscribe(IntentAppliedEvent, applied.append)
        bus.subscribe(AtcMessageEvent, atc.append)

        session.load_scenario(scenario)
        session.start()
        frames = session.run_headless(step=0.05)

        assert frames == 160
        assert session.timeline.is_complete
        assert not session.engine.is_running

        state = session.engine.get_state()
        targets = session.engine.get_targets()
        assert targets.heading_deg == 90.0
        assert targets.speed_kt == 250.0
        assert 15.0 < state.heading_deg < 25.0
        assert state.speed_kt == pytest.approx(250.0)
        assert state.altitude_ft == pytest.approx(3000.0, abs=1.0)

        assert len(session.traffic) == 0
        assert [e.text for e in atc] == ["turn right heading 090, speed 250", "say altitude"]
        assert len(applied) == 1
        assert applied[0].intent == PilotIntent(target_heading_deg=90.0, target_speed_kt=250.0)

        snapshot = session.snapshot()
        assert snapshot.callsign == "N123AB"
        assert snapshot.phase == "enroute"
        assert snapshot.last_atc_text == "say altitude"
        assert snapshot.timeline.is_complete
        assert snapshot.traffic == ()

    def test_traffic_moves_during_playback(self, session, scenario) -> None:
        session.load_scenario(scenario)
        session.start()
        session.run_headless(step=0.05, max_seconds=3.0)

        [contact] = session.snapshot().traffic
        assert contact.id == "T1"
        assert contact.x > 0.0
        assert contact.y == pytest.approx(1000.0)
        assert contact.z == 500.0

    def test_pause_and_reset(self, session, scenario) -> None:
        """Test pause freezes everything and reset rewinds the whole session."""
        session.load_scenario(scenario)
        session.start()
        session.run_headless(step=0.05, max_seconds=2.0)

        session.pause()
        assert not session.timeline.is_running
        assert not session.engine.is_running
        frozen = session.engine.get_state()
        session.run_headless(step=0.05, max_seconds=1.0)
        assert session.engine.get_state() == frozen

        session.reset()
        state = session.engine.get_state()
        assert session.timeline.elapsed == 0.0
        assert session.timeline.current_event_index == 0
        assert len(session.traffic) == 0
        assert state.position.y == 0.0
        assert not session.engine.get_targets().any_active()
        assert session.snapshot().last_atc_text is None

    def test_without_intent_provider(self, clock, scenario) -> None:
        """Test ATC is only recorded when no provider is configured."""
        session = SimulationSession(clock=clock)
        session.load_scenario(scenario)
        session.start()
        session.run_headless(step=0.05)

        assert not session.engine.get_targets().any_active()
        assert session.snapshot().last_atc_text == "say altitude"

    def test_apply_intent_records_special_action(self, session, scenario) -> None:
        session.load_scenario(scenario)
        session.apply_intent(PilotIntent(target_altitude_ft=5000.0, special_action="expedite"))

        assert session.engine.get_targets().altitude_ft == 5000.0
        assert session.snapshot().special_action == "expedite"

    def test_state_subscription(self, session, scenario) -> None:
        states = []
        session.subscribe_state(states.append)
        session.load_scenario(scenario)
        session.start()
        session.run_headless(step=0.05, max_seconds=1.0)

        assert len(states) == 19

    def test_describe(self, session, scenario) -> None:
        session.load_scenario(scenario)

        summary = session.describe()

        assert summary["heading_deg"] == 0.0
        assert summary["altitude_ft"] == 3000
        assert summary["events_total"] == 5
        assert summary["events_done"] == 0

    def test_shared_envelope_unchanged_by_load(self, clock, scenario) -> None:
        envelope = FlightEnvelope()

        SimulationSession(envelope=envelope, clock=clock).load_scenario(scenario)

        assert envelope.initial_speed_mps == pytest.approx(130.0)

    def test_headless_requires_manual_clock(self) -> None:
        session = SimulationSession(clock=MonotonicClock())

        with pytest.raises(TypeError):
            session.run_headless()


class TestBundledScenario:
    """Runs a shipped scenario to completion."""

    def test_oak_departure(self) -> None:
        session = SimulationSession(clock=ManualClock(), intent_provider=ScriptedIntentProvider())
        session.load_scenario(load_scenario_file(SCENARIOS_DIR / "oak_departure.yaml"))
        session.start()

        session.run_headless(step=0.05)

        snapshot = session.snapshot()
        assert snapshot.timeline.is_complete
        assert snapshot.timeline.duration == 130.0
        assert snapshot.special_action == "resumeOwnNavigation"
        assert snapshot.traffic == ()
        assert not snapshot.targets.any_active()
        assert snapshot.aircraft.altitude_ft == pytest.approx(3000.0, abs=40.0)
