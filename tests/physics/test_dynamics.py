"""Tests for the point-mass dynamics engine."""

import math

import pytest

from digitalatc.core.frame_scheduler import ManualClock
from digitalatc.physics.dynamics import AircraftDynamicsEngine
from digitalatc.physics.state import FlightEnvelope
from digitalatc.physics.units import FPM_TO_MPS, FT_TO_M, KT_TO_MPS


def fly(engine: AircraftDynamicsEngine, clock: ManualClock, seconds: float, dt: float = 0.05) -> None:
    """Advance the clock in fixed steps, ticking the engine each step."""
    for _ in range(round(seconds / dt)):
        clock.advance(dt)
        engine.tick(clock.now_ms())


class TestFrameHandling:
    """Tests for frame interval handling."""

    def test_first_tick_only_records_timestamp(self, clock) -> None:
        """Test nothing moves on the first frame after start."""
        engine = AircraftDynamicsEngine(clock=clock)
        engine.start()
        engine.tick(0.0)

        assert engine.get_state().position.y == 0.0

        clock.advance(0.05)
        engine.tick(clock.now_ms())
        assert engine.get_state().position.y > 0.0

    def test_stalled_frame_is_skipped(self, engine, clock) -> None:
        """Test a frame longer than 100 ms changes nothing, and the next one integrates."""
        before = engine.get_state()

        clock.advance(0.5)
        engine.tick(clock.now_ms())
        assert engine.get_state() == before

        clock.advance(0.05)
        engine.tick(clock.now_ms())
        assert engine.get_state().position.y == pytest.approx(130.0 * 0.05)

    def test_non_positive_interval_is_skipped(self, engine, clock) -> None:
        """Test repeated and backwards timestamps change nothing."""
        fly(engine, clock, 0.1)
        before = engine.get_state()

        engine.tick(clock.now_ms())
        engine.tick(clock.now_ms() - 10.0)

        assert engine.get_state().position == before.position

    def test_stopped_engine_ignores_frames(self, engine, clock) -> None:
        """Test frames arriving while stopped are ignored."""
        engine.stop()
        fly(engine, clock, 1.0)

        assert engine.get_state().position.y == 0.0

    def test_straight_flight_integrates_along_heading(self, clock) -> None:
        """Test heading 90 moves east at the current speed."""
        engine = AircraftDynamicsEngine(initial_heading_deg=90.0, clock=clock)
        engine.start()
        engine.tick(clock.now_ms())

        fly(engine, clock, 1.0)

        state = engine.get_state()
        assert state.position.x == pytest.approx(130.0)
        assert state.position.y == pytest.approx(0.0, abs=1e-6)
        assert state.position.z == pytest.approx(1000.0)


class TestSpeed:
    """Tests for speed control."""

    def test_speed_stays_within_envelope(self, engine, clock) -> None:
        """Test full throttle either way never leaves 60..130 m/s, whatever the frame interval."""
        speeds = []
        engine.subscribe(lambda state: speeds.append(state.speed_mps))

        for speed_input in (1.0, -1.0):
            engine.set_controls(speed=speed_input)
            for dt in (0.01, 0.05, 0.09) * 100:
                clock.advance(dt)
                engine.tick(clock.now_ms())

        assert min(speeds) == pytest.approx(60.0)
        assert max(speeds) == pytest.approx(130.0)
        assert all(60.0 <= s <= 130.0 for s in speeds)

    def test_speed_target_captured_and_held(self, engine, clock) -> None:
        """Test the speed target is reached and stays set."""
        engine.set_speed(200.0)
        fly(engine, clock, 10.0)

        assert engine.get_state().speed_mps == pytest.approx(200.0 * KT_TO_MPS)
        assert engine.get_targets().speed_kt == 200.0

    def test_speed_target_clamped(self, engine) -> None:
        """Test speed targets are clamped to 40..400 kt."""
        engine.set_speed(1000.0)
        assert engine.get_targets().speed_kt == 400.0

        engine.set_speed(10.0)
        assert engine.get_targets().speed_kt == 40.0

    def test_manual_speed_input_clears_speed_target(self, engine) -> None:
        """Test a nonzero speed input drops the speed target, zero keeps it."""
        engine.set_speed(200.0)
        engine.set_controls(speed=0.0)
        assert engine.get_targets().speed_kt == 200.0

        engine.set_controls(speed=-0.5)
        assert engine.get_targets().speed_kt is None


class TestHeading:
    """Tests for heading control."""

    def test_heading_always_normalized(self, engine, clock) -> None:
        """Test turning left through north wraps into [0, 360)."""
        headings = []
        engine.subscribe(lambda state: headings.append(state.heading_deg))

        engine.set_controls(turn=-1.0)
        fly(engine, clock, 10.0)

        assert all(0.0 <= h < 360.0 for h in headings)
        assert engine.get_state().heading_deg == pytest.approx(330.0, abs=1e-6)

    def test_heading_target_captured_and_held(self, engine, clock) -> None:
        """Test the heading target is reached exactly and stays set."""
        engine.set_heading(90.0)
        fly(engine, clock, 40.0)

        assert engine.get_state().heading_deg == pytest.approx(90.0)
        assert engine.get_targets().heading_deg == 90.0

    def test_heading_target_turns_shortest_way(self, engine, clock) -> None:
        """Test a target 10 degrees left of north turns left through 360."""
        engine.set_heading(350.0)
        fly(engine, clock, 0.05)

        assert engine.get_state().heading_deg == pytest.approx(360.0 - 3.0 * 0.05)

    def test_heading_target_wrapped(self, engine) -> None:
        """Test heading targets are wrapped into [0, 360)."""
        engine.set_heading(-90.0)
        assert engine.get_targets().heading_deg == 270.0

        engine.set_heading(720.0)
        assert engine.get_targets().heading_deg == 0.0

    def test_non_finite_heading_ignored(self, engine) -> None:
        """Test NaN and infinity leave the target untouched."""
        engine.set_heading(45.0)
        engine.set_heading(math.nan)
        engine.set_heading(math.inf)

        assert engine.get_targets().heading_deg == 45.0

    def test_manual_turn_clears_heading_target(self, engine) -> None:
        """Test a nonzero turn input drops the heading target, zero keeps it."""
        engine.set_heading(90.0)
        engine.set_controls(turn=0.0)
        assert engine.get_targets().heading_deg == 90.0

        engine.set_controls(turn=0.5)
        assert engine.get_targets().heading_deg is None


class TestBank:
    """Tests for coordinated-turn bank angle."""

    def test_bank_rate_limited(self, engine, clock) -> None:
        """Test bank changes by at most 15 deg/s."""
        engine.set_controls(turn=1.0)
        fly(engine, clock, 0.08, dt=0.08)

        assert engine.get_state().bank_angle_deg == pytest.approx(1.2)

    def test_bank_limited_and_levels_out(self, engine, clock) -> None:
        """Test a full-rate turn banks to 30 degrees and rolls level afterwards."""
        engine.set_controls(turn=-1.0)
        fly(engine, clock, 5.0)
        assert engine.get_state().bank_angle_deg == pytest.approx(-30.0)

        engine.set_controls(turn=0.0)
        fly(engine, clock, 5.0)
        assert engine.get_state().bank_angle_deg == pytest.approx(0.0)


class TestAltitude:
    """Tests for altitude and vertical speed control."""

    def test_altitude_target_converges_then_clears(self, engine, clock) -> None:
        """Test a climb of 500 m is captured within tolerance and the target clears."""
        engine.set_altitude(1500.0 / FT_TO_M)

        for _ in range(6000):
            fly(engine, clock, 0.05)
            if engine.get_targets().altitude_ft is None:
                break

        assert engine.get_targets().altitude_ft is None
        assert engine.get_state().position.z == pytest.approx(1500.0, abs=0.5)

        fly(engine, clock, 5.0)
        assert engine.get_state().position.z == pytest.approx(1500.0, abs=1.0)

    def test_altitude_target_uses_origin_altitude(self, engine, clock) -> None:
        """Test absolute targets are converted with the origin altitude."""
        target_ft = 1500.0 / FT_TO_M

        engine.set_altitude(target_ft)
        fly(engine, clock, 0.05)
        assert engine.get_targets().altitude_ft is not None

        engine.update_origin_altitude(500.0)
        fly(engine, clock, 0.05)

        state = engine.get_state()
        assert engine.get_targets().altitude_ft is None
        assert state.altitude_ft == pytest.approx(target_ft, abs=1.0)

    def test_altitude_target_clamped(self, engine) -> None:
        """Test altitude targets are clamped to -1000..60000 ft."""
        engine.set_altitude(-5000.0)
        assert engine.get_targets().altitude_ft == -1000.0

        engine.set_altitude(90000.0)
        assert engine.get_targets().altitude_ft == 60000.0

    def test_manual_pitch_clears_altitude_target(self, engine) -> None:
        """Test a nonzero pitch input drops the altitude target."""
        engine.set_altitude(8000.0)
        engine.set_controls(pitch=0.3)

        assert engine.get_targets().altitude_ft is None

    def test_pitch_rate_limited(self, engine, clock) -> None:
        """Test pitch changes by at most 3 deg/s."""
        engine.set_controls(pitch=1.0)
        fly(engine, clock, 0.08, dt=0.08)

        assert engine.get_state().pitch_angle_deg == pytest.approx(0.24)

    def test_pitch_deadband(self, engine, clock) -> None:
        """Test tiny pitch inputs hold level flight."""
        engine.set_controls(pitch=0.05)
        fly(engine, clock, 2.0)

        state = engine.get_state()
        assert state.pitch_angle_deg == 0.0
        assert state.position.z == pytest.approx(1000.0)

    def test_climb_rate_capped(self, engine, clock) -> None:
        """Test full back pressure climbs no faster than 4000 fpm."""
        rates = []
        engine.subscribe(lambda state: rates.append(state.vertical_speed_mps))

        engine.set_controls(pitch=1.0)
        fly(engine, clock, 10.0)

        assert max(rates) == pytest.approx(20.32)

    def test_vertical_speed_limit(self, engine, clock) -> None:
        """Test a vertical speed limit caps the climb toward an altitude target."""
        rates = []
        engine.subscribe(lambda state: rates.append(state.vertical_speed_mps))

        engine.set_vertical_speed_limit(500.0)
        engine.set_altitude(10000.0)
        fly(engine, clock, 20.0)

        limit_mps = 500.0 * FPM_TO_MPS
        assert all(r <= limit_mps + 1e-9 for r in rates)
        assert max(rates) == pytest.approx(limit_mps)

    def test_vertical_speed_limit_sign_and_range(self, engine) -> None:
        """Test the limit ignores sign and is clamped to 100..6000 fpm."""
        engine.set_vertical_speed_limit(-500.0)
        assert engine.get_targets().vertical_speed_limit_fpm == 500.0

        engine.set_vertical_speed_limit(10.0)
        assert engine.get_targets().vertical_speed_limit_fpm == 100.0

        engine.set_vertical_speed_limit(10000.0)
        assert engine.get_targets().vertical_speed_limit_fpm == 6000.0

        engine.clear_vertical_speed_limit()
        assert engine.get_targets().vertical_speed_limit_fpm is None

    def test_safety_floor(self, engine, clock) -> None:
        """Test a sustained dive stops 1000 m below the initial altitude."""
        altitudes = []
        engine.subscribe(lambda state: altitudes.append(state.position.z))

        engine.set_controls(pitch=-1.0)
        fly(engine, clock, 120.0)

        assert min(altitudes) >= 0.0
        assert engine.get_state().position.z == 0.0


class TestLifecycle:
    """Tests for start, stop, reset and observers."""

    def test_start_and_stop_idempotent(self, clock) -> None:
        """Test repeated start/stop calls are harmless."""
        engine = AircraftDynamicsEngine(clock=clock)
        engine.start()
        engine.start()
        assert engine.is_running

        engine.stop()
        engine.stop()
        assert not engine.is_running

    def test_reset_restores_initial_state(self, engine, clock) -> None:
        """Test reset clears motion, inputs, targets and trail."""
        engine.set_controls(turn=1.0, speed=-1.0)
        engine.set_altitude(5000.0)
        fly(engine, clock, 3.0)

        engine.reset()

        state = engine.get_state()
        assert not engine.is_running
        assert state.position.y == 0.0
        assert state.position.z == 1000.0
        assert state.heading_deg == 0.0
        assert state.speed_mps == pytest.approx(130.0)
        assert state.position_history == ()
        assert not engine.get_targets().any_active()
        assert engine.get_inputs().turn == 0.0

    def test_configure_initial_state(self, clock) -> None:
        """Test new initial conditions apply and move the safety floor."""
        engine = AircraftDynamicsEngine(clock=clock)
        engine.configure_initial_state(heading_deg=-60.0, altitude_m=120.0, speed_mps=82.0)
        engine.start()
        engine.tick(clock.now_ms())

        state = engine.get_state()
        assert state.heading_deg == 300.0
        assert state.speed_mps == pytest.approx(82.0)
        assert state.position.z == 120.0

        engine.set_controls(pitch=-1.0)
        fly(engine, clock, 80.0)
        assert engine.get_state().position.z == pytest.approx(-880.0)

    def test_configure_leaves_shared_envelope_alone(self, clock) -> None:
        """Test initial speed is per engine and None falls back to the envelope default."""
        envelope = FlightEnvelope()
        engine = AircraftDynamicsEngine(envelope=envelope, clock=clock)

        engine.configure_initial_state(heading_deg=0.0, altitude_m=0.0, speed_mps=82.0)
        assert envelope.initial_speed_mps == pytest.approx(130.0)
        assert AircraftDynamicsEngine(envelope=envelope, clock=clock).get_state().speed_mps == pytest.approx(130.0)

        engine.configure_initial_state(heading_deg=0.0, altitude_m=0.0)
        assert engine.get_state().speed_mps == pytest.approx(130.0)

    def test_accessors_return_copies(self, engine) -> None:
        """Test mutating returned targets does not affect the engine."""
        engine.set_heading(90.0)
        targets = engine.get_targets()
        targets.heading_deg = 180.0

        assert engine.get_targets().heading_deg == 90.0

    def test_observers_receive_state(self, engine, clock) -> None:
        """Test observers get one state per integrated tick until unsubscribed."""
        states = []
        engine.subscribe(states.append)
        fly(engine, clock, 0.5)
        assert len(states) == 10

        engine.unsubscribe(states.append)
        fly(engine, clock, 0.5)
        assert len(states) == 10

    def test_failing_observer_is_isolated(self, engine, clock, caplog) -> None:
        """Test one observer raising does not stop the others."""
        states = []

        def failing(state) -> None:
            raise RuntimeError("observer failed")

        engine.subscribe(failing)
        engine.subscribe(states.append)
        fly(engine, clock, 0.1)

        assert len(states) == 2
        assert "State observer" in caplog.text

    def test_trail_bounded_by_distance(self, engine, clock) -> None:
        """Test a long flight keeps at most 5000 m of trail."""
        fly(engine, clock, 60.0)

        history = engine.get_state().position_history
        span = history[-1].cumulative_distance - history[0].cumulative_distance
        assert 4900.0 < span <= 5000.0
        assert history[-1].y == pytest.approx(engine.get_state().position.y)

    def test_custom_envelope(self, clock) -> None:
        """Test envelope parameters drive the model."""
        envelope = FlightEnvelope(max_speed_mps=100.0, initial_speed_mps=100.0, max_turn_rate_dps=6.0)
        engine = AircraftDynamicsEngine(envelope=envelope, clock=clock)
        engine.start()
        engine.tick(clock.now_ms())

        engine.set_controls(turn=1.0)
        fly(engine, clock, 1.0)

        assert engine.get_state().heading_deg == pytest.approx(6.0)
        assert engine.get_state().speed_mps == pytest.approx(100.0)
