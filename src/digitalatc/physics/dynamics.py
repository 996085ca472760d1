"""Point-mass flight dynamics with manual and automated control.

The aircraft is a single body with position, heading, speed and attitude.
Each tick reconciles manual control inputs with automation targets
(heading, altitude, speed, vertical speed limit), integrates the state and
emits a snapshot to every subscribed observer.

Manual input takes precedence: moving an axis away from neutral drops the
automation target for that axis. Automation uses proportional control and
snaps to the target once within tolerance. Heading and speed targets stay
held after capture; an altitude target clears itself on arrival.

Typical usage example:
    engine = AircraftDynamicsEngine(initial_heading_deg=300, initial_altitude_m=1200)
    engine.subscribe(renderer.on_state)
    scheduler.register(engine)
    engine.start()
    engine.set_altitude(5000)  # feet, absolute
"""

import dataclasses
import math
from collections.abc import Callable

from digitalatc.core.frame_scheduler import Clock, MonotonicClock
from digitalatc.core.logging_system import get_logger
from digitalatc.physics.history import PositionHistory
from digitalatc.physics.state import ControlInputs, ControlTargets, FlightEnvelope, SimulationState
from digitalatc.physics.units import (
    FPM_TO_MPS,
    FT_TO_M,
    KT_TO_MPS,
    clamp,
    heading_error,
    normalize_heading,
)
from digitalatc.physics.vectors import Vector3

logger = get_logger(__name__)

StateObserver = Callable[[SimulationState], None]


def _rate_limit(current: float, desired: float, max_change: float) -> float:
    """Move current toward desired by at most max_change."""
    diff = desired - current
    if abs(diff) > max_change:
        return current + math.copysign(max_change, diff)
    return desired


class AircraftDynamicsEngine:
    """Integrates the state of one aircraft every frame.

    The engine owns all state, targets, inputs and the position history.
    Observers receive an immutable SimulationState after each integrated
    tick. Nothing here raises on bad input: targets are clamped and invalid
    frame intervals are skipped.

    Examples:
        >>> engine = AircraftDynamicsEngine(initial_heading_deg=90)
        >>> engine.start()
        >>> engine.set_heading(180)
        >>> engine.tick(0.0)
        >>> engine.tick(16.7)
        >>> engine.get_state().heading_deg > 90
        True
    """

    def __init__(
        self,
        initial_heading_deg: float = 0.0,
        initial_altitude_m: float = 1000.0,
        origin_altitude_m: float = 0.0,
        envelope: FlightEnvelope | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the engine at the local origin.

        Args:
            initial_heading_deg: Starting heading in degrees.
            initial_altitude_m: Starting altitude relative to the origin.
            origin_altitude_m: Absolute altitude of the local origin, used to
                convert absolute altitude targets.
            envelope: Performance and control parameters.
            clock: Time source used to stamp the first trail sample.
        """
        self.envelope = envelope or FlightEnvelope()
        self._clock = clock or MonotonicClock()

        self._initial_heading_deg = normalize_heading(initial_heading_deg)
        self._initial_altitude_m = initial_altitude_m
        self._initial_speed_mps = self.envelope.initial_speed_mps
        self._origin_altitude_m = origin_altitude_m

        self._observers: list[StateObserver] = []
        self._history = PositionHistory(
            max_distance_m=self.envelope.max_trail_distance_m,
            interval_ms=self.envelope.history_interval_ms,
        )

        self._running = False
        self._last_timestamp_ms: float | None = None
        self._restore_initial_state()

    def _restore_initial_state(self) -> None:
        self._position = Vector3(0.0, 0.0, self._initial_altitude_m)
        self._heading_deg = self._initial_heading_deg
        self._speed_mps = self._initial_speed_mps
        self._bank_angle_deg = 0.0
        self._pitch_angle_deg = 0.0
        self._vertical_speed_mps = 0.0
        self._inputs = ControlInputs()
        self._targets = ControlTargets()
        self._history.clear()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start integrating on the next frames. No-op if already running."""
        if self._running:
            return
        self._running = True
        self._last_timestamp_ms = None
        self._history.seed(self._position, self._clock.now_ms())
        logger.info("Dynamics engine started")

    def stop(self) -> None:
        """Stop integrating. Frames keep arriving but are ignored."""
        if not self._running:
            return
        self._running = False
        self._last_timestamp_ms = None
        logger.info("Dynamics engine stopped")

    def reset(self) -> None:
        """Stop and restore the initial state, clearing inputs, targets and trail."""
        self.stop()
        self._restore_initial_state()
        logger.info("Dynamics engine reset")

    def configure_initial_state(
        self,
        heading_deg: float,
        altitude_m: float,
        speed_mps: float | None = None,
    ) -> None:
        """Change the initial conditions and reset to them.

        Args:
            heading_deg: New initial heading.
            altitude_m: New initial altitude relative to the origin; also
                moves the safety floor.
            speed_mps: New initial speed, clamped into the envelope.
                Falls back to the envelope default when None.
        """
        self._initial_heading_deg = normalize_heading(heading_deg)
        self._initial_altitude_m = altitude_m
        if speed_mps is None:
            self._initial_speed_mps = self.envelope.initial_speed_mps
        else:
            self._initial_speed_mps = clamp(
                speed_mps, self.envelope.min_speed_mps, self.envelope.max_speed_mps
            )
        self.reset()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: StateObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: StateObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # ------------------------------------------------------------------
    # Manual controls
    # ------------------------------------------------------------------

    def set_controls(
        self,
        speed: float | None = None,
        turn: float | None = None,
        pitch: float | None = None,
    ) -> None:
        """Set manual control axes. Omitted axes keep their value.

        A nonzero value on an axis clears the matching automation target
        (speed -> speed target, turn -> heading target, pitch -> altitude
        target). Values are clamped to -1.0 .. 1.0.
        """
        if speed is not None:
            self._inputs.speed = clamp(speed, -1.0, 1.0)
            if speed != 0 and self._targets.speed_kt is not None:
                self._targets.speed_kt = None
                logger.info("Manual speed input, speed target cleared")
        if turn is not None:
            self._inputs.turn = clamp(turn, -1.0, 1.0)
            if turn != 0 and self._targets.heading_deg is not None:
                self._targets.heading_deg = None
                logger.info("Manual turn input, heading target cleared")
        if pitch is not None:
            self._inputs.pitch = clamp(pitch, -1.0, 1.0)
            if pitch != 0 and self._targets.altitude_ft is not None:
                self._targets.altitude_ft = None
                logger.info("Manual pitch input, altitude target cleared")

    # ------------------------------------------------------------------
    # Automation targets
    # ------------------------------------------------------------------

    def set_heading(self, heading_deg: float) -> None:
        """Hold a heading in degrees. Any value is wrapped into [0, 360)."""
        if not math.isfinite(heading_deg):
            logger.warning("Ignoring non-finite heading target: %r", heading_deg)
            return
        self._targets.heading_deg = normalize_heading(heading_deg)
        logger.info("Target heading set to %.0f", self._targets.heading_deg)

    def set_altitude(self, altitude_ft: float) -> None:
        """Fly to an absolute altitude in feet."""
        if not math.isfinite(altitude_ft):
            logger.warning("Ignoring non-finite altitude target: %r", altitude_ft)
            return
        env = self.envelope
        self._targets.altitude_ft = clamp(altitude_ft, env.min_target_altitude_ft, env.max_target_altitude_ft)
        logger.info("Target altitude set to %.0f ft", self._targets.altitude_ft)

    def set_speed(self, speed_kt: float) -> None:
        """Hold a speed in knots."""
        if not math.isfinite(speed_kt):
            logger.warning("Ignoring non-finite speed target: %r", speed_kt)
            return
        env = self.envelope
        self._targets.speed_kt = clamp(speed_kt, env.min_target_speed_kt, env.max_target_speed_kt)
        logger.info("Target speed set to %.0f kt", self._targets.speed_kt)

    def set_vertical_speed_limit(self, limit_fpm: float) -> None:
        """Cap the climb and descent rate, in feet per minute (sign ignored)."""
        if not math.isfinite(limit_fpm):
            logger.warning("Ignoring non-finite vertical speed limit: %r", limit_fpm)
            return
        env = self.envelope
        self._targets.vertical_speed_limit_fpm = clamp(
            abs(limit_fpm), env.min_vertical_speed_limit_fpm, env.max_vertical_speed_limit_fpm
        )
        logger.info("Vertical speed limit set to %.0f fpm", self._targets.vertical_speed_limit_fpm)

    def clear_heading(self) -> None:
        self._targets.heading_deg = None

    def clear_altitude(self) -> None:
        self._targets.altitude_ft = None

    def clear_speed(self) -> None:
        self._targets.speed_kt = None

    def clear_vertical_speed_limit(self) -> None:
        self._targets.vertical_speed_limit_fpm = None

    def update_origin_altitude(self, origin_altitude_m: float) -> None:
        """Rebase absolute altitude targets on a new origin altitude."""
        if not math.isfinite(origin_altitude_m):
            logger.warning("Ignoring non-finite origin altitude: %r", origin_altitude_m)
            return
        self._origin_altitude_m = origin_altitude_m
        logger.debug("Origin altitude updated to %.1f m", origin_altitude_m)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_state(self) -> SimulationState:
        return SimulationState(
            position=Vector3(self._position.x, self._position.y, self._position.z),
            heading_deg=self._heading_deg,
            speed_mps=self._speed_mps,
            bank_angle_deg=self._bank_angle_deg,
            pitch_angle_deg=self._pitch_angle_deg,
            vertical_speed_mps=self._vertical_speed_mps,
            origin_altitude_m=self._origin_altitude_m,
            position_history=self._history.samples,
        )

    def get_targets(self) -> ControlTargets:
        return dataclasses.replace(self._targets)

    def get_inputs(self) -> ControlInputs:
        return dataclasses.replace(self._inputs)

    @property
    def history(self) -> PositionHistory:
        return self._history

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------

    def tick(self, timestamp_ms: float) -> None:
        """Advance the simulation to the given frame timestamp.

        The first frame after start() only records its timestamp. Frames
        with a non-positive interval or one longer than the stall limit are
        discarded without changing state.
        """
        if not self._running:
            return

        previous_ms = self._last_timestamp_ms
        self._last_timestamp_ms = timestamp_ms
        if previous_ms is None:
            return

        dt = (timestamp_ms - previous_ms) / 1000.0
        if dt <= 0 or dt > self.envelope.max_frame_dt_s:
            logger.debug("Skipping frame with dt=%.4fs", dt)
            return

        self._update_speed(dt)
        turn_rate_dps = self._update_heading(dt)
        self._update_bank(turn_rate_dps, dt)
        desired_pitch_deg = self._desired_pitch()
        self._pitch_angle_deg = _rate_limit(
            self._pitch_angle_deg, desired_pitch_deg, self.envelope.pitch_smoothing_dps * dt
        )
        self._integrate_position(dt)
        self._history.record(self._position, timestamp_ms)
        self._emit()

    def _update_speed(self, dt: float) -> None:
        env = self.envelope
        if self._targets.speed_kt is not None:
            target_mps = self._targets.speed_kt * KT_TO_MPS
            diff = target_mps - self._speed_mps
            if abs(diff) > env.speed_tolerance_mps:
                self._inputs.speed = clamp(diff / (env.speed_accel_mps2 * dt), -1.0, 1.0)
            else:
                self._inputs.speed = 0.0
                self._speed_mps = target_mps

        self._speed_mps = clamp(
            self._speed_mps + self._inputs.speed * env.speed_accel_mps2 * dt,
            env.min_speed_mps,
            env.max_speed_mps,
        )

    def _update_heading(self, dt: float) -> float:
        """Integrate heading and return the turn rate used, in deg/s."""
        env = self.envelope
        if self._targets.heading_deg is not None:
            error = heading_error(self._targets.heading_deg, self._heading_deg)
            if abs(error) > env.heading_tolerance_deg:
                desired_rate = clamp(error * env.heading_gain, -env.max_turn_rate_dps, env.max_turn_rate_dps)
                self._inputs.turn = desired_rate / env.max_turn_rate_dps
            else:
                self._inputs.turn = 0.0
                self._heading_deg = self._targets.heading_deg

        turn_rate_dps = self._inputs.turn * env.max_turn_rate_dps
        self._heading_deg = normalize_heading(self._heading_deg + turn_rate_dps * dt)
        return turn_rate_dps

    def _update_bank(self, turn_rate_dps: float, dt: float) -> None:
        # Coordinated turn: bank = atan(turn_rate * v / g)
        env = self.envelope
        desired_bank_deg = 0.0
        if abs(turn_rate_dps) > env.min_turn_rate_for_bank_dps and self._speed_mps > 10.0:
            desired_bank_deg = math.degrees(
                math.atan(math.radians(turn_rate_dps) * self._speed_mps / env.gravity_mps2)
            )
            desired_bank_deg = clamp(desired_bank_deg, -env.max_bank_deg, env.max_bank_deg)

        self._bank_angle_deg = _rate_limit(
            self._bank_angle_deg, desired_bank_deg, env.bank_smoothing_dps * dt
        )

    def _vertical_speed_bounds(self) -> tuple[float, float]:
        """Allowed (max descent, max climb) in m/s, as negative/positive values."""
        env = self.envelope
        descent, climb = env.max_descent_rate_mps, env.max_climb_rate_mps
        if self._targets.vertical_speed_limit_fpm is not None:
            limit_mps = self._targets.vertical_speed_limit_fpm * FPM_TO_MPS
            descent, climb = min(descent, limit_mps), min(climb, limit_mps)
        return -descent, climb

    def _desired_pitch(self) -> float:
        env = self.envelope

        if self._targets.altitude_ft is not None:
            target_m = self._targets.altitude_ft * FT_TO_M - self._origin_altitude_m
            error_m = target_m - self._position.z

            if abs(error_m) <= env.altitude_tolerance_m:
                self._position.z = target_m
                self._inputs.pitch = 0.0
                self._targets.altitude_ft = None
                logger.info("Altitude target captured at %.0f m", target_m)
                return 0.0

            low, high = self._vertical_speed_bounds()
            desired_vs = clamp(error_m * env.altitude_gain, low, high)
            if self._speed_mps <= 10.0:
                return 0.0
            pitch_deg = math.degrees(math.asin(clamp(desired_vs / self._speed_mps, -1.0, 1.0)))
            pitch_deg = clamp(pitch_deg, -env.max_pitch_deg, env.max_pitch_deg)
            self._inputs.pitch = pitch_deg / env.max_pitch_deg
            return pitch_deg

        if abs(self._inputs.pitch) > env.pitch_input_deadband:
            return clamp(self._inputs.pitch * env.max_pitch_deg, -env.max_pitch_deg, env.max_pitch_deg)
        return 0.0

    def _integrate_position(self, dt: float) -> None:
        pitch_rad = math.radians(self._pitch_angle_deg)

        low, high = self._vertical_speed_bounds()
        self._vertical_speed_mps = clamp(self._speed_mps * math.sin(pitch_rad), low, high)

        floor_m = self._initial_altitude_m - self.envelope.safety_floor_m
        altitude = max(floor_m, self._position.z + self._vertical_speed_mps * dt)

        displacement = Vector3.from_heading(
            self._heading_deg, self._speed_mps * math.cos(pitch_rad) * dt
        )
        self._position = Vector3(
            self._position.x + displacement.x,
            self._position.y + displacement.y,
            altitude,
        )

    def _emit(self) -> None:
        if not self._observers:
            return
        state = self.get_state()
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                logger.error("State observer %r failed", observer, exc_info=True)
