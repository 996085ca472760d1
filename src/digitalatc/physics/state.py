"""State, target and input records for the point-mass flight model.

Typical usage example:
    from digitalatc.physics.state import FlightEnvelope, SimulationState

    envelope = FlightEnvelope.from_config(ConfigLoader.load("config/simulation.yaml"))
    state = engine.get_state()
    print(state.heading_deg, state.speed_kt)
"""

from dataclasses import dataclass, field

from digitalatc.core.config import ConfigLoader
from digitalatc.physics.history import PositionHistorySample
from digitalatc.physics.units import M_TO_FT, MPS_TO_FPM, MPS_TO_KT, clamp
from digitalatc.physics.vectors import Vector3


@dataclass
class ControlInputs:
    """Manual control axes, each normalized to -1.0 .. 1.0.

    Attributes:
        speed: -1 slows down, +1 speeds up.
        turn: -1 turns left, +1 turns right.
        pitch: -1 descends, +1 climbs.
    """

    speed: float = 0.0
    turn: float = 0.0
    pitch: float = 0.0

    def __post_init__(self) -> None:
        self.speed = clamp(self.speed, -1.0, 1.0)
        self.turn = clamp(self.turn, -1.0, 1.0)
        self.pitch = clamp(self.pitch, -1.0, 1.0)


@dataclass
class ControlTargets:
    """Automation targets. None means the axis is not automated.

    Attributes:
        heading_deg: Target heading in degrees [0, 360).
        altitude_ft: Target altitude in feet, absolute (not origin-relative).
        speed_kt: Target speed in knots.
        vertical_speed_limit_fpm: Cap on climb/descent rate in feet per minute.
    """

    heading_deg: float | None = None
    altitude_ft: float | None = None
    speed_kt: float | None = None
    vertical_speed_limit_fpm: float | None = None

    def any_active(self) -> bool:
        """True if at least one target is set."""
        return any(
            value is not None
            for value in (
                self.heading_deg,
                self.altitude_ft,
                self.speed_kt,
                self.vertical_speed_limit_fpm,
            )
        )


@dataclass(frozen=True)
class SimulationState:
    """Immutable snapshot of the aircraft emitted once per tick.

    Attributes:
        position: Local position in meters (x east, y north, z up).
        heading_deg: Heading in degrees [0, 360).
        speed_mps: Speed in meters per second.
        bank_angle_deg: Bank angle in degrees, positive = right wing down.
        pitch_angle_deg: Pitch angle in degrees, positive = nose up.
        vertical_speed_mps: Climb rate in meters per second.
        origin_altitude_m: Absolute altitude of the local origin.
        position_history: Retained trail samples, oldest first.
    """

    position: Vector3
    heading_deg: float
    speed_mps: float
    bank_angle_deg: float = 0.0
    pitch_angle_deg: float = 0.0
    vertical_speed_mps: float = 0.0
    origin_altitude_m: float = 0.0
    position_history: tuple[PositionHistorySample, ...] = field(default_factory=tuple)

    @property
    def altitude_ft(self) -> float:
        """Absolute altitude in feet."""
        return (self.position.z + self.origin_altitude_m) * M_TO_FT

    @property
    def speed_kt(self) -> float:
        return self.speed_mps * MPS_TO_KT

    @property
    def vertical_speed_fpm(self) -> float:
        return self.vertical_speed_mps * MPS_TO_FPM


@dataclass
class FlightEnvelope:
    """Fixed performance and control parameters of the simulated aircraft.

    Defaults describe a generic fast jet; all values can be overridden from
    the `simulation` section of a YAML config.
    """

    # Speed
    min_speed_mps: float = 60.0
    max_speed_mps: float = 130.0
    initial_speed_mps: float = 200.0
    speed_accel_mps2: float = 10.0

    # Turn and bank
    max_turn_rate_dps: float = 3.0
    heading_gain: float = 2.0
    max_bank_deg: float = 30.0
    bank_smoothing_dps: float = 15.0
    min_turn_rate_for_bank_dps: float = 0.1

    # Vertical
    max_climb_rate_mps: float = 20.32
    max_descent_rate_mps: float = 20.32
    max_pitch_deg: float = 15.0
    pitch_smoothing_dps: float = 3.0
    altitude_gain: float = 0.1
    pitch_input_deadband: float = 0.1
    safety_floor_m: float = 1000.0

    gravity_mps2: float = 9.81

    # Target snapping tolerances
    speed_tolerance_mps: float = 0.5
    heading_tolerance_deg: float = 1.0
    altitude_tolerance_m: float = 10.0

    # Trail
    history_interval_ms: float = 50.0
    max_trail_distance_m: float = 5000.0

    # Accepted automation target ranges
    min_target_speed_kt: float = 40.0
    max_target_speed_kt: float = 400.0
    min_target_altitude_ft: float = -1000.0
    max_target_altitude_ft: float = 60000.0
    min_vertical_speed_limit_fpm: float = 100.0
    max_vertical_speed_limit_fpm: float = 6000.0

    # Frames longer than this are treated as stalls and skipped
    max_frame_dt_s: float = 0.1

    def __post_init__(self) -> None:
        if self.min_speed_mps > self.max_speed_mps:
            self.min_speed_mps, self.max_speed_mps = self.max_speed_mps, self.min_speed_mps
        self.initial_speed_mps = clamp(self.initial_speed_mps, self.min_speed_mps, self.max_speed_mps)

    @classmethod
    def from_config(cls, config: ConfigLoader, section: str = "simulation") -> "FlightEnvelope":
        """Build an envelope from a config section, keeping defaults for missing keys.

        Args:
            config: Loaded configuration.
            section: Dot-notation key of the section holding envelope fields.

        Returns:
            FlightEnvelope with overrides applied.
        """
        defaults = cls()
        values = {
            name: config.get_float(f"{section}.{name}", getattr(defaults, name))
            for name in defaults.__dataclass_fields__
        }
        return cls(**values)
