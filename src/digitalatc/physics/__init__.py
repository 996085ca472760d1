"""Point-mass flight dynamics: state model, trail history and the integrator."""

from digitalatc.physics.dynamics import AircraftDynamicsEngine
from digitalatc.physics.history import PositionHistory, PositionHistorySample
from digitalatc.physics.state import (
    ControlInputs,
    ControlTargets,
    FlightEnvelope,
    SimulationState,
)
from digitalatc.physics.vectors import Vector3

__all__ = [
    "AircraftDynamicsEngine",
    "ControlInputs",
    "ControlTargets",
    "FlightEnvelope",
    "PositionHistory",
    "PositionHistorySample",
    "SimulationState",
    "Vector3",
]
