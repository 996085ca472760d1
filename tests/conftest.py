"""Pytest configuration and fixtures for all tests."""

from typing import Any

import pytest

from digitalatc.core.frame_scheduler import ManualClock
from digitalatc.physics.dynamics import AircraftDynamicsEngine
from digitalatc.scenario.scenario import Scenario


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock starting at t=0 ms."""
    return ManualClock()


@pytest.fixture
def engine(clock: ManualClock) -> AircraftDynamicsEngine:
    """Running engine at 1000 m, heading north, whose first frame is already recorded."""
    engine = AircraftDynamicsEngine(initial_heading_deg=0.0, initial_altitude_m=1000.0, clock=clock)
    engine.start()
    engine.tick(clock.now_ms())
    return engine


@pytest.fixture
def make_scenario():
    """Factory building a scenario from event mappings in document form."""

    def factory(events: list[dict[str, Any]], **fields: Any) -> Scenario:
        data = {"id": "test", "title": "Test scenario", "events": events}
        data.update(fields)
        return Scenario.from_dict(data)

    return factory
