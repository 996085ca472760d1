"""Digital ATC - scenario runner.

Loads a scenario, flies it with scripted pilot intents and logs the
timeline and aircraft state. Runs headless with a fixed frame step by
default, or paced in real time with --realtime.

Typical usage:
    digitalatc --scenario scenarios/oak_departure.yaml
    digitalatc --scenario scenarios/oak_departure.yaml --realtime --fps 30
    python -m digitalatc.main --scenario my.json --config config/simulation.yaml -v
"""

import argparse
import sys
from pathlib import Path

from digitalatc.autopilot.intent import ScriptedIntentProvider
from digitalatc.core.config import ConfigError, ConfigLoader
from digitalatc.core.frame_scheduler import ManualClock, MonotonicClock
from digitalatc.core.logging_system import (
    LoggingError,
    get_logger,
    initialize_logging,
    shutdown_logging,
)
from digitalatc.physics.state import FlightEnvelope
from digitalatc.scenario.loader import load_scenario_file
from digitalatc.scenario.scenario import Scenario, ScenarioError
from digitalatc.scenario.timeline import TimelineListener
from digitalatc.session import SimulationSession

logger = get_logger(__name__)


class StatusReporter(TimelineListener):
    """Logs a one-line status every `interval` seconds of scenario time."""

    def __init__(self, session: SimulationSession, interval: float) -> None:
        self.session = session
        self.interval = interval
        self._next_report = 0.0

    def on_load(self, scenario: Scenario | None, duration: float) -> None:
        self._next_report = 0.0

    def on_reset(self) -> None:
        self._next_report = 0.0

    def on_tick(self, elapsed: float, duration: float) -> None:
        if self.interval <= 0 or elapsed < self._next_report:
            return
        self._next_report = elapsed + self.interval
        logger.info("Status %s", self.session.describe())


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Digital ATC - scenario runner")
    parser.add_argument(
        "--scenario",
        type=Path,
        required=True,
        help="Scenario file (.yaml, .yml or .json)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Simulation config YAML (flight envelope and runner settings)",
    )
    parser.add_argument(
        "--log-config",
        type=Path,
        default=None,
        help="Logging config YAML",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace frames in real time instead of running headless",
    )
    parser.add_argument("--fps", type=int, default=None, help="Real-time frame rate")
    parser.add_argument("--step", type=float, default=None, help="Headless frame step in seconds")
    parser.add_argument(
        "--status-interval",
        type=float,
        default=None,
        help="Seconds of scenario time between status lines (0 disables)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on the console")
    return parser.parse_args(argv)


def build_session(args: argparse.Namespace, config: ConfigLoader) -> SimulationSession:
    """Create a session from CLI arguments and configuration."""
    fps = args.fps or int(config.get("runner.fps", 60))
    return SimulationSession(
        envelope=FlightEnvelope.from_config(config),
        clock=MonotonicClock() if args.realtime else ManualClock(),
        intent_provider=ScriptedIntentProvider(),
        target_fps=fps,
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point.

    Returns:
        Process exit code.
    """
    args = parse_args(argv)

    try:
        initialize_logging(args.log_config, use_platform_dir=True, console_level="DEBUG" if args.verbose else None)
    except LoggingError as e:
        print(f"Logging setup failed: {e}", file=sys.stderr)
        return 2

    try:
        config = ConfigLoader.load(args.config) if args.config else ConfigLoader()
        scenario = load_scenario_file(args.scenario)
    except (ConfigError, ScenarioError) as e:
        logger.error("%s", e)
        shutdown_logging()
        return 1

    session = build_session(args, config)
    interval = args.status_interval
    if interval is None:
        interval = config.get_float("runner.status_interval_s", 10.0)
    session.timeline.add_listener(StatusReporter(session, interval))

    session.load_scenario(scenario)
    session.start()

    try:
        if args.realtime:
            session.run_realtime()
        else:
            step = args.step or config.get_float("runner.step_s", 1.0 / 60.0)
            session.run_headless(step=step)
    finally:
        logger.info("Final %s", session.describe())
        shutdown_logging()

    return 0


if __name__ == "__main__":
    sys.exit(main())
