"""Frame pump shared by the dynamics engine, timeline and traffic.

Every registered tickable is called once per frame with the frame timestamp
in milliseconds. Components that are stopped or paused simply ignore the
call, so stopping never needs to cancel a scheduled callback.

The scheduler runs in two modes:
    - real time: frames are stamped from a monotonic clock and paced to a
      target frame rate (interactive hosts).
    - fixed step: a ManualClock is advanced by a constant step per frame
      (headless runs and tests), so results are deterministic.

Typical usage example:
    from digitalatc.core.frame_scheduler import FrameScheduler, ManualClock

    clock = ManualClock()
    scheduler = FrameScheduler(clock=clock)
    scheduler.register(engine)
    scheduler.run_for(10.0, step=1 / 60)
"""

import logging
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Millisecond time source."""

    def now_ms(self) -> float: ...


class Tickable(Protocol):
    """Anything that can be advanced by the frame pump."""

    def tick(self, timestamp_ms: float) -> None: ...


class MonotonicClock:
    """Wall clock based on time.perf_counter()."""

    def now_ms(self) -> float:
        return time.perf_counter() * 1000.0


class ManualClock:
    """Clock advanced explicitly, for headless hosts and tests.

    Examples:
        >>> clock = ManualClock()
        >>> clock.advance(0.5)
        >>> clock.now_ms()
        500.0
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = start_ms

    def now_ms(self) -> float:
        return self._now_ms

    def advance(self, seconds: float) -> None:
        """Move the clock forward by the given number of seconds."""
        self._now_ms += seconds * 1000.0

    def set(self, timestamp_ms: float) -> None:
        self._now_ms = timestamp_ms


class FrameScheduler:
    """Cooperative frame pump.

    Tickables run in registration order and each tick runs to completion
    before the next one starts. Exceptions raised by a tickable are logged
    and the frame continues with the remaining tickables.

    Examples:
        >>> scheduler = FrameScheduler(target_fps=60)
        >>> scheduler.register(engine)
        >>> scheduler.register(timeline)
        >>> scheduler.run(until=lambda: timeline.is_complete)
    """

    def __init__(self, clock: Clock | None = None, target_fps: int = 60) -> None:
        """Initialize the scheduler.

        Args:
            clock: Time source. Defaults to a MonotonicClock.
            target_fps: Frame rate used to pace real-time runs.
        """
        self.clock: Clock = clock or MonotonicClock()
        self.target_fps = target_fps
        self.frame_time_target = 1.0 / target_fps

        self._tickables: list[Tickable] = []
        self.running = False
        self.frame_count = 0

    def register(self, tickable: Tickable) -> None:
        """Add a tickable to the frame. Registering twice is a no-op."""
        if tickable not in self._tickables:
            self._tickables.append(tickable)

    def unregister(self, tickable: Tickable) -> None:
        if tickable in self._tickables:
            self._tickables.remove(tickable)

    def frame(self, timestamp_ms: float | None = None) -> None:
        """Run one frame.

        Args:
            timestamp_ms: Frame timestamp. Defaults to the clock's current time.
        """
        if timestamp_ms is None:
            timestamp_ms = self.clock.now_ms()

        for tickable in list(self._tickables):
            try:
                tickable.tick(timestamp_ms)
            except Exception:
                logger.error("Error ticking %s", type(tickable).__name__, exc_info=True)

        self.frame_count += 1

    def run(self, until: Callable[[], bool] | None = None, max_frames: int | None = None) -> None:
        """Run frames in real time until stopped.

        Args:
            until: Optional predicate checked after every frame; the loop
                exits when it returns True.
            max_frames: Optional hard cap on the number of frames.
        """
        self.running = True
        frames = 0
        logger.info("Frame scheduler started at %d fps", self.target_fps)

        try:
            while self.running:
                frame_start = time.perf_counter()
                self.frame()
                frames += 1

                if until is not None and until():
                    break
                if max_frames is not None and frames >= max_frames:
                    break

                self._limit_framerate(frame_start)
        except KeyboardInterrupt:
            logger.info("Frame scheduler interrupted by user")
        finally:
            self.running = False
            logger.info("Frame scheduler stopped after %d frames", frames)

    def run_for(
        self,
        seconds: float,
        step: float = 1.0 / 60.0,
        until: Callable[[], bool] | None = None,
    ) -> int:
        """Run fixed-step frames on a ManualClock without sleeping.

        The clock is advanced by `step` before every frame.

        Args:
            seconds: Simulated time to cover.
            step: Frame step in seconds.
            until: Optional early-exit predicate checked after every frame.

        Returns:
            Number of frames executed.

        Raises:
            TypeError: If the scheduler's clock is not a ManualClock.
            ValueError: If step is not positive.
        """
        if not isinstance(self.clock, ManualClock):
            raise TypeError("run_for() requires a ManualClock")
        if step <= 0:
            raise ValueError(f"Frame step must be positive, got {step}")

        frames = 0
        elapsed = 0.0
        self.running = True
        try:
            while self.running and elapsed < seconds - 1e-9:
                self.clock.advance(step)
                elapsed += step
                self.frame()
                frames += 1
                if until is not None and until():
                    break
        finally:
            self.running = False

        return frames

    def _limit_framerate(self, frame_start: float) -> None:
        sleep_time = self.frame_time_target - (time.perf_counter() - frame_start)
        if sleep_time > 0:
            time.sleep(sleep_time)

    def stop(self) -> None:
        """Stop the loop at the end of the current frame."""
        self.running = False
