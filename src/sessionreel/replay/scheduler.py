"""
Frame schedulers for the playback clock.

A FrameScheduler plays the role of a host's per-frame callback primitive:
the clock asks for "call me on the next frame" and gets a handle it can
cancel. Callbacks receive the frame timestamp in milliseconds.

Two implementations are provided:
    - ManualFrameScheduler: time only moves when the caller says so
      (tests, headless stepping)
    - RealtimeFrameScheduler: monotonic wall clock with a cooperative,
      single-threaded run loop (the CLI replay view)
"""

import time
from abc import ABC, abstractmethod
from typing import Callable


FrameCallback = Callable[[float], None]


class FrameScheduler(ABC):
    """
    Base class for frame schedulers.

    Subclasses supply the time source. Pending callbacks run once, on the
    next frame; a callback that wants another frame must request it again.
    """

    def __init__(self) -> None:
        self._pending: dict[int, FrameCallback] = {}
        self._next_handle = 1

    @abstractmethod
    def now(self) -> float:
        """Current frame time in milliseconds."""
        ...

    def request_frame(self, callback: FrameCallback) -> int:
        """Schedule ``callback`` for the next frame and return its handle."""
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        """Cancel a pending callback. Unknown handles are ignored."""
        self._pending.pop(handle, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def has_pending(self) -> bool:
        return bool(self._pending)

    def run_frame(self) -> int:
        """
        Run every callback that was pending when the frame began.

        Callbacks requested while the frame runs wait for the next one.

        Returns:
            Number of callbacks invoked
        """
        if not self._pending:
            return 0
        batch = self._pending
        self._pending = {}
        timestamp = self.now()
        for callback in batch.values():
            callback(timestamp)
        return len(batch)


class ManualFrameScheduler(FrameScheduler):
    """
    Scheduler driven explicitly by the caller.

    Usage:
        scheduler = ManualFrameScheduler()
        clock = PlaybackClock(events, 10_000, scheduler=scheduler)
        clock.play()
        scheduler.tick()        # first frame, delta 0
        scheduler.advance(500)  # 500ms later
    """

    def __init__(self, start_time: float = 0.0) -> None:
        super().__init__()
        self._now = start_time

    def now(self) -> float:
        return self._now

    def tick(self, at: float | None = None) -> int:
        """Run one frame, optionally at an absolute time."""
        if at is not None:
            self._now = at
        return self.run_frame()

    def advance(self, ms: float) -> int:
        """Move time forward by ``ms`` and run one frame."""
        self._now += ms
        return self.run_frame()


class RealtimeFrameScheduler(FrameScheduler):
    """
    Wall-clock scheduler with a blocking, single-threaded frame loop.

    Attributes:
        frame_interval_ms: Target time between frames
    """

    def __init__(
        self,
        frame_interval_ms: int = 16,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__()
        self.frame_interval_ms = frame_interval_ms
        self._clock = clock
        self._sleep = sleep

    def now(self) -> float:
        return self._clock() * 1000.0

    def run_until_idle(self, max_frames: int | None = None) -> int:
        """
        Run frames until nothing is pending.

        Args:
            max_frames: Stop after this many frames even if work remains

        Returns:
            Number of frames run
        """
        frames = 0
        while self.has_pending():
            if max_frames is not None and frames >= max_frames:
                break
            started = self.now()
            self.run_frame()
            frames += 1
            elapsed = self.now() - started
            remaining = self.frame_interval_ms - elapsed
            if remaining > 0:
                self._sleep(remaining / 1000.0)
        return frames
