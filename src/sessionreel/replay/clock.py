"""
Playback clock for session replay.

The PlaybackClock keeps a virtual elapsed time over a session's events and
advances it frame by frame at 1x, 2x or 4x wall-clock speed. It answers
"which event is current" with a binary search so it can be asked on every
frame.

States:
    stopped --play()--> playing
    playing --pause() / jump_to_end() / reaching the end--> stopped

seek(), seek_to_event(), set_speed() and jump_to_start() work in both
states and never change it.

Design Principles:
    - Total: out-of-range seeks clamp, out-of-range event indices are no-ops
    - 0 <= current_time <= total_time after every operation
    - The frame callback reads a FrameContext owned by the clock, so speed
      and duration changes apply on the very next frame
    - Every transition that stops playback cancels the pending frame
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from sessionreel.errors import InvalidReplaySpeedError, ReplayClockDisposedError
from sessionreel.replay.scheduler import FrameScheduler, RealtimeFrameScheduler
from sessionreel.schema import RawEvent, ReplaySpeed, ReplayState


StateListener = Callable[[ReplayState], None]


@dataclass
class FrameContext:
    """
    Mutable state read by the frame callback on every tick.

    Attributes:
        speed: Current speed multiplier
        total_time: Current total duration in ms
        is_playing: Whether frames should keep advancing time
        last_frame_time: Timestamp of the previous frame, None right after a (re)start
        frame_handle: Handle of the pending frame, if any
        generation: Bumped whenever playback stops; older frames are ignored
    """

    speed: ReplaySpeed
    total_time: float
    is_playing: bool = False
    last_frame_time: float | None = None
    frame_handle: int | None = None
    generation: int = 0


def coerce_speed(value: Any) -> ReplaySpeed:
    """Validate a speed multiplier."""
    if isinstance(value, bool):
        raise InvalidReplaySpeedError(speed=value)
    try:
        return ReplaySpeed(value)
    except ValueError as e:
        raise InvalidReplaySpeedError(speed=value) from e


class PlaybackClock:
    """
    Variable-speed, seekable virtual clock over a session's events.

    Usage:
        clock = PlaybackClock(session.events, total_duration=90_000)
        clock.subscribe(lambda state: print(state.current_event_index))
        clock.play()

    Attributes:
        events: The events, sorted by timestamp (indices refer to this list)
    """

    def __init__(
        self,
        events: Sequence[RawEvent],
        total_duration: float,
        *,
        scheduler: FrameScheduler | None = None,
        speed: ReplaySpeed | int = ReplaySpeed.X1,
    ) -> None:
        self._scheduler = scheduler if scheduler is not None else RealtimeFrameScheduler()
        self._ctx = FrameContext(speed=coerce_speed(speed), total_time=max(0.0, float(total_duration)))
        self._current_time = 0.0
        self._listeners: list[StateListener] = []
        self._disposed = False
        self._set_events(events)

    # -- Read-only state ------------------------------------------------------

    @property
    def is_playing(self) -> bool:
        return self._ctx.is_playing

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def total_time(self) -> float:
        return self._ctx.total_time

    @property
    def speed(self) -> ReplaySpeed:
        return self._ctx.speed

    @property
    def session_start(self) -> int:
        """Timestamp of the earliest event (0 for an empty log)."""
        return self._session_start

    @property
    def current_event_index(self) -> int:
        return self.event_index_at(self._current_time)

    @property
    def progress(self) -> float:
        """Playback position as a percentage (0-100)."""
        if self._ctx.total_time == 0:
            return 0.0
        return (self._current_time / self._ctx.total_time) * 100

    @property
    def state(self) -> ReplayState:
        return ReplayState(
            is_playing=self._ctx.is_playing,
            current_time=self._current_time,
            total_time=self._ctx.total_time,
            speed=self._ctx.speed,
            current_event_index=self.current_event_index,
            progress=self.progress,
        )

    @property
    def disposed(self) -> bool:
        return self._disposed

    def event_index_at(self, time_ms: float) -> int:
        """
        Index of the last event at or before ``time_ms`` into the session.

        Returns:
            Index into ``events``, or -1 if no event has happened yet
        """
        if not self._timestamps:
            return -1
        return bisect_right(self._timestamps, self._session_start + time_ms) - 1

    # -- Transport ------------------------------------------------------------

    def play(self) -> None:
        """
        Start or resume playback.

        At the end of the session playback restarts from 0.

        Raises:
            ReplayClockDisposedError: If the clock was disposed
        """
        if self._disposed:
            raise ReplayClockDisposedError()
        if self._ctx.is_playing:
            return

        if self._current_time >= self._ctx.total_time:
            self._current_time = 0.0

        self._ctx.is_playing = True
        self._ctx.last_frame_time = None
        self._request_frame()
        self._notify()

    def pause(self) -> None:
        """Stop playback, keeping the current position."""
        self._stop()
        self._notify()

    def seek(self, time_ms: float) -> None:
        """Move to ``time_ms`` (clamped to the session)."""
        self._current_time = self._clamp(time_ms)
        if self._ctx.is_playing:
            self._ctx.last_frame_time = None
        self._notify()

    def seek_to_event(self, index: int) -> None:
        """Move to the time of event ``index``. Out-of-range indices are ignored."""
        if index < 0 or index >= len(self._timestamps):
            return
        self.seek(self._timestamps[index] - self._session_start)

    def set_speed(self, speed: ReplaySpeed | int) -> None:
        """
        Change the speed multiplier.

        Raises:
            InvalidReplaySpeedError: If ``speed`` is not 1, 2 or 4
        """
        self._ctx.speed = coerce_speed(speed)
        self._notify()

    def jump_to_start(self) -> None:
        self.seek(0)

    def jump_to_end(self) -> None:
        """Move to the end and stop."""
        self._current_time = self._ctx.total_time
        self._stop()
        self._notify()

    # -- Lifecycle ------------------------------------------------------------

    def set_total_duration(self, total_duration: float) -> None:
        """Change the session length; takes effect on the next frame."""
        self._ctx.total_time = max(0.0, float(total_duration))
        self._current_time = self._clamp(self._current_time)
        self._notify()

    def load(self, events: Sequence[RawEvent], total_duration: float) -> None:
        """Replace the event log. Playback stops and rewinds to 0."""
        self._stop()
        self._set_events(events)
        self._ctx.total_time = max(0.0, float(total_duration))
        self._current_time = 0.0
        self._notify()

    def dispose(self) -> None:
        """Cancel any pending frame and detach listeners."""
        self._stop()
        self._listeners.clear()
        self._disposed = True

    def __enter__(self) -> "PlaybackClock":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.dispose()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Call ``listener`` with a ReplayState after every change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- Internals ------------------------------------------------------------

    def _set_events(self, events: Sequence[RawEvent]) -> None:
        self.events: list[RawEvent] = sorted(events, key=lambda e: e.timestamp)
        self._timestamps = [e.timestamp for e in self.events]
        self._session_start = self._timestamps[0] if self._timestamps else 0

    def _clamp(self, time_ms: float) -> float:
        return max(0.0, min(float(time_ms), self._ctx.total_time))

    def _request_frame(self) -> None:
        generation = self._ctx.generation
        self._ctx.frame_handle = self._scheduler.request_frame(
            lambda timestamp: self._on_frame(timestamp, generation)
        )

    def _stop(self) -> None:
        ctx = self._ctx
        ctx.is_playing = False
        ctx.last_frame_time = None
        ctx.generation += 1
        if ctx.frame_handle is not None:
            self._scheduler.cancel_frame(ctx.frame_handle)
            ctx.frame_handle = None

    def _on_frame(self, timestamp: float, generation: int) -> None:
        ctx = self._ctx
        if generation != ctx.generation or not ctx.is_playing:
            return
        ctx.frame_handle = None

        if ctx.last_frame_time is None:
            ctx.last_frame_time = timestamp
        delta = max(0.0, timestamp - ctx.last_frame_time)
        ctx.last_frame_time = timestamp

        new_time = self._current_time + delta * int(ctx.speed)
        if new_time >= ctx.total_time:
            self._current_time = ctx.total_time
            self._stop()
        else:
            self._current_time = new_time
            self._request_frame()

        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.state
        for listener in list(self._listeners):
            listener(state)
