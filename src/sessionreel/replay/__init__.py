"""
Replay module for SessionReel.

This module drives interactive playback of a recorded session. It never
re-executes anything: it only moves a virtual clock over the event
timestamps and reports which event is current.

How it works:
    1. A PlaybackClock is built from the session's events and duration
    2. play() asks the FrameScheduler for a frame
    3. Each frame adds (wall-clock delta x speed) to the virtual time
    4. Listeners receive a ReplayState after every change

Example:
    from sessionreel.replay import ManualFrameScheduler, PlaybackClock

    scheduler = ManualFrameScheduler()
    with PlaybackClock(session.events, 60_000, scheduler=scheduler) as clock:
        clock.set_speed(4)
        clock.play()
        scheduler.tick()
        scheduler.advance(1000)
        print(clock.current_time)  # 4000.0
"""

from sessionreel.replay.clock import FrameContext, PlaybackClock, coerce_speed
from sessionreel.replay.scheduler import (
    FrameScheduler,
    ManualFrameScheduler,
    RealtimeFrameScheduler,
)

__all__ = [
    "FrameContext",
    "FrameScheduler",
    "ManualFrameScheduler",
    "PlaybackClock",
    "RealtimeFrameScheduler",
    "coerce_speed",
]
