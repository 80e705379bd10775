"""
Timeline module for SessionReel.

This module turns a raw session event log into the data a session viewer
displays:

    normalize()  -> list[DisplayEntry]   one row per retained event, with
                                         tool start/result pairs collapsed
    reconcile()  -> list[ToolCallRecord] one record per tool invocation
    aggregate()  -> ToolCallStats        totals, errors, durations, breakdown

All three are pure functions. They never raise for malformed event data;
problems are reported through a DiagnosticSink.

Example:
    from sessionreel.timeline import aggregate, normalize, reconcile

    entries = normalize(session.events, start_ms)
    calls = reconcile(session.events, start_ms)
    stats = aggregate(calls)
    print(f"{stats.total_calls} calls, {stats.error_count} errors")
"""

from sessionreel.timeline.canonical import CanonicalEvent, canonicalize
from sessionreel.timeline.format import format_duration, format_time_offset
from sessionreel.timeline.normalizer import normalize
from sessionreel.timeline.reconciler import reconcile
from sessionreel.timeline.stats import aggregate

__all__ = [
    "CanonicalEvent",
    "aggregate",
    "canonicalize",
    "format_duration",
    "format_time_offset",
    "normalize",
    "reconcile",
]
