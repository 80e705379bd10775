"""Aggregate statistics over reconciled tool calls."""

from typing import Sequence

from sessionreel.schema import ToolBreakdownItem, ToolCallRecord, ToolCallStats, ToolCallStatus


def aggregate(records: Sequence[ToolCallRecord]) -> ToolCallStats:
    """
    Summarize tool calls.

    Durations are averaged over finished calls only, so running calls
    don't drag the mean down. The breakdown is ordered by call count,
    most used first; ties keep the order in which tools first appear.
    """
    error_count = 0
    timed_count = 0
    total_duration_ms = 0
    counts: dict[str, int] = {}

    for record in records:
        if record.status == ToolCallStatus.ERROR:
            error_count += 1
        if record.duration is not None and record.duration >= 0:
            timed_count += 1
            total_duration_ms += record.duration
        counts[record.tool] = counts.get(record.tool, 0) + 1

    breakdown = sorted(
        (ToolBreakdownItem(tool=tool, count=count) for tool, count in counts.items()),
        key=lambda item: item.count,
        reverse=True,
    )

    return ToolCallStats(
        total_calls=len(records),
        error_count=error_count,
        avg_duration_ms=total_duration_ms / timed_count if timed_count else 0.0,
        total_duration_ms=total_duration_ms,
        tool_breakdown=breakdown,
    )
