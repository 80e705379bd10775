"""
Tool call reconciler.

Extracts one ToolCallRecord per tool invocation by pairing start and result
events on their tool call ID. This works on the raw log rather than on the
normalized timeline: running calls must be kept, and the stats need every
invocation exactly once.

Problems are reported through diagnostics and never raised:
    - start/result payloads without a usable ID are dropped (counted)
    - results that arrive before their start get a duration of 0
    - results with no start are reported as orphans and produce no record
"""

from typing import Sequence

from sessionreel.config import DEFAULT_CONFIG, TimelineConfig
from sessionreel.diagnostics import (
    MALFORMED_TOOL_RESULT,
    MALFORMED_TOOL_START,
    NEGATIVE_DURATION,
    ORPHAN_TOOL_RESULT,
    UNNAMED_TOOL,
    DiagnosticSink,
    resolve_sink,
)
from sessionreel.schema import RawEvent, ToolCallRecord, ToolCallStatus
from sessionreel.timeline.canonical import (
    TOOL_RESULT,
    TOOL_START,
    CanonicalEvent,
    canonicalize_all,
    result_error,
)
from sessionreel.timeline.format import format_time_offset, time_offset_ms


_SOURCE = "reconciler"


def reconcile(
    events: Sequence[RawEvent],
    session_start_time: int,
    *,
    config: TimelineConfig | None = None,
    diagnostics: DiagnosticSink | None = None,
) -> list[ToolCallRecord]:
    """
    Pair tool start/result events into tool call records.

    Args:
        events: Raw events in log order
        session_start_time: Session origin in ms epoch
        config: Labels and classification overrides
        diagnostics: Sink for warnings (defaults to logging)

    Returns:
        Records sorted by start timestamp, ascending
    """
    config = config or DEFAULT_CONFIG
    sink = resolve_sink(diagnostics)

    starts_by_id: dict[str, CanonicalEvent] = {}
    results_by_id: dict[str, CanonicalEvent] = {}
    dropped_starts = 0
    dropped_results = 0

    for ce in canonicalize_all(events, config):
        if ce.kind == TOOL_START:
            if _is_valid_start(ce, sink):
                starts_by_id[ce.tool_id] = ce
            else:
                dropped_starts += 1
        elif ce.kind == TOOL_RESULT:
            if ce.tool_id is not None:
                results_by_id[ce.tool_id] = ce
            else:
                dropped_results += 1

    if dropped_starts:
        sink.warn(
            MALFORMED_TOOL_START,
            f"Dropped {dropped_starts} tool:start event(s) with missing or invalid id",
            source=_SOURCE,
            count=dropped_starts,
        )
    if dropped_results:
        sink.warn(
            MALFORMED_TOOL_RESULT,
            f"Dropped {dropped_results} tool:result event(s) with missing or invalid id",
            source=_SOURCE,
            count=dropped_results,
        )

    records = [
        _build_record(tool_id, start, results_by_id.get(tool_id), session_start_time, config, sink)
        for tool_id, start in starts_by_id.items()
    ]

    for tool_id, result in results_by_id.items():
        if tool_id not in starts_by_id:
            sink.warn(
                ORPHAN_TOOL_RESULT,
                f"Found tool:result without matching tool:start. ID: {tool_id}",
                source=_SOURCE,
                tool_id=tool_id,
                event_id=result.id,
            )

    records.sort(key=lambda r: r.timestamp)
    return records


def _is_valid_start(ce: CanonicalEvent, sink: DiagnosticSink) -> bool:
    """A start needs a mapping payload, a string ID, and string names if present."""
    if ce.tool_id is None:
        return False
    for key in ("tool", "name"):
        value = ce.get(key)
        if value is not None and not isinstance(value, str):
            sink.warn(
                MALFORMED_TOOL_START,
                f"tool:start event has non-string {key}: {value!r}",
                source=_SOURCE,
                event_id=ce.id,
                field=key,
            )
            return False
    return True


def _build_record(
    tool_id: str,
    start: CanonicalEvent,
    result: CanonicalEvent | None,
    session_start_time: int,
    config: TimelineConfig,
    sink: DiagnosticSink,
) -> ToolCallRecord:
    status = ToolCallStatus.RUNNING
    duration: int | None = None
    output = None
    error: str | None = None

    if result is not None:
        duration = result.timestamp - start.timestamp
        if duration < 0:
            sink.warn(
                NEGATIVE_DURATION,
                f"Negative duration detected for tool call. ID: {tool_id}",
                source=_SOURCE,
                tool_id=tool_id,
                start=start.timestamp,
                end=result.timestamp,
            )
            duration = 0

        error = result_error(result, config.tool_error_text)
        status = ToolCallStatus.ERROR if error else ToolCallStatus.COMPLETE
        output = result.get("output")

    tool = start.tool_name
    if tool is None:
        sink.warn(
            UNNAMED_TOOL,
            f"Tool call missing name. ID: {tool_id}",
            source=_SOURCE,
            tool_id=tool_id,
            timestamp=start.timestamp,
        )
        tool = config.unnamed_tool_label

    return ToolCallRecord(
        id=tool_id,
        tool=tool,
        input=start.get("input"),
        output=output,
        status=status,
        duration=duration,
        timestamp=start.timestamp,
        time_offset=format_time_offset(time_offset_ms(start.timestamp, session_start_time)),
        error=error,
    )
