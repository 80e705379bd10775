"""
Event log normalizer.

Turns a raw session log into the list of DisplayEntry rows a timeline view
shows. Paired tool:start/tool:result events collapse into one ``tool``
entry, token deltas disappear, and status noise before the agent does
anything is tagged as startup so the view can fold it away.

normalize() is a pure function of its inputs and never raises for bad
event data.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from sessionreel.config import DEFAULT_CONFIG, TimelineConfig
from sessionreel.schema import (
    DisplayEntry,
    EntryType,
    RawEvent,
    TokenUsage,
    ToolCallStatus,
    ToolCallView,
)
from sessionreel.timeline.canonical import (
    AGENT_CANCELLED,
    AGENT_COMPLETED,
    AGENT_ERROR,
    AGENT_STARTED,
    MESSAGE,
    STATUS,
    TERMINAL_INPUT,
    TERMINAL_OUTPUT,
    TOOL_RESULT,
    TOOL_START,
    TURN,
    CanonicalEvent,
    canonicalize_all,
    result_error,
)
from sessionreel.timeline.format import format_time_offset, time_offset_ms


_ROLE_TO_TYPE = {
    "user": EntryType.USER,
    "assistant": EntryType.ASSISTANT,
}

_ACTIVITY_TYPES = frozenset({EntryType.USER, EntryType.ASSISTANT, EntryType.TOOL})

# Never folded into the startup phase
_ALWAYS_VISIBLE = frozenset({AGENT_ERROR, AGENT_CANCELLED})


@dataclass
class _Context:
    """Lookups shared by the per-kind handlers during one pass."""

    session_start_time: int
    config: TimelineConfig
    starts_by_id: dict[str, CanonicalEvent]
    result_ids: set[str]

    def offset(self, timestamp: int) -> str:
        return format_time_offset(time_offset_ms(timestamp, self.session_start_time))


# A handler returns the entry fields for one event, or None to skip it.
_Handler = Callable[[CanonicalEvent, _Context], dict[str, Any] | None]


def normalize(
    events: Sequence[RawEvent],
    session_start_time: int,
    *,
    config: TimelineConfig | None = None,
) -> list[DisplayEntry]:
    """
    Build the display timeline for a session log.

    Args:
        events: Raw events in log order
        session_start_time: Session origin in ms epoch (used for offsets)
        config: Classification overrides

    Returns:
        Entries in log order; never longer than ``events``
    """
    config = config or DEFAULT_CONFIG
    if not events:
        return []

    canonical = canonicalize_all(events, config)

    starts_by_id: dict[str, CanonicalEvent] = {}
    result_ids: set[str] = set()
    for ce in canonical:
        tool_id = ce.tool_id
        if tool_id is None:
            continue
        if ce.kind == TOOL_START:
            starts_by_id[tool_id] = ce
        elif ce.kind == TOOL_RESULT:
            result_ids.add(tool_id)

    ctx = _Context(
        session_start_time=session_start_time,
        config=config,
        starts_by_id=starts_by_id,
        result_ids=result_ids,
    )

    entries: list[DisplayEntry] = []
    seen_activity = False

    for ce in canonical:
        if ce.is_dropped:
            continue

        handler = _HANDLERS.get(ce.kind, _unknown_entry)
        fields = handler(ce, ctx)
        if fields is None:
            continue

        entry_type = fields["type"]
        if entry_type in _ACTIVITY_TYPES:
            seen_activity = True
        elif not seen_activity and ce.kind not in _ALWAYS_VISIBLE:
            fields.setdefault("is_startup", True)

        entries.append(
            DisplayEntry(
                id=ce.id,
                timestamp=ce.timestamp,
                time_offset=ctx.offset(ce.timestamp),
                **fields,
            )
        )

    return entries


# =============================================================================
# Handlers
# =============================================================================


def _agent_started(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    return {
        "type": EntryType.SYSTEM,
        "content": f"Session started. {ce.text('message')}".rstrip(),
    }


def _agent_completed(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    return {
        "type": EntryType.SYSTEM,
        "content": f"Session completed successfully. {ce.text('message')}".rstrip(),
    }


def _agent_error(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    return {
        "type": EntryType.SYSTEM,
        "content": f"Error: {ce.text('error') or 'Unknown error'}",
    }


def _message(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    role = ce.get("role")
    fields: dict[str, Any] = {
        "type": _ROLE_TO_TYPE.get(role, EntryType.SYSTEM) if isinstance(role, str) else EntryType.SYSTEM,
        "content": ce.text("content"),
    }
    model = ce.get("model")
    if isinstance(model, str):
        fields["model"] = model
    usage = ce.get("usage")
    if isinstance(usage, dict):
        fields["usage"] = TokenUsage(
            input_tokens=_count(usage, "inputTokens", "input_tokens"),
            output_tokens=_count(usage, "outputTokens", "output_tokens"),
            total_tokens=_count(usage, "totalTokens", "total_tokens"),
        )
    return fields


def _terminal_input(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    return {"type": EntryType.USER, "content": ce.text("input")}


def _terminal_output(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    return {"type": EntryType.ASSISTANT, "content": ce.text("output")}


def _tool_start(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any] | None:
    tool_id = ce.tool_id
    if tool_id is not None and tool_id in ctx.result_ids:
        # The result entry carries this call
        return None

    name = ce.tool_name or ctx.config.unknown_tool_label
    start_offset = ctx.offset(ce.timestamp)
    return {
        "type": EntryType.TOOL,
        "content": name,
        "tool_call": ToolCallView(
            name=name,
            input=_input_of(ce),
            status=ToolCallStatus.RUNNING,
            start_time_offset=start_offset,
        ),
    }


def _tool_result(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    tool_id = ce.tool_id
    start = ctx.starts_by_id.get(tool_id) if tool_id is not None else None
    end_offset = ctx.offset(ce.timestamp)

    if start is not None:
        start_offset = ctx.offset(start.timestamp)
        duration: int | None = max(0, ce.timestamp - start.timestamp)
    else:
        # Orphan result: no start timing is known, so it starts where it ends
        start_offset = end_offset
        duration = None

    name = (
        ce.tool_name
        or (start.tool_name if start is not None else None)
        or ctx.config.unknown_tool_label
    )
    tool_input = _input_of(ce)
    if tool_input == {} and start is not None:
        tool_input = _input_of(start)

    error = result_error(ce, ctx.config.tool_error_text)
    return {
        "type": EntryType.TOOL,
        "content": name,
        "tool_call": ToolCallView(
            name=name,
            input=tool_input,
            output=ce.get("output"),
            status=ToolCallStatus.ERROR if error else ToolCallStatus.COMPLETE,
            start_time_offset=start_offset,
            end_time_offset=end_offset,
            duration=duration,
            error=error,
        ),
    }


def _status(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    content = ce.text("message", "stage")
    if not content and ce.payload is None:
        content = _serialize(ce.event.data)
    return {"type": EntryType.SYSTEM, "content": content, "is_startup": True}


def _turn(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    turn = ce.get("turn")
    if isinstance(turn, int) and not isinstance(turn, bool):
        content = f"Turn {turn} completed"
    else:
        content = "Turn completed"
    return {"type": EntryType.SYSTEM, "content": content, "is_startup": True}


def _agent_cancelled(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    return {"type": EntryType.SYSTEM, "content": "Agent cancelled"}


def _unknown_entry(ce: CanonicalEvent, ctx: _Context) -> dict[str, Any]:
    return {"type": EntryType.SYSTEM, "content": _serialize(ce.event.data)}


_HANDLERS: dict[str, _Handler] = {
    AGENT_STARTED: _agent_started,
    AGENT_COMPLETED: _agent_completed,
    AGENT_ERROR: _agent_error,
    MESSAGE: _message,
    TERMINAL_INPUT: _terminal_input,
    TERMINAL_OUTPUT: _terminal_output,
    TOOL_START: _tool_start,
    TOOL_RESULT: _tool_result,
    STATUS: _status,
    TURN: _turn,
    AGENT_CANCELLED: _agent_cancelled,
}


# =============================================================================
# Helpers
# =============================================================================


def _input_of(ce: CanonicalEvent) -> Any:
    value = ce.get("input")
    return {} if value is None else value


def _count(usage: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = usage.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


def _serialize(data: Any) -> str:
    if data is None:
        return ""
    return json.dumps(data, default=str, ensure_ascii=False)
