"""
Schema definitions for SessionReel.

This module defines the Pydantic models used throughout SessionReel:
- RawEvent/SessionDetail: The recorded session log as supplied by a fetch layer
- DisplayEntry/ToolCallView: One row of the normalized timeline
- ToolCallRecord/ToolCallStats: Reconciled tool invocations and their summary
- ReplayState: Snapshot of the playback clock

Design Decisions:
    - Output models are immutable (frozen=True); a new list is produced on
      every normalization pass instead of mutating entries
    - RawEvent.data stays untyped: payload shapes drift between schema
      generations and are interpreted later by sessionreel.timeline
    - Field names are snake_case; camelCase aliases are accepted on input
      where the fetch layer produces them
"""

from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from sessionreel.diagnostics import MALFORMED_EVENT, DiagnosticSink, resolve_sink
from sessionreel.errors import SessionFormatError, SessionLoadError


# =============================================================================
# Enums
# =============================================================================


class EntryType(str, Enum):
    """Kind of a display entry."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCallStatus(str, Enum):
    """
    Status of a tool call.

    RUNNING means a start was seen but no result yet.
    """

    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"


class ReplaySpeed(IntEnum):
    """Supported playback speed multipliers."""

    X1 = 1
    X2 = 2
    X4 = 4


# =============================================================================
# Input Models
# =============================================================================


class RawEvent(BaseModel):
    """
    One event from a session log.

    Attributes:
        id: Unique event identifier
        type: Open event tag (e.g. "tool:start", "container-agent:message")
        timestamp: Milliseconds since the Unix epoch
        data: Untyped, schema-generation-dependent payload
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., description="Unique event identifier")
    type: str = Field(..., description="Event type tag")
    timestamp: int = Field(..., description="Event time in ms since epoch")
    data: Any = Field(default=None, description="Event payload")


class SessionDetail(BaseModel):
    """
    A recorded session with its full event log.

    Attributes:
        id: Session identifier
        created_at: ISO-8601 creation time (the timeline origin)
        events: Event log in recorded order
        title: Optional display title
        duration: Optional total duration in ms, if the backend computed one
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(..., description="Session identifier")
    created_at: str = Field(..., alias="createdAt", description="ISO-8601 creation time")
    events: list[RawEvent] = Field(default_factory=list, description="Event log")
    title: str | None = Field(default=None, description="Display title")
    duration: int | None = Field(default=None, ge=0, description="Duration in ms")

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_created_at(cls, v: Any) -> Any:
        """YAML parses unquoted timestamps into datetime objects."""
        if isinstance(v, datetime):
            return v.isoformat()
        return v


# =============================================================================
# Timeline Models
# =============================================================================


class TokenUsage(BaseModel):
    """Token counts reported with a message."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class ToolCallView(BaseModel):
    """
    Tool call details carried by a ``tool`` display entry.

    Attributes:
        name: Resolved tool name
        input: Tool input parameters
        output: Tool output (None while running)
        status: running, complete or error
        start_time_offset: Formatted offset of the start event
        end_time_offset: Formatted offset of the result event
        duration: Milliseconds between start and result
        error: Error message when status is error
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    input: Any = Field(default_factory=dict)
    output: Any = None
    status: ToolCallStatus
    start_time_offset: str
    end_time_offset: str | None = None
    duration: int | None = Field(default=None, ge=0)
    error: str | None = None


class DisplayEntry(BaseModel):
    """
    A single row of the normalized session timeline.

    Attributes:
        id: ID of the raw event this entry came from
        type: system, user, assistant or tool
        timestamp: Raw event timestamp (ms epoch)
        time_offset: Formatted offset from session start ("1:35", "1:23:45")
        content: Display text
        tool_call: Tool details for tool entries
        model: Model name for messages that report one
        usage: Token usage for messages that report it
        is_startup: Entry belongs to the pre-activity startup phase
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    type: EntryType
    timestamp: int
    time_offset: str
    content: str = ""
    tool_call: ToolCallView | None = None
    model: str | None = None
    usage: TokenUsage | None = None
    is_startup: bool = False


class ToolCallRecord(BaseModel):
    """
    One reconciled tool invocation.

    Attributes:
        id: Tool call identifier shared by the start and result events
        tool: Tool name
        input: Input from the start event
        output: Output from the result event
        status: running, complete or error
        duration: ms from start to result, present once a result exists
        timestamp: Start event timestamp (ms epoch)
        time_offset: Formatted offset of the start from session start
        error: Error message when status is error
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    tool: str
    input: Any = None
    output: Any = None
    status: ToolCallStatus
    duration: int | None = Field(default=None, ge=0)
    timestamp: int
    time_offset: str
    error: str | None = None

    @model_validator(mode="after")
    def check_duration_matches_status(self) -> "ToolCallRecord":
        """Finished calls carry a duration, running ones never do."""
        finished = self.status != ToolCallStatus.RUNNING
        if finished != (self.duration is not None):
            msg = f"duration must be set iff the call has finished (status={self.status.value})"
            raise ValueError(msg)
        return self


class ToolBreakdownItem(BaseModel):
    """Call count for one tool name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tool: str
    count: int = Field(..., ge=0)


class ToolCallStats(BaseModel):
    """
    Aggregate statistics over a list of tool calls.

    Attributes:
        total_calls: Number of records
        error_count: Records with status error
        avg_duration_ms: Mean duration of finished calls (0 if none)
        total_duration_ms: Sum of durations of finished calls
        tool_breakdown: Per-tool counts, most used first
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total_calls: int = 0
    error_count: int = 0
    avg_duration_ms: float = 0.0
    total_duration_ms: int = 0
    tool_breakdown: list[ToolBreakdownItem] = Field(default_factory=list)


class ReplayState(BaseModel):
    """Snapshot of a PlaybackClock."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    is_playing: bool = False
    current_time: float = Field(default=0.0, ge=0)
    total_time: float = Field(default=0.0, ge=0)
    speed: ReplaySpeed = ReplaySpeed.X1
    current_event_index: int = Field(default=-1, ge=-1)
    progress: float = Field(default=0.0, ge=0, le=100)


# =============================================================================
# Loading Helpers
# =============================================================================


def load_session(path: Path | str, diagnostics: DiagnosticSink | None = None) -> SessionDetail:
    """
    Load a session document from a YAML or JSON file.

    Args:
        path: Path to the file
        diagnostics: Sink for dropped-event diagnostics

    Returns:
        Validated SessionDetail

    Raises:
        SessionLoadError: If the file can't be read or parsed
        SessionFormatError: If the document isn't a session
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise SessionLoadError(path=str(path), message=f"Failed to load session from {path}: {e}") from e

    return session_from_document(data, diagnostics)


def load_session_from_string(content: str, diagnostics: DiagnosticSink | None = None) -> SessionDetail:
    """Load a session document from a YAML or JSON string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SessionLoadError(path="<string>", message=f"Failed to parse session: {e}") from e
    return session_from_document(data, diagnostics)


def session_from_document(data: Any, diagnostics: DiagnosticSink | None = None) -> SessionDetail:
    """
    Build a SessionDetail from a parsed document.

    Accepts either a bare session object or ``{"session": {...}}`` with the
    events nested in the session or next to it. Event envelopes that fail
    validation are dropped and reported, the rest of the log is kept.
    """
    sink = resolve_sink(diagnostics)

    if not isinstance(data, dict):
        raise SessionFormatError(details=["document must be a mapping"])

    base = data.get("session", data)
    if not isinstance(base, dict):
        raise SessionFormatError(details=["'session' must be a mapping"])

    raw_events = base.get("events")
    if raw_events is None:
        raw_events = data.get("events", [])
    if not isinstance(raw_events, list):
        raise SessionFormatError(
            session_id=base.get("id") if isinstance(base.get("id"), str) else None,
            details=["'events' must be a list"],
        )

    events: list[RawEvent] = []
    for position, raw in enumerate(raw_events):
        try:
            events.append(RawEvent.model_validate(raw))
        except ValidationError as e:
            sink.warn(
                MALFORMED_EVENT,
                f"Dropped malformed event at position {position}",
                source="loader",
                position=position,
                errors=[err["msg"] for err in e.errors()],
            )

    fields = {k: v for k, v in base.items() if k != "events"}
    try:
        return SessionDetail.model_validate({**fields, "events": events})
    except ValidationError as e:
        details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        session_id = fields.get("id") if isinstance(fields.get("id"), str) else None
        raise SessionFormatError(session_id=session_id, details=details) from e
