"""
Translation of raw events into one canonical vocabulary.

Session logs mix two generations of event names for the same things:

    legacy                  agent-runtime
    ----------------------  ----------------------------------
    tool:start {id, tool}   container-agent:tool:start {toolId, toolName}
    tool:result {output}    container-agent:tool:result {result, durationMs}
    chunk {role, content}   container-agent:message {role, content}
    agent:completed         container-agent:complete {result}
    agent:turn {turn}       container-agent:turn {turn, maxTurns}
    ...                     container-agent:cancelled {turnCount}
    ...                     container-agent:token {delta}

Everything downstream (pairing, dispatch, validation) works on
CanonicalEvent only and never looks at the raw type or raw field names.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from sessionreel.config import DEFAULT_CONFIG, TimelineConfig
from sessionreel.schema import RawEvent


# Canonical kinds
AGENT_STARTED = "agent:started"
AGENT_COMPLETED = "agent:completed"
AGENT_ERROR = "agent:error"
AGENT_CANCELLED = "agent:cancelled"
MESSAGE = "chunk"
TOOL_START = "tool:start"
TOOL_RESULT = "tool:result"
TERMINAL_INPUT = "terminal:input"
TERMINAL_OUTPUT = "terminal:output"
STATUS = "status"
TURN = "turn"
TOKEN = "token"
DROPPED = "dropped"

_RUNTIME_PREFIX = "container-agent:"

_KIND_BY_TYPE: dict[str, str] = {
    "container-agent:started": AGENT_STARTED,
    "container-agent:complete": AGENT_COMPLETED,
    "container-agent:error": AGENT_ERROR,
    "container-agent:cancelled": AGENT_CANCELLED,
    "container-agent:turn": TURN,
    "agent:turn": TURN,
    "container-agent:tool:start": TOOL_START,
    "container-agent:tool:result": TOOL_RESULT,
    "container-agent:message": MESSAGE,
    "container-agent:token": TOKEN,
    "container-agent:status": STATUS,
    "agent:planning": STATUS,
    "state:update": STATUS,
}

# (runtime field, canonical field); applied only when the canonical one is absent
_FIELD_ALIASES: dict[str, tuple[tuple[str, str], ...]] = {
    TOOL_START: (("toolId", "id"), ("toolName", "tool")),
    TOOL_RESULT: (
        ("toolId", "id"),
        ("toolName", "tool"),
        ("result", "output"),
        ("durationMs", "duration"),
    ),
    AGENT_COMPLETED: (("result", "message"),),
}


@dataclass(frozen=True)
class CanonicalEvent:
    """
    A raw event with its kind and payload in canonical form.

    Attributes:
        event: The untouched source event
        kind: Canonical kind (one of the module constants, or the raw type)
        payload: Payload with canonical field names, None if not a mapping
    """

    event: RawEvent
    kind: str
    payload: dict[str, Any] | None

    @property
    def id(self) -> str:
        return self.event.id

    @property
    def timestamp(self) -> int:
        return self.event.timestamp

    def get(self, key: str, default: Any = None) -> Any:
        if self.payload is None:
            return default
        return self.payload.get(key, default)

    def text(self, *keys: str) -> str:
        """First string value among ``keys``, or ''."""
        for key in keys:
            value = self.get(key)
            if isinstance(value, str):
                return value
        return ""

    @property
    def tool_id(self) -> str | None:
        """Pairing identifier, or None when missing or not a non-empty string."""
        value = self.get("id")
        if isinstance(value, str) and value:
            return value
        return None

    @property
    def tool_name(self) -> str | None:
        """Tool name, preferring ``tool`` over the legacy ``name`` field."""
        for key in ("tool", "name"):
            value = self.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @property
    def is_dropped(self) -> bool:
        return self.kind in (TOKEN, DROPPED)


def canonicalize(event: RawEvent, config: TimelineConfig | None = None) -> CanonicalEvent:
    """
    Translate one raw event. Never raises.

    Args:
        event: Source event
        config: Extra dropped/status types to honor

    Returns:
        CanonicalEvent for the event
    """
    config = config or DEFAULT_CONFIG

    if event.type in config.dropped_event_types:
        kind = DROPPED
    elif event.type in config.status_event_types:
        kind = STATUS
    else:
        kind = _KIND_BY_TYPE.get(event.type, event.type)

    data = event.data
    if not isinstance(data, dict):
        return CanonicalEvent(event=event, kind=kind, payload=None)

    aliases = _FIELD_ALIASES.get(kind, ())
    if not aliases or not event.type.startswith(_RUNTIME_PREFIX):
        return CanonicalEvent(event=event, kind=kind, payload=data)

    payload = dict(data)
    for runtime_key, canonical_key in aliases:
        if canonical_key not in payload and runtime_key in payload:
            payload[canonical_key] = payload[runtime_key]
    return CanonicalEvent(event=event, kind=kind, payload=payload)


def canonicalize_all(
    events: Iterable[RawEvent], config: TimelineConfig | None = None
) -> list[CanonicalEvent]:
    """Translate a whole log, preserving order."""
    config = config or DEFAULT_CONFIG
    return [canonicalize(event, config) for event in events]


def result_error(ce: CanonicalEvent, default_text: str) -> str | None:
    """
    Error message signalled by a tool result, or None for success.

    A result is an error if it carries a non-empty ``error`` or a truthy
    ``isError`` flag. Flag-only errors get ``default_text``.
    """
    error = ce.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
        return error["message"]
    if error or ce.get("isError"):
        return default_text
    return None
