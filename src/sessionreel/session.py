"""
Session-level entry points.

The timeline functions take a session start time in milliseconds and
assume it is valid. This module owns that precondition: it parses the
session's ISO-8601 ``created_at``, and when parsing fails it returns empty
results with an error message instead of calling the timeline at all.

SessionAnalyzer also memoizes its last result on the identity of the
event list, so a viewer can ask for the analysis on every redraw without
re-parsing an unchanged log.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from sessionreel.config import DEFAULT_CONFIG, TimelineConfig
from sessionreel.diagnostics import INVALID_SESSION_START, DiagnosticSink, resolve_sink
from sessionreel.errors import InvalidSessionStartError
from sessionreel.replay import FrameScheduler, PlaybackClock
from sessionreel.schema import (
    DisplayEntry,
    RawEvent,
    SessionDetail,
    ToolCallRecord,
    ToolCallStats,
)
from sessionreel.timeline import aggregate, normalize, reconcile


INVALID_TIMESTAMP_MESSAGE = "Session has invalid timestamp data"


@dataclass
class SessionAnalysis:
    """
    Everything a session viewer derives from the event log.

    Attributes:
        entries: Normalized display timeline
        tool_calls: Reconciled tool call records
        stats: Aggregate tool call statistics
        error: Set when the session could not be analyzed
    """

    entries: list[DisplayEntry] = field(default_factory=list)
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    stats: ToolCallStats = field(default_factory=ToolCallStats)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_session_start(created_at: str, session_id: str | None = None) -> int:
    """
    Parse a session creation time into ms since the epoch.

    Naive datetimes are taken as UTC.

    Raises:
        InvalidSessionStartError: If ``created_at`` isn't ISO-8601
    """
    try:
        parsed = datetime.fromisoformat(created_at)
    except (TypeError, ValueError) as e:
        raise InvalidSessionStartError(created_at=str(created_at), session_id=session_id) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp() * 1000)


def session_total_duration(session: SessionDetail) -> int:
    """Recorded duration if known, else the span of the event timestamps."""
    if session.duration is not None:
        return session.duration
    return event_span(session.events)


def event_span(events: list[RawEvent]) -> int:
    if len(events) < 2:
        return 0
    timestamps = [e.timestamp for e in events]
    return max(timestamps) - min(timestamps)


class SessionAnalyzer:
    """
    Memoizing wrapper around normalize/reconcile/aggregate.

    Usage:
        analyzer = SessionAnalyzer()
        analysis = analyzer.analyze(session)
        if not analysis.ok:
            show_error(analysis.error)
    """

    def __init__(
        self,
        config: TimelineConfig | None = None,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.diagnostics = diagnostics
        self._cached_events: list[RawEvent] | None = None
        self._cached_created_at: str | None = None
        self._cached: SessionAnalysis | None = None

    def analyze(self, session: SessionDetail | None) -> SessionAnalysis:
        """
        Analyze a session, reusing the previous result for the same log.

        Args:
            session: Session to analyze, or None for "nothing selected"

        Returns:
            SessionAnalysis; ``error`` is set if the start time is invalid
        """
        if session is None:
            return SessionAnalysis()

        if (
            self._cached is not None
            and session.events is self._cached_events
            and session.created_at == self._cached_created_at
        ):
            return self._cached

        analysis = self._compute(session)
        self._cached_events = session.events
        self._cached_created_at = session.created_at
        self._cached = analysis
        return analysis

    def clear(self) -> None:
        """Drop the memoized result."""
        self._cached_events = None
        self._cached_created_at = None
        self._cached = None

    def _compute(self, session: SessionDetail) -> SessionAnalysis:
        try:
            start = parse_session_start(session.created_at, session_id=session.id)
        except InvalidSessionStartError as e:
            resolve_sink(self.diagnostics).error(
                INVALID_SESSION_START,
                f"Invalid session createdAt timestamp: {session.created_at!r}",
                source="session",
                session_id=session.id,
                created_at=session.created_at,
                code_number=e.code,
            )
            return SessionAnalysis(error=INVALID_TIMESTAMP_MESSAGE)

        tool_calls = reconcile(
            session.events, start, config=self.config, diagnostics=self.diagnostics
        )
        return SessionAnalysis(
            entries=normalize(session.events, start, config=self.config),
            tool_calls=tool_calls,
            stats=aggregate(tool_calls),
        )


def analyze_session(
    session: SessionDetail | None,
    config: TimelineConfig | None = None,
    diagnostics: DiagnosticSink | None = None,
) -> SessionAnalysis:
    """One-shot analysis without memoization."""
    return SessionAnalyzer(config=config, diagnostics=diagnostics).analyze(session)


def create_clock(
    session: SessionDetail,
    scheduler: FrameScheduler | None = None,
    config: TimelineConfig | None = None,
) -> PlaybackClock:
    """Build a PlaybackClock for a session using its total duration."""
    config = config or DEFAULT_CONFIG
    return PlaybackClock(
        session.events,
        session_total_duration(session),
        scheduler=scheduler,
        speed=config.default_speed,
    )
