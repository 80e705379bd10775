"""
Integration tests for session-level analysis.

Tests cover:
- Session start parsing
- End-to-end analysis of a loaded session
- Invalid start handling
- Memoization
- Clock construction from a session
"""

import logging

import pytest
from conftest import SESSION_START

from sessionreel.config import TimelineConfig
from sessionreel.diagnostics import INVALID_SESSION_START, CollectingSink
from sessionreel.errors import InvalidSessionStartError
from sessionreel.replay import ManualFrameScheduler
from sessionreel.schema import (
    EntryType,
    ReplaySpeed,
    SessionDetail,
    ToolCallStatus,
    load_session_from_string,
)
from sessionreel.session import (
    INVALID_TIMESTAMP_MESSAGE,
    SessionAnalyzer,
    analyze_session,
    create_clock,
    parse_session_start,
    session_total_duration,
)


@pytest.fixture
def session(sample_session_yaml: str) -> SessionDetail:
    return load_session_from_string(sample_session_yaml)


class TestParseSessionStart:
    """Tests for createdAt parsing."""

    def test_utc_suffix(self) -> None:
        assert parse_session_start("2024-01-15T10:00:00Z") == SESSION_START

    def test_naive_is_utc(self) -> None:
        assert parse_session_start("2024-01-15T10:00:00") == SESSION_START

    def test_offset(self) -> None:
        assert parse_session_start("2024-01-15T11:00:00+01:00") == SESSION_START

    def test_milliseconds(self) -> None:
        assert parse_session_start("2024-01-15T10:00:00.250Z") == SESSION_START + 250

    @pytest.mark.parametrize("value", ["", "yesterday", "2024-13-45T99:00:00Z"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(InvalidSessionStartError) as exc_info:
            parse_session_start(value, session_id="s1")
        assert exc_info.value.context["session_id"] == "s1"


class TestSessionAnalyzer:
    """Tests for end-to-end analysis."""

    def test_timeline(self, session: SessionDetail) -> None:
        analysis = analyze_session(session, diagnostics=CollectingSink())
        assert analysis.ok

        entries = analysis.entries
        assert [e.id for e in entries] == ["e1", "e2", "e3", "e5", "e8", "e9", "e10", "e11"]
        assert [e.is_startup for e in entries] == [True, True, False, False, False, False, False, False]
        assert entries[2].type == EntryType.USER
        assert entries[3].tool_call.duration == 400
        assert entries[3].time_offset == "0:02"
        assert entries[4].tool_call.status == ToolCallStatus.ERROR
        assert entries[5].tool_call.status == ToolCallStatus.RUNNING
        assert entries[6].model == "claude-test"
        assert entries[7].content == "Session completed successfully. All good"

    def test_tool_calls_and_stats(self, session: SessionDetail) -> None:
        analysis = analyze_session(session, diagnostics=CollectingSink())

        assert [(r.id, r.status) for r in analysis.tool_calls] == [
            ("t1", ToolCallStatus.COMPLETE),
            ("t2", ToolCallStatus.ERROR),
            ("t3", ToolCallStatus.RUNNING),
        ]
        stats = analysis.stats
        assert stats.total_calls == 3
        assert stats.error_count == 1
        assert stats.total_duration_ms == 900
        assert stats.avg_duration_ms == 450.0
        assert [(i.tool, i.count) for i in stats.tool_breakdown] == [("Bash", 2), ("Read", 1)]

    def test_no_session(self) -> None:
        analysis = SessionAnalyzer().analyze(None)
        assert analysis.ok
        assert analysis.entries == []
        assert analysis.tool_calls == []

    def test_invalid_start(self, session: SessionDetail) -> None:
        """An invalid createdAt yields empty results and an error."""
        sink = CollectingSink()
        broken = session.model_copy(update={"created_at": "not-a-date"})
        analysis = SessionAnalyzer(diagnostics=sink).analyze(broken)

        assert not analysis.ok
        assert analysis.error == INVALID_TIMESTAMP_MESSAGE
        assert analysis.entries == []
        assert analysis.tool_calls == []
        assert analysis.stats.total_calls == 0

        (diagnostic,) = sink.by_code(INVALID_SESSION_START)
        assert diagnostic.level == logging.ERROR
        assert diagnostic.context["session_id"] == "sess-001"

    def test_config_is_applied(self, session: SessionDetail) -> None:
        config = TimelineConfig(dropped_event_types=["agent:planning"])
        analysis = SessionAnalyzer(config=config, diagnostics=CollectingSink()).analyze(session)
        assert "e2" not in [e.id for e in analysis.entries]


class TestMemoization:
    """Tests for result caching."""

    def test_same_log_returns_cached(self, session: SessionDetail) -> None:
        analyzer = SessionAnalyzer(diagnostics=CollectingSink())
        first = analyzer.analyze(session)
        assert analyzer.analyze(session) is first

    def test_new_log_object_recomputes(self, session: SessionDetail) -> None:
        analyzer = SessionAnalyzer(diagnostics=CollectingSink())
        first = analyzer.analyze(session)
        copy = session.model_copy(update={"events": list(session.events)})
        second = analyzer.analyze(copy)
        assert second is not first
        assert second == first

    def test_changed_start_recomputes(self, session: SessionDetail) -> None:
        analyzer = SessionAnalyzer(diagnostics=CollectingSink())
        first = analyzer.analyze(session)
        shifted = session.model_copy(update={"created_at": "2024-01-15T09:59:00Z"})
        second = analyzer.analyze(shifted)
        assert second is not first
        assert second.entries[0].time_offset == "1:00"

    def test_clear(self, session: SessionDetail) -> None:
        analyzer = SessionAnalyzer(diagnostics=CollectingSink())
        first = analyzer.analyze(session)
        analyzer.clear()
        assert analyzer.analyze(session) is not first


class TestSessionClock:
    """Tests for building a clock from a session."""

    def test_total_duration_from_span(self, session: SessionDetail) -> None:
        assert session_total_duration(session) == 6_000

    def test_recorded_duration_wins(self, session: SessionDetail) -> None:
        assert session_total_duration(session.model_copy(update={"duration": 9_000})) == 9_000

    def test_short_log_has_zero_duration(self, session: SessionDetail) -> None:
        single = session.model_copy(update={"events": session.events[:1]})
        assert session_total_duration(single) == 0

    def test_create_clock(self, session: SessionDetail) -> None:
        scheduler = ManualFrameScheduler()
        clock = create_clock(
            session, scheduler=scheduler, config=TimelineConfig(default_speed=ReplaySpeed.X2)
        )
        assert clock.total_time == 6_000
        assert clock.speed == ReplaySpeed.X2
        assert clock.session_start == SESSION_START

        clock.play()
        scheduler.tick()
        scheduler.advance(1_000)
        assert clock.current_time == 2_000.0
        assert clock.events[clock.current_event_index].id == "e4"

    def test_replay_to_end(self, session: SessionDetail) -> None:
        scheduler = ManualFrameScheduler()
        with create_clock(session, scheduler=scheduler) as clock:
            clock.play()
            scheduler.tick()
            scheduler.advance(60_000)
            assert not clock.is_playing
            assert clock.events[clock.current_event_index].id == "e11"
