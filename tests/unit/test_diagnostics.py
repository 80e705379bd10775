"""
Unit tests for diagnostic sinks.

Tests cover:
- Diagnostic construction through warn()/error()
- CollectingSink filtering
- LoggingSink logger routing
- Default sink resolution
"""

import logging

import pytest

from sessionreel.diagnostics import (
    NEGATIVE_DURATION,
    ORPHAN_TOOL_RESULT,
    CollectingSink,
    Diagnostic,
    LoggingSink,
    NullSink,
    resolve_sink,
)


class TestCollectingSink:
    """Tests for CollectingSink."""

    def test_warn_records_warning(self) -> None:
        """warn() emits a WARNING-level diagnostic with context."""
        sink = CollectingSink()
        sink.warn(ORPHAN_TOOL_RESULT, "orphan", source="reconciler", tool_id="t1")

        assert sink.diagnostics == [
            Diagnostic(
                code=ORPHAN_TOOL_RESULT,
                message="orphan",
                level=logging.WARNING,
                source="reconciler",
                context={"tool_id": "t1"},
            )
        ]

    def test_error_records_error_level(self) -> None:
        """error() emits an ERROR-level diagnostic."""
        sink = CollectingSink()
        sink.error("invalid_session_start", "bad start")
        assert sink.diagnostics[0].level == logging.ERROR

    def test_by_code_and_codes(self) -> None:
        """Diagnostics can be filtered by code."""
        sink = CollectingSink()
        sink.warn(ORPHAN_TOOL_RESULT, "a")
        sink.warn(NEGATIVE_DURATION, "b")
        sink.warn(ORPHAN_TOOL_RESULT, "c")

        assert [d.message for d in sink.by_code(ORPHAN_TOOL_RESULT)] == ["a", "c"]
        assert sink.codes == [ORPHAN_TOOL_RESULT, NEGATIVE_DURATION, ORPHAN_TOOL_RESULT]

    def test_clear(self) -> None:
        sink = CollectingSink()
        sink.warn(ORPHAN_TOOL_RESULT, "a")
        sink.clear()
        assert sink.diagnostics == []

    def test_diagnostic_is_frozen(self) -> None:
        """Diagnostics can't be modified after emission."""
        diagnostic = Diagnostic(code="x", message="y")
        with pytest.raises(AttributeError):
            diagnostic.code = "z"  # type: ignore[misc]


class TestLoggingSink:
    """Tests for LoggingSink."""

    def test_routes_by_source(self, caplog: pytest.LogCaptureFixture) -> None:
        """Diagnostics go to the sessionreel.<source> logger."""
        caplog.set_level(logging.WARNING, logger="sessionreel")
        LoggingSink().warn(ORPHAN_TOOL_RESULT, "orphan result", source="reconciler")

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.name == "sessionreel.reconciler"
        assert record.levelno == logging.WARNING
        assert "orphan result" in record.getMessage()
        assert ORPHAN_TOOL_RESULT in record.getMessage()
        assert record.diagnostic.code == ORPHAN_TOOL_RESULT

    def test_no_source_uses_package_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger="sessionreel")
        LoggingSink().error("invalid_session_start", "bad")
        assert caplog.records[0].name == "sessionreel"
        assert caplog.records[0].levelno == logging.ERROR

    def test_explicit_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        """An explicit logger overrides routing."""
        logger = logging.getLogger("custom.viewer")
        caplog.set_level(logging.WARNING, logger="custom.viewer")
        LoggingSink(logger).warn(NEGATIVE_DURATION, "negative", source="reconciler")
        assert caplog.records[0].name == "custom.viewer"


class TestResolveSink:
    """Tests for default sink resolution."""

    def test_none_resolves_to_logging_sink(self) -> None:
        assert isinstance(resolve_sink(None), LoggingSink)

    def test_given_sink_is_kept(self) -> None:
        sink = NullSink()
        assert resolve_sink(sink) is sink

    def test_null_sink_discards(self, caplog: pytest.LogCaptureFixture) -> None:
        """NullSink emits nothing anywhere."""
        caplog.set_level(logging.DEBUG)
        NullSink().warn(ORPHAN_TOOL_RESULT, "ignored")
        assert caplog.records == []
