"""
Side-channel diagnostics for the timeline functions.

normalize(), reconcile() and the session loader never raise for bad event
data. Instead they emit a Diagnostic to a DiagnosticSink and keep going.
The default sink forwards to the standard ``logging`` module; tests and
callers that want to inspect or silence the output pass their own sink.

Example:
    from sessionreel.diagnostics import CollectingSink
    from sessionreel.timeline import reconcile

    sink = CollectingSink()
    reconcile(events, start, diagnostics=sink)
    for d in sink.by_code(ORPHAN_TOOL_RESULT):
        print(d.message)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


# Diagnostic codes
MALFORMED_TOOL_START = "malformed_tool_start"
MALFORMED_TOOL_RESULT = "malformed_tool_result"
ORPHAN_TOOL_RESULT = "orphan_tool_result"
NEGATIVE_DURATION = "negative_duration"
UNNAMED_TOOL = "unnamed_tool"
MALFORMED_EVENT = "malformed_event"
INVALID_SESSION_START = "invalid_session_start"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single non-fatal problem found while processing a session.

    Attributes:
        code: Stable identifier (one of the module-level constants)
        message: Human-readable description
        level: logging level number (logging.WARNING by default)
        source: Component that produced it (e.g. "reconciler")
        context: Extra structured data (ids, timestamps, counts)
    """

    code: str
    message: str
    level: int = logging.WARNING
    source: str = ""
    context: dict[str, Any] = field(default_factory=dict)


class DiagnosticSink(ABC):
    """Receiver for diagnostics."""

    @abstractmethod
    def emit(self, diagnostic: Diagnostic) -> None:
        """Handle one diagnostic."""
        ...

    def warn(self, code: str, message: str, source: str = "", **context: Any) -> None:
        """Emit a WARNING-level diagnostic."""
        self.emit(Diagnostic(code=code, message=message, source=source, context=context))

    def error(self, code: str, message: str, source: str = "", **context: Any) -> None:
        """Emit an ERROR-level diagnostic."""
        self.emit(
            Diagnostic(
                code=code,
                message=message,
                level=logging.ERROR,
                source=source,
                context=context,
            )
        )


class LoggingSink(DiagnosticSink):
    """
    Forward diagnostics to the standard logging module.

    Each diagnostic goes to the ``sessionreel.<source>`` logger unless an
    explicit logger is given.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger

    def emit(self, diagnostic: Diagnostic) -> None:
        logger = self._logger
        if logger is None:
            name = f"sessionreel.{diagnostic.source}" if diagnostic.source else "sessionreel"
            logger = logging.getLogger(name)
        logger.log(
            diagnostic.level,
            "%s [%s]",
            diagnostic.message,
            diagnostic.code,
            extra={"diagnostic": diagnostic},
        )


class CollectingSink(DiagnosticSink):
    """Keep every diagnostic in memory."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def by_code(self, code: str) -> list[Diagnostic]:
        """Return diagnostics with the given code, in emission order."""
        return [d for d in self.diagnostics if d.code == code]

    @property
    def codes(self) -> list[str]:
        return [d.code for d in self.diagnostics]

    def clear(self) -> None:
        self.diagnostics.clear()


class NullSink(DiagnosticSink):
    """Discard everything."""

    def emit(self, diagnostic: Diagnostic) -> None:
        pass


_default_sink: DiagnosticSink = LoggingSink()


def resolve_sink(sink: DiagnosticSink | None) -> DiagnosticSink:
    """Return the given sink, or the shared logging sink."""
    return sink if sink is not None else _default_sink
