"""
Pytest configuration and fixtures for SessionReel tests.

This module provides shared fixtures used across unit and integration
tests. Timestamps are milliseconds since the epoch; SESSION_START is
2024-01-15T10:00:00Z.
"""

import itertools
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from sessionreel.diagnostics import CollectingSink
from sessionreel.schema import RawEvent


SESSION_START = 1_705_312_800_000

EventFactory = Callable[..., RawEvent]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sink() -> CollectingSink:
    """Diagnostic sink that records everything."""
    return CollectingSink()


@pytest.fixture
def make_event() -> EventFactory:
    """
    Return a factory for RawEvents.

    ``offset`` is relative to SESSION_START; ids are generated unless given.
    """
    counter = itertools.count(1)

    def factory(type_: str, data: Any = None, offset: int = 0, id: str | None = None) -> RawEvent:
        return RawEvent(
            id=id or f"evt-{next(counter)}",
            type=type_,
            timestamp=SESSION_START + offset,
            data=data,
        )

    return factory


@pytest.fixture
def sample_session_yaml() -> str:
    """
    Return a small legacy-format session.

    Contains a startup phase, a user message, two finished tool calls
    (one failed), one running call, a token delta and a completion.
    """
    return """
session:
  id: sess-001
  createdAt: "2024-01-15T10:00:00Z"
  title: List files
  events:
    - id: e1
      type: agent:started
      timestamp: 1705312800000
      data: {message: Booting}
    - id: e2
      type: agent:planning
      timestamp: 1705312800500
      data: {stage: planning, message: Planning next step}
    - id: e3
      type: chunk
      timestamp: 1705312801000
      data: {role: user, content: List the files}
    - id: e4
      type: tool:start
      timestamp: 1705312802000
      data: {id: t1, tool: Bash, input: {command: ls}}
    - id: e5
      type: tool:result
      timestamp: 1705312802400
      data: {id: t1, output: "a.txt b.txt"}
    - id: e6
      type: container-agent:token
      timestamp: 1705312802500
      data: {delta: "Do"}
    - id: e7
      type: tool:start
      timestamp: 1705312803000
      data: {id: t2, tool: Read, input: {path: a.txt}}
    - id: e8
      type: tool:result
      timestamp: 1705312803500
      data: {id: t2, error: File not found}
    - id: e9
      type: tool:start
      timestamp: 1705312804000
      data: {id: t3, tool: Bash, input: {command: pwd}}
    - id: e10
      type: chunk
      timestamp: 1705312805000
      data:
        role: assistant
        content: Done
        model: claude-test
        usage: {inputTokens: 10, outputTokens: 5, totalTokens: 15}
    - id: e11
      type: agent:completed
      timestamp: 1705312806000
      data: {message: All good}
"""


@pytest.fixture
def session_file(temp_dir: Path, sample_session_yaml: str) -> Path:
    """Write the sample session to disk and return its path."""
    path = temp_dir / "session.yaml"
    path.write_text(sample_session_yaml)
    return path
