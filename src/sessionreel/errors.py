"""
Exception hierarchy for SessionReel.

All SessionReel exceptions inherit from SessionReelError, allowing callers to
catch every SessionReel-specific exception with a single except clause.

Exception Categories:
    - SessionError: The session document or its metadata is unusable
    - ReplayError: The playback clock was driven incorrectly
    - ConfigError: Invalid timeline configuration

Note that malformed *events* never raise. The timeline functions degrade
gracefully and report problems through diagnostics instead
(see sessionreel.diagnostics).
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Session errors: 1xxx
ERROR_SESSION_INVALID_START = 1001
ERROR_SESSION_LOAD_FAILED = 1002
ERROR_SESSION_INVALID_FORMAT = 1003

# Replay errors: 2xxx
ERROR_REPLAY_INVALID_SPEED = 2001
ERROR_REPLAY_CLOCK_DISPOSED = 2002

# Config errors: 3xxx
ERROR_CONFIG_INVALID = 3001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class SessionReelError(Exception):
    """
    Base exception for all SessionReel errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Session Errors
# =============================================================================


@dataclass
class SessionError(SessionReelError):
    """
    Base class for problems with a session document.

    Attributes:
        session_id: ID of the affected session, if known
    """

    session_id: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.session_id is not None:
            self.context["session_id"] = self.session_id


@dataclass
class InvalidSessionStartError(SessionError):
    """
    Raised when a session's creation timestamp cannot be parsed.

    This is a precondition failure: the timeline functions need a valid
    start time to compute offsets, so callers must check it first.
    """

    created_at: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid session start timestamp: {self.created_at!r}"
        if self.code == 0:
            self.code = ERROR_SESSION_INVALID_START
        if not self.suggestion:
            self.suggestion = "Session createdAt must be an ISO-8601 datetime"
        super().__post_init__()
        self.context["created_at"] = self.created_at


@dataclass
class SessionLoadError(SessionError):
    """Raised when a session file cannot be read or parsed."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to load session from {self.path}"
        if self.code == 0:
            self.code = ERROR_SESSION_LOAD_FAILED
        super().__post_init__()
        self.context["path"] = self.path


@dataclass
class SessionFormatError(SessionError):
    """Raised when a session document has the wrong overall shape."""

    details: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Invalid session document"
            if self.details:
                self.message += ": " + "; ".join(self.details)
        if self.code == 0:
            self.code = ERROR_SESSION_INVALID_FORMAT
        super().__post_init__()
        self.context["details"] = self.details


# =============================================================================
# Replay Errors
# =============================================================================


@dataclass
class ReplayError(SessionReelError):
    """Base class for playback clock errors."""


@dataclass
class InvalidReplaySpeedError(ReplayError):
    """Raised when a speed multiplier outside the supported set is requested."""

    speed: Any = None
    allowed: list[int] = field(default_factory=lambda: [1, 2, 4])

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unsupported replay speed: {self.speed!r}"
        if self.code == 0:
            self.code = ERROR_REPLAY_INVALID_SPEED
        if not self.suggestion:
            self.suggestion = f"Use one of: {', '.join(f'{s}x' for s in self.allowed)}"
        self.context.update({"speed": self.speed, "allowed": self.allowed})


@dataclass
class ReplayClockDisposedError(ReplayError):
    """Raised when playback is started on a clock that was disposed."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Playback clock has been disposed"
        if self.code == 0:
            self.code = ERROR_REPLAY_CLOCK_DISPOSED
        if not self.suggestion:
            self.suggestion = "Create a new PlaybackClock for the session"


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(SessionReelError):
    """
    Raised when a timeline configuration file is invalid.

    Attributes:
        path: Path of the offending file, if loaded from disk
        details: Validation messages
    """

    path: str | None = None
    details: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Invalid timeline configuration"
            if self.details:
                self.message += ": " + "; ".join(self.details)
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context.update({"path": self.path, "details": self.details})
