"""
Timeline configuration.

Everything here has a working default, so most callers never load a file.
A YAML file can extend the built-in event classification, e.g.:

    dropped_event_types:
      - agent:heartbeat
    status_event_types:
      - container-agent:worktree
    default_speed: 2
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sessionreel.errors import ConfigError
from sessionreel.schema import ReplaySpeed


class TimelineConfig(BaseModel):
    """
    Knobs for normalization, reconciliation and playback.

    Attributes:
        dropped_event_types: Raw event types dropped in addition to token deltas
        status_event_types: Raw event types treated as startup status updates
        unknown_tool_label: Name shown for a tool entry with no name at all
        unnamed_tool_label: Name given to a tool call record with no name
        tool_error_text: Error text used when a result flags an error without a message
        default_speed: Initial playback speed
        frame_interval_ms: Target frame interval for the realtime scheduler
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    dropped_event_types: list[str] = Field(default_factory=list)
    status_event_types: list[str] = Field(default_factory=list)
    unknown_tool_label: str = Field(default="Unknown", min_length=1)
    unnamed_tool_label: str = Field(default="[unnamed tool]", min_length=1)
    tool_error_text: str = Field(default="Tool execution failed", min_length=1)
    default_speed: ReplaySpeed = ReplaySpeed.X1
    frame_interval_ms: int = Field(default=16, gt=0, le=1000)


DEFAULT_CONFIG = TimelineConfig()


def load_config(path: Path | str) -> TimelineConfig:
    """
    Load a timeline configuration from a YAML file.

    Raises:
        ConfigError: If the file can't be read or doesn't validate
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(path=str(path), details=[str(e)]) from e
    return _parse(content, str(path))


def load_config_from_string(content: str) -> TimelineConfig:
    """Load a timeline configuration from a YAML string."""
    return _parse(content, None)


def _parse(content: str, path: str | None) -> TimelineConfig:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(path=path, details=[str(e)]) from e

    # An empty file means "all defaults"
    if data is None:
        return TimelineConfig()
    if not isinstance(data, dict):
        raise ConfigError(path=path, details=["configuration must be a mapping"])

    try:
        return TimelineConfig.model_validate(data)
    except ValidationError as e:
        details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigError(path=path, details=details) from e
