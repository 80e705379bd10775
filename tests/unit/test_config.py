"""
Unit tests for timeline configuration.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sessionreel.config import DEFAULT_CONFIG, TimelineConfig, load_config, load_config_from_string
from sessionreel.errors import ConfigError
from sessionreel.schema import ReplaySpeed


class TestTimelineConfig:
    """Tests for the TimelineConfig model."""

    def test_defaults(self) -> None:
        config = TimelineConfig()
        assert config.dropped_event_types == []
        assert config.status_event_types == []
        assert config.unknown_tool_label == "Unknown"
        assert config.unnamed_tool_label == "[unnamed tool]"
        assert config.tool_error_text == "Tool execution failed"
        assert config.default_speed == ReplaySpeed.X1
        assert config.frame_interval_ms == 16

    def test_default_config_matches(self) -> None:
        assert DEFAULT_CONFIG == TimelineConfig()

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.unknown_tool_label = "?"  # type: ignore[misc]

    def test_frame_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            TimelineConfig(frame_interval_ms=0)


class TestLoadConfig:
    """Tests for YAML loading."""

    def test_load_from_string(self) -> None:
        config = load_config_from_string(
            """
dropped_event_types:
  - agent:heartbeat
status_event_types:
  - container-agent:worktree
default_speed: 2
"""
        )
        assert config.dropped_event_types == ["agent:heartbeat"]
        assert config.status_event_types == ["container-agent:worktree"]
        assert config.default_speed == ReplaySpeed.X2

    def test_empty_document_gives_defaults(self) -> None:
        assert load_config_from_string("") == TimelineConfig()

    def test_invalid_speed(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config_from_string("default_speed: 3")
        assert any("default_speed" in d for d in exc_info.value.details)

    def test_unknown_key_rejected(self) -> None:
        """Typos in config keys are errors, not silently ignored."""
        with pytest.raises(ConfigError) as exc_info:
            load_config_from_string("dropped_events: [x]")
        assert any("dropped_events" in d for d in exc_info.value.details)

    def test_non_mapping(self) -> None:
        with pytest.raises(ConfigError):
            load_config_from_string("- a")

    def test_yaml_error(self) -> None:
        with pytest.raises(ConfigError):
            load_config_from_string("default_speed: [")

    def test_load_from_file(self, temp_dir: Path) -> None:
        path = temp_dir / "timeline.yaml"
        path.write_text("unknown_tool_label: '?'\n")
        config = load_config(path)
        assert config.unknown_tool_label == "?"

    def test_missing_file(self, temp_dir: Path) -> None:
        path = temp_dir / "missing.yaml"
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.path == str(path)
