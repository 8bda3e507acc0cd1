"""Tests for stitchwork.core.config_schema and the shared enums."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from stitchwork.core.config_schema import ContinuationConfig, LoggingConfig, StitchworkConfig
from stitchwork.core.exceptions import ConfigurationError
from stitchwork.core.types import MergerKind, OnFailure, OutputFormat, parse_output_format


@pytest.mark.smoke
class TestContinuationConfig:
    def test_defaults(self):
        config = ContinuationConfig()
        assert config.max_attempts == 10
        assert config.output_format is OutputFormat.AUTO
        assert config.on_failure is OnFailure.RETURN_PARTIAL
        assert config.merge_strategy is None

    def test_frozen(self):
        config = ContinuationConfig()
        with pytest.raises(ValidationError):
            config.max_attempts = 3

    @pytest.mark.parametrize("value", [0, -1, 51, True, "many", 2.5])
    def test_invalid_max_attempts(self, value):
        with pytest.raises(ValidationError):
            ContinuationConfig(max_attempts=value)

    def test_max_attempts_bounds(self):
        assert ContinuationConfig(max_attempts=1).max_attempts == 1
        assert ContinuationConfig(max_attempts=50).max_attempts == 50
        assert ContinuationConfig(max_attempts="5").max_attempts == 5

    @pytest.mark.parametrize(
        "alias,expected",
        [
            ("csv", OutputFormat.TABULAR),
            ("TSV", OutputFormat.TABULAR),
            ("markdown", OutputFormat.MARKUP),
            ("md", OutputFormat.MARKUP),
            ("json", OutputFormat.JSON),
            (" Auto ", OutputFormat.AUTO),
        ],
    )
    def test_format_aliases(self, alias, expected):
        assert ContinuationConfig(output_format=alias).output_format is expected

    @pytest.mark.parametrize("value", ["xml", "plain"])
    def test_invalid_format(self, value):
        with pytest.raises(ValidationError):
            ContinuationConfig(output_format=value)

    def test_merge_strategy(self):
        assert ContinuationConfig(merge_strategy="JSON").merge_strategy is MergerKind.JSON
        assert ContinuationConfig(merge_strategy="").merge_strategy is None
        with pytest.raises(ValidationError):
            ContinuationConfig(merge_strategy="smart")

    def test_invalid_on_failure(self):
        with pytest.raises(ValidationError):
            ContinuationConfig(on_failure="explode")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            ContinuationConfig(max_retries=3)

    def test_from_mapping_wraps_errors(self):
        with pytest.raises(ConfigurationError, match="Invalid continuation config") as exc_info:
            ContinuationConfig.from_mapping({"max_attempts": 100})
        assert "cannot exceed 50" in str(exc_info.value)

    def test_from_mapping_none(self):
        assert ContinuationConfig.from_mapping(None) == ContinuationConfig()


class TestStitchworkConfig:
    def test_defaults(self):
        cfg = StitchworkConfig()
        assert cfg.llm.timeout == 180
        assert cfg.logging.level == "WARNING"

    def test_extra_sections_allowed(self):
        cfg = StitchworkConfig.model_validate({"custom": {"a": 1}})
        assert cfg.model_extra["custom"] == {"a": 1}

    def test_logging_normalisation(self):
        cfg = LoggingConfig(level="debug", log_file="~/stitchwork.log")
        assert cfg.level == "DEBUG"
        assert cfg.log_file == Path("~/stitchwork.log").expanduser()


class TestParseOutputFormat:
    def test_enum_passthrough(self):
        assert parse_output_format(OutputFormat.JSON) is OutputFormat.JSON

    def test_rejects_plain(self):
        with pytest.raises(ValueError, match="Invalid output_format"):
            parse_output_format("plain")
