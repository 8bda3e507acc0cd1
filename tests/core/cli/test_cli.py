"""Tests for the CLI entry point."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from stitchwork.core.cli import main
from stitchwork.core.llm.client import LiteLLMProvider

CSV_CHUNKS = ["id,name\n1,Al", "ice\n2,Bob\n"]


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_dir):
    """Keep the user's config file and stderr logging out of CLI tests."""
    monkeypatch.setattr("stitchwork.core.cli.common.CONFIG_PATH", Path(tmp_dir) / "absent.yaml")
    setup = MagicMock()
    monkeypatch.setattr("stitchwork.core.utils.logging.setup_logging", setup)
    return setup


@pytest.fixture
def chunk_files(tmp_dir):
    paths = []
    for i, content in enumerate(CSV_CHUNKS):
        path = os.path.join(tmp_dir, f"chunk{i}.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        paths.append(path)
    return paths


class TestCliGroup:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Stitchwork" in result.output
        assert "run" in result.output
        assert "merge" in result.output
        assert "detect" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config_file(self, tmp_dir):
        runner = CliRunner()
        result = runner.invoke(main, ["--config", os.path.join(tmp_dir, "nope.yaml"), "merge", __file__])
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestMergeCommand:
    def test_merge_files(self, chunk_files):
        runner = CliRunner()
        result = runner.invoke(main, ["merge", *chunk_files])
        assert result.exit_code == 0
        assert result.output == "id,name\n1,Alice\n2,Bob\n"

    def test_show_metadata(self, chunk_files):
        runner = CliRunner()
        result = runner.invoke(main, ["merge", "--format", "csv", "--show-metadata", *chunk_files])
        assert result.exit_code == 0
        assert '"merge_strategy_used": "tabular"' in result.output
        assert '"was_continued": true' in result.output

    def test_strategy_override(self, chunk_files):
        runner = CliRunner()
        result = runner.invoke(main, ["merge", "--strategy", "first_chunk", *chunk_files])
        assert result.exit_code == 0
        assert result.output == "id,name\n1,Al\n"

    def test_invalid_override(self, chunk_files):
        runner = CliRunner()
        result = runner.invoke(main, ["merge", "--max-attempts", "0", *chunk_files])
        assert result.exit_code == 2
        assert "max_attempts" in result.output

    def test_raise_error_mode(self, tmp_dir):
        path = os.path.join(tmp_dir, "broken.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("Here is the data: {")
        runner = CliRunner()
        result = runner.invoke(main, ["merge", "--format", "json", "--on-failure", "raise_error", path])
        assert result.exit_code == 1
        assert "Merge failed" in result.output

    def test_config_file_applied(self, tmp_config_file, chunk_files):
        runner = CliRunner()
        result = runner.invoke(main, ["--config", tmp_config_file, "merge", "--show-metadata", *chunk_files])
        assert result.exit_code == 0
        assert '"output_format": "tabular"' in result.output

    def test_verbose_logs_at_debug(self, chunk_files, _isolated):
        runner = CliRunner()
        runner.invoke(main, ["-v", "merge", *chunk_files])
        assert _isolated.call_args.kwargs["level"] == "DEBUG"


class TestDetectCommand:
    def test_detect_stdin(self):
        runner = CliRunner()
        result = runner.invoke(main, ["detect", "-"], input="id,name\n1,Alice\n2,Bob\n")
        assert result.exit_code == 0
        assert "format: tabular" in result.output
        assert "confidence: 0.95" in result.output
        assert "  json: 0.00" in result.output

    def test_detect_prose(self):
        runner = CliRunner()
        result = runner.invoke(main, ["detect", "-"], input="Nothing structured here.")
        assert "format: plain" in result.output


class TestRunCommand:
    def test_run_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["run", "--help"])
        assert result.exit_code == 0
        assert "--max-attempts" in result.output

    def test_run_continues(self, make_provider, respond):
        provider = make_provider(
            [respond(CSV_CHUNKS[0], "length", token="resp_a"), respond(CSV_CHUNKS[1], token="resp_b")]
        )
        runner = CliRunner()
        with patch.object(LiteLLMProvider, "from_config", return_value=provider) as from_config:
            result = runner.invoke(main, ["run", "List users as CSV", "--model", "gpt-4o", "--format", "csv"])
        assert result.exit_code == 0
        assert result.output == "id,name\n1,Alice\n2,Bob\n"
        assert from_config.call_args.args[0].model == "gpt-4o"
        assert provider.calls[1]["continuation_token"] == "resp_a"

    def test_run_verbose_reports_progress(self, make_provider, respond):
        provider = make_provider([respond("a", "length"), respond("b")])
        runner = CliRunner()
        with patch.object(LiteLLMProvider, "from_config", return_value=provider):
            result = runner.invoke(main, ["-v", "run", "q"])
        assert result.exit_code == 0
        assert "Continuation 1/9..." in result.output

    def test_run_provider_error(self, make_provider, respond):
        provider = make_provider([respond("", "error")])
        runner = CliRunner()
        with patch.object(LiteLLMProvider, "from_config", return_value=provider):
            result = runner.invoke(main, ["run", "q"])
        assert result.exit_code == 1
        assert "Provider reported an error" in result.output
