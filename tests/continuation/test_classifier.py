"""Tests for continuation.classifier — stop reason normalisation and classification."""

import pytest

from stitchwork.continuation.classifier import TruncationClassifier, normalize_stop_reason
from stitchwork.continuation.models import Classification


class TestNormalizeStopReason:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("max_tokens", "length"),
            ("MAX_OUTPUT_TOKENS", "length"),
            ("end_turn", "stop"),
            ("tool_use", "tool_calls"),
            ("safety", "content_filter"),
            (" Length ", "length"),
            ("something_new", "something_new"),
        ],
    )
    def test_aliases(self, raw, expected):
        assert normalize_stop_reason(raw) == expected

    def test_none_and_blank(self):
        assert normalize_stop_reason(None) is None
        assert normalize_stop_reason("  ") is None


class TestTruncationClassifier:
    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("stop", Classification.COMPLETE),
            ("length", Classification.LENGTH_TRUNCATED),
            ("tool_calls", Classification.TOOL_CALL_PENDING),
            ("content_filter", Classification.CONTENT_FILTERED),
            ("incomplete", Classification.INCOMPLETE),
            ("error", Classification.PROVIDER_ERROR),
            (None, Classification.UNKNOWN),
            ("banana", Classification.UNKNOWN),
            ("max_tokens", Classification.LENGTH_TRUNCATED),
        ],
    )
    def test_classify(self, reason, expected):
        assert TruncationClassifier().classify(reason) is expected

    def test_only_length_requires_continuation(self):
        continuing = [c for c in Classification if c.requires_continuation]
        assert continuing == [Classification.LENGTH_TRUNCATED]

    def test_only_provider_error_is_failure(self):
        assert [c for c in Classification if c.is_failure] == [Classification.PROVIDER_ERROR]

    def test_everything_but_length_is_terminal(self):
        assert [c for c in Classification if not c.is_terminal] == [Classification.LENGTH_TRUNCATED]

    def test_warning_classifications(self):
        warnings = {c for c in Classification if c.is_warning}
        assert warnings == {Classification.CONTENT_FILTERED, Classification.INCOMPLETE}

    def test_content_filter_warns(self, log_messages):
        TruncationClassifier().report(Classification.CONTENT_FILTERED, chunk_index=2, continuation_token=None)
        assert any(m.startswith("WARNING") and "chunk 2" in m for m in log_messages)

    def test_incomplete_warning_names_token(self, log_messages):
        TruncationClassifier().report(Classification.INCOMPLETE, chunk_index=0, continuation_token="resp_9")
        warning = next(m for m in log_messages if m.startswith("WARNING"))
        assert "resp_9" in warning

    def test_provider_error_logs_error(self, log_messages):
        TruncationClassifier().report(Classification.PROVIDER_ERROR, chunk_index=1, continuation_token=None)
        assert any(m.startswith("ERROR") for m in log_messages)

    def test_complete_is_silent(self, log_messages):
        TruncationClassifier().report(Classification.COMPLETE, chunk_index=0, continuation_token=None)
        assert log_messages == []
