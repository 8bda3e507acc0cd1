"""Tests for continuation.fallback — degrade-on-failure merging and partial results."""

from unittest.mock import patch

import pytest

from stitchwork.continuation.fallback import FallbackChain, PartialResultBuilder
from stitchwork.continuation.mergers import ConcatenationMerger, JsonMerger, Merger, TabularMerger
from stitchwork.continuation.models import MergeResult
from stitchwork.core.exceptions import MergeError
from stitchwork.core.types import MergerKind


class _BrokenMerger(Merger):
    kind = MergerKind.JSON

    def merge(self, chunks):
        raise ValueError("unexpected")


class TestFallbackChain:
    def test_level_zero_success(self):
        result = FallbackChain().merge(JsonMerger(), ['{"a": ', "1}"])
        assert result.success
        assert result.fallback_level == 0
        assert result.content == '{"a": 1}'

    def test_partial_level_zero_result_not_replaced(self):
        result = FallbackChain().merge(TabularMerger(), ["id,name\n1,Alice\n", "2,Bob,extra\n"])
        assert not result.success
        assert result.fallback_level == 0
        assert result.strategy == "tabular"

    def test_concatenation_fallback(self):
        result = FallbackChain().merge(JsonMerger(), ["Here is the data: {", '"a": 1}'])
        assert not result.success
        assert result.fallback_level == 1
        assert result.strategy == "concatenation"
        assert result.content == 'Here is the data: {\n"a": 1}'
        assert result.error.kind == "invalid_root"

    def test_first_chunk_fallback(self):
        with patch.object(ConcatenationMerger, "merge", side_effect=MergeError("boom", kind="broken")):
            result = FallbackChain().merge(JsonMerger(), ["", "Here is", " more"])
        assert result.fallback_level == 2
        assert result.strategy == "first_chunk"
        assert result.content == "Here is"
        # The primary merger's error is what gets reported
        assert result.error.kind == "invalid_root"

    def test_all_levels_fail(self, log_messages):
        result = FallbackChain().merge(JsonMerger(), ["", "  "])
        assert result.exhausted
        assert result.content == ""
        assert result.strategy == "json"
        assert result.error.kind == "empty"
        assert any(m.startswith("ERROR") for m in log_messages)

    def test_unexpected_exception_captured(self):
        result = FallbackChain().merge(_BrokenMerger(), ["text"])
        assert result.fallback_level == 1
        assert result.error.error_class == "ValueError"
        assert result.error.kind == "merge_failed"


class TestPartialResultBuilder:
    def test_success_passes_through(self):
        partial = PartialResultBuilder().build(MergeResult(content="done", success=True))
        assert partial.content == "done"
        assert not partial.is_partial

    def test_failed_merge(self):
        result = TabularMerger().merge(["id,name\n1,Alice\n", "2,Bob,extra\n"])
        partial = PartialResultBuilder().build(result)
        assert partial.is_partial
        assert partial.content == "id,name\n1,Alice\n"
        assert partial.incomplete_after == 1
        assert partial.error_class == "MergeError"
        assert partial.merge_error == {
            "kind": "row_mismatch",
            "error_class": "MergeError",
            "error_message": "Row at line 3 has 3 fields, expected 2",
            "chunk_index": 1,
            "fallback_level": 0,
        }

    def test_exhausted_reports_chunk_count(self):
        chunks = ["", " "]
        result = FallbackChain().merge(JsonMerger(), chunks)
        partial = PartialResultBuilder().build(result, chunks)
        assert partial.content == ""
        assert partial.incomplete_after is None
        assert partial.merge_error["chunk_count"] == 2

    def test_incomplete_after_is_failing_chunk_index(self):
        result = TabularMerger().merge(["id,name\n1,Al", "ice\n2,Bob,extra\n"])
        partial = PartialResultBuilder().build(result)
        assert partial.incomplete_after == 1
        assert partial.incomplete_after == partial.merge_error["chunk_index"]

    def test_incomplete_after_for_first_chunk_fallback(self):
        result = MergeResult(
            content="Here is", success=False, fallback_level=2, strategy="first_chunk", details={"chunk_index": 3}
        )
        assert PartialResultBuilder().build(result).incomplete_after == 3

    def test_incomplete_after_for_concatenation_without_index(self):
        chunks = ["a", "b", " "]
        with patch.object(TabularMerger, "merge", side_effect=ValueError("bad")):
            result = FallbackChain().merge(TabularMerger(), chunks)
        assert PartialResultBuilder().build(result, chunks).incomplete_after == 1


class TestConcatenationMerger:
    def test_chunks_joined_line_by_line(self):
        result = ConcatenationMerger().merge(["line one", "line two"])
        assert result.content == "line one\nline two"

    def test_no_extra_break_after_newline(self):
        result = ConcatenationMerger().merge(["line one\n", "line two\n", "", "line three"])
        assert result.content == "line one\nline two\nline three"

    def test_whitespace_only_raises(self):
        with pytest.raises(MergeError):
            ConcatenationMerger().merge(["", "  \n"])
