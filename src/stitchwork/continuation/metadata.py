"""Per-session metadata collected while continuing and merging."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from stitchwork.core.llm.config import estimate_cost
from stitchwork.core.types import OutputFormat
from stitchwork.core.utils.logging import get_logger

from .fallback import PartialResult
from .models import Classification, ContinuationSession, MergeResult

if TYPE_CHECKING:
    from loguru import Logger

FAILURE_FIELDS = ("error_class", "merge_error", "incomplete_after")


@dataclass(frozen=True)
class ContinuationMetadata:
    was_continued: bool
    continuation_count: int
    output_format: str
    chunk_sizes: list[int] = field(default_factory=list)
    """UTF-8 byte size of each chunk."""
    truncation_points: list[int] = field(default_factory=list)
    """Character offsets into the raw joined content where a length-truncated chunk ended."""
    stop_reasons: list[str] = field(default_factory=list)
    merge_strategy_used: str = ""
    merge_success: bool = True
    total_output_tokens: int = 0
    total_cost_estimate: float = 0.0
    error_class: str | None = None
    merge_error: dict[str, Any] | None = None
    incomplete_after: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for logging and JSON output; failure fields only when the merge failed."""
        data = asdict(self)
        if self.merge_success:
            for key in FAILURE_FIELDS:
                data.pop(key)
        return data


class MetadataRecorder:
    """Fold the chunks of one session and its merge outcome into a metadata record."""

    def __init__(self, model: str | None = None, log: Logger | None = None):
        self.model = model
        self.log = log or get_logger("metadata")

    def record(
        self,
        session: ContinuationSession,
        merge_result: MergeResult,
        output_format: OutputFormat | str,
        partial: PartialResult | None = None,
    ) -> ContinuationMetadata:
        chunks = session.chunks
        truncation_points: list[int] = []
        offset = 0
        for chunk in chunks:
            offset += len(chunk.content)
            if chunk.classification is Classification.LENGTH_TRUNCATED:
                truncation_points.append(offset)

        total_output_tokens = sum(chunk.output_tokens for chunk in chunks)
        cost = sum(estimate_cost(self.model, chunk.output_tokens) for chunk in chunks)
        fmt = output_format.value if isinstance(output_format, OutputFormat) else str(output_format)

        failed = not merge_result.success
        metadata = ContinuationMetadata(
            was_continued=len(chunks) > 1,
            continuation_count=session.continuation_count,
            output_format=fmt,
            chunk_sizes=[chunk.byte_size for chunk in chunks],
            truncation_points=truncation_points,
            stop_reasons=[chunk.stop_reason or "unknown" for chunk in chunks],
            merge_strategy_used=merge_result.strategy,
            merge_success=merge_result.success,
            total_output_tokens=total_output_tokens,
            total_cost_estimate=round(cost, 6),
            error_class=partial.error_class if failed and partial else None,
            merge_error=partial.merge_error if failed and partial else None,
            incomplete_after=partial.incomplete_after if failed and partial else None,
        )
        self.log.debug(
            f"Session metadata: {len(chunks)} chunks, {total_output_tokens} output tokens, "
            f"merge_success={metadata.merge_success}"
        )
        return metadata
