"""Degrade-on-failure merging.

Level 0 is the format merger picked for the session, level 1 joins the raw
chunks, level 2 keeps only the first chunk with content.  The first level
that does not raise wins; anything past level 0 is reported as a failed
merge carrying the level-0 error, so callers can tell the output was
recovered rather than properly merged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from stitchwork.core.exceptions import MergeError
from stitchwork.core.utils.logging import get_logger

from .mergers import ChunkLike, ConcatenationMerger, FirstChunkMerger, Merger, normalize_chunks
from .models import MergeErrorInfo, MergeResult

if TYPE_CHECKING:
    from loguru import Logger

FALLBACK_NAMES = ("format merge", "concatenation", "first chunk only")


def error_info(exc: BaseException) -> MergeErrorInfo:
    """Structured description of an exception raised by a merger."""
    if isinstance(exc, MergeError):
        return MergeErrorInfo(
            kind=exc.kind, message=str(exc), chunk_index=exc.chunk_index, error_class=type(exc).__name__
        )
    return MergeErrorInfo(kind="merge_failed", message=str(exc) or repr(exc), error_class=type(exc).__name__)


class FallbackChain:
    def __init__(self, log: Logger | None = None):
        self.log = log or get_logger("fallback")

    def levels(self, merger: Merger) -> list[Merger]:
        return [merger, ConcatenationMerger(log=self.log), FirstChunkMerger(log=self.log)]

    def merge(self, merger: Merger, chunks: Sequence[ChunkLike]) -> MergeResult:
        primary_error: MergeErrorInfo | None = None
        levels = self.levels(merger)

        for level, candidate in enumerate(levels):
            try:
                result = candidate.merge(chunks)
            except Exception as e:
                info = error_info(e)
                self.log.warning(f"Level {level} ({FALLBACK_NAMES[level]}) failed: {info.error_class}: {info.message}")
                if primary_error is None:
                    primary_error = info
                continue

            if level == 0:
                return result
            self.log.info(f"Recovered with {FALLBACK_NAMES[level]} (fallback level {level})")
            return replace(result, success=False, fallback_level=level, error=primary_error)

        self.log.error("All merge fallback levels failed; returning empty content")
        return MergeResult(
            content="",
            success=False,
            fallback_level=len(levels) - 1,
            error=primary_error,
            strategy=merger.name,
            exhausted=True,
        )


@dataclass(frozen=True)
class PartialResult:
    """Best available output of a session that did not merge cleanly."""

    content: str
    incomplete_after: int | None = None
    """Index of the chunk where assembly stopped; nothing past it is in ``content``."""
    error_class: str | None = None
    merge_error: dict[str, Any] | None = None

    @property
    def is_partial(self) -> bool:
        return self.merge_error is not None


class PartialResultBuilder:
    def __init__(self, log: Logger | None = None):
        self.log = log or get_logger("partial")

    def build(self, result: MergeResult, chunks: Sequence[ChunkLike] = ()) -> PartialResult:
        if result.success:
            return PartialResult(content=result.content)

        content = result.content or ""
        error = result.error or MergeErrorInfo(kind="merge_failed", message="Merge did not succeed")
        merge_error = {
            "kind": error.kind,
            "error_class": error.error_class,
            "error_message": error.message,
            "chunk_index": error.chunk_index,
            "fallback_level": result.fallback_level,
        }
        if result.exhausted:
            merge_error["chunk_count"] = len(normalize_chunks(chunks))

        incomplete_after = self._stop_index(result, error, chunks)
        self.log.warning(
            f"Returning partial result ({len(content)} chars, fallback level {result.fallback_level}): {error.message}"
        )
        return PartialResult(
            content=content,
            incomplete_after=incomplete_after,
            error_class=error.error_class,
            merge_error=merge_error,
        )

    @staticmethod
    def _stop_index(result: MergeResult, error: MergeErrorInfo, chunks: Sequence[ChunkLike]) -> int | None:
        if result.exhausted:
            return None
        if error.chunk_index is not None:
            return error.chunk_index
        if "chunk_index" in result.details:
            return result.details["chunk_index"]
        # Recovered by joining everything, so assembly ran to the last chunk
        parts = [c for c in normalize_chunks(chunks) if not c.is_blank]
        return parts[-1].index if parts else None
