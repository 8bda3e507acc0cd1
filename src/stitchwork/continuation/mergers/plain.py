"""Format-agnostic mergers, also used as the fallback levels."""

from __future__ import annotations

from collections.abc import Sequence

from stitchwork.core.exceptions import MergeError
from stitchwork.core.types import MergerKind

from ..models import MergeResult
from .base import ChunkLike, Merger, normalize_chunks


class ConcatenationMerger(Merger):
    """Join the raw text of every chunk line by line, no structural validation.

    Each chunk starts on a new line unless the one before already ended with
    a line break.
    """

    kind = MergerKind.CONCATENATION

    def merge(self, chunks: Sequence[ChunkLike]) -> MergeResult:
        content = ""
        for chunk in normalize_chunks(chunks):
            if not chunk.content:
                continue
            if content and not content.endswith("\n"):
                content += "\n"
            content += chunk.content
        if not content.strip():
            raise MergeError("No content to concatenate", kind="empty")
        return MergeResult(content=content, success=True, strategy=self.name)


class FirstChunkMerger(Merger):
    """Return the first chunk that has any content."""

    kind = MergerKind.FIRST_CHUNK

    def merge(self, chunks: Sequence[ChunkLike]) -> MergeResult:
        for chunk in normalize_chunks(chunks):
            if not chunk.is_blank:
                return MergeResult(
                    content=chunk.content,
                    success=True,
                    strategy=self.name,
                    details={"chunk_index": chunk.index},
                )
        raise MergeError("No chunk carries any content", kind="empty")
