"""Common plumbing shared by every merger."""

from __future__ import annotations

from abc import ABC, abstractmethod
from bisect import bisect_right
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from stitchwork.core.types import MergerKind
from stitchwork.core.utils.logging import get_logger

from ..models import Chunk, MergeResult

if TYPE_CHECKING:
    from loguru import Logger

ChunkLike = Chunk | str | None


def normalize_chunks(chunks: Iterable[ChunkLike]) -> list[Chunk]:
    """Accept chunks or bare strings; ``None`` entries are dropped."""
    normalized: list[Chunk] = []
    for position, chunk in enumerate(chunks):
        if chunk is None:
            continue
        if isinstance(chunk, Chunk):
            normalized.append(chunk)
        else:
            normalized.append(Chunk.from_text(position, str(chunk)))
    return normalized


class ChunkLayout:
    """Concatenated text of a chunk sequence plus where each chunk starts in it."""

    def __init__(self, chunks: Sequence[Chunk], texts: Sequence[str] | None = None):
        self.indices: list[int] = []
        self.starts: list[int] = []
        parts: list[str] = []
        offset = 0
        for chunk, text in zip(chunks, texts if texts is not None else [c.content for c in chunks], strict=True):
            self.indices.append(chunk.index)
            self.starts.append(offset)
            parts.append(text)
            offset += len(text)
        self.text = "".join(parts)

    def chunk_at(self, offset: int) -> int | None:
        """Index of the chunk that contributed the character at *offset*."""
        if not self.starts:
            return None
        position = bisect_right(self.starts, max(offset, 0)) - 1
        return self.indices[max(position, 0)]


class Merger(ABC):
    """Reassemble ordered chunks into one document.

    Implementations return a MergeResult for anything they can assemble,
    including partial success, and raise MergeError only when they cannot
    produce a document at all.
    """

    kind: MergerKind

    def __init__(self, log: Logger | None = None):
        self.log = log or get_logger(f"merger.{self.kind.value}")

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    def merge(self, chunks: Sequence[ChunkLike]) -> MergeResult: ...

    @staticmethod
    def content_chunks(chunks: Sequence[ChunkLike]) -> list[Chunk]:
        """Chunks worth merging, in order; empty when no chunk has any text.

        Whitespace-only chunks are kept when they hold a line break, since
        that break may be the one ending a row or line of the document.
        """
        parts = [c for c in normalize_chunks(chunks) if not c.is_blank or "\n" in c.content]
        return parts if any(not c.is_blank for c in parts) else []
