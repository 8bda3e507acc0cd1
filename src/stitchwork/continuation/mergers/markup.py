"""Markdown merging.

The chunks are re-split into lines, carrying a partial last line over to the
next chunk so a line cut mid-word is rejoined.  The first line a later chunk
starts on its own is its boundary line: models that resume a truncated
document tend to repeat the heading or table header they were in, or restart
a numbered list at 1, and those repetitions are repaired only there.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from stitchwork.core.exceptions import MergeError
from stitchwork.core.types import MergerKind

from ..models import Chunk, MergeErrorInfo, MergeResult
from .base import ChunkLike, Merger

_FENCE = re.compile(r"^\s*(```|~~~)")
_HEADING = re.compile(r"^\s{0,3}(#{1,6})\s+(.*?)[\s#]*$")
_ORDERED_ITEM = re.compile(r"^(\d+)([.)])(\s+)")
_SEPARATOR_CHARS = frozenset("|:- \t\r")


def split_cells(row: str) -> list[str]:
    """Cells of a pipe table row, outer pipes removed."""
    text = row.strip()
    if text.startswith("|"):
        text = text[1:]
    if text.endswith("|"):
        text = text[:-1]
    return [cell.strip() for cell in text.split("|")]


def is_separator_row(row: str) -> bool:
    text = row.strip()
    return "|" in text and "-" in text and set(text) <= _SEPARATOR_CHARS


def _same_row(cells: list[str], other: list[str]) -> bool:
    return [c.lower() for c in cells] == [c.lower() for c in other]


@dataclass(frozen=True)
class _Line:
    text: str
    chunk_index: int
    boundary: bool = False


def split_lines(parts: Sequence[Chunk]) -> list[_Line]:
    """Lines of the concatenated chunks, each tagged with the chunk it started in."""
    lines: list[_Line] = []
    boundaries_seen: set[int] = set()

    def emit(text: str, origin: int, position: int, fresh: bool) -> None:
        boundary = position > 0 and fresh and bool(text.strip()) and position not in boundaries_seen
        if boundary:
            boundaries_seen.add(position)
        lines.append(_Line(text, origin, boundary))

    pending = ("", parts[0].index, 0, False)
    for position, chunk in enumerate(parts):
        segments = chunk.content.split("\n")
        for i, segment in enumerate(segments):
            if i == 0 and pending[0]:
                text, origin, start, fresh = pending
                current = (text + segment, origin, start, fresh)
            else:
                current = (segment, chunk.index, position, True)
            if i == len(segments) - 1:
                pending = current
            else:
                emit(*current)
    emit(*pending)
    return lines


class MarkupMerger(Merger):
    """Merge markdown chunks, repairing the usual continuation artefacts."""

    kind = MergerKind.MARKUP

    def merge(self, chunks: Sequence[ChunkLike]) -> MergeResult:
        parts = self.content_chunks(chunks)
        if not parts:
            raise MergeError("No markup content to merge", kind="empty")

        out: list[str] = []
        error: MergeErrorInfo | None = None
        stats = {"duplicate_headings": 0, "duplicate_table_headers": 0, "renumbered_items": 0}

        fence: str | None = None
        fence_chunk = parts[0].index
        table_header: list[str] | None = None
        skip_separator = False
        # Header of a table that blank lines just closed, and where those blanks start in out
        held_header: list[str] | None = None
        held_from = 0
        headings: set[tuple[int, str]] = set()
        list_last: int | None = None
        list_offset = 0

        for line in split_lines(parts):
            text = line.text
            stripped = text.strip()

            if fence:
                out.append(text)
                if stripped.startswith(fence) and not stripped.lstrip("`~").strip():
                    fence = None
                continue

            opener = _FENCE.match(text)
            if opener:
                fence = opener.group(1)
                fence_chunk = line.chunk_index
                table_header, held_header, list_last, list_offset = None, None, None, 0
                out.append(text)
                continue

            if stripped.startswith("|"):
                list_last, list_offset = None, 0
                cells = split_cells(stripped)
                if table_header is None:
                    if line.boundary and held_header and _same_row(cells, held_header):
                        stats["duplicate_table_headers"] += 1
                        self.log.debug(f"Dropping repeated table header at chunk {line.chunk_index}")
                        del out[held_from:]
                        table_header, skip_separator, held_header = held_header, True, None
                        continue
                    table_header, skip_separator, held_header = cells, False, None
                    out.append(text)
                    continue
                if is_separator_row(stripped):
                    if skip_separator:
                        skip_separator = False
                        continue
                    out.append(text)
                    continue
                skip_separator = False
                if _same_row(cells, table_header):
                    stats["duplicate_table_headers"] += 1
                    skip_separator = True
                    continue
                if len(cells) != len(table_header):
                    error = MergeErrorInfo(
                        kind="table_mismatch",
                        message=f"Table row has {len(cells)} cells, expected {len(table_header)}",
                        chunk_index=line.chunk_index,
                    )
                    break
                out.append(text)
                continue

            if not stripped:
                if table_header is not None:
                    held_header, held_from = table_header, len(out)
            else:
                held_header = None
            table_header, skip_separator = None, False

            heading = _HEADING.match(text)
            if heading:
                key = (len(heading.group(1)), heading.group(2).strip().lower())
                list_last, list_offset = None, 0
                if line.boundary and key in headings:
                    stats["duplicate_headings"] += 1
                    self.log.debug(f"Dropping repeated heading {stripped!r} at chunk {line.chunk_index}")
                    continue
                headings.add(key)
                out.append(text)
                continue

            item = _ORDERED_ITEM.match(text)
            if item:
                number = int(item.group(1))
                if line.boundary and list_last is not None and number + list_offset <= list_last:
                    list_offset = list_last + 1 - number
                if list_offset:
                    text = f"{number + list_offset}{item.group(2)}{item.group(3)}{text[item.end():]}"
                    stats["renumbered_items"] += 1
                list_last = number + list_offset
                out.append(text)
                continue

            if stripped and not text[:1].isspace():
                list_last, list_offset = None, 0
            out.append(text)

        if error is None and fence:
            error = MergeErrorInfo(
                kind="unterminated_fence",
                message=f"Code fence opened in chunk {fence_chunk} was never closed",
                chunk_index=fence_chunk,
            )
            if out and out[-1] == "":
                out[-1] = fence
                out.append("")
            else:
                out.append(fence)

        if error:
            self.log.warning(f"Markup merge incomplete: {error.message}")

        return MergeResult(
            content="\n".join(out),
            success=error is None,
            error=error,
            strategy=self.name,
            details=stats,
        )
