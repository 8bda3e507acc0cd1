"""CSV-style tabular merging.

Chunks are stitched back into one text before anything is parsed: a chunk
that ends mid-row (odd quote parity, or no trailing newline) is joined
directly to the next one so the split row is re-read whole.  The joined text
is then read with the stdlib ``csv`` reader in strict mode and the raw text
of every accepted row is kept verbatim, so a well-formed table that was split
anywhere comes back byte-for-byte identical.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Sequence

from stitchwork.core.exceptions import MergeError
from stitchwork.core.types import MergerKind

from ..models import MergeErrorInfo, MergeResult
from .base import ChunkLayout, ChunkLike, Merger

DELIMITERS = (",", "\t", ";", "|")
_NEWLINE = re.compile("\n")


def count_unquoted(line: str, char: str) -> int:
    """Occurrences of *char* in *line* outside double-quoted sections."""
    count = 0
    in_quotes = False
    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == char and not in_quotes:
            count += 1
    return count


def sniff_delimiter(line: str) -> str:
    """Pick the delimiter that splits *line* into the most fields; comma by default."""
    best, best_count = ",", 0
    for delimiter in DELIMITERS:
        count = count_unquoted(line, delimiter)
        if count > best_count:
            best, best_count = delimiter, count
    return best


def has_odd_quotes(text: str) -> bool:
    """True when a quoted field is still open at the end of *text*."""
    return text.count('"') % 2 == 1


def has_incomplete_row(text: str, delimiter: str = ",") -> bool:
    """Unbalanced quotes, or a trailing separator with no value after it."""
    return has_odd_quotes(text) or text.rstrip(" ").endswith(delimiter)


def last_row_fragment(text: str) -> str:
    """The last row of *text*, which may be incomplete.

    Newlines inside quoted fields do not start a new row.  When the text ends
    on a row boundary the last complete row is returned instead.
    """
    row_starts = [0]
    in_quotes = False
    for i, ch in enumerate(text):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "\n" and not in_quotes:
            row_starts.append(i + 1)
    tail = text[row_starts[-1] :]
    if tail.strip() or len(row_starts) == 1:
        return tail
    return text[row_starts[-2] : row_starts[-1]].rstrip("\r\n")


def _field_count(line: str, delimiter: str) -> int:
    return len(next(csv.reader([line], delimiter=delimiter), []))


class TabularMerger(Merger):
    """Merge CSV (or TSV, semicolon, pipe separated) chunks under one header."""

    kind = MergerKind.TABULAR

    def merge(self, chunks: Sequence[ChunkLike]) -> MergeResult:
        parts = self.content_chunks(chunks)
        if not parts:
            raise MergeError("No tabular content to merge", kind="empty")

        first = parts[0].content.lstrip("\r\n")
        # The header itself may be split across chunks
        joined = first + "".join(chunk.content for chunk in parts[1:])
        header_line = joined.split("\n", 1)[0].rstrip("\r")
        delimiter = sniff_delimiter(header_line)
        width = _field_count(header_line, delimiter)

        texts = [first]
        buffer = first
        for chunk in parts[1:]:
            piece = chunk.content
            if not buffer.endswith("\n") and not has_odd_quotes(buffer):
                if self._needs_row_break(buffer, piece, delimiter, width):
                    self.log.debug(f"Chunk {chunk.index} starts a new row; inserting line break")
                    piece = "\n" + piece
            texts.append(piece)
            buffer += piece

        return self._assemble(ChunkLayout(parts, texts), delimiter, len(parts))

    @staticmethod
    def _needs_row_break(buffer: str, piece: str, delimiter: str, width: int) -> bool:
        """Both sides of the boundary are whole rows and gluing them would break the width."""
        if piece.startswith(("\n", "\r")):
            return False
        last_line = buffer[buffer.rfind("\n") + 1 :]
        first_line = piece.split("\n", 1)[0]
        if _field_count(last_line, delimiter) != width or _field_count(first_line, delimiter) != width:
            return False
        return _field_count(last_line + first_line, delimiter) != width

    def _assemble(self, layout: ChunkLayout, delimiter: str, chunk_count: int) -> MergeResult:
        text = layout.text
        line_starts = [0] + [m.end() for m in _NEWLINE.finditer(text)]

        def offset_of(line_number: int) -> int:
            return line_starts[line_number] if line_number < len(line_starts) else len(text)

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
        header: list[str] | None = None
        kept: list[str] = []
        rows = 0
        duplicate_headers = 0
        error: MergeErrorInfo | None = None

        while True:
            start_line = reader.line_num
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                if header is None:
                    raise MergeError(f"Could not parse header row: {e}", chunk_index=layout.chunk_at(0)) from e
                error = MergeErrorInfo(
                    kind="row_parse",
                    message=f"Row at line {start_line + 1} could not be parsed: {e}",
                    chunk_index=layout.chunk_at(offset_of(start_line)),
                    error_class=type(e).__name__,
                )
                break

            raw = text[offset_of(start_line) : offset_of(reader.line_num)]
            if not any(field.strip() for field in row):
                continue
            if header is None:
                header = row
                kept.append(raw)
                continue
            if [f.strip().lower() for f in row] == [f.strip().lower() for f in header]:
                duplicate_headers += 1
                continue
            if len(row) != len(header):
                error = MergeErrorInfo(
                    kind="row_mismatch",
                    message=f"Row at line {start_line + 1} has {len(row)} fields, expected {len(header)}",
                    chunk_index=layout.chunk_at(offset_of(start_line)),
                )
                break
            kept.append(raw)
            rows += 1

        if header is None:
            raise MergeError("No header row found", kind="empty")

        if error:
            self.log.warning(f"Tabular merge stopped after {rows} rows: {error.message}")
        else:
            self.log.debug(f"Merged {rows} rows from {chunk_count} chunks")

        return MergeResult(
            content="".join(kept),
            success=error is None,
            error=error,
            strategy=self.name,
            details={"rows": rows, "delimiter": delimiter, "duplicate_headers": duplicate_headers},
        )
