"""JSON merging.

Continuation chunks of a JSON document are plain substrings of it, so the
merge is mostly concatenation followed by repair:

1. strip markdown code fences the model wrapped around chunks,
2. concatenate, dropping the line break a chunk sometimes opens with when
   the previous one stopped inside a string,
3. turn single-quoted strings into double-quoted ones and escape raw control
   characters inside strings,
4. if the text stops mid-token (inside a string, number, literal or key),
   trim it back to the last safe structural boundary,
5. drop trailing commas, fix stray or mismatched closers and close whatever
   is still open,
6. parse once with ``json.loads``.  Only that parse decides success.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from stitchwork.core.exceptions import MergeError
from stitchwork.core.types import MergerKind

from ..models import MergeResult
from .base import ChunkLayout, ChunkLike, Merger

_LEADING_FENCE = re.compile(r"^\s*```[\w-]*[ \t]*(\r?\n|$)")
_TRAILING_FENCE = re.compile(r"(\r?\n)?[ \t]*```\s*$")
_CLOSERS = {"{": "}", "[": "]"}
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b", "\f": "\\f"}
_TOKEN_END = frozenset(',:{}[]"')


def strip_fences(text: str) -> str:
    """Remove a ```json opener and a closing ``` around one chunk."""
    text = _LEADING_FENCE.sub("", text, count=1)
    return _TRAILING_FENCE.sub("", text, count=1)


@dataclass
class _Level:
    char: str
    key: str | None = None
    in_value: bool = False


@dataclass
class JsonScan:
    """Structural state at the end of a (possibly truncated) JSON text."""

    levels: list[_Level] = field(default_factory=list)
    in_string: bool = False
    safe_end: int = 0
    """Offset just past the last point the text could be cut and closed cleanly."""
    root_end: int | None = None
    """Offset just past the root's closing bracket, once it has closed."""
    opened: int = 0
    closed: int = 0

    @property
    def depth(self) -> int:
        return len(self.levels)

    @property
    def path(self) -> list[str]:
        """Open brackets from the root down, with the key each object is inside."""
        parts: list[str] = []
        for level in self.levels:
            parts.append(level.char)
            if level.char == "{" and level.in_value and level.key is not None:
                parts.append(json.dumps(level.key))
        return parts


def scan_json(text: str) -> JsonScan:
    """Walk *text* tracking open brackets outside string literals."""
    scan = JsonScan()
    levels = scan.levels
    escape = False
    string_start = 0
    string_is_key = False
    in_token = False

    for i, ch in enumerate(text):
        if scan.in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                scan.in_string = False
                if string_is_key:
                    levels[-1].key = text[string_start + 1 : i]
                else:
                    scan.safe_end = i + 1
            continue

        if in_token:
            if not (ch.isspace() or ch in _TOKEN_END):
                continue
            in_token = False
            scan.safe_end = i

        if ch.isspace():
            continue
        if ch == '"':
            scan.in_string = True
            string_start = i
            string_is_key = bool(levels) and levels[-1].char == "{" and not levels[-1].in_value
        elif ch in "{[":
            levels.append(_Level(ch))
            scan.opened += 1
            scan.safe_end = i + 1
        elif ch in "}]":
            if levels:
                levels.pop()
            scan.closed += 1
            scan.safe_end = i + 1
            if not levels:
                scan.root_end = i + 1
                break
        elif ch == ",":
            if levels and levels[-1].char == "{":
                levels[-1].in_value = False
                levels[-1].key = None
            scan.safe_end = i + 1
        elif ch == ":":
            if levels:
                levels[-1].in_value = True
        else:
            in_token = True

    return scan


def normalize_strings(text: str) -> tuple[str, list[str]]:
    """Convert single-quoted strings and escape raw control characters in strings.

    An unterminated single-quoted string is left open so the tail trimming
    can still see it.
    """
    out: list[str] = []
    repairs: list[str] = []
    quote: str | None = None
    escape = False
    last_structural = ""

    for ch in text:
        if quote is None:
            if ch == '"':
                quote = '"'
                out.append(ch)
            elif ch == "'" and last_structural in ("", "{", "[", ",", ":"):
                quote = "'"
                out.append('"')
                if "single_quotes" not in repairs:
                    repairs.append("single_quotes")
            else:
                out.append(ch)
                if not ch.isspace():
                    last_structural = ch
            continue

        if escape:
            escape = False
            if quote == "'" and ch == "'":
                out[-1] = "'"
            else:
                out.append(ch)
        elif ch == "\\":
            escape = True
            out.append(ch)
        elif ch == quote:
            quote = None
            out.append('"')
            last_structural = '"'
        elif quote == "'" and ch == '"':
            out.append('\\"')
        elif ch in _CONTROL_ESCAPES or ord(ch) < 0x20:
            out.append(_CONTROL_ESCAPES.get(ch, f"\\u{ord(ch):04x}"))
            if "control_characters" not in repairs:
                repairs.append("control_characters")
        else:
            out.append(ch)

    return "".join(out), repairs


def _next_significant(text: str, start: int) -> str:
    for ch in text[start:]:
        if not ch.isspace():
            return ch
    return ""


def close_json(text: str) -> tuple[str, list[str]]:
    """Drop trailing commas, fix closers and balance whatever is still open."""
    out: list[str] = []
    repairs: list[str] = []
    stack: list[str] = []
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in "{[":
            stack.append(ch)
            out.append(ch)
        elif ch in "}]":
            if not stack:
                repairs.append("stray_closer")
                continue
            expected = _CLOSERS[stack.pop()]
            if ch != expected:
                repairs.append("mismatched_closer")
            out.append(expected)
        elif ch == "," and _next_significant(text, i + 1) in ("}", "]", ""):
            repairs.append("trailing_comma")
        else:
            out.append(ch)

    if in_string:
        out.append('"')
        repairs.append("unterminated_string")

    repaired = "".join(out).rstrip()
    if repaired.endswith(":"):
        repaired += " null"
        repairs.append("dangling_key")
    if stack:
        repaired += "".join(_CLOSERS[c] for c in reversed(stack))
        repairs.append("closed_brackets")
    return repaired, repairs


class JsonMerger(Merger):
    """Merge chunks of one JSON document and repair the truncated tail."""

    kind = MergerKind.JSON

    def merge(self, chunks: Sequence[ChunkLike]) -> MergeResult:
        parts = self.content_chunks(chunks)
        if not parts:
            raise MergeError("No JSON content to merge", kind="empty")

        repairs: list[str] = []
        texts: list[str] = []
        buffer = ""
        for chunk in parts:
            piece = strip_fences(chunk.content)
            if buffer and piece[:1] in ("\n", "\r") and scan_json(buffer).in_string:
                piece = piece.lstrip("\r\n")
                repairs.append("boundary_newline")
            texts.append(piece)
            buffer += piece

        layout = ChunkLayout(parts, texts)
        text, string_repairs = normalize_strings(layout.text.strip())
        repairs.extend(string_repairs)

        root = text[:1]
        if root not in _CLOSERS:
            raise MergeError(
                f"JSON content must start with '{{' or '[', got {root!r}",
                chunk_index=layout.chunk_at(0),
                kind="invalid_root",
            )

        scan = scan_json(text)
        if scan.root_end is not None:
            if text[scan.root_end :].strip():
                repairs.append("trailing_text")
            text = text[: scan.root_end]
        elif text[scan.safe_end :].strip():
            self.log.debug(f"Trimming {len(text) - scan.safe_end} characters of truncated tail")
            text = text[: scan.safe_end]
            repairs.append("trimmed_tail")

        repaired, structural_repairs = close_json(text)
        repairs.extend(structural_repairs)

        try:
            json.loads(repaired)
        except json.JSONDecodeError as e:
            raise MergeError(
                f"Merged JSON is invalid: {e.msg} at position {e.pos}",
                chunk_index=layout.chunk_at(min(e.pos, max(len(layout.text) - 1, 0))),
                kind="invalid_json",
            ) from e

        if repairs:
            self.log.debug(f"JSON repairs applied: {', '.join(repairs)}")
        return MergeResult(
            content=repaired,
            success=True,
            strategy=self.name,
            details={"root": "object" if root == "{" else "array", "repairs": repairs},
        )
