"""Confidence-scored format detection for accumulated content.

Each candidate format gets an independent score in [0, 1].  The best score
wins if it reaches the threshold; ties go to json, then tabular, then markup.
"""

from __future__ import annotations

import csv
import json
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stitchwork.core.types import OutputFormat
from stitchwork.core.utils.logging import get_logger

from .mergers.json_merger import scan_json, strip_fences
from .mergers.tabular import DELIMITERS

if TYPE_CHECKING:
    from loguru import Logger

CONFIDENCE_THRESHOLD = 0.5
TIE_BREAK_ORDER = (OutputFormat.JSON, OutputFormat.TABULAR, OutputFormat.MARKUP)

_JSON_VALUE_START = re.compile(r"""[\s{\["'\-\d tfn\]}]""")
_HEADING = re.compile(r"^\s{0,3}#{1,6}\s+\S")
_FENCE = re.compile(r"^\s*(```|~~~)")
_LIST_ITEM = re.compile(r"^\s*([-*+]|\d+[.)])\s+\S")
_QUOTE = re.compile(r"^\s*>")
_SENTENCE_END = re.compile(r"[A-Za-z][.!?][\"')]?$")
_INLINE = re.compile(r"\*\*[^*]+\*\*|__[^_]+__|(?<![*\w])\*[^*\s][^*]*\*(?!\*)|`[^`]+`|\[[^\]]+\]\([^)]+\)")


@dataclass(frozen=True)
class Detection:
    format: OutputFormat
    confidence: float
    scores: dict[OutputFormat, float] = field(default_factory=dict, compare=False)

    @property
    def is_plain(self) -> bool:
        return self.format is OutputFormat.PLAIN


def _looks_like_json(text: str) -> bool:
    return text.lstrip()[:1] in ("{", "[")


def score_json(content: str) -> float:
    text = strip_fences(content).strip()
    if not _looks_like_json(text):
        return 0.0
    if text[0] == "[" and len(text) > 1 and not _JSON_VALUE_START.match(text[1]):
        # Markdown link or checkbox, not an array
        return 0.2
    try:
        json.loads(text)
        return 0.95
    except json.JSONDecodeError:
        pass
    scan = scan_json(text)
    if scan.root_end is not None:
        return 0.9 if not text[scan.root_end :].strip() else 0.3
    if not scan.opened:
        return 0.0
    return 0.5 + 0.4 * min(scan.closed / scan.opened, 1.0)


def _is_markdown_table_row(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("|") or stripped.count(" | ") >= 2


def _split(line: str, delimiter: str) -> list[str]:
    return next(csv.reader([line], delimiter=delimiter), [])


def _is_prose_field(value: str) -> bool:
    value = value.strip()
    return len(value) > 40 or len(value.split()) > 4 or bool(_SENTENCE_END.search(value))


def _score_delimiter(lines: list[str], delimiter: str) -> float:
    rows = [_split(line, delimiter) for line in lines]
    counts = [len(row) for row in rows]

    dominant, _ = Counter(counts).most_common(1)[0]
    if dominant < 2:
        return 0.0
    if len(rows) == 1:
        # A lone delimited line is never enough evidence on its own
        return 0.35

    fraction = sum(1 for c in counts if c == dominant) / len(counts)
    score = 0.3 + 0.5 * fraction

    header = rows[0]
    has_header = len(header) == dominant and all(
        h.strip() and not h.strip().replace(".", "").isdigit() and not _is_prose_field(h) for h in header
    )
    if has_header:
        score += 0.15

    prose_rows = sum(1 for row in rows if any(_is_prose_field(f) for f in row)) / len(rows)
    trailing = [f for row in rows for f in row[1:]]
    spaced = sum(1 for f in trailing if f.startswith(" ")) / len(trailing) if trailing else 0.0
    score *= (1 - prose_rows) * (1 - 0.5 * spaced)

    if not has_header or len(rows) < 3:
        # Needs a header plus at least two data rows to cross the threshold
        score = min(score, 0.45)
    return min(score, 0.95)


def score_tabular(content: str) -> float:
    lines = [line.rstrip("\r") for line in content.split("\n") if line.strip()]
    if not lines:
        return 0.0
    table_like = sum(1 for line in lines if _is_markdown_table_row(line)) / len(lines)
    candidates = [d for d in DELIMITERS if d != "|" or table_like == 0]

    best = max(_score_delimiter(lines, d) for d in candidates)
    if _looks_like_json(content):
        best *= 0.3
    return best


def score_markup(content: str) -> float:
    lines = [line for line in content.split("\n") if line.strip()]
    if not lines:
        return 0.0
    strong = weak = 0
    in_fence = False
    for line in lines:
        if _FENCE.match(line):
            in_fence = not in_fence
            strong += 1
        elif in_fence or _HEADING.match(line) or _is_markdown_table_row(line):
            strong += 1
        elif _LIST_ITEM.match(line) or _QUOTE.match(line) or _INLINE.search(line):
            weak += 1

    strong_density = strong / len(lines)
    weak_density = weak / len(lines)
    if strong:
        return min(0.95, 0.45 + 0.5 * strong_density + 0.2 * weak_density)
    if weak:
        return min(0.5, 0.2 + 0.3 * weak_density)
    return 0.0


_SCORERS = {
    OutputFormat.JSON: score_json,
    OutputFormat.TABULAR: score_tabular,
    OutputFormat.MARKUP: score_markup,
}


class FormatDetector:
    """Score content against the structured formats and pick the best match."""

    def __init__(self, threshold: float = CONFIDENCE_THRESHOLD, log: Logger | None = None):
        self.threshold = threshold
        self.log = log or get_logger("detector")

    def detect(self, content: str | None) -> Detection:
        if not content or not content.strip():
            return Detection(OutputFormat.PLAIN, 0.0)

        scores = {fmt: round(_SCORERS[fmt](content), 4) for fmt in TIE_BREAK_ORDER}
        best = max(TIE_BREAK_ORDER, key=lambda fmt: scores[fmt])
        confidence = scores[best]
        self.log.debug(
            "Format scores: " + ", ".join(f"{fmt.value}={score:.2f}" for fmt, score in scores.items())
        )

        if confidence < self.threshold:
            return Detection(OutputFormat.PLAIN, 0.0, scores)
        return Detection(best, confidence, scores)
