"""Merger selection.

Precedence: an explicit ``merge_strategy`` override, then an explicit
``output_format``, then the format detector for ``auto``.  Anything the
detector is not confident about is merged by plain concatenation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from stitchwork.core.config_schema import ContinuationConfig
from stitchwork.core.types import MergerKind, OutputFormat
from stitchwork.core.utils.logging import get_logger

from .detector import FormatDetector
from .mergers import ConcatenationMerger, FirstChunkMerger, JsonMerger, MarkupMerger, Merger, TabularMerger

if TYPE_CHECKING:
    from loguru import Logger

MERGERS: dict[MergerKind, type[Merger]] = {
    MergerKind.TABULAR: TabularMerger,
    MergerKind.MARKUP: MarkupMerger,
    MergerKind.JSON: JsonMerger,
    MergerKind.CONCATENATION: ConcatenationMerger,
    MergerKind.FIRST_CHUNK: FirstChunkMerger,
}

FORMAT_MERGERS: dict[OutputFormat, MergerKind] = {
    OutputFormat.TABULAR: MergerKind.TABULAR,
    OutputFormat.MARKUP: MergerKind.MARKUP,
    OutputFormat.JSON: MergerKind.JSON,
    OutputFormat.PLAIN: MergerKind.CONCATENATION,
}


@dataclass(frozen=True)
class MergerSelection:
    """The merger picked for a session and why."""

    kind: MergerKind
    merger: Merger
    reason: str
    detected_format: OutputFormat | None = None
    confidence: float | None = None

    @property
    def output_format(self) -> OutputFormat:
        """Format the merged content is reported as."""
        if self.detected_format is not None:
            return self.detected_format
        for fmt, kind in FORMAT_MERGERS.items():
            if kind is self.kind:
                return fmt
        return OutputFormat.PLAIN


class MergerFactory:
    """Pick the merger for a session."""

    def __init__(self, detector: FormatDetector | None = None, log: Logger | None = None):
        self.log = log or get_logger("factory")
        self.detector = detector or FormatDetector(log=self.log)

    def create(self, kind: MergerKind) -> Merger:
        """A fresh merger instance for *kind*."""
        return MERGERS[MergerKind(kind)](log=self.log)

    def choose(self, config: ContinuationConfig, content: str = "") -> MergerSelection:
        if config.merge_strategy is not None:
            selection = MergerSelection(
                kind=config.merge_strategy,
                merger=self.create(config.merge_strategy),
                reason="merge_strategy override",
            )
        elif config.output_format is not OutputFormat.AUTO:
            kind = FORMAT_MERGERS[config.output_format]
            selection = MergerSelection(
                kind=kind,
                merger=self.create(kind),
                reason=f"output_format={config.output_format.value}",
                detected_format=config.output_format,
            )
        else:
            detection = self.detector.detect(content)
            kind = FORMAT_MERGERS[detection.format]
            reason = (
                f"detected {detection.format.value} ({detection.confidence:.2f})"
                if not detection.is_plain
                else "no confident format match"
            )
            selection = MergerSelection(
                kind=kind,
                merger=self.create(kind),
                reason=reason,
                detected_format=detection.format,
                confidence=detection.confidence,
            )

        self.log.info(f"Selected {selection.kind.value} merger: {selection.reason}")
        return selection

    def select(self, config: ContinuationConfig, content: str = "") -> Merger:
        return self.choose(config, content).merger
