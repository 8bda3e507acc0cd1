"""stitchwork detect — report which format a document looks like."""

from __future__ import annotations

import click


@click.command()
@click.argument("file", type=click.File("r", encoding="utf-8"))
def detect(file) -> None:  # type: ignore[no-untyped-def]
    """Score FILE ('-' for stdin) against the structured formats."""
    from stitchwork.continuation.detector import FormatDetector

    detection = FormatDetector().detect(file.read())
    click.echo(f"format: {detection.format.value}")
    click.echo(f"confidence: {detection.confidence:.2f}")
    for fmt, score in detection.scores.items():
        click.echo(f"  {fmt.value}: {score:.2f}")
