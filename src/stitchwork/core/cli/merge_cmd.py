"""stitchwork merge — reassemble chunks saved from earlier responses."""

from __future__ import annotations

from pathlib import Path

import click

from .common import continuation_options


@click.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--model", default=None, help="Model the chunks came from, for cost estimation.")
@continuation_options
@click.pass_context
def merge(
    ctx: click.Context,
    files: tuple[Path, ...],
    model: str | None,
    show_metadata: bool,
    output_format: str | None,
    max_attempts: int | None,
    on_failure: str | None,
    merge_strategy: str | None,
) -> None:
    """Merge chunk FILES, in the order given, into one document."""
    from stitchwork.continuation import ContinuationRunner
    from stitchwork.core.cli.common import (
        build_continuation_config,
        echo_content,
        echo_metadata,
        load_config,
        setup_cli_logging,
    )
    from stitchwork.core.exceptions import ContinuationError

    config = load_config(ctx)
    setup_cli_logging(ctx, config)
    continuation = build_continuation_config(
        config,
        output_format=output_format,
        max_attempts=max_attempts,
        on_failure=on_failure,
        merge_strategy=merge_strategy,
    )

    contents = [path.read_text(encoding="utf-8") for path in files]
    try:
        result = ContinuationRunner(config=continuation).merge_chunks(contents, model=model)
    except ContinuationError as e:
        raise click.ClickException(str(e))

    echo_content(result.content)
    if show_metadata:
        echo_metadata(result.metadata)
