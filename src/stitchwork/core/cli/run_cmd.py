"""stitchwork run — send a prompt and continue it until complete."""

from __future__ import annotations

import click

from .common import continuation_options


@click.command()
@click.argument("prompt")
@click.option("--model", default=None, help="litellm model string; defaults to llm.model from config.")
@continuation_options
@click.pass_context
def run(
    ctx: click.Context,
    prompt: str,
    model: str | None,
    show_metadata: bool,
    output_format: str | None,
    max_attempts: int | None,
    on_failure: str | None,
    merge_strategy: str | None,
) -> None:
    """Generate a response for PROMPT, continuing it whenever it is truncated."""
    from stitchwork.continuation import generate_with_continuation
    from stitchwork.core.cli.common import (
        build_continuation_config,
        echo_content,
        echo_metadata,
        load_config,
        setup_cli_logging,
    )
    from stitchwork.core.exceptions import ContinuationError
    from stitchwork.core.llm.client import LiteLLMProvider

    config = load_config(ctx)
    setup_cli_logging(ctx, config)
    continuation = build_continuation_config(
        config,
        output_format=output_format,
        max_attempts=max_attempts,
        on_failure=on_failure,
        merge_strategy=merge_strategy,
    )

    llm_config = config.validated().llm
    if model:
        llm_config = llm_config.model_copy(update={"model": model})
    provider = LiteLLMProvider.from_config(llm_config)

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    try:
        result = generate_with_continuation(
            provider,
            prompt,
            provider.model,
            continuation,
            progress_callback=(lambda message: click.echo(message, err=True)) if verbose else None,
        )
    except ImportError as e:
        raise click.ClickException(str(e))
    except ContinuationError as e:
        raise click.ClickException(str(e))

    echo_content(result.content)
    if show_metadata:
        echo_metadata(result.metadata)
