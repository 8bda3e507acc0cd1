"""Shared setup logic for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import click

from stitchwork.core.types import MergerKind, OnFailure

STITCHWORK_DIR = Path.home() / ".stitchwork"
CONFIG_PATH = STITCHWORK_DIR / "config.yaml"

FORMAT_CHOICES = ["auto", "tabular", "markup", "json", "csv", "markdown"]


def continuation_options(func):
    """Options that override the ``continuation`` config section."""
    func = click.option(
        "--strategy",
        "merge_strategy",
        type=click.Choice([k.value for k in MergerKind]),
        default=None,
        help="Force a merger regardless of format.",
    )(func)
    func = click.option(
        "--on-failure",
        type=click.Choice([m.value for m in OnFailure]),
        default=None,
        help="Return the partial result or fail when the merge is not clean.",
    )(func)
    func = click.option("--max-attempts", type=int, default=None, help="Upper bound on provider calls (1-50).")(func)
    func = click.option(
        "--format", "output_format", type=click.Choice(FORMAT_CHOICES), default=None, help="Target output format."
    )(func)
    func = click.option("--show-metadata", is_flag=True, help="Print session metadata as JSON to stderr.")(func)
    return func


def load_config(ctx: click.Context):
    """Load config from --config, else ~/.stitchwork/config.yaml when it exists."""
    from stitchwork.core.config import Config
    from stitchwork.core.exceptions import ConfigurationError

    config_file = ctx.obj.get("config_file") if ctx.obj else None
    if config_file is None and CONFIG_PATH.exists():
        config_file = str(CONFIG_PATH)
    try:
        return Config(config_file=config_file)
    except ConfigurationError as e:
        raise click.ClickException(str(e))


def setup_cli_logging(ctx: click.Context, config) -> None:
    from stitchwork.core.utils.logging import setup_logging

    settings = config.validated().logging
    level = "DEBUG" if ctx.obj and ctx.obj.get("verbose") else settings.level
    setup_logging(level=level, log_file=settings.log_file, rotation=settings.rotation, retention=settings.retention)


def build_continuation_config(config, **overrides):
    """Validated ContinuationConfig with command-line overrides applied."""
    from stitchwork.core.exceptions import ConfigurationError

    try:
        return config.continuation_config(**overrides)
    except ConfigurationError as e:
        raise click.BadParameter(str(e))


def echo_content(content: str) -> None:
    click.echo(content, nl=not content.endswith("\n"))


def echo_metadata(metadata) -> None:
    click.echo(json.dumps(metadata.to_dict(), indent=2), err=True)
