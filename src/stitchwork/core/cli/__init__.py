"""Stitchwork CLI — entry point for run, merge, and detect commands."""

import click

from stitchwork import __version__


@click.group()
@click.version_option(version=__version__, package_name="stitchwork")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None, help="YAML or JSON config file.")
@click.option("-v", "--verbose", is_flag=True, help="Log continuation progress to stderr.")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, verbose: bool) -> None:
    """Stitchwork — continue truncated LLM output and merge it into one document."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["verbose"] = verbose


# Register subcommands (lazy imports keep startup fast)
from .detect_cmd import detect
from .merge_cmd import merge
from .run_cmd import run

main.add_command(run)
main.add_command(merge)
main.add_command(detect)
