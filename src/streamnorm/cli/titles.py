"""CLI titles command: preview synthesized stream titles."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from streamnorm.cli.options import (
    load_app_config,
    normalization_options,
    source_from_cli,
)
from streamnorm.cli.plan import probe_file
from streamnorm.workflow import format_titles


@click.command("titles")
@click.argument("file", type=click.Path(path_type=Path))
@normalization_options
@click.pass_context
def titles_command(ctx: click.Context, file: Path, **option_values: Any) -> None:
    """Show the title each audio and subtitle stream of FILE would get.

    No analysis passes are run.
    """
    config = load_app_config(ctx, source_from_cli(**option_values))
    probe = probe_file(file, config.tools.ffprobe, json_output=False)
    click.echo(format_titles(probe, config.normalize))
