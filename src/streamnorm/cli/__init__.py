"""CLI module for streamnorm."""

from pathlib import Path

import click


@click.group()
@click.version_option(package_name="streamnorm")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.streamnorm/config.toml).",
)
@click.option(
    "--profile",
    "-p",
    default=None,
    help="Apply a profile from ~/.streamnorm/profiles/.",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    profile: str | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """streamnorm - Compute title, default-track and filter directives."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        config_path=config_path,
        profile=profile,
        log_level=log_level.lower() if log_level else None,
        log_file=log_file,
        log_json=log_json,
    )


# Defer import to avoid circular dependency
def _register_commands():
    from streamnorm.cli.plan import plan_command
    from streamnorm.cli.titles import titles_command

    main.add_command(plan_command)
    main.add_command(titles_command)


_register_commands()
