"""CLI error output for JSON and human-readable modes."""

from __future__ import annotations

import json
import sys
from typing import NoReturn

import click

from streamnorm.cli.exit_codes import ExitCode


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Exit with formatted error message.

    Args:
        message: Error message to display.
        code: Exit code to use (ExitCode enum or int).
        json_output: Whether to format output as JSON.
    """
    if isinstance(code, ExitCode):
        code_name = code.name
    else:
        code_name = "UNKNOWN_ERROR"

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "failed",
                    "error": {
                        "code": code_name,
                        "message": message,
                    },
                }
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(int(code))


def warning_output(message: str, json_output: bool = False) -> None:
    """Print a warning to stderr (suppressed in JSON mode)."""
    if not json_output:
        click.echo(f"Warning: {message}", err=True)
