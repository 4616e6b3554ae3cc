"""Command line interface for tlexport."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from tlexport import __version__

_logging_configured: bool = False

logger = logging.getLogger(__name__)


def _configure_logging(
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from CLI options (once per process)."""
    global _logging_configured
    if _logging_configured:
        return

    from tlexport.config.logging_factory import configure_logging_from_cli

    configure_logging_from_cli(
        level=log_level,
        file=log_file,
        format="json" if log_json else None,
    )
    _logging_configured = True


@click.group()
@click.version_option(__version__, prog_name="tlexport")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: TLEXPORT_LOG_LEVEL or info).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write logs to this file instead of stderr.",
)
@click.option("--log-json", is_flag=True, help="Emit logs as JSON objects.")
def main(log_level: str | None, log_file: Path | None, log_json: bool) -> None:
    """Export trimmed media segments into a single file."""
    _configure_logging(log_level, log_file, log_json)


def _register_commands() -> None:
    from tlexport.cli.cut import cut_command
    from tlexport.cli.encoders import encoders_command
    from tlexport.cli.export import export_command
    from tlexport.cli.inspect import inspect_command

    main.add_command(export_command)
    main.add_command(cut_command)
    main.add_command(inspect_command)
    main.add_command(encoders_command)


_register_commands()
