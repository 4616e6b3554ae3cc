"""'tlexport cut' command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tlexport.cli.exit_codes import ExitCode
from tlexport.config import get_config
from tlexport.executor.cut import ClipCutter
from tlexport.executor.process import ProcessRunner
from tlexport.jobs.exceptions import ExportError
from tlexport.tools.encoders import EncoderSelector, get_encoder_capabilities


def _parse_time_ms(value: str) -> int:
    """Parse seconds ("12.5") or HH:MM:SS(.fff) into milliseconds."""
    parts = value.split(":")
    try:
        seconds = 0.0
        for part in parts:
            seconds = seconds * 60 + float(part)
    except ValueError as e:
        raise click.BadParameter(f"invalid time '{value}'") from e
    if seconds < 0 or len(parts) > 3:
        raise click.BadParameter(f"invalid time '{value}'")
    return round(seconds * 1000)


@click.command("cut")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("start")
@click.argument("end")
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file.",
)
@click.option(
    "--copy",
    "stream_copy",
    is_flag=True,
    help="Stream copy instead of re-encoding (exact only on keyframes).",
)
def cut_command(
    source: Path, start: str, end: str, output: Path, stream_copy: bool
) -> None:
    """Cut START..END (seconds or HH:MM:SS.fff) out of SOURCE."""
    start_ms = _parse_time_ms(start)
    end_ms = _parse_time_ms(end)
    if start_ms >= end_ms:
        raise click.BadParameter("START must be before END")

    config = get_config()
    cutter = ClipCutter(
        ProcessRunner(),
        config.tools.ffmpeg,
        EncoderSelector(get_encoder_capabilities(config.tools.ffmpeg)),
    )
    try:
        if stream_copy:
            cutter.copy_to(source, start_ms, end_ms, output)
            click.echo(f"Cut {output} (stream copy)")
        else:
            candidate = cutter.exact_to(source, start_ms, end_ms, output)
            click.echo(f"Cut {output} ({candidate.name})")
    except ExportError as e:
        click.echo(f"Cut failed: {e}", err=True)
        sys.exit(ExitCode.EXPORT_FAILED)
