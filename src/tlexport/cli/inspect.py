"""'tlexport inspect' command."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

import click

from tlexport.config import get_config
from tlexport.core.time_utils import format_seconds
from tlexport.introspector.ffprobe import FFprobeIntrospector


@click.command("inspect")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def inspect_command(source: Path, json_output: bool) -> None:
    """Show the properties the exporter sees for SOURCE."""
    config = get_config()
    info = FFprobeIntrospector(
        ffprobe_path=config.tools.ffprobe, timeout=config.export.probe_timeout
    ).get_media_info(source)

    if json_output:
        click.echo(json.dumps({"source": str(source), **asdict(info)}, indent=2))
        return

    resolution = f"{info.width}x{info.height}" if info.has_dimensions else "unknown"
    click.echo(f"Source:     {source}")
    click.echo(f"Duration:   {format_seconds(info.duration_ms)}")
    click.echo(f"Resolution: {resolution}")
    click.echo(f"Frame rate: {info.fps:.3f}")
    click.echo(f"Audio:      {'yes' if info.has_audio else 'no'}")
