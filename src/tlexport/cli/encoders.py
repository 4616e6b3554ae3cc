"""'tlexport encoders' command."""

from __future__ import annotations

import click

from tlexport.config import get_config
from tlexport.tools.encoders import EncoderSelector, detect_encoder_capabilities


@click.command("encoders")
def encoders_command() -> None:
    """Show detected hardware encoders and the fallback order."""
    config = get_config()
    caps = detect_encoder_capabilities(config.tools.ffmpeg)
    selector = EncoderSelector(caps)

    hardware = ", ".join(caps.hardware_encoders) or "none"
    click.echo(f"Hardware encoders: {hardware}")
    click.echo("Candidate order:")
    for index, candidate in enumerate(selector.candidates, start=1):
        click.echo(f"  {index}. {candidate.name}")
    click.echo("Render order:")
    for index, candidate in enumerate(selector.render_candidates, start=1):
        click.echo(f"  {index}. {candidate.name}")
