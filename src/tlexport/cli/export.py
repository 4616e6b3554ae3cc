"""'tlexport export' command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tlexport.cli.exit_codes import ExitCode
from tlexport.config import get_config
from tlexport.introspector.ffprobe import FFprobeIntrospector
from tlexport.jobs.exceptions import ExportError, InvalidJobError, JobFileError
from tlexport.jobs.orchestrator import ExportOrchestrator
from tlexport.jobs.progress import StderrProgressReporter
from tlexport.jobs.schema import load_job_file
from tlexport.jobs.worker import ExportWorker


@click.command("export")
@click.argument(
    "job_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--fallback-on-error/--no-fallback-on-error",
    default=None,
    help="Render when a stream-copy step fails (default: on).",
)
@click.option("--quiet", "-q", is_flag=True, help="Do not show progress.")
def export_command(
    job_file: Path, fallback_on_error: bool | None, quiet: bool
) -> None:
    """Export the segments described by JOB_FILE.

    Exit codes:
      0 - Export written
      1 - Export failed (diagnostic on stderr)
      2 - Invalid job file or empty segment list
    """
    config = get_config()
    introspector = FFprobeIntrospector(
        ffprobe_path=config.tools.ffprobe, timeout=config.export.probe_timeout
    )

    try:
        job = load_job_file(job_file, introspector=introspector, settings=config.export)
    except JobFileError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.INVALID_JOB)

    worker = ExportWorker(
        lambda: ExportOrchestrator(
            config, introspector=introspector, fallback_on_error=fallback_on_error
        )
    )
    reporter = StderrProgressReporter(enabled=not quiet)
    handle = worker.submit(job, reporter)

    try:
        result = handle.wait()
    except InvalidJobError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.INVALID_JOB)
    except (ExportError, OSError) as e:
        click.echo(f"\nExport failed: {e}", err=True)
        sys.exit(ExitCode.EXPORT_FAILED)
    except KeyboardInterrupt:
        click.echo("\nInterrupted", err=True)
        sys.exit(ExitCode.INTERRUPTED)

    how = (
        "stream copy"
        if result.encoder is None
        else f"render with {result.encoder}"
    )
    click.echo(f"Exported {result.output_path} ({how})")
