"""Command line interface for recseries.

Commands:
---------
- info: Build a series from segment files and describe its time base
- sync: Correct target start times against a timing reference
- export-timestamps: Write aligned device timestamps of several series to CSV

Example:
    $ recseries info rec_0001.rseg rec_0002.rseg
    $ recseries sync gpio.rseg behavior.rseg --report sync.json
    $ recseries export-timestamps --reference gpio=gpio.rseg --align behavior=behavior.rseg --output ts.csv
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import Settings, load_settings
from .exceptions import RecSeriesError
from .series import build_series
from .sync import ClockSynchronizer, ExportInput, TimestampFormat, export_aligned_timestamps
from .tasks import AsyncTaskStatus
from .utils import configure_logging, file_hash, write_json

logger = logging.getLogger(__name__)

app = typer.Typer(help="Multi-segment recording series and cross-device start-time synchronization.", no_args_is_help=True)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings()


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def parse_named_paths(value: str) -> ExportInput:
    """Parse ``NAME=PATH[,PATH...]`` into an export input."""
    name, sep, joined = value.partition("=")
    paths = tuple(Path(p.strip()) for p in joined.split(",") if p.strip())
    if not sep or not name.strip() or not paths:
        raise typer.BadParameter(f"Expected NAME=PATH[,PATH...], got {value!r}")
    return ExportInput(name=name.strip(), paths=paths)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML settings file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    """Load settings and configure logging for every command."""
    try:
        settings = load_settings(config)
    except FileNotFoundError as e:
        _fail(str(e))
    level = log_level or settings.logging.level
    try:
        configure_logging(level, structured=settings.logging.structured)
    except ValueError as e:
        _fail(str(e))
    ctx.obj = settings


@app.command("info")
def info(
    files: List[Path] = typer.Argument(..., help="Segment files of one series"),
    show_hash: bool = typer.Option(False, "--hash", help="Print the SHA-256 of every file"),
) -> None:
    """Describe the series formed by the given segment files."""
    try:
        series = build_series(files)
    except RecSeriesError as e:
        _fail(str(e))

    aggregate = series.temporal_index
    typer.echo(f"{series.file_name}")
    typer.echo(f"  kind:     {series.segments[0].kind.value}")
    typer.echo(f"  segments: {len(series)}")
    typer.echo(f"  samples:  {aggregate.num_samples} ({aggregate.valid_count()} valid)")
    for position, segment in enumerate(series.segments):
        index = segment.temporal_index
        line = f"  [{position}] {segment.file_path.name}: start={index.start} step={index.step}s samples={index.num_samples}"
        if show_hash:
            line += f" sha256={file_hash(segment.file_path)}"
        typer.echo(line)


@app.command("sync")
def sync(
    reference: Path = typer.Argument(..., help="Timing reference (GPIO or movie)"),
    targets: List[Path] = typer.Argument(..., help="Movies to align to the reference"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report of the corrections"),
) -> None:
    """Correct the start times of targets against a timing reference."""
    synchronizer = ClockSynchronizer(reference, targets)
    try:
        result = synchronizer.run()
    except RecSeriesError as e:
        _fail(str(e))

    for correction in result.corrections:
        action = "rewritten" if correction.written else "unchanged"
        typer.echo(f"{correction.file_path}: {correction.actual_start_ms} -> {correction.expected_start_ms} ms ({action})")
    for failure in result.failures:
        typer.echo(f"{failure.file_path}: failed ({failure.error})", err=True)

    if report is not None:
        write_json(
            report,
            {
                "status": result.status.value,
                "state": result.state.value,
                "corrections": list(result.corrections),
                "failures": [{"file_path": f.file_path, "error": str(f.error)} for f in result.failures],
            },
        )

    if result.status != AsyncTaskStatus.COMPLETE:
        raise typer.Exit(code=1)


@app.command("export-timestamps")
def export_timestamps(
    ctx: typer.Context,
    reference: str = typer.Option(..., "--reference", help="Timing reference as NAME=PATH[,PATH...]"),
    align: List[str] = typer.Option(..., "--align", help="Series to align as NAME=PATH[,PATH...]; repeatable"),
    output: Path = typer.Option(..., "--output", "-o", help="Output CSV file"),
    time_format: Optional[TimestampFormat] = typer.Option(None, "--format", help="tsc, first or unix (default from settings)"),
) -> None:
    """Export aligned device timestamps of several series to CSV."""
    settings = _settings(ctx)
    reference_input = parse_named_paths(reference)
    align_inputs = [parse_named_paths(a) for a in align]
    chosen = time_format or TimestampFormat(settings.export.time_format)
    try:
        status = export_aligned_timestamps(
            reference_input,
            align_inputs,
            output,
            time_format=chosen,
            float_precision=settings.export.float_precision,
        )
    except RecSeriesError as e:
        _fail(str(e))
    typer.echo(f"Wrote {output} ({status.value})")


if __name__ == "__main__":
    app()
