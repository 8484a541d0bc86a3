#!/usr/bin/env python3
"""Example 01: Series, Start-Time Synchronization and Timestamp Export.

This example builds a multi-segment movie series from synthetic files,
corrects the start times of movies recorded on other devices against a
GPIO timing reference, and exports the aligned device timestamps to CSV.

Key Concepts:
-------------
- Composing segment files into one series
- Exact temporal indices with dropped, cropped and blank samples
- Start-time correction from shared device ticks
- Aligned timestamp export in three time formats

Phases:
-------
1. Series: Write three movie segments and read them as one movie
2. Sync: Rewrite target start times from the reference's device ticks
3. Export: Write aligned timestamps as raw ticks, relative and Unix seconds

Outputs:
--------
- sync_report.json
- timestamps_<format>.csv

Example Usage:
-------------
    $ python examples/01_series_sync_export.py

    # Or with custom parameters
    $ OUTPUT_ROOT=temp/my_output NUM_SAMPLES=50 python examples/01_series_sync_export.py
"""

from pathlib import Path
import shutil

from pydantic_settings import BaseSettings, SettingsConfigDict

from recseries.series import build_series
from recseries.sync import ClockSynchronizer, ExportInput, TimestampFormat, export_aligned_timestamps
from recseries.utils import configure_logging, write_json
from synthetic import PairedRecordingOptions, SeriesSynthOptions, build_paired_recording, build_series_files


class ExampleSettings(BaseSettings):
    """Settings for Example 01."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    output_root: Path = Path("temp/examples/01_series_sync_export")
    num_samples: int = 20
    log_level: str = "INFO"
    cleanup: bool = False


def run_example(settings: ExampleSettings) -> dict:
    """Run all three phases.

    Args:
        settings: Example settings with output paths and parameters

    Returns:
        Dictionary with paths to all generated artifacts
    """
    output_root = settings.output_root
    configure_logging(settings.log_level)

    print("=" * 80)
    print("recseries Example 01: Series, Sync and Export")
    print("=" * 80)

    if output_root.exists():
        print(f"Cleaning existing output directory: {output_root}")
        shutil.rmtree(output_root)
    output_root.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # PHASE 1: Series
    # =========================================================================
    print("\nPHASE 1: Series")
    paths = build_series_files(
        output_root / "movie",
        SeriesSynthOptions(
            samples_per_segment=[settings.num_samples] * 3,
            knobs={"first_tick": 1_000_000},
        ),
    )
    series = build_series(paths)
    aggregate = series.temporal_index
    print(f"   {series.file_name}")
    print(f"   segments: {len(series)}, frames: {aggregate.num_samples} ({aggregate.valid_count()} valid)")
    last = series.get_frame(aggregate.num_samples - 1)
    print(f"   last frame starts at {last.start}")

    # =========================================================================
    # PHASE 2: Sync
    # =========================================================================
    print("\nPHASE 2: Sync")
    recording = build_paired_recording(
        output_root / "paired",
        PairedRecordingOptions(num_samples=settings.num_samples, target_offsets_us=[250_000, 500_000]),
    )
    result = ClockSynchronizer(recording.reference, recording.targets).run()
    for correction in result.corrections:
        print(f"   {correction.file_path.name}: {correction.offset_ms:+d} ms (written={correction.written})")
    report_path = output_root / "sync_report.json"
    write_json(
        report_path,
        {"state": result.state.value, "corrections": [c.model_dump(mode="json") for c in result.corrections]},
    )

    # =========================================================================
    # PHASE 3: Export
    # =========================================================================
    print("\nPHASE 3: Export")
    artifacts = {"sync_report": report_path}
    reference = ExportInput(name="gpio", paths=(recording.reference,))
    align = [ExportInput(name=f"cam{k}", paths=(path,)) for k, path in enumerate(recording.targets)]
    for time_format in TimestampFormat:
        csv_path = output_root / f"timestamps_{time_format.value}.csv"
        status = export_aligned_timestamps(reference, align, csv_path, time_format=time_format)
        print(f"   {time_format.value}: {csv_path} ({status.value})")
        artifacts[f"timestamps_{time_format.value}"] = csv_path

    print(f"\nAll outputs saved to: {output_root}")
    if settings.cleanup:
        shutil.rmtree(output_root)
    return artifacts


if __name__ == "__main__":
    run_example(ExampleSettings())
