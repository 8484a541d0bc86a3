"""Paired devices scenario: GPIO reference and movies on other devices.

Configuration:
- GPIO reference with firstTsc X and trusted wall-clock start W
- Target movie 0 starts 500 ms (device ticks) after the reference
- Target movie 1 has its first frame dropped; its first stored frame is
  ticked X + 500000 with a 100 ms step, so its first sample is X + 400000
- Both targets store the wrong wall-clock start W
"""

from pathlib import Path
from typing import Union

from synthetic.series_synth import PairedRecording, PairedRecordingOptions, build_paired_recording


def make_recording(root: Union[str, Path], *, first_tsc: int = 5_000_000_000) -> PairedRecording:
    """Generate a reference and two targets sharing one recording UUID.

    Returns:
        PairedRecording; the targets should start at W + 500 ms and W + 400 ms
    """
    root = Path(root)
    on_time = build_paired_recording(root / "on_time", PairedRecordingOptions(first_tsc=first_tsc, target_offsets_us=[500_000]))
    dropped = build_paired_recording(
        root / "dropped",
        PairedRecordingOptions(first_tsc=first_tsc, target_offsets_us=[400_000], target_dropped=[0], step="1/10"),
    )
    target = dropped.targets[0].rename(on_time.reference.parent / "target_01.rseg")
    return PairedRecording(
        reference=on_time.reference,
        targets=[on_time.targets[0], target],
        expected_start_ms=[on_time.expected_start_ms[0], dropped.expected_start_ms[0]],
    )
