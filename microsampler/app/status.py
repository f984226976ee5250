from __future__ import annotations

"""Text for the key labels and the status panel."""

from typing import List

from ..theory.tuning import frequency, ratio_to_cents
from .tracker import NoteStateTracker


def key_label(index: int, tracker: NoteStateTracker) -> str:
    """Ratio over cents, as printed on each key."""
    ratio = tracker.resolve(index)
    return f"{ratio:.3f}\n{ratio_to_cents(ratio):.1f}¢"


def status_lines(tracker: NoteStateTracker) -> List[str]:
    scale = tracker.scale
    if tracker.scale_loaded:
        lines = [f"Scale status: Loaded with {len(scale.ratios)} notes ({scale.description})"]
    else:
        lines = ["Scale status: No scale loaded. Using 12-TET"]
    if not scale.is_complete:
        lines.append(f"Scale warning: {scale.parsed_count} of {scale.declared_count} declared ratios parsed")
    lines.append(f"Sample status: {'Loaded and ready' if tracker.sample_loaded else 'No sample loaded'}")
    first = ", ".join(f"{r:.3f}" for r in scale.ratios[:5])
    lines.append(f"First few ratios: {first}...")
    return lines


def format_table(tracker: NoteStateTracker) -> str:
    """One repeat period above the base note: index, ratio, cents, Hz."""
    base = tracker.tuning.base_index
    rows = []
    for index in range(base, base + tracker.scale.period + 1):
        ratio = tracker.resolve(index)
        hz = frequency(index, tracker.scale, tracker.tuning)
        rows.append(f"{index:>4}  {ratio:8.4f}  {ratio_to_cents(ratio):8.2f}¢  {hz:9.3f} Hz")
    return "\n".join(rows)
