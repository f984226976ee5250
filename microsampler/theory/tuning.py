from __future__ import annotations

"""Pitch resolution: note index -> playback ratio.

The base note sounds the sample at its natural pitch (ratio 1.0). Other
indices walk the scale table, repeating every ``table.period`` steps by
``table.period_ratio``.
"""

import math
import sys
from typing import Dict, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .scala import ScaleTable


PITCH_CLASS_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

_ENHARMONIC: Dict[str, str] = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
    "B#": "C",
    "E#": "F",
    "Cb": "B",
    "Fb": "E",
}

DEFAULT_BASE_INDEX = 60  # middle C
DEFAULT_BASE_FREQUENCY = 111.0


def note_name_to_index(note: str) -> int:
    """Parse a note string like 'C4', 'Db3', 'G#5' into a note index.

    Uses C4 = 60 (MIDI middle C). Octaves may be negative ('C-1' = 0).
    """
    if not note or len(note) < 2:
        raise ValueError(f"Invalid note string: {note}")
    name = note[0].upper()
    idx = 1
    if note[idx] in ("#", "b"):
        name += note[idx]
        idx += 1
    try:
        octave = int(note[idx:])
    except ValueError as e:
        raise ValueError(f"Invalid octave in note string: {note}") from e
    norm = _ENHARMONIC.get(name, name)
    if norm not in PITCH_CLASS_NAMES:
        raise ValueError(f"Unsupported note name: {name}")
    pc = PITCH_CLASS_NAMES.index(norm)
    # B#/Cb cross the octave boundary.
    if name == "B#":
        octave += 1
    elif name == "Cb":
        octave -= 1
    return (octave + 1) * 12 + pc


class TuningConfig(BaseModel):
    """Reference note and its sounding frequency. Immutable."""

    model_config = ConfigDict(frozen=True)

    base_index: int = DEFAULT_BASE_INDEX
    base_frequency: float = Field(default=DEFAULT_BASE_FREQUENCY, gt=0)

    @field_validator("base_index", mode="before")
    @classmethod
    def _note_names(cls, v: Union[int, str]):
        if isinstance(v, str) and not v.lstrip("-").isdigit():
            return note_name_to_index(v)
        return v

    def replace(self, **changes) -> "TuningConfig":
        data = self.model_dump()
        data.update(changes)
        return TuningConfig(**data)


def resolve(note_index: int, table: ScaleTable, config: TuningConfig) -> float:
    """Playback ratio for a note index.

    Total over all integers: results saturate at the float range instead
    of overflowing to inf or underflowing to 0.
    """
    steps = int(note_index) - config.base_index
    period = table.period
    octaves, scale_index = divmod(steps, period)
    try:
        ratio = table.ratios[scale_index] * table.period_ratio ** octaves
    except OverflowError:
        return sys.float_info.max
    if math.isinf(ratio):
        return sys.float_info.max
    return max(ratio, sys.float_info.min)


def frequency(note_index: int, table: ScaleTable, config: TuningConfig) -> float:
    """Sounding frequency in Hz, relative to config.base_frequency."""
    return config.base_frequency * resolve(note_index, table, config)


def ratio_to_cents(ratio: float) -> float:
    return math.log2(ratio) * 1200.0
