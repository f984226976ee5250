from __future__ import annotations

"""NoteStateTracker: which notes are sounding, and on/off transitions.

Each note index is either IDLE or ENGAGED. Engaging an engaged note stops
its voice before restarting, so a note index never has two voices.
Releasing an idle note does nothing.

The active scale table and tuning config are held together as one
immutable snapshot; replacing either swaps the whole snapshot, and notes
already sounding keep the ratio they were started with.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from ..audio.synthesis import Sampler
from ..theory.scala import ScaleParseError, ScaleTable, build_default, build_from_definition, DEFAULT_DESCRIPTION
from ..theory.tuning import TuningConfig, resolve
from .explain import trace as xtrace, warn


class NoteState(Enum):
    IDLE = "idle"
    ENGAGED = "engaged"


@dataclass(frozen=True)
class TuningSnapshot:
    scale: ScaleTable
    tuning: TuningConfig


class NoteStateTracker:
    def __init__(
        self,
        sampler: Sampler,
        scale: Optional[ScaleTable] = None,
        tuning: Optional[TuningConfig] = None,
        sample: Any = None,
    ) -> None:
        self.sampler = sampler
        self._snapshot = TuningSnapshot(scale or build_default(), tuning or TuningConfig())
        self._sample = sample
        self._states: Dict[int, NoteState] = {}
        self._voices: Dict[int, Any] = {}
        self.scale_loaded = scale is not None

    # Snapshot -----------------------------------------------------------
    @property
    def scale(self) -> ScaleTable:
        return self._snapshot.scale

    @property
    def tuning(self) -> TuningConfig:
        return self._snapshot.tuning

    @property
    def snapshot(self) -> TuningSnapshot:
        return self._snapshot

    def set_scale(self, table: ScaleTable) -> None:
        self._snapshot = TuningSnapshot(table, self._snapshot.tuning)
        xtrace("scale_set", {"description": table.description, "ratios": len(table.ratios)})

    def set_tuning(self, tuning: TuningConfig) -> None:
        self._snapshot = TuningSnapshot(self._snapshot.scale, tuning)
        xtrace("tuning_set", {"base_index": tuning.base_index, "base_frequency": tuning.base_frequency})

    def load_scale(self, text: Optional[str]) -> ScaleTable:
        """Build and install a scale; falls back to 12-TET on bad input.

        Returns the table now in effect.
        """
        if text is None:
            table = build_default()
            self.scale_loaded = False
        else:
            try:
                table = build_from_definition(text)
                self.scale_loaded = True
            except ScaleParseError as e:
                warn(f"No valid ratios found in scale definition ({e}); using {DEFAULT_DESCRIPTION}")
                table = build_default()
                self.scale_loaded = False
        self.set_scale(table)
        return table

    def resolve(self, index: int) -> float:
        snap = self._snapshot
        return resolve(index, snap.scale, snap.tuning)

    # Sample -------------------------------------------------------------
    @property
    def sample(self) -> Any:
        return self._sample

    @property
    def sample_loaded(self) -> bool:
        return self._sample is not None

    def load_sample(self, sample: Any) -> None:
        self._sample = sample
        xtrace("sample_set", {"loaded": sample is not None})

    def unload_sample(self) -> None:
        self.release_all()
        self._sample = None

    # State machine ------------------------------------------------------
    def state(self, index: int) -> NoteState:
        return self._states.get(int(index), NoteState.IDLE)

    def is_engaged(self, index: int) -> bool:
        return self.state(index) is NoteState.ENGAGED

    @property
    def engaged(self) -> FrozenSet[int]:
        return frozenset(i for i, s in self._states.items() if s is NoteState.ENGAGED)

    def note_on(self, index: int) -> None:
        index = int(index)
        if self._sample is None:
            return
        if self.state(index) is NoteState.ENGAGED:
            self.note_off(index)
        ratio = self.resolve(index)
        self._voices[index] = self.sampler.play(self._sample, ratio)
        self._states[index] = NoteState.ENGAGED
        xtrace("note_on", {"index": index, "ratio": round(ratio, 6)})

    def note_off(self, index: int) -> None:
        index = int(index)
        if self.state(index) is not NoteState.ENGAGED:
            return
        voice = self._voices.pop(index)
        self._states[index] = NoteState.IDLE
        self.sampler.stop(voice)
        xtrace("note_off", {"index": index})

    def release_all(self) -> None:
        for index in sorted(self.engaged):
            self.note_off(index)
