from __future__ import annotations

"""FluidSynth-based sampler implementation.

A SoundFont preset is the sample; a pitch ratio becomes the nearest MIDI
key plus a pitch bend for the remainder. Pitch bend is per channel, so
each voice gets its own channel from a rotating pool.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple
import math
import sys

from ..app.explain import trace as xtrace, warn
from .synthesis import Sampler


DRUM_CHANNEL = 9
MAX_BEND = 8191


@dataclass(frozen=True)
class SoundFontSample:
    """A loaded SoundFont preset and the key that plays it unshifted."""

    sfid: int
    bank: int = 0
    preset: int = 0
    root_midi: int = 60


@dataclass(frozen=True)
class Voice:
    channel: int
    midi: int


def ratio_to_key_and_bend(ratio: float, root_midi: int, bend_range: float) -> Tuple[int, int]:
    """Split a pitch ratio into a MIDI key and a signed 14-bit bend value."""
    semis = 12.0 * math.log2(ratio)
    nearest = int(round(semis))
    key = root_midi + nearest
    if key < 0 or key > 127:
        clamped = max(0, min(127, key))
        warn(f"Pitch ratio {ratio:.4f} is outside the MIDI range; clamping key {key} to {clamped}")
        nearest += clamped - key
        key = clamped
    remainder = semis - nearest
    bend = int(round(remainder / bend_range * (MAX_BEND + 1)))
    return key, max(-(MAX_BEND + 1), min(MAX_BEND, bend))


class FluidSynthSampler(Sampler):
    """Concrete Sampler using pyfluidsynth."""

    def __init__(
        self,
        sample_rate: int = 44100,
        gain: float = 0.5,
        bend_range: int = 2,
        velocity: int = 100,
        channels: int = 16,
    ) -> None:
        super().__init__(sample_rate=sample_rate, gain=gain)
        try:
            import fluidsynth  # type: ignore
        except Exception as e:  # pragma: no cover - runtime dependency
            raise RuntimeError("pyfluidsynth is not installed") from e

        self.bend_range = int(bend_range)
        self.velocity = max(0, min(127, int(velocity)))
        self._fs = fluidsynth.Synth(samplerate=sample_rate, gain=gain)
        # Start audio driver; prefer CoreAudio on macOS to avoid SDL warnings
        driver = "coreaudio" if sys.platform == "darwin" else None
        try:
            if driver:
                self._fs.start(driver=driver)
            else:
                self._fs.start()
        except Exception:
            # Fallback to default driver if preferred one fails
            self._fs.start()

        self._channels: List[int] = [c for c in range(int(channels)) if c != DRUM_CHANNEL]
        self._next = 0
        self._programs: Dict[int, SoundFontSample] = {}
        for ch in self._channels:
            self._set_bend_range(ch)

    def _set_bend_range(self, channel: int) -> None:
        # RPN 0,0 = pitch bend sensitivity, data entry MSB = semitones
        self._fs.cc(channel, 101, 0)
        self._fs.cc(channel, 100, 0)
        self._fs.cc(channel, 6, self.bend_range)
        self._fs.cc(channel, 38, 0)

    def load_sample(self, soundfont_path: str, bank: int = 0, preset: int = 0, root_midi: int = 60) -> SoundFontSample:
        sfid = self._fs.sfload(soundfont_path)
        if sfid < 0:
            raise FileNotFoundError(f"Could not load SoundFont: {soundfont_path}")
        sample = SoundFontSample(sfid=sfid, bank=int(bank), preset=int(preset), root_midi=int(root_midi))
        xtrace("sample_loaded", {"path": soundfont_path, "bank": bank, "preset": preset})
        return sample

    def _take_channel(self) -> int:
        # Past 15 voices a channel is reused, so its bend and noteoff reach both voices.
        ch = self._channels[self._next % len(self._channels)]
        self._next += 1
        return ch

    def play(self, sample: SoundFontSample, ratio: float) -> Voice:
        channel = self._take_channel()
        if self._programs.get(channel) != sample:
            self._fs.program_select(channel, sample.sfid, sample.bank, sample.preset)
            self._programs[channel] = sample
        key, bend = ratio_to_key_and_bend(ratio, sample.root_midi, self.bend_range)
        self._fs.pitch_bend(channel, bend)
        self._fs.noteon(channel, key, self.velocity)
        return Voice(channel=channel, midi=key)

    def stop(self, voice: Voice) -> None:
        self._fs.noteoff(voice.channel, voice.midi)

    def close(self) -> None:
        try:
            self._fs.delete()
        except Exception:
            pass


def make_sampler_from_config(cfg: Dict) -> Sampler:
    """Factory for Sampler from config dict."""
    audio = cfg.get("audio", {})
    backend = audio.get("backend", "fluidsynth")
    if backend == "fluidsynth":
        return FluidSynthSampler(
            sample_rate=int(audio.get("sample_rate", 44100)),
            gain=float(audio.get("gain", 0.5)),
            bend_range=int(audio.get("pitch_bend_range", 2)),
            velocity=int(audio.get("velocity", 100)),
        )
    raise ValueError(f"Unsupported backend: {backend}")


def load_sample_from_config(sampler: FluidSynthSampler, cfg: Dict) -> SoundFontSample:
    audio = cfg.get("audio", {})
    return sampler.load_sample(
        str(audio.get("soundfont_path")),
        bank=int(audio.get("bank", 0)),
        preset=int(audio.get("preset", 0)),
        root_midi=int(audio.get("root_note", 60)),
    )
