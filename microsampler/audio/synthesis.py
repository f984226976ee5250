from __future__ import annotations

"""Abstract-ish sampler interface.

The tuning core only needs two things from an audio engine: start a
sample sounding at a pitch ratio relative to its natural pitch, and stop
a sounding voice again. Decoding, resampling and output are the engine's
business.
"""

import time
from typing import Any


class Sampler:
    """Abstract-like sampler interface for playback engines."""

    def __init__(self, sample_rate: int, gain: float) -> None:
        self.sample_rate = sample_rate
        self.gain = gain

    def play(self, sample: Any, ratio: float) -> Any:
        """Start `sample` at `ratio` times its natural pitch; return a voice handle."""
        raise NotImplementedError

    def stop(self, voice: Any) -> None:
        """Stop a voice returned by play()."""
        raise NotImplementedError

    def sleep_ms(self, ms: int) -> None:
        time.sleep(ms / 1000.0)

    def close(self) -> None:
        """Release resources."""
        pass
