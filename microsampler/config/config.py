from __future__ import annotations

"""Configuration loading and validation for microsampler.

This module loads YAML configuration, applies defaults, and validates
that enumerations and values are sane before the sampler starts.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import sys

import yaml
from pydantic import ValidationError

from ..app.explain import warn
from ..app.input_router import KEYBOARD_OFFSETS, PianoLayout
from ..theory.tuning import TuningConfig


ALLOWED_BACKENDS = {"fluidsynth"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        cfg = _load_yaml(Path(path))
    else:
        default_path = Path(__file__).with_name("defaults.yml")
        cfg = _load_yaml(default_path)
    return cfg


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Unsupported values are replaced by defaults with a warning; a missing
    SoundFont is reported but not fatal (notes stay silent until a sample
    is loaded).

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    cfg.setdefault("audio", {})
    cfg.setdefault("tuning", {})
    cfg.setdefault("scale", {})
    cfg.setdefault("input", {})
    cfg.setdefault("layout", {})

    audio = cfg["audio"]
    tuning = cfg["tuning"]
    scale = cfg["scale"]
    inp = cfg["input"]

    audio.setdefault("backend", "fluidsynth")
    audio.setdefault("soundfont_path", "./soundfonts/GrandPiano.sf2")
    audio.setdefault("bank", 0)
    audio.setdefault("preset", 0)
    audio.setdefault("root_note", 60)
    audio.setdefault("sample_rate", 44100)
    audio.setdefault("gain", 0.5)
    audio.setdefault("velocity", 100)
    audio.setdefault("pitch_bend_range", 2)

    tuning.setdefault("base_note", 60)
    tuning.setdefault("base_frequency", 111.0)

    scale.setdefault("path", None)

    inp.setdefault("note_duration_ms", 500)
    inp.setdefault("keyboard_map", dict(KEYBOARD_OFFSETS))

    backend = audio.get("backend")
    if backend not in ALLOWED_BACKENDS:
        warn(f"Unsupported audio backend '{backend}', falling back to 'fluidsynth'.")
        audio["backend"] = "fluidsynth"

    bend = audio.get("pitch_bend_range")
    if not isinstance(bend, int) or not 1 <= bend <= 24:
        warn(f"Invalid pitch_bend_range '{bend}', using 2.")
        audio["pitch_bend_range"] = 2

    try:
        tuning_from_config(cfg)
    except ValidationError as e:
        warn(f"Invalid tuning section ({e.error_count()} error(s)), using C4 at 111 Hz.")
        tuning["base_note"] = 60
        tuning["base_frequency"] = 111.0

    keymap = inp.get("keyboard_map") or {}
    try:
        inp["keyboard_map"] = {str(k).lower(): int(v) for k, v in keymap.items()}
    except (AttributeError, TypeError, ValueError):
        warn("Invalid keyboard_map, using the default 13-key map.")
        inp["keyboard_map"] = dict(KEYBOARD_OFFSETS)

    sf_path = Path(audio.get("soundfont_path") or "")
    if not sf_path.exists():
        warn(f"SoundFont not found at '{sf_path}'. Notes will be silent until a sample is loaded.")

    return cfg


def tuning_from_config(cfg: Dict[str, Any]) -> TuningConfig:
    t = cfg.get("tuning", {})
    return TuningConfig(
        base_index=t.get("base_note", 60),
        base_frequency=t.get("base_frequency", 111.0),
    )


def layout_from_config(cfg: Dict[str, Any]) -> PianoLayout:
    lay = cfg.get("layout", {}) or {}
    fields = {"key_width", "key_height", "top", "black_width_ratio", "black_height_ratio", "black_x_offset"}
    return PianoLayout(**{k: float(v) for k, v in lay.items() if k in fields})
