from __future__ import annotations

"""CLI entry point for microsampler."""

import argparse
import sys
from typing import Any, Dict, List, Optional

from . import __version__
from .app import explain
from .app.input_router import InputRouter
from .app.status import format_table, status_lines
from .app.tracker import NoteStateTracker
from .audio.playback import load_sample_from_config, make_sampler_from_config
from .audio.synthesis import Sampler
from .config.config import layout_from_config, load_config, tuning_from_config, validate_config
from .theory.scala import ScaleFileError, ScaleParseError, load_scale_file


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="microsampler", description="Microtonal sampler")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--config", type=str, default=None, help="Path to YAML config")
    p.add_argument("--scl", type=str, default=None, help="Scala .scl scale file")
    p.add_argument("--base-note", dest="base_note", default=None, help="Base note, e.g. C4 or 60")
    p.add_argument("--explain", action="store_true", help="Trace scale and note events")
    sub = p.add_subparsers(dest="cmd")

    sub.add_parser("show", help="Print the scale status and one period of ratios")

    pp = sub.add_parser("play", help="Play computer-keyboard keys in sequence")
    pp.add_argument("keys", help="Keys to play, e.g. 'asdfghjk'; space rests")
    pp.add_argument("--duration-ms", dest="duration_ms", type=int, default=None)
    return p.parse_args(argv)


def _apply_scale(tracker: NoteStateTracker, path: Optional[str]) -> None:
    if not path:
        tracker.load_scale(None)
        return
    try:
        table = load_scale_file(path)
    except (ScaleFileError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        tracker.load_scale(None)
        return
    except ScaleParseError as e:
        explain.warn(f"Invalid scale file '{path}' ({e}); using 12-TET")
        tracker.load_scale(None)
        return
    tracker.set_scale(table)
    tracker.scale_loaded = True
    print(f"Loaded scale: {table.description}")


def _play(cfg: Dict[str, Any], args: argparse.Namespace) -> int:
    sampler = make_sampler_from_config(cfg)
    tracker = NoteStateTracker(sampler, tuning=tuning_from_config(cfg))
    _apply_scale(tracker, args.scl or cfg["scale"].get("path"))
    try:
        tracker.load_sample(load_sample_from_config(sampler, cfg))
    except FileNotFoundError as e:
        print(f"ERROR: {e}", file=sys.stderr)
    router = InputRouter(tracker, layout=layout_from_config(cfg), keymap=cfg["input"]["keyboard_map"])

    dur = args.duration_ms if args.duration_ms is not None else int(cfg["input"]["note_duration_ms"])
    try:
        for ch in args.keys:
            if router.key_pressed(ch) is None and ch != " ":
                explain.warn(f"Key '{ch}' is not mapped")
            sampler.sleep_ms(dur)
            router.key_released(ch)
    finally:
        router.focus_lost()
        sampler.close()
    return 0


def cli(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.version:
        print(f"microsampler {__version__}")
        return 0
    explain.enable(args.explain)

    cfg = load_config(args.config)
    if args.base_note is not None:
        cfg.setdefault("tuning", {})["base_note"] = args.base_note
    cfg = validate_config(cfg)

    if args.cmd == "play":
        return _play(cfg, args)

    # Default: show
    audio = cfg["audio"]
    silent = Sampler(sample_rate=int(audio["sample_rate"]), gain=float(audio["gain"]))
    tracker = NoteStateTracker(silent, tuning=tuning_from_config(cfg))
    _apply_scale(tracker, args.scl or cfg["scale"].get("path"))
    for line in status_lines(tracker):
        print(line)
    print(format_table(tracker))
    return 0


if __name__ == "__main__":
    sys.exit(cli())
