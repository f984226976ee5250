from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

Enable with the CLI flag and emit terse, readable lines at milestones
(scale loaded, note on/off). Warnings are always printed to stderr.
"""

import json
import sys
from typing import Any, Dict

_ENABLED = False


def enable(flag: bool = True) -> None:
    global _ENABLED
    _ENABLED = bool(flag)


def enabled() -> bool:
    return _ENABLED


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    data = payload or {}
    try:
        # keep it short; one line JSON
        print(f"[EXPLAIN] {event} :: {json.dumps(data, separators=(',', ':'))}")
    except (TypeError, ValueError):
        print(f"[EXPLAIN] {event}")


def warn(msg: str) -> None:
    """Print a recoverable problem; the caller carries on."""
    print(f"WARNING: {msg}", file=sys.stderr)
