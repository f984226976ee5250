from __future__ import annotations

"""Keyboard and pointer input mapped onto note indices.

The computer keyboard covers one chromatic span of 13 keys starting at
the tuning's base note. The on-screen piano covers two spans, white keys
on the bottom row and black keys on top.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .tracker import NoteStateTracker


# Offsets from the base note, 'a' = base, 'k' = base + 12
KEYBOARD_OFFSETS: Dict[str, int] = {
    "a": 0,
    "w": 1,
    "s": 2,
    "e": 3,
    "d": 4,
    "f": 5,
    "t": 6,
    "g": 7,
    "y": 8,
    "h": 9,
    "u": 10,
    "j": 11,
    "k": 12,
}

WHITE_KEY_OFFSETS: Tuple[int, ...] = (0, 2, 4, 5, 7, 9, 11)
BLACK_KEY_OFFSETS: Tuple[Optional[int], ...] = (1, 3, None, 6, 8, 10, None)
STEPS_PER_SPAN = 12


@dataclass(frozen=True)
class KeyRect:
    x: float
    y: float
    width: float
    height: float
    offset: int
    black: bool

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px < self.x + self.width and self.y <= py <= self.y + self.height


@dataclass(frozen=True)
class PianoLayout:
    """Geometry of the two-span on-screen piano (pixels)."""

    key_width: float = 40.0
    key_height: float = 150.0
    top: float = 200.0
    black_width_ratio: float = 0.6
    black_height_ratio: float = 0.6
    black_x_offset: float = 0.7
    spans: int = 2
    white_offsets: Tuple[int, ...] = WHITE_KEY_OFFSETS
    black_offsets: Tuple[Optional[int], ...] = BLACK_KEY_OFFSETS

    @property
    def span_width(self) -> float:
        return len(self.white_offsets) * self.key_width

    @property
    def width(self) -> float:
        return self.spans * self.span_width

    def keys(self) -> List[KeyRect]:
        """All key rectangles, white keys first, offsets relative to the base note."""
        rects: List[KeyRect] = []
        for span in range(self.spans):
            x0 = span * self.span_width
            for i, off in enumerate(self.white_offsets):
                rects.append(KeyRect(x0 + i * self.key_width, self.top, self.key_width, self.key_height,
                                     span * STEPS_PER_SPAN + off, False))
        for span in range(self.spans):
            x0 = span * self.span_width
            for i, off in enumerate(self.black_offsets):
                if off is None:
                    continue
                rects.append(KeyRect(
                    x0 + i * self.key_width + self.key_width * self.black_x_offset,
                    self.top,
                    self.key_width * self.black_width_ratio,
                    self.key_height * self.black_height_ratio,
                    span * STEPS_PER_SPAN + off,
                    True,
                ))
        return rects

    def offset_at(self, x: float, y: float) -> Optional[int]:
        """Offset from the base note under (x, y), or None off the keyboard."""
        if y < self.top or y > self.top + self.key_height:
            return None
        if x < 0 or x >= self.width:
            return None
        span = int(x // self.span_width)
        rem = x - span * self.span_width

        # Black keys sit on top of the white ones
        if y <= self.top + self.key_height * self.black_height_ratio:
            bx = rem - self.key_width * self.black_x_offset
            if bx >= 0:
                i = int(bx // self.key_width)
                inside = (bx - i * self.key_width) < self.key_width * self.black_width_ratio
                if inside and i < len(self.black_offsets) and self.black_offsets[i] is not None:
                    return span * STEPS_PER_SPAN + self.black_offsets[i]

        i = int(rem // self.key_width)
        if 0 <= i < len(self.white_offsets):
            return span * STEPS_PER_SPAN + self.white_offsets[i]
        return None


@dataclass
class InputRouter:
    """Translate key/pointer events into tracker calls."""

    tracker: NoteStateTracker
    layout: PianoLayout = field(default_factory=PianoLayout)
    keymap: Dict[str, int] = field(default_factory=lambda: dict(KEYBOARD_OFFSETS))
    pressed: Set[int] = field(default_factory=set)
    held: Dict[str, int] = field(default_factory=dict)

    def note_for_key(self, key: str) -> Optional[int]:
        off = self.keymap.get(key.lower()) if key else None
        if off is None:
            return None
        return self.tracker.tuning.base_index + off

    def note_at(self, x: float, y: float) -> Optional[int]:
        off = self.layout.offset_at(x, y)
        if off is None:
            return None
        return self.tracker.tuning.base_index + off

    def key_pressed(self, key: str) -> Optional[int]:
        note = self.note_for_key(key)
        if note is not None:
            self.held[key.lower()] = note
            self.pressed.add(note)
            self.tracker.note_on(note)
        return note

    def key_released(self, key: str) -> Optional[int]:
        # Release the note engaged at press time, not the current mapping.
        note = self.held.pop(key.lower(), None) if key else None
        if note is not None:
            self.pressed.discard(note)
            self.tracker.note_off(note)
        return note

    def pointer_pressed(self, x: float, y: float) -> Optional[int]:
        note = self.note_at(x, y)
        if note is not None:
            self.pressed.add(note)
            self.tracker.note_on(note)
        return note

    def pointer_released(self) -> None:
        # The gesture may have ended anywhere; nothing is left sounding.
        self.pressed.clear()
        self.held.clear()
        self.tracker.release_all()

    def focus_lost(self) -> None:
        self.pointer_released()
