from __future__ import annotations

"""Scala (.scl) scale definitions and the ratio tables built from them.

A definition looks like::

    ! meantone.scl
    !
    Quarter-comma meantone
     2
    !
    76.049
    5/4

Comment lines start with ``!``. The first remaining line is a free-text
description, the second the number of notes, then one interval per line,
either a ratio ``p/q`` or a cents value. Unison is implied and the table
always gets a terminal 2/1.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..app.explain import trace as xtrace, warn


OCTAVE = 2.0
SCALA_SUFFIX = ".scl"
DEFAULT_DESCRIPTION = "12-tone equal temperament"


class ParseErrorKind(str, Enum):
    EMPTY_DEFINITION = "empty_definition"
    BAD_NOTE_COUNT = "bad_note_count"
    NO_VALID_RATIOS = "no_valid_ratios"


class ScaleParseError(ValueError):
    """A scale definition that cannot produce a usable table."""

    def __init__(self, kind: ParseErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        msg = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(msg)


class ScaleFileError(ValueError):
    """A scale file that is not a Scala .scl file."""


# Parsed data lines ---------------------------------------------------------

@dataclass(frozen=True)
class Ratio:
    num: int
    den: int

    @property
    def value(self) -> float:
        return self.num / self.den


@dataclass(frozen=True)
class Cents:
    cents: float

    @property
    def value(self) -> float:
        return OCTAVE ** (self.cents / 1200.0)


@dataclass(frozen=True)
class Invalid:
    text: str


ScaleLine = Union[Ratio, Cents, Invalid]


def parse_scale_line(line: str) -> ScaleLine:
    """Classify one data line as a ratio, a cents value, or invalid.

    Inline ``!`` comments are stripped first. Ratios must be two integers
    with a non-zero denominator. Any line whose value is not a finite
    positive float is invalid.
    """
    text = line.split("!", 1)[0].strip()
    if not text:
        return Invalid(line)
    if "/" in text:
        num_s, _, den_s = text.partition("/")
        try:
            num = int(num_s.strip())
            den = int(den_s.strip())
        except ValueError:
            return Invalid(text)
        if den == 0:
            return Invalid(text)
        parsed: ScaleLine = Ratio(num, den)
    else:
        try:
            parsed = Cents(float(text))
        except ValueError:
            return Invalid(text)
    # Values must fit a float and stay positive once converted.
    try:
        value = parsed.value
    except OverflowError:
        return Invalid(text)
    if not math.isfinite(value) or value <= 0:
        return Invalid(text)
    return parsed


def line_value(parsed: ScaleLine) -> Optional[float]:
    """Ratio value of a parsed line, or None for an invalid one."""
    if isinstance(parsed, Ratio):
        return parsed.value
    if isinstance(parsed, Cents):
        return parsed.value
    if isinstance(parsed, Invalid):
        return None
    raise TypeError(f"Unknown scale line: {parsed!r}")


# Tables ------------------------------------------------------------------

@dataclass(frozen=True)
class ScaleTable:
    """Ordered frequency ratios: unison first, repeat interval last."""

    ratios: Tuple[float, ...]
    description: str = ""
    declared_count: int = 0
    parsed_count: int = 0
    skipped: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.ratios) < 2:
            raise ValueError("a scale table needs unison plus at least one interval")
        if self.ratios[0] != 1.0:
            raise ValueError("ratios[0] must be unison (1.0)")
        if any(r <= 0 for r in self.ratios):
            raise ValueError("ratios must be positive")

    @property
    def period(self) -> int:
        """Scale steps per repeat interval."""
        return len(self.ratios) - 1

    @property
    def period_ratio(self) -> float:
        return self.ratios[-1]

    @property
    def is_complete(self) -> bool:
        """Every declared interval made it into the table."""
        return self.parsed_count == self.declared_count

    def __len__(self) -> int:
        return len(self.ratios)


def build_default() -> ScaleTable:
    """12-TET: 2^(i/12) for i in 0..11, then the octave."""
    ratios = [OCTAVE ** (i / 12) for i in range(12)]
    ratios.append(OCTAVE)
    return ScaleTable(tuple(ratios), description=DEFAULT_DESCRIPTION, declared_count=12, parsed_count=12)


def _content_lines(text: str) -> List[str]:
    lines = (ln.strip() for ln in text.splitlines())
    return [ln for ln in lines if ln and not ln.startswith("!")]


def build_from_definition(text: str) -> ScaleTable:
    """Build a ratio table from Scala text.

    Malformed data lines are skipped with a warning. Raises
    ScaleParseError when no usable table can be built.
    """
    lines = _content_lines(text)
    if len(lines) < 2:
        raise ScaleParseError(ParseErrorKind.EMPTY_DEFINITION, f"{len(lines)} usable line(s)")

    description = lines[0]
    count_text = lines[1].split("!", 1)[0].strip()
    try:
        declared = int(count_text)
    except ValueError:
        raise ScaleParseError(ParseErrorKind.BAD_NOTE_COUNT, repr(count_text)) from None
    if declared < 0:
        raise ScaleParseError(ParseErrorKind.BAD_NOTE_COUNT, repr(count_text))

    data_lines = lines[2 : 2 + declared]
    ratios: List[float] = [1.0]
    skipped: List[str] = []
    for raw in data_lines:
        value = line_value(parse_scale_line(raw))
        if value is None:
            warn(f"Failed to parse scale line: {raw}")
            skipped.append(raw)
            continue
        ratios.append(value)

    if len(ratios) == 1:
        raise ScaleParseError(ParseErrorKind.NO_VALID_RATIOS, f"0 of {declared} lines parsed")

    retained = len(ratios) - 1
    if retained != declared:
        warn(f"Expected {declared} ratios but found {retained}")

    # Octave-repeating even when the definition ends on another interval.
    if ratios[-1] != OCTAVE:
        if ratios[-1] > OCTAVE:
            warn(f"Scale '{description}' ends at {ratios[-1]:.3f}; appending 2/1 as the repeat interval")
        ratios.append(OCTAVE)

    table = ScaleTable(
        tuple(ratios),
        description=description,
        declared_count=declared,
        parsed_count=retained,
        skipped=tuple(skipped),
    )
    xtrace("scale_built", {"description": description, "declared": declared, "ratios": len(table.ratios)})
    return table


def build_or_default(text: Optional[str]) -> ScaleTable:
    """Like build_from_definition, but never fails: falls back to 12-TET."""
    if text is None:
        return build_default()
    try:
        return build_from_definition(text)
    except ScaleParseError as e:
        warn(f"Invalid scale definition ({e}); using {DEFAULT_DESCRIPTION}")
        return build_default()


def load_scale_file(path: Union[str, Path]) -> ScaleTable:
    """Read a .scl file and build its table.

    Raises ScaleFileError for other file types, FileNotFoundError when
    missing, and ScaleParseError for unusable contents.
    """
    p = Path(path)
    if p.suffix.lower() != SCALA_SUFFIX:
        raise ScaleFileError(f"Invalid file type - expected {SCALA_SUFFIX} file: {p.name}")
    with p.open("r", encoding="utf-8", errors="replace") as f:
        return build_from_definition(f.read())
