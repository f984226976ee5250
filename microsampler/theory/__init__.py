"""Tuning theory: Scala ratio tables and pitch resolution."""

from .scala import ScaleTable, ScaleParseError, build_default, build_from_definition  # noqa: F401
from .tuning import TuningConfig, resolve  # noqa: F401
