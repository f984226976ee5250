"""microsampler: a sampled instrument tuned to arbitrary microtonal scales.

The tuning core lives in `microsampler.theory` (Scala ratio tables and
pitch resolution) and `microsampler.app.tracker` (note on/off state).
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
