"""
dasim • Sampling package

  - samples.py      : Coordinate and SampleSet (unique random draws per sampler)
  - probability.py  : closed-form coverage estimates used as sweep hints
"""

from __future__ import annotations

from .probability import (expected_unique_coverage, lights_for_coverage,
                          min_cells_for_recovery, min_lights_for_recovery)
from .samples import Coordinate, RandomSource, SampleSet

__all__ = [
    "Coordinate",
    "RandomSource",
    "SampleSet",
    "expected_unique_coverage",
    "lights_for_coverage",
    "min_cells_for_recovery",
    "min_lights_for_recovery",
]
