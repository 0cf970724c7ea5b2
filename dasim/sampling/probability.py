"""
dasim • Sampling • Coverage estimates

Closed-form companions to the Monte Carlo driver. They do not model the
two-dimensional decoder; they bound how many samplers are needed before
reconstruction is even possible, and give a cheap "expected coverage" hint
to log next to each empirical success rate.

Notation
--------
- k  logical size, coded square has N = (2k)^2 cells
- s  unique samples per sampler
- L  independent samplers ("lights")

A fixed cell is missed by one sampler with probability (1 - s/N), and the
samplers draw independently, so the expected fraction of revealed cells is

    coverage(L) = 1 - (1 - s/N)^L

Reconstruction needs at least k^2 known cells (a quarter of the square), so
`lights_for_coverage(k, s, 0.25)` is a lower-bound style starting point for
the sweep.
"""

from __future__ import annotations

import math


def coded_cells(size: int) -> int:
    """Cells in the 2k × 2k coded square."""
    if size <= 0:
        raise ValueError("size must be positive")
    return (2 * size) ** 2


def min_cells_for_recovery(size: int) -> int:
    """Fewest known cells that can possibly reconstruct a k × k square."""
    if size <= 0:
        raise ValueError("size must be positive")
    return size * size


def expected_unique_coverage(size: int, lights: int, samples_per_iteration: int) -> float:
    """
    Expected fraction of coded cells revealed by `lights` independent samplers
    each drawing `samples_per_iteration` distinct cells.
    """
    n = coded_cells(size)
    if lights < 0 or samples_per_iteration < 0:
        raise ValueError("lights and samples_per_iteration must be non-negative")
    if samples_per_iteration > n:
        raise ValueError("samples_per_iteration exceeds the coded square")
    if lights == 0 or samples_per_iteration == 0:
        return 0.0
    miss = 1.0 - samples_per_iteration / float(n)
    return float(1.0 - miss ** lights)


def lights_for_coverage(size: int, samples_per_iteration: int, fraction: float) -> int:
    """
    Smallest sampler count whose expected coverage reaches `fraction`.

        (1 - s/N)^L <= 1 - f   =>   L >= ln(1 - f) / ln(1 - s/N)
    """
    n = coded_cells(size)
    if not (0.0 <= fraction < 1.0):
        raise ValueError("fraction must be in [0, 1)")
    if samples_per_iteration <= 0:
        raise ValueError("samples_per_iteration must be positive")
    if fraction == 0.0:
        return 0
    if samples_per_iteration >= n:
        return 1
    miss = 1.0 - samples_per_iteration / float(n)
    lights = int(math.ceil(math.log(1.0 - fraction) / math.log(miss)))
    # Guard float rounding at the boundary.
    while lights > 0 and expected_unique_coverage(size, lights - 1, samples_per_iteration) >= fraction:
        lights -= 1
    while expected_unique_coverage(size, lights, samples_per_iteration) < fraction:
        lights += 1
    return lights


def min_lights_for_recovery(size: int, samples_per_iteration: int) -> int:
    """Samplers needed before the expected known cells reach k^2."""
    return lights_for_coverage(size, samples_per_iteration, 0.25)


__all__ = [
    "coded_cells",
    "min_cells_for_recovery",
    "expected_unique_coverage",
    "lights_for_coverage",
    "min_lights_for_recovery",
]
