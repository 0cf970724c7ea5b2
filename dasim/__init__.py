"""
dasim: two-dimensional data availability reconstruction simulator.

Estimates, by Monte Carlo simulation, how many independent samplers are
needed before a 2k × 2k erasure-coded square can be reconstructed from the
cells they reveal, for a sweep of logical sizes k.

Subpackages:
- sampling : unique random coordinate draws and coverage estimates
- erasure  : known-cell bookkeeping and cascading row/column recovery
- sim      : the sweep driver and its result records
- cli      : `python -m dasim.cli.sim_recover`
"""

from __future__ import annotations

from .version import __version__, get_version

__all__ = ["__version__", "get_version"]
