"""
dasim • Sim

Monte Carlo driver (`driver.py`) and its result records (`results.py`).
"""

from __future__ import annotations

from .driver import Simulation, run_simulation, run_trial, run_trials
from .results import SimulationReport, SizeResult, SweepPoint

__all__ = [
    "Simulation",
    "run_simulation",
    "run_trial",
    "run_trials",
    "SimulationReport",
    "SizeResult",
    "SweepPoint",
]
