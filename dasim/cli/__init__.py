from __future__ import annotations

"""
dasim • CLI
===========

Command-line entry points:
- sim_recover.py : sweep sizes and sampler counts; report samplers needed
                   per size (`python -m dasim.cli.sim_recover`).
"""

from dasim.version import __version__

__all__ = ["__version__"]
