"""
dasim • Erasure

Known-cell bookkeeping and cascading row/column recovery for the 2k × 2k
coded square. Reconstruction is modelled abstractly: a line with at least k
known cells is fully recoverable; no field arithmetic is performed.
"""

from __future__ import annotations

from .square import COL, ROW, DataSquare

__all__ = [
    "DataSquare",
    "ROW",
    "COL",
]
