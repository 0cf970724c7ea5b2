"""
dasim • Erasure • Data square and cascading recovery

Model
-----
A k × k block of data is extended with a two-dimensional erasure code to a
2k × 2k coded square: every row and every column is a codeword with k data
symbols and k parity symbols. Any k known symbols of a row (or column) are
enough to rebuild the whole line. Rebuilding a row reveals new cells in
columns, which may push those columns over their own threshold, and so on.

`DataSquare` tracks only *which* cells are known, never their contents:

  - cells         flat row-major bytearray of the 2k × 2k square (1 = known)
  - row_counts    known cells per row
  - col_counts    known cells per column
  - total_count   known cells overall
  - recovered_*   lines already rebuilt; each line is rebuilt at most once

Recovery
--------
`try_recover_row` / `try_recover_col` rebuild one line and cascade into the
crossing lines through an explicit work queue, so stack depth is constant
for any k. At most 4k lines are ever rebuilt, each touching 2k cells, giving
O(k^2) work per full fixpoint.

`recover()` runs sweeps over every row and column until either k rows or k
columns are rebuilt (the k × k data is then fully determined) or a sweep makes
no progress (fixpoint, failure). Trials with fewer than k^2 known cells are
rejected before any sweep.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Iterable, Set, Tuple

ROW = 0
COL = 1


class DataSquare:
    """
    Known/unknown state of one coded square of logical size `size`.

    Created once per size and `reset()` between trials; reset zeroes the
    backing storage in place.
    """

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("size must be positive")
        self._size = int(size)
        self.width = 2 * self._size
        self.cells = bytearray(self.width * self.width)
        self.row_counts = [0] * self.width
        self.col_counts = [0] * self.width
        self.recovered_rows: Set[int] = set()
        self.recovered_cols: Set[int] = set()
        self.total_count = 0

    @property
    def size(self) -> int:
        return self._size

    def __repr__(self) -> str:  # pragma: no cover - debug aid
        return (
            f"DataSquare(size={self._size}, known={self.total_count}, "
            f"rows={len(self.recovered_rows)}, cols={len(self.recovered_cols)})"
        )

    # ---- State ---------------------------------------------------------- #

    def reset(self) -> None:
        """Forget every known cell and every recovered line."""
        w = self.width
        self.cells[:] = bytes(w * w)
        self.row_counts[:] = [0] * w
        self.col_counts[:] = [0] * w
        self.recovered_rows.clear()
        self.recovered_cols.clear()
        self.total_count = 0

    def is_known(self, row: int, col: int) -> bool:
        self._check(row, col)
        return self.cells[row * self.width + col] == 1

    def known_cells(self) -> int:
        """Count known cells directly from the matrix."""
        return sum(self.cells)

    def snapshot(self) -> Dict[str, int]:
        return {
            "size": self._size,
            "known": self.total_count,
            "recovered_rows": len(self.recovered_rows),
            "recovered_cols": len(self.recovered_cols),
        }

    # ---- Cell mutation -------------------------------------------------- #

    def add_sample(self, row: int, col: int) -> bool:
        """
        Mark (row, col) known. Returns False if it already was.
        """
        self._check(row, col)
        idx = row * self.width + col
        if self.cells[idx]:
            return False
        self.cells[idx] = 1
        self.row_counts[row] += 1
        self.col_counts[col] += 1
        self.total_count += 1
        return True

    def add_samples(self, samples: Iterable[Tuple[int, int]]) -> int:
        """Apply `add_sample` to every coordinate; returns cells newly known."""
        added = 0
        for row, col in samples:
            if self.add_sample(row, col):
                added += 1
        return added

    # ---- Recovery ------------------------------------------------------- #

    def try_recover_row(self, row: int) -> bool:
        """
        Rebuild `row` if it has at least `size` known cells and was not
        rebuilt before, cascading into columns. True if the row was rebuilt.
        """
        return self._recover_line(ROW, row)

    def try_recover_col(self, col: int) -> bool:
        """Column counterpart of `try_recover_row`."""
        return self._recover_line(COL, col)

    def is_recovered(self) -> bool:
        return len(self.recovered_rows) >= self._size or len(self.recovered_cols) >= self._size

    def recover(self) -> bool:
        """
        Run recovery sweeps to a fixpoint. True iff the square is
        reconstructable from the known cells.
        """
        if self.total_count < self._size * self._size:
            return False

        while True:
            progressed = False
            for i in range(self.width):
                if self.try_recover_row(i):
                    progressed = True
                if self.try_recover_col(i):
                    progressed = True

            if self.is_recovered():
                return True
            if not progressed:
                return False

    # ---- Internals ------------------------------------------------------ #

    def _mark(self, axis: int, index: int) -> bool:
        """Claim line `index` for rebuilding if it is eligible."""
        if axis == ROW:
            if index in self.recovered_rows or self.row_counts[index] < self._size:
                return False
            self.recovered_rows.add(index)
        else:
            if index in self.recovered_cols or self.col_counts[index] < self._size:
                return False
            self.recovered_cols.add(index)
        return True

    def _recover_line(self, axis: int, index: int) -> bool:
        if not 0 <= index < self.width:
            raise IndexError(f"line index out of range (0..{self.width - 1}): {index}")
        if not self._mark(axis, index):
            return False

        # Lines are claimed before they are filled, so each enters the queue once.
        pending: Deque[Tuple[int, int]] = deque([(axis, index)])
        w = self.width
        while pending:
            line_axis, line = pending.popleft()
            cross = COL if line_axis == ROW else ROW
            for other in range(w):
                if line_axis == ROW:
                    added = self.add_sample(line, other)
                else:
                    added = self.add_sample(other, line)
                if added and self._mark(cross, other):
                    pending.append((cross, other))
        return True

    def _check(self, row: int, col: int) -> None:
        if not (0 <= row < self.width and 0 <= col < self.width):
            raise IndexError(
                f"cell out of range for a {self.width}x{self.width} square: ({row}, {col})"
            )


__all__ = [
    "DataSquare",
    "ROW",
    "COL",
]
