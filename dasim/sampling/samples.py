"""
dasim • Sampling • Unique coordinate draws

A sampler ("light node") reveals a batch of distinct random cells of the
2k × 2k coded square. `SampleSet` holds one such batch: it is filled by
rejection sampling with an injected generator, consumed by
`DataSquare.add_samples`, then cleared for the next sampler of the trial.

The generator is any object with a `randrange(stop)` method, normally a
`random.Random` owned by the caller, so runs are reproducible under a seed
and independent streams can be handed to parallel workers.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple, Protocol, Set

from ..errors import CapacityError


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


class Coordinate(NamedTuple):
    """A cell of the coded square; equal iff both components match."""

    row: int
    col: int


class SampleSet:
    """
    Duplicate-free, unordered batch of coordinates.

    `capacity` is the expected batch size; Python sets size themselves, so it
    only serves as a sanity bound in `repr` and diagnostics.
    """

    __slots__ = ("capacity", "_samples")

    def __init__(self, capacity: int = 0) -> None:
        self.capacity = max(0, int(capacity))
        self._samples: Set[Coordinate] = set()

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self._samples)

    def __contains__(self, item: object) -> bool:
        return item in self._samples

    def __repr__(self) -> str:  # pragma: no cover - debug aid
        return f"SampleSet(len={len(self._samples)}, capacity={self.capacity})"

    def clear(self) -> None:
        """Empty the set for reuse."""
        self._samples.clear()

    def add(self, row: int, col: int) -> bool:
        """Add one coordinate; True if it was not already present."""
        c = Coordinate(row, col)
        if c in self._samples:
            return False
        self._samples.add(c)
        return True

    def fill_unique(self, target_count: int, size: int, rng: RandomSource) -> None:
        """
        Add exactly `target_count` new distinct coordinates with components
        drawn uniformly from [0, 2*size).

        Raises CapacityError when the square cannot hold that many more
        distinct cells, instead of spinning forever.
        """
        if size <= 0:
            raise ValueError("size must be positive")
        if target_count < 0:
            raise ValueError("target_count must be non-negative")
        width = 2 * size
        cells = width * width
        if len(self._samples) + target_count > cells:
            raise CapacityError(
                f"cannot draw {target_count} unique samples from a {width}x{width} square",
                data={
                    "requested": target_count,
                    "present": len(self._samples),
                    "cells": cells,
                },
            )

        samples = self._samples
        n = target_count
        while n > 0:
            c = Coordinate(rng.randrange(width), rng.randrange(width))
            if c not in samples:
                samples.add(c)
                n -= 1


__all__ = [
    "RandomSource",
    "Coordinate",
    "SampleSet",
]
