from __future__ import annotations

import random

import pytest

from dasim.errors import CapacityError
from dasim.sampling.samples import Coordinate, SampleSet


def test_coordinate_value_identity():
    assert Coordinate(1, 2) == Coordinate(1, 2)
    assert Coordinate(1, 2) != Coordinate(2, 1)
    assert len({Coordinate(3, 4), Coordinate(3, 4)}) == 1
    row, col = Coordinate(5, 6)
    assert (row, col) == (5, 6)


@pytest.mark.parametrize("size,count", [(1, 1), (1, 4), (4, 16), (16, 64)])
def test_fill_unique_exact_count_in_range(rng: random.Random, size: int, count: int):
    s = SampleSet(count)
    s.fill_unique(count, size, rng)
    assert len(s) == count
    assert len(set(s)) == count
    for row, col in s:
        assert 0 <= row < 2 * size
        assert 0 <= col < 2 * size


def test_fill_unique_whole_square(rng: random.Random):
    s = SampleSet()
    s.fill_unique(16, 2, rng)
    assert set(s) == {Coordinate(r, c) for r in range(4) for c in range(4)}


def test_fill_unique_accumulates_until_cleared(rng: random.Random):
    s = SampleSet(8)
    s.fill_unique(5, 4, rng)
    s.fill_unique(3, 4, rng)
    assert len(s) == 8
    s.clear()
    assert len(s) == 0
    s.fill_unique(2, 4, rng)
    assert len(s) == 2


def test_fill_unique_over_capacity_raises(rng: random.Random):
    s = SampleSet()
    with pytest.raises(CapacityError) as ei:
        s.fill_unique(17, 2, rng)
    assert ei.value.data["cells"] == 16
    assert len(s) == 0

    s.fill_unique(10, 2, rng)
    with pytest.raises(CapacityError):
        s.fill_unique(7, 2, rng)
    assert len(s) == 10


def test_fill_unique_rejects_bad_arguments(rng: random.Random):
    s = SampleSet()
    with pytest.raises(ValueError):
        s.fill_unique(1, 0, rng)
    with pytest.raises(ValueError):
        s.fill_unique(-1, 2, rng)
    s.fill_unique(0, 2, rng)
    assert len(s) == 0


def test_fill_unique_is_reproducible_under_seed():
    a, b = SampleSet(), SampleSet()
    a.fill_unique(20, 8, random.Random(7))
    b.fill_unique(20, 8, random.Random(7))
    assert set(a) == set(b)


def test_fill_unique_uses_injected_generator():
    class Counting:
        def __init__(self) -> None:
            self.calls = 0
            self._rng = random.Random(0)

        def randrange(self, stop: int) -> int:
            self.calls += 1
            return self._rng.randrange(stop)

    gen = Counting()
    s = SampleSet()
    s.fill_unique(4, 2, gen)
    # two draws (row, col) per candidate, at least one candidate per sample
    assert gen.calls >= 8
    assert gen.calls % 2 == 0


def test_add_reports_novelty():
    s = SampleSet()
    assert s.add(0, 1) is True
    assert s.add(0, 1) is False
    assert Coordinate(0, 1) in s
    assert len(s) == 1
