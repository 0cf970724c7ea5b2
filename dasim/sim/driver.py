"""
dasim • Sim • Monte Carlo driver

For every logical size k (doubling from `initial_size` to `max_size`), find
the smallest number of independent samplers ("lights") for which the coded
square is reconstructed in at least `target_probability` of the trials.

Per size:
  1) start at `config.start_lights(k)` (fixed, or anchored at k = 16 and
     scaled by k^2),
  2) estimate the success rate with `iterations` trials,
  3) stop when the rate reaches the target; otherwise add
     `config.lights_step(k)` samplers and go to 2.

A trial resets the square, lets every sampler reveal `samples_per_iteration`
unique random cells (samplers overlap freely with each other), then runs the
recovery fixpoint.

The search per size is bounded by `max_rounds` and, if set, `max_lights`.
Hitting a bound records an unreached `SizeResult` and moves on, or raises
`SearchExhausted` when the simulation is strict.

Determinism: one `random.Random(config.seed)` drives every draw. With
`workers > 1`, the trials of a point are split into chunks, each chunk seeded
from that generator and run on a process pool, so a (seed, workers) pair
always reproduces the same report.
"""

from __future__ import annotations

import random
import time
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import Callable, Iterator, List, Optional, Tuple

from ..config import SimulationConfig
from ..erasure.square import DataSquare
from ..errors import CapacityError, SearchExhausted
from ..logging import bind, get_logger, run_scope, unbind
from ..metrics import SimMetrics
from ..sampling.probability import expected_unique_coverage
from ..sampling.samples import RandomSource, SampleSet
from .results import SimulationReport, SizeResult, SweepPoint

log = get_logger(__name__)

PointCallback = Callable[[SweepPoint], None]


# ------------------------------ Trials --------------------------------------


def run_trial(
    square: DataSquare,
    samples: SampleSet,
    *,
    lights: int,
    samples_per_iteration: int,
    rng: RandomSource,
) -> bool:
    """One reconstruction trial on `square`; True if the square recovers."""
    square.reset()
    size = square.size
    for _ in range(lights):
        samples.fill_unique(samples_per_iteration, size, rng)
        square.add_samples(samples)
        samples.clear()
    return square.recover()


def run_trials(
    size: int,
    *,
    lights: int,
    samples_per_iteration: int,
    trials: int,
    seed: int,
) -> int:
    """
    Run `trials` independent trials with a private generator and grid.
    Returns the number of successes. Top-level so process pools can pickle it.
    """
    rng = random.Random(seed)
    square = DataSquare(size)
    samples = SampleSet(samples_per_iteration)
    successes = 0
    for _ in range(trials):
        if run_trial(
            square,
            samples,
            lights=lights,
            samples_per_iteration=samples_per_iteration,
            rng=rng,
        ):
            successes += 1
    return successes


def _run_chunk(
    size: int,
    *,
    lights: int,
    samples_per_iteration: int,
    trials: int,
    seed: int,
) -> Tuple[int, float]:
    """`run_trials` plus its wall time, for pool workers."""
    started = time.perf_counter()
    successes = run_trials(
        size,
        lights=lights,
        samples_per_iteration=samples_per_iteration,
        trials=trials,
        seed=seed,
    )
    return successes, time.perf_counter() - started


def _split(total: int, parts: int) -> List[int]:
    base, extra = divmod(total, parts)
    return [base + (1 if i < extra else 0) for i in range(parts) if base or i < extra]


# ------------------------------ Driver --------------------------------------


class Simulation:
    """
    Sweep driver.

    Args:
        config:   validated SimulationConfig.
        rng:      generator for all draws; defaults to random.Random(config.seed).
        metrics:  optional SimMetrics to feed.
        strict:   raise SearchExhausted instead of recording an unreached size.
        on_point: callback invoked with every SweepPoint as it completes.
    """

    def __init__(
        self,
        config: SimulationConfig,
        *,
        rng: Optional[random.Random] = None,
        metrics: Optional[SimMetrics] = None,
        strict: bool = False,
        on_point: Optional[PointCallback] = None,
    ) -> None:
        config.validate()
        self.config = config
        self.rng = rng if rng is not None else random.Random(config.seed)
        self.metrics = metrics
        self.strict = strict
        self.on_point = on_point
        self._executor: Optional[Executor] = None

    # ---- Points ---------------------------------------------------------- #

    def estimate(self, square: DataSquare, samples: SampleSet, lights: int) -> SweepPoint:
        """Run `iterations` trials at `lights` samplers and summarise them."""
        cfg = self.config
        size = square.size
        cells = square.width * square.width
        if cfg.samples_per_iteration > cells:
            raise CapacityError(
                f"samples_per_iteration ({cfg.samples_per_iteration}) exceeds {cells} cells",
                data={"size": size, "cells": cells},
            )

        if self._executor is not None:
            successes = self._estimate_parallel(size, lights)
        else:
            successes = 0
            for _ in range(cfg.iterations):
                if self._trial(square, samples, lights):
                    successes += 1

        point = SweepPoint(size=size, lights=lights, successes=successes, iterations=cfg.iterations)
        if self.metrics is not None:
            self.metrics.note_point(size=size, lights=lights, probability=point.probability)
        log.info(
            point.format_line(),
            extra={
                "lights": lights,
                "rate": round(point.probability, 6),
                "coverage": round(
                    expected_unique_coverage(size, lights, cfg.samples_per_iteration), 4
                ),
            },
        )
        if self.on_point is not None:
            self.on_point(point)
        return point

    def _trial(self, square: DataSquare, samples: SampleSet, lights: int) -> bool:
        spi = self.config.samples_per_iteration
        if self.metrics is None:
            return run_trial(square, samples, lights=lights, samples_per_iteration=spi, rng=self.rng)
        with self.metrics.time_trial() as mark:
            ok = run_trial(square, samples, lights=lights, samples_per_iteration=spi, rng=self.rng)
            mark.outcome(ok)
        return ok

    def _estimate_parallel(self, size: int, lights: int) -> int:
        cfg = self.config
        assert self._executor is not None
        chunks = _split(cfg.iterations, cfg.workers)
        seeds = [self.rng.randrange(1 << 63) for _ in chunks]
        futures = [
            self._executor.submit(
                _run_chunk,
                size,
                lights=lights,
                samples_per_iteration=cfg.samples_per_iteration,
                trials=n,
                seed=seed,
            )
            for n, seed in zip(chunks, seeds)
        ]
        results = [f.result() for f in futures]
        successes = sum(ok for ok, _ in results)
        if self.metrics is not None:
            for n, (ok, seconds) in zip(chunks, results):
                self.metrics.note_trials(successes=ok, failures=n - ok, seconds=seconds)
        return successes

    # ---- Sizes ----------------------------------------------------------- #

    def search_size(self, size: int) -> SizeResult:
        """Increase the sampler count for `size` until the target is met or a bound hits."""
        cfg = self.config
        square = DataSquare(size)
        samples = SampleSet(cfg.samples_per_iteration)
        lights = cfg.start_lights(size)
        step = cfg.lights_step(size)
        result = SizeResult(size=size, initial_lights=lights, step=step)

        width = 2 * size
        log.info(f"Processing size: {width} x {width}", extra={"initial_lights": lights, "step": step})
        bind(size=size)
        try:
            while True:
                point = self.estimate(square, samples, lights)
                result.points.append(point)
                if point.probability >= cfg.target_probability:
                    result.reached = True
                    result.lights = lights
                    log.info(f"Target probability reached for size {size} with {lights} lights")
                    return result

                next_lights = lights + step
                if result.rounds >= cfg.max_rounds or (cfg.max_lights and next_lights > cfg.max_lights):
                    return self._exhausted(result, next_lights)
                lights = next_lights
        finally:
            unbind("size")

    def _exhausted(self, result: SizeResult, next_lights: int) -> SizeResult:
        cfg = self.config
        data = {
            "size": result.size,
            "rounds": result.rounds,
            "next_lights": next_lights,
            "max_rounds": cfg.max_rounds,
            "max_lights": cfg.max_lights,
        }
        if self.strict:
            raise SearchExhausted(
                f"target {cfg.target_probability:.2%} not reached for size {result.size}",
                data=data,
            )
        log.warning(
            f"Target probability not reached for size {result.size}; giving up",
            extra={"rounds": result.rounds, "next_lights": next_lights},
        )
        return result

    # ---- Run ------------------------------------------------------------- #

    def iter_sizes(self) -> Iterator[SizeResult]:
        """Yield one SizeResult per logical size, in sweep order."""
        for size in self.config.sizes():
            yield self.search_size(size)

    def run(self) -> SimulationReport:
        cfg = self.config
        report = SimulationReport(target_probability=cfg.target_probability, seed=cfg.seed)
        started = time.perf_counter()
        with run_scope():
            log.info(
                f"Starting simulation with target probability: {cfg.target_probability:.2%}",
                extra={"sizes": cfg.sizes(), "iterations": cfg.iterations, "workers": cfg.workers},
            )
            if cfg.workers > 1:
                with ProcessPoolExecutor(max_workers=cfg.workers) as pool:
                    self._executor = pool
                    try:
                        report.sizes.extend(self.iter_sizes())
                    finally:
                        self._executor = None
            else:
                report.sizes.extend(self.iter_sizes())
        report.elapsed_seconds = time.perf_counter() - started
        return report


def run_simulation(
    config: SimulationConfig,
    *,
    metrics: Optional[SimMetrics] = None,
    strict: bool = False,
) -> SimulationReport:
    """Convenience wrapper: build a Simulation for `config` and run it."""
    return Simulation(config, metrics=metrics, strict=strict).run()


__all__ = [
    "run_trial",
    "run_trials",
    "Simulation",
    "run_simulation",
]
