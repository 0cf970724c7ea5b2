"""
Prometheus metrics for simulation runs.

Counters, gauges and histograms for:
- trials run, grouped by outcome (recovered / failed)
- sweep points evaluated
- latest success rate and sampler count per logical size
- wall time per trial

Instruments live on their own CollectorRegistry so several simulations (or
tests) in one process never collide on metric names.

Typical usage:

    from dasim.metrics import get_metrics

    METRICS = get_metrics()
    with METRICS.time_trial() as t:
        ok = square.recover()
        t.outcome(ok)

To expose `/metrics` while a long sweep runs:

    METRICS.serve(port=9464)
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    start_http_server,
)


class SimMetrics:
    """
    Concrete metrics backed by prometheus_client.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()
        reg = self.registry

        self.trials_total = Counter(
            "dasim_trials_total",
            "Total reconstruction trials",
            ["outcome"],
            registry=reg,
        )
        self.points_total = Counter(
            "dasim_points_total",
            "Total (size, lights) sweep points evaluated",
            registry=reg,
        )
        self.success_rate = Gauge(
            "dasim_success_rate",
            "Success rate of the latest sweep point",
            ["size"],
            registry=reg,
        )
        self.lights = Gauge(
            "dasim_lights",
            "Sampler count of the latest sweep point",
            ["size"],
            registry=reg,
        )
        self.trial_duration = Histogram(
            "dasim_trial_duration_seconds",
            "Wall time of a single trial (seconds)",
            registry=reg,
            buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
        )

    # ------------------------------ trial timer ------------------------------

    @contextmanager
    def time_trial(self) -> Iterator["_TrialMark"]:
        """
        Time one trial and count its outcome.

        Usage:
            with METRICS.time_trial() as t:
                t.outcome(square.recover())
        """
        start = time.perf_counter()
        mark = _TrialMark()
        try:
            yield mark
        finally:
            self.trial_duration.observe(max(0.0, time.perf_counter() - start))
            self.trials_total.labels(mark.label).inc()

    def note_trials(self, *, successes: int, failures: int, seconds: Optional[float] = None) -> None:
        """
        Count trials that ran elsewhere (e.g. on a process pool). When the
        batch wall time is known, each trial is observed at the batch average.
        """
        if successes:
            self.trials_total.labels("recovered").inc(successes)
        if failures:
            self.trials_total.labels("failed").inc(failures)
        trials = successes + failures
        if seconds is not None and trials:
            per_trial = max(0.0, seconds) / trials
            for _ in range(trials):
                self.trial_duration.observe(per_trial)

    def note_point(self, *, size: int, lights: int, probability: float) -> None:
        self.points_total.inc()
        self.success_rate.labels(str(size)).set(probability)
        self.lights.labels(str(size)).set(lights)

    # ------------------------------- exposure --------------------------------

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose this registry over HTTP on `port`."""
        start_http_server(port, addr=addr, registry=self.registry)

    def render(self) -> bytes:
        """Text exposition format of the current values."""
        return generate_latest(self.registry)

    def sample(self, name: str, **labels: str) -> Optional[float]:
        return self.registry.get_sample_value(name, labels or None)


class _TrialMark:
    label = "failed"

    def outcome(self, recovered: bool) -> None:
        self.label = "recovered" if recovered else "failed"


# ------------------------------- public API ----------------------------------

_METRICS_SINGLETON: Optional[SimMetrics] = None


def get_metrics(registry: Optional[CollectorRegistry] = None) -> SimMetrics:
    """
    Return a process-wide SimMetrics singleton. The first call can inject a custom
    registry; subsequent calls ignore the registry parameter.
    """
    global _METRICS_SINGLETON
    if _METRICS_SINGLETON is None:
        _METRICS_SINGLETON = SimMetrics(registry=registry)
    return _METRICS_SINGLETON


__all__ = [
    "SimMetrics",
    "get_metrics",
]
