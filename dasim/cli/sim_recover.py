from __future__ import annotations

"""
dasim • sim_recover
===================

Find, for each logical size k, how many independent samplers ("light nodes")
are needed so that a 2k × 2k erasure-coded square is reconstructed from the
cells they reveal in at least a target fraction of Monte Carlo trials.

Settings come from, in increasing precedence:
  1) built-in defaults (16 samples per sampler, 1000 trials, sizes 16..256,
     target 99%),
  2) DASIM_* environment variables,
  3) a YAML file given with --config,
  4) command-line flags.

Examples
--------
# Reference experiment
python -m dasim.cli.sim_recover

# Quick look at small squares, JSON report
python -m dasim.cli.sim_recover --initial-size 4 --max-size 16 --iterations 200 --json

# Bounded search, fail with exit code 3 if a size cannot reach 99.9%
python -m dasim.cli.sim_recover --target-probability 99.9% --max-rounds 50 --strict

# Four worker processes, Prometheus metrics on :9464
python -m dasim.cli.sim_recover --workers 4 --metrics-port 9464
"""

import argparse
import json
import sys
from typing import Optional

from dasim import logging as slog
from dasim.config import (SimulationConfig, format_config, load_from_env,
                          load_from_yaml, parse_probability)
from dasim.errors import DasimError
from dasim.metrics import SimMetrics
from dasim.sampling.probability import min_lights_for_recovery
from dasim.sim.driver import Simulation


def _probability_arg(s: str) -> float:
    if not s.strip():
        raise argparse.ArgumentTypeError("probability must not be empty")
    try:
        return parse_probability(s, default=0.0)
    except DasimError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="dasim • estimate samplers needed to reconstruct a 2D erasure-coded square"
    )
    p.add_argument("--config", help="YAML file with simulation settings")
    p.add_argument("--samples-per-iteration", type=int, help="unique cells per sampler")
    p.add_argument("--iterations", type=int, help="Monte Carlo trials per point")
    p.add_argument("--initial-lights", type=int, help="starting sampler count (without anchor)")
    p.add_argument(
        "--lights-at-16",
        type=int,
        help="anchor: start at LIGHTS_AT_16 * k^2 / 256 samplers (0 disables)",
    )
    p.add_argument("--size-iter-factor", type=int, help="sampler increment is k // factor (min 1)")
    p.add_argument("--initial-size", type=int, help="first logical size k")
    p.add_argument("--max-size", type=int, help="last logical size k (doubling, inclusive)")
    p.add_argument(
        "--target-probability",
        type=_probability_arg,
        help="success rate to reach, e.g. 0.99 or 99%%",
    )
    p.add_argument("--seed", type=int, help="random seed")
    p.add_argument("--max-rounds", type=int, help="sampler-count rounds per size before giving up")
    p.add_argument("--max-lights", type=int, help="largest sampler count tried (0 = unbounded)")
    p.add_argument("--workers", type=int, help="worker processes for trials (1 = in-process)")
    p.add_argument("--strict", action="store_true", help="exit 3 if any size misses the target")
    p.add_argument("--json", action="store_true", help="print machine-readable JSON report")
    p.add_argument("--show-config", action="store_true", help="print effective settings and exit")
    p.add_argument("--metrics-port", type=int, help="serve Prometheus metrics on this port")
    p.add_argument("--log-level", default="INFO", help="log level (default: INFO)")
    p.add_argument("--log-format", choices=["text", "json"], help="log format (default: auto)")
    p.add_argument("--log-file", help="also write JSON logs to this file")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> SimulationConfig:
    cfg = load_from_env()
    if args.config:
        cfg = load_from_yaml(args.config, base=cfg)
    return cfg.with_overrides(
        samples_per_iteration=args.samples_per_iteration,
        iterations=args.iterations,
        initial_lights=args.initial_lights,
        lights_at_16=args.lights_at_16,
        size_iter_factor=args.size_iter_factor,
        initial_size=args.initial_size,
        max_size=args.max_size,
        target_probability=args.target_probability,
        seed=args.seed,
        max_rounds=args.max_rounds,
        max_lights=args.max_lights,
        workers=args.workers,
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    slog.configure(
        json=None if args.log_format is None else args.log_format == "json",
        level=args.log_level,
        file_path=args.log_file,
    )
    log = slog.get_logger("dasim.cli.sim_recover")

    try:
        cfg = build_config(args)
    except DasimError as e:
        print(f"error: {e.message}", file=sys.stderr, flush=True)
        return e.exit_code

    if args.show_config:
        print(format_config(cfg))
        return 0

    metrics = SimMetrics()
    if args.metrics_port:
        metrics.serve(args.metrics_port)
        log.info(f"Serving metrics on :{args.metrics_port}")

    try:
        report = Simulation(cfg, metrics=metrics, strict=args.strict).run()
    except DasimError as e:
        if args.json:
            print(json.dumps({"error": e.to_dict()}, indent=2))
        else:
            print(f"error: {e.message}", file=sys.stderr, flush=True)
        return e.exit_code

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print("dasim • 2D reconstruction sweep")
        print(report.format_text())
        floors = ", ".join(
            f"k={s.size} >= {min_lights_for_recovery(s.size, cfg.samples_per_iteration)}"
            for s in report.sizes
        )
        print(f"Coverage floor     : {floors}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
