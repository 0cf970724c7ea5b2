"""
Simulation configuration.

This module defines the parameter bundle consumed by the reconstruction
simulator (`dasim.sim.driver.Simulation`):

- sampling effort per sampler and trials per point
- the sampler-count schedule (start, anchor scaling, increment divisor)
- the grid-size sweep (initial and maximum logical size, doubling)
- the success-rate target and the bounds that keep the sweep finite

All fields have the defaults of the reference experiment and can be
overridden via environment variables or a YAML file (read with PyYAML).

Environment variables (all optional):

  DASIM_SAMPLES_PER_ITERATION=16
  DASIM_ITERATIONS=1000
  DASIM_INITIAL_LIGHTS=7500
  DASIM_LIGHTS_AT_16=10                 # 0 disables anchor scaling
  DASIM_SIZE_ITER_FACTOR=16
  DASIM_INITIAL_SIZE=16
  DASIM_MAX_SIZE=256
  DASIM_TARGET_PROBABILITY=0.99         # or "99%"
  DASIM_SEED=1
  DASIM_MAX_ROUNDS=100000
  DASIM_MAX_LIGHTS=0                    # 0 = no explicit cap
  DASIM_WORKERS=1
"""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigError

# Reference size for the LightsAt16 anchor.
ANCHOR_SIZE = 16


# ------------------------------- helpers ------------------------------------


def parse_probability(s: Optional[str], *, default: float) -> float:
    """
    Parse '0.99', '99%' or '1e-3' to a float probability.
    """
    if not s:
        return default
    s = s.strip().lower()
    pct = re.fullmatch(r"(\d+(?:\.\d+)?)\s*%", s)
    if pct:
        return float(pct.group(1)) / 100.0
    try:
        return float(s)
    except ValueError as e:
        raise ConfigError(f"Invalid probability: {s!r}") from e


def _getenv(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.environ.get(key)
    return v if v is not None and v.strip() != "" else default


def _getenv_int(key: str, default: int) -> int:
    v = _getenv(key)
    if v is None:
        return default
    vv = v.strip().lower().replace("_", "")
    base = 16 if vv.startswith("0x") else 10
    try:
        return int(vv, base)
    except ValueError as e:
        raise ConfigError(f"Invalid int for {key}: {v!r}") from e


# ------------------------------- config -------------------------------------


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters for one simulation run.

    - samples_per_iteration: unique cells each sampler draws
    - iterations: Monte Carlo trials per (size, lights) point
    - initial_lights: starting sampler count when lights_at_16 is 0
    - lights_at_16: if non-zero, start at lights_at_16 * k^2 / 16^2
    - size_iter_factor: sampler-count increment is k // size_iter_factor (min 1)
    - initial_size / max_size: logical sizes swept by doubling, inclusive
    - target_probability: success rate that ends the sweep for a size
    - seed: seed of the process random generator
    - max_rounds: sampler-count rounds tried per size before giving up
    - max_lights: if non-zero, largest sampler count tried per size
    - workers: >1 runs the trials of a point on a process pool
    """
    samples_per_iteration: int = 16
    iterations: int = 1000
    initial_lights: int = 7500
    lights_at_16: int = 10
    size_iter_factor: int = 16
    initial_size: int = 16
    max_size: int = 256
    target_probability: float = 0.99
    seed: int = 1
    max_rounds: int = 100_000
    max_lights: int = 0
    workers: int = 1

    def validate(self) -> None:
        if self.samples_per_iteration < 1:
            raise ConfigError("samples_per_iteration must be >= 1")
        if self.iterations < 1:
            raise ConfigError("iterations must be >= 1")
        if self.initial_lights < 0:
            raise ConfigError("initial_lights must be >= 0")
        if self.lights_at_16 < 0:
            raise ConfigError("lights_at_16 must be >= 0")
        if self.size_iter_factor < 1:
            raise ConfigError("size_iter_factor must be >= 1")
        if self.initial_size < 1:
            raise ConfigError("initial_size must be >= 1")
        if self.max_size < self.initial_size:
            raise ConfigError("Require initial_size <= max_size")
        if not (0.0 <= self.target_probability <= 1.0):
            raise ConfigError("target_probability must be in [0, 1]")
        if self.max_rounds < 1:
            raise ConfigError("max_rounds must be >= 1")
        if self.max_lights < 0:
            raise ConfigError("max_lights must be >= 0")
        if self.workers < 1:
            raise ConfigError("workers must be >= 1")
        # Every sampler draws within the smallest coded square.
        cells = (2 * self.initial_size) ** 2
        if self.samples_per_iteration > cells:
            raise ConfigError(
                f"samples_per_iteration ({self.samples_per_iteration}) exceeds the "
                f"{cells} cells of the smallest coded square"
            )

    def sizes(self) -> List[int]:
        """Logical sizes visited by the sweep, doubling from initial_size."""
        out: List[int] = []
        k = self.initial_size
        while k <= self.max_size:
            out.append(k)
            k *= 2
        return out

    def start_lights(self, size: int) -> int:
        """Starting sampler count for logical size `size`."""
        if self.lights_at_16 != 0:
            return self.lights_at_16 * size * size // (ANCHOR_SIZE * ANCHOR_SIZE)
        return self.initial_lights

    def lights_step(self, size: int) -> int:
        """Sampler-count increment for `size`; never 0."""
        return max(1, size // self.size_iter_factor)

    def with_overrides(self, **overrides: Any) -> "SimulationConfig":
        """Copy with the non-None overrides applied, validated."""
        clean = {k: v for k, v in overrides.items() if v is not None}
        cfg = replace(self, **clean)
        cfg.validate()
        return cfg

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


FIELD_NAMES = tuple(f.name for f in fields(SimulationConfig))


# ------------------------------- loaders ------------------------------------


def from_mapping(data: Mapping[str, Any], *, base: Optional[SimulationConfig] = None) -> SimulationConfig:
    """
    Build a validated config from a mapping of field names. Unknown keys are
    rejected; dashes are accepted in place of underscores.
    """
    base = base or SimulationConfig()
    values: Dict[str, Any] = {}
    for raw_key, raw_value in data.items():
        key = str(raw_key).strip().replace("-", "_")
        if key not in FIELD_NAMES:
            raise ConfigError(f"Unknown config key: {raw_key!r}")
        if key == "target_probability":
            if isinstance(raw_value, str):
                value: Any = parse_probability(raw_value, default=base.target_probability)
            elif isinstance(raw_value, bool):
                raise ConfigError(f"Invalid probability for {key}: {raw_value!r}")
            else:
                try:
                    value = float(raw_value)
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"Invalid probability for {key}: {raw_value!r}") from e
        else:
            # YAML gives bools and floats for values like `true` or `2.9`.
            if isinstance(raw_value, bool) or (
                isinstance(raw_value, float) and not raw_value.is_integer()
            ):
                raise ConfigError(f"Invalid int for {key}: {raw_value!r}")
            try:
                value = int(raw_value)
            except (TypeError, ValueError, OverflowError) as e:
                raise ConfigError(f"Invalid int for {key}: {raw_value!r}") from e
        values[key] = value
    cfg = replace(base, **values)
    cfg.validate()
    return cfg


def load_from_yaml(path: Path | str, *, base: Optional[SimulationConfig] = None) -> SimulationConfig:
    """
    Load a config from a YAML mapping. An optional top-level `simulation:`
    section is honoured.
    """
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if isinstance(doc, dict) and isinstance(doc.get("simulation"), dict):
        doc = doc["simulation"]
    if not isinstance(doc, dict):
        raise ConfigError(f"Config file {p} must contain a mapping")
    return from_mapping(doc, base=base)


def load_from_env() -> SimulationConfig:
    d = SimulationConfig()
    cfg = SimulationConfig(
        samples_per_iteration=_getenv_int("DASIM_SAMPLES_PER_ITERATION", d.samples_per_iteration),
        iterations=_getenv_int("DASIM_ITERATIONS", d.iterations),
        initial_lights=_getenv_int("DASIM_INITIAL_LIGHTS", d.initial_lights),
        lights_at_16=_getenv_int("DASIM_LIGHTS_AT_16", d.lights_at_16),
        size_iter_factor=_getenv_int("DASIM_SIZE_ITER_FACTOR", d.size_iter_factor),
        initial_size=_getenv_int("DASIM_INITIAL_SIZE", d.initial_size),
        max_size=_getenv_int("DASIM_MAX_SIZE", d.max_size),
        target_probability=parse_probability(
            _getenv("DASIM_TARGET_PROBABILITY"), default=d.target_probability
        ),
        seed=_getenv_int("DASIM_SEED", d.seed),
        max_rounds=_getenv_int("DASIM_MAX_ROUNDS", d.max_rounds),
        max_lights=_getenv_int("DASIM_MAX_LIGHTS", d.max_lights),
        workers=_getenv_int("DASIM_WORKERS", d.workers),
    )
    cfg.validate()
    return cfg


@lru_cache(maxsize=1)
def get_config() -> SimulationConfig:
    """
    Load and validate configuration from the environment (cached). Clear the
    cache in tests via `get_config.cache_clear()` to observe env changes.
    """
    return load_from_env()


def format_config(cfg: SimulationConfig | None = None) -> str:
    cfg = cfg or get_config()
    lines: List[str] = []
    for key, value in cfg.to_dict().items():
        if key == "target_probability":
            lines.append(f"{key}: {value} ({float(value):.2%})")  # type: ignore[arg-type]
        else:
            lines.append(f"{key}: {value}")
    return "\n".join(lines)


__all__ = [
    "ANCHOR_SIZE",
    "parse_probability",
    "SimulationConfig",
    "FIELD_NAMES",
    "from_mapping",
    "load_from_yaml",
    "load_from_env",
    "get_config",
    "format_config",
]
