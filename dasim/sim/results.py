"""
dasim • Sim • Result records

Plain dataclasses emitted by the driver. They render to JSON-friendly dicts
for the CLI and to short text lines for humans; the text layout is not a
stable interface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SweepPoint:
    """Outcome of `iterations` trials at one (size, lights) point."""

    size: int
    lights: int
    successes: int
    iterations: int

    @property
    def probability(self) -> float:
        return self.successes / float(self.iterations) if self.iterations else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "lights": self.lights,
            "successes": self.successes,
            "iterations": self.iterations,
            "probability": self.probability,
        }

    def format_line(self) -> str:
        return (
            f"Lights: {self.lights}, Success Rate: {self.probability:.2%} "
            f"({self.successes}/{self.iterations})"
        )


@dataclass
class SizeResult:
    """
    Sampler-count search for one logical size.

    `lights` is the first sampler count that reached the target, or None when
    the search stopped at its bound (`reached` is then False).
    """

    size: int
    initial_lights: int
    step: int
    reached: bool = False
    lights: Optional[int] = None
    points: List[SweepPoint] = field(default_factory=list)

    @property
    def rounds(self) -> int:
        return len(self.points)

    @property
    def last_point(self) -> Optional[SweepPoint]:
        return self.points[-1] if self.points else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "coded_width": 2 * self.size,
            "initial_lights": self.initial_lights,
            "step": self.step,
            "reached": self.reached,
            "lights": self.lights,
            "rounds": self.rounds,
            "points": [p.to_dict() for p in self.points],
        }


@dataclass
class SimulationReport:
    """All per-size results of one run, plus the settings that produced them."""

    target_probability: float
    seed: int
    sizes: List[SizeResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def complete(self) -> bool:
        return all(s.reached for s in self.sizes)

    def result_for(self, size: int) -> Optional[SizeResult]:
        for s in self.sizes:
            if s.size == size:
                return s
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_probability": self.target_probability,
            "seed": self.seed,
            "complete": self.complete,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "sizes": [s.to_dict() for s in self.sizes],
        }

    def format_text(self) -> str:
        lines = [f"Target probability : {self.target_probability:.2%}"]
        for s in self.sizes:
            width = 2 * s.size
            if s.reached:
                lines.append(f"Size {s.size:>5} ({width}x{width}): {s.lights} lights after {s.rounds} round(s)")
            else:
                last = s.last_point
                rate = f"{last.probability:.2%}" if last else "n/a"
                lines.append(
                    f"Size {s.size:>5} ({width}x{width}): not reached after {s.rounds} round(s), last {rate}"
                )
        lines.append(f"Elapsed            : {self.elapsed_seconds:.1f}s")
        return "\n".join(lines)


__all__ = [
    "SweepPoint",
    "SizeResult",
    "SimulationReport",
]
