"""Result containers and capture of engine-owned points."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from madsbridge.core.point import EvalPoint


@dataclass(frozen=True, slots=True)
class PointSnapshot:
    """Value copy of an evaluated point: coordinates and blackbox outputs."""

    x: tuple[float, ...]
    outputs: tuple[float, ...]

    def to_dict(self) -> dict[str, list[float]]:
        return {"x": list(self.x), "outputs": list(self.outputs)}


def capture_point(point: EvalPoint | None, n: int, m: int) -> PointSnapshot | None:
    """Copy ``n`` coordinates and ``m`` outputs out of ``point``.

    Returns ``None`` when ``point`` is absent. The snapshot holds plain Python
    floats only, so it stays valid after the engine resets or drops the point.
    """
    if point is None:
        return None
    if point.x.shape[0] < n or point.outputs.shape[0] < m:
        msg = (
            f"Cannot capture point with {point.x.shape[0]} coordinates and "
            f"{point.outputs.shape[0]} outputs as n={n}, m={m}"
        )
        raise ValueError(msg)
    x = tuple(float(point.x[i]) for i in range(n))
    outputs = tuple(float(point.outputs[i]) for i in range(m))
    return PointSnapshot(x=x, outputs=outputs)


def capture_points(
    best_feasible: EvalPoint | None,
    best_infeasible: EvalPoint | None,
    n: int,
    m: int,
) -> tuple[PointSnapshot | None, PointSnapshot | None]:
    return capture_point(best_feasible, n, m), capture_point(best_infeasible, n, m)


@dataclass(frozen=True, slots=True)
class OptimizationResult:
    """Outcome of a run, owned by the caller.

    Check ``success`` before trusting any other field. On failure both points
    are absent and the counters are not meaningful. ``has_feasible`` and
    ``has_infeasible`` only report whether the engine produced that point;
    they are independent of each other and of ``success``.
    """

    success: bool = False
    best_feasible: PointSnapshot | None = None
    best_infeasible: PointSnapshot | None = None
    bb_eval: int = 0
    stat_avg: float | None = None
    stat_sum: float | None = None
    seed: int | None = None

    @classmethod
    def failure(cls) -> OptimizationResult:
        return cls(success=False)

    @property
    def has_feasible(self) -> bool:
        return self.best_feasible is not None

    @property
    def has_infeasible(self) -> bool:
        return self.best_infeasible is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "has_feasible": self.has_feasible,
            "has_infeasible": self.has_infeasible,
            "best_feasible": self.best_feasible.to_dict() if self.best_feasible else None,
            "best_infeasible": self.best_infeasible.to_dict() if self.best_infeasible else None,
            "bb_eval": self.bb_eval,
            "stat_avg": self.stat_avg,
            "stat_sum": self.stat_sum,
            "seed": self.seed,
        }

    def export_json(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return target
