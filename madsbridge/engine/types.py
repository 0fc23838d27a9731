"""Shared engine datatypes."""

from __future__ import annotations

from dataclasses import dataclass

from madsbridge.core.point import EvalPoint


@dataclass(frozen=True, slots=True)
class RunStats:
    """Counters collected by the engine during a run.

    ``stat_avg`` and ``stat_sum`` stay ``None`` unless the matching output
    type was declared.
    """

    bb_eval: int = 0
    sgte_eval: int = 0
    iterations: int = 0
    stat_avg: float | None = None
    stat_sum: float | None = None
    seed: int | None = None
    poll_size: float | None = None


@dataclass(frozen=True, slots=True)
class EngineRun:
    """What ``Engine.run`` hands back.

    The points are engine storage and are only valid until ``Engine.reset``.
    """

    best_feasible: EvalPoint | None
    best_infeasible: EvalPoint | None
    stats: RunStats
