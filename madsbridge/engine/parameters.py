"""Run parameters and display settings."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from madsbridge.exceptions import ParameterError
from madsbridge.utils.logging import get_logger

_LOGGER = get_logger("engine")


class OutputType(Enum):
    """Role of each blackbox output, in callback order.

    - ``OBJ``: the objective to minimise (exactly one)
    - ``EB``: extreme-barrier constraint, ``c <= 0`` or the point is rejected
    - ``PB``: progressive-barrier constraint, ``c <= 0`` or the point is infeasible
    - ``STAT_AVG`` / ``STAT_SUM``: values aggregated over the run
    - ``NOTHING``: carried along but ignored by the engine
    """

    OBJ = "OBJ"
    EB = "EB"
    PB = "PB"
    STAT_AVG = "STAT_AVG"
    STAT_SUM = "STAT_SUM"
    NOTHING = "NOTHING"


@dataclass(frozen=True, slots=True)
class DisplayConfig:
    """Verbosity of a run.

    ``degree`` 0 is silent, 1 logs a summary, 2 logs every iteration and
    3 logs every evaluation.
    """

    degree: int = 1

    def enabled(self, degree: int) -> bool:
        return self.degree >= degree

    def log(self, degree: int, msg: str, *args: object) -> None:
        if self.enabled(degree):
            _LOGGER.info(msg, *args)


@dataclass(slots=True)
class Parameters:
    """Settings for one optimization run.

    The object is handed over to a run: once a run completes it is released
    and cannot start another one. ``output_types`` fixes the number and order
    of blackbox outputs; ``x0`` fixes the dimension.
    """

    x0: Sequence[float]
    output_types: Sequence[OutputType] = (OutputType.OBJ,)
    lower_bound: Sequence[float] | None = None
    upper_bound: Sequence[float] | None = None
    max_bb_eval: int | None = 1000
    max_iterations: int | None = None
    initial_poll_size: float = 1.0
    min_poll_size: float = 1e-6
    opportunistic: bool = True
    has_sgte: bool = False
    sgte_cost: int = 100
    seed: int = 0
    workers: int = 1
    worker_mode: Literal["thread", "process"] = "thread"
    _released: bool = field(default=False, init=False, repr=False)

    @property
    def dimension(self) -> int:
        return len(self.x0)

    @property
    def output_count(self) -> int:
        return len(self.output_types)

    @property
    def has_stat_avg(self) -> bool:
        return OutputType.STAT_AVG in self.output_types

    @property
    def has_stat_sum(self) -> bool:
        return OutputType.STAT_SUM in self.output_types

    @property
    def released(self) -> bool:
        return self._released

    def indices(self, kind: OutputType) -> list[int]:
        return [i for i, t in enumerate(self.output_types) if t is kind]

    def release(self) -> None:
        """Mark the parameters as consumed by a finished run."""
        self._released = True

    def check(self) -> None:
        """Validate the parameters, raising :class:`ParameterError` on the first problem."""
        if self._released:
            raise ParameterError(
                "Parameters were already consumed by a completed run.",
                "Build a new Parameters object for each run",
            )

        n = self.dimension
        if n == 0:
            raise ParameterError("x0 must contain at least one coordinate.")
        if any(not math.isfinite(float(v)) for v in self.x0):
            raise ParameterError("x0 must only contain finite values.", details={"x0": list(self.x0)})

        for name, bound in (("lower_bound", self.lower_bound), ("upper_bound", self.upper_bound)):
            if bound is not None and len(bound) != n:
                raise ParameterError(
                    f"{name} has {len(bound)} entries, expected {n}.",
                    details={name: list(bound)},
                )

        lower = self.lower_bound if self.lower_bound is not None else [-math.inf] * n
        upper = self.upper_bound if self.upper_bound is not None else [math.inf] * n
        for i, (lo, hi, x) in enumerate(zip(lower, upper, self.x0)):
            if lo > hi:
                raise ParameterError(f"lower_bound[{i}]={lo} exceeds upper_bound[{i}]={hi}.")
            if not lo <= x <= hi:
                raise ParameterError(
                    f"x0[{i}]={x} lies outside [{lo}, {hi}].",
                    "Move the starting point inside the bounds",
                )

        if not self.output_types:
            raise ParameterError("output_types must not be empty.")
        unknown = [t for t in self.output_types if not isinstance(t, OutputType)]
        if unknown:
            raise ParameterError(
                f"Unknown output types: {unknown}.",
                f"Use members of OutputType: {', '.join(t.name for t in OutputType)}",
            )
        objectives = self.indices(OutputType.OBJ)
        if len(objectives) != 1:
            raise ParameterError(
                f"Exactly one OBJ output is required, got {len(objectives)}.",
                details={"output_types": [t.value for t in self.output_types]},
            )

        if self.max_bb_eval is not None and self.max_bb_eval < 1:
            raise ParameterError("max_bb_eval must be positive when set.")
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ParameterError("max_iterations must be positive when set.")
        if not self.initial_poll_size > 0 or not self.min_poll_size > 0:
            raise ParameterError("Poll sizes must be strictly positive.")
        if self.min_poll_size > self.initial_poll_size:
            raise ParameterError(
                f"min_poll_size={self.min_poll_size} exceeds initial_poll_size={self.initial_poll_size}."
            )
        if self.sgte_cost < 1:
            raise ParameterError("sgte_cost must be at least 1.")
        if self.workers < 1:
            raise ParameterError("workers must be at least 1.")
        if self.worker_mode not in ("thread", "process"):
            raise ParameterError(
                f"Unknown worker mode '{self.worker_mode}'.",
                "Available: thread, process",
            )
