"""Shared test fixtures and doubles for madsbridge tests."""

from __future__ import annotations

import os
from collections.abc import Sequence

import numpy as np
import pytest

from madsbridge.core.point import EvalPoint, EvalType
from madsbridge.engine import session
from madsbridge.engine.mads import Mads
from madsbridge.engine.parameters import DisplayConfig, OutputType, Parameters
from madsbridge.engine.types import EngineRun, RunStats

# Newer MLflow releases refuse filesystem tracking URIs unless opted in;
# the tracker tests use temporary './mlruns' file stores.
os.environ.setdefault("MLFLOW_ALLOW_FILE_STORE", "true")


def sphere_callback(request: np.ndarray) -> list[float]:
    """Convex objective with its minimum at (1, 1, ...); always accepted and counted."""
    f = float(np.sum((request - 1.0) ** 2))
    return [f, 1.0, 1.0]


class CallCounter:
    """Callback wrapper that counts calls and keeps the requests it saw."""

    def __init__(self, fn) -> None:
        self.fn = fn
        self.calls = 0
        self.requests: list[list[float]] = []

    def __call__(self, request: np.ndarray):
        self.calls += 1
        self.requests.append(request.tolist())
        return self.fn(request)


class CountingMads(Mads):
    """Mads that records how often the teardown hooks run."""

    def __init__(self, display: DisplayConfig | None = None) -> None:
        super().__init__(display)
        self.stop_calls = 0
        self.teardown_calls = 0
        self.reset_calls = 0

    def stop_workers(self, display: DisplayConfig) -> None:
        self.stop_calls += 1
        super().stop_workers(display)

    def global_teardown(self) -> None:
        self.teardown_calls += 1
        super().global_teardown()

    def reset(self) -> None:
        self.reset_calls += 1
        super().reset()


class ScriptedEngine:
    """Engine double that evaluates a fixed list of points once each.

    The first accepted point with a non-positive last output becomes the
    best feasible point, the first accepted point with a positive one the best
    infeasible point. ``fail_after`` raises once that many points were
    evaluated.
    """

    def __init__(
        self,
        points: Sequence[Sequence[float]],
        *,
        surrogate: Sequence[bool] | None = None,
        fail_after: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self.points = [list(p) for p in points]
        self.surrogate = list(surrogate) if surrogate is not None else [False] * len(self.points)
        self.fail_after = fail_after
        self.error = error or RuntimeError("engine exploded")
        self.evaluated: list[EvalPoint] = []
        self.results: list[tuple[bool, bool]] = []
        self.validate_calls = 0
        self.stop_calls = 0
        self.teardown_calls = 0
        self.reset_calls = 0

    def validate(self, parameters: Parameters) -> None:
        self.validate_calls += 1
        parameters.check()

    def run(self, parameters: Parameters, evaluator) -> EngineRun:
        best_feasible = None
        best_infeasible = None
        bb_eval = 0
        for idx, (x, sgte) in enumerate(zip(self.points, self.surrogate)):
            if self.fail_after is not None and idx >= self.fail_after:
                raise self.error
            eval_type = EvalType.SURROGATE if sgte else EvalType.BLACKBOX
            point = EvalPoint.create(x, parameters.output_count, eval_type=eval_type)
            accepted, count_eval = evaluator.evaluate(point)
            self.evaluated.append(point)
            self.results.append((accepted, count_eval))
            bb_eval += int(count_eval)
            if not accepted or sgte:
                continue
            if point.outputs[-1] <= 0.0:
                if best_feasible is None:
                    best_feasible = point
            elif best_infeasible is None:
                best_infeasible = point
        if self.fail_after is not None and self.fail_after >= len(self.points):
            raise self.error
        return EngineRun(
            best_feasible=best_feasible,
            best_infeasible=best_infeasible,
            stats=RunStats(bb_eval=bb_eval, stat_avg=2.5, stat_sum=7.0, seed=parameters.seed),
        )

    def reset(self) -> None:
        self.reset_calls += 1
        for point in self.evaluated:
            point.invalidate()

    def stop_workers(self, display: DisplayConfig) -> None:
        self.stop_calls += 1

    def global_teardown(self) -> None:
        self.teardown_calls += 1


@pytest.fixture(autouse=True)
def _clean_session():
    """Never leak process-wide engine state between tests."""
    yield
    session.end()


@pytest.fixture
def quiet():
    return DisplayConfig(degree=0)


@pytest.fixture
def sphere_parameters():
    """Unconstrained 2-D sphere problem starting away from the optimum."""
    return Parameters(
        x0=[-1.0, 3.0],
        output_types=[OutputType.OBJ],
        max_bb_eval=2000,
        min_poll_size=1e-7,
        seed=7,
    )


@pytest.fixture
def constrained_parameters():
    """Two outputs: objective then a PB constraint."""
    return Parameters(
        x0=[0.0, 0.0],
        output_types=[OutputType.OBJ, OutputType.PB],
        max_bb_eval=50,
    )


@pytest.fixture
def scripted_engine():
    """Factory for :class:`ScriptedEngine` doubles."""
    return ScriptedEngine


@pytest.fixture
def counting_mads(quiet):
    return CountingMads(quiet)


@pytest.fixture
def counted_sphere():
    return CallCounter(sphere_callback)


@pytest.fixture
def call_counter():
    """Factory wrapping any callback in a :class:`CallCounter`."""
    return CallCounter
