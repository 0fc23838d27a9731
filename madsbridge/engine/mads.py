"""Reference direct-search engine.

``Mads`` is a compact mesh-adaptive direct search used as the default engine
collaborator. Each iteration polls ``2n`` orthogonal directions around the
incumbent:

    H = I - 2 v v^T,  D = [H, -H]

where ``v`` is a seeded random unit vector. A successful poll doubles the
poll size (up to its initial value), a failed one halves it. The run stops
when the poll size drops below ``min_poll_size`` or a budget is exhausted.

Constraints follow the output types: ``EB`` violations reject the point,
``PB`` violations add ``h = sum(max(0, c)^2)``. The best feasible point
minimises the objective; the best infeasible point minimises ``(h, f)``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from madsbridge.core.point import EvalPoint, EvalStatus, EvalType
from madsbridge.engine import session
from madsbridge.engine.executors.pool import WorkerPool
from madsbridge.engine.interfaces import Evaluator
from madsbridge.engine.parameters import DisplayConfig, OutputType, Parameters
from madsbridge.engine.types import EngineRun, RunStats
from madsbridge.exceptions import EngineError

_LOGGER = logging.getLogger(__name__)

_SEED_MODULUS = 2**31 - 1


@dataclass(slots=True)
class _Search:
    """Per-run bookkeeping."""

    parameters: Parameters
    evaluator: Evaluator
    rng: np.random.Generator
    seed: int
    lower: NDArray[np.float64]
    upper: NDArray[np.float64]
    obj: int
    eb: list[int]
    pb: list[int]
    avg: list[int]
    sums: list[int]
    poll_size: float
    bb_eval: int = 0
    sgte_eval: int = 0
    iterations: int = 0
    tags: int = 0
    avg_total: float = 0.0
    avg_count: int = 0
    sum_total: float = 0.0
    best_feasible: EvalPoint | None = None
    best_infeasible: EvalPoint | None = None
    stop_reason: str = ""
    cache: dict[tuple[float, ...], EvalPoint] = field(default_factory=dict)
    sgte_cache: dict[tuple[float, ...], EvalPoint] = field(default_factory=dict)

    @property
    def budget_used(self) -> int:
        return self.bb_eval + self.sgte_eval // self.parameters.sgte_cost

    def budget_left(self) -> int | None:
        if self.parameters.max_bb_eval is None:
            return None
        return max(0, self.parameters.max_bb_eval - self.budget_used)

    def new_point(self, x: NDArray[np.float64], eval_type: EvalType = EvalType.BLACKBOX) -> EvalPoint:
        self.tags += 1
        return EvalPoint.create(x, self.parameters.output_count, eval_type=eval_type, tag=self.tags)

    def measure(self, point: EvalPoint) -> tuple[float, float] | None:
        """Return ``(h, f)`` or ``None`` when the point is rejected."""
        outputs = point.outputs
        f = float(outputs[self.obj])
        if not math.isfinite(f):
            return None
        for i in self.eb:
            c = float(outputs[i])
            if not math.isfinite(c) or c > 0.0:
                return None
        h = 0.0
        for i in self.pb:
            c = float(outputs[i])
            if not math.isfinite(c):
                return None
            if c > 0.0:
                h += c * c
        return h, f

    def incumbent(self) -> EvalPoint | None:
        return self.best_feasible if self.best_feasible is not None else self.best_infeasible


class Mads:
    """Mesh-adaptive direct search over an :class:`~madsbridge.engine.interfaces.Evaluator`."""

    def __init__(self, display: DisplayConfig | None = None) -> None:
        self._display = display or DisplayConfig()
        self._pool: WorkerPool | None = None
        self._search: _Search | None = None

    # -- Engine protocol -------------------------------------------------

    def validate(self, parameters: Parameters) -> None:
        parameters.check()

    def run(self, parameters: Parameters, evaluator: Evaluator) -> EngineRun:
        session.begin()
        search = self._start(parameters, evaluator)
        self._search = search
        display = self._display

        display.log(1, "MADS run: n=%d m=%d seed=%d", parameters.dimension, parameters.output_count, search.seed)

        x0 = search.new_point(np.clip(np.asarray(parameters.x0, dtype=np.float64), search.lower, search.upper))
        if not self._evaluate_blackbox(search, [x0]):
            raise EngineError(
                "The starting point x0 could not be evaluated or violates an EB constraint.",
                "Check the blackbox at x0 and the extreme-barrier constraints",
                {"x0": list(parameters.x0)},
            )

        while True:
            reason = self._stop_reason(search)
            if reason:
                search.stop_reason = reason
                break
            search.iterations += 1
            success = self._poll(search)
            if success:
                search.poll_size = min(2.0 * search.poll_size, parameters.initial_poll_size)
            else:
                search.poll_size /= 2.0
            if display.enabled(2):
                incumbent = search.incumbent()
                display.log(
                    2,
                    "iter %d: bb_eval=%d poll_size=%.3g success=%s f=%s",
                    search.iterations,
                    search.bb_eval,
                    search.poll_size,
                    success,
                    None if incumbent is None else float(incumbent.outputs[search.obj]),
                )

        stats = self._stats(search)
        display.log(
            1,
            "MADS stopped (%s): bb_eval=%d sgte_eval=%d iterations=%d feasible=%s infeasible=%s",
            search.stop_reason,
            stats.bb_eval,
            stats.sgte_eval,
            stats.iterations,
            search.best_feasible is not None,
            search.best_infeasible is not None,
        )
        return EngineRun(
            best_feasible=search.best_feasible,
            best_infeasible=search.best_infeasible,
            stats=stats,
        )

    def reset(self) -> None:
        search = self._search
        if search is None:
            return
        for point in search.cache.values():
            point.invalidate()
        for point in search.sgte_cache.values():
            point.invalidate()
        search.cache.clear()
        search.sgte_cache.clear()
        search.best_feasible = None
        search.best_infeasible = None
        self._search = None

    def stop_workers(self, display: DisplayConfig) -> None:
        stopped = session.stop_workers()
        self._pool = None
        if stopped:
            display.log(2, "Stopped %d worker pool(s)", stopped)

    def global_teardown(self) -> None:
        session.end()

    # -- search ----------------------------------------------------------

    def _start(self, parameters: Parameters, evaluator: Evaluator) -> _Search:
        n = parameters.dimension
        seed = parameters.seed
        if seed < 0:
            seed = int(np.random.SeedSequence().entropy % _SEED_MODULUS)
        lower = np.full(n, -np.inf) if parameters.lower_bound is None else np.asarray(parameters.lower_bound, dtype=np.float64)
        upper = np.full(n, np.inf) if parameters.upper_bound is None else np.asarray(parameters.upper_bound, dtype=np.float64)

        if parameters.workers > 1:
            self._pool = WorkerPool(mode=parameters.worker_mode, num_workers=parameters.workers)
            session.register_pool(self._pool)

        return _Search(
            parameters=parameters,
            evaluator=evaluator,
            rng=np.random.default_rng(seed),
            seed=seed,
            lower=lower,
            upper=upper,
            obj=parameters.indices(OutputType.OBJ)[0],
            eb=parameters.indices(OutputType.EB),
            pb=parameters.indices(OutputType.PB),
            avg=parameters.indices(OutputType.STAT_AVG),
            sums=parameters.indices(OutputType.STAT_SUM),
            poll_size=float(parameters.initial_poll_size),
        )

    def _stop_reason(self, search: _Search) -> str:
        params = search.parameters
        if search.poll_size < params.min_poll_size:
            return "min poll size reached"
        if search.budget_left() == 0:
            return "max_bb_eval reached"
        if params.max_iterations is not None and search.iterations >= params.max_iterations:
            return "max_iterations reached"
        return ""

    def _directions(self, search: _Search) -> NDArray[np.float64]:
        n = search.parameters.dimension
        v = search.rng.standard_normal(n)
        v /= np.linalg.norm(v)
        householder = np.eye(n) - 2.0 * np.outer(v, v)
        return np.vstack([householder, -householder])

    def _poll(self, search: _Search) -> bool:
        center = search.incumbent()
        if center is None:  # pragma: no cover - x0 always sets an incumbent
            raise EngineError("No incumbent to poll around.")

        candidates: list[EvalPoint] = []
        seen = {center.key()}
        for direction in self._directions(search):
            x = np.clip(center.x + search.poll_size * direction, search.lower, search.upper)
            point = search.new_point(x)
            key = point.key()
            if key in seen or key in search.cache:
                continue
            seen.add(key)
            candidates.append(point)

        if not candidates:
            return False
        if search.parameters.has_sgte:
            candidates = self._order_by_surrogate(search, candidates)
        return self._evaluate_blackbox(search, candidates)

    def _dispatch(self, search: _Search, points: list[EvalPoint]) -> list[tuple[EvalPoint, bool, bool]]:
        if self._pool is not None:
            return self._pool.evaluate_block(search.evaluator, points)
        outcomes = []
        for point in points:
            accepted, count_eval = search.evaluator.evaluate(point)
            outcomes.append((point, accepted, count_eval))
        return outcomes

    def _block_size(self, search: _Search) -> int:
        return search.parameters.workers if self._pool is not None else 1

    def _evaluate_blackbox(self, search: _Search, candidates: list[EvalPoint]) -> bool:
        """Evaluate candidates block by block; return True on improvement."""
        improved = False
        block_size = self._block_size(search)
        for start in range(0, len(candidates), block_size):
            left = search.budget_left()
            if left == 0:
                break
            block = candidates[start : start + block_size]
            if left is not None:
                block = block[:left]
            for point, accepted, count_eval in self._dispatch(search, block):
                if self._record(search, point, accepted, count_eval):
                    improved = True
            if improved and search.parameters.opportunistic:
                break
        return improved

    def _record(self, search: _Search, point: EvalPoint, accepted: bool, count_eval: bool) -> bool:
        search.cache[point.key()] = point
        if count_eval:
            search.bb_eval += 1
        if self._display.enabled(3):
            self._display.log(3, "eval #%d x=%s outputs=%s ok=%s", point.tag, point.x.tolist(), point.outputs.tolist(), accepted)
        if not accepted:
            point.status = EvalStatus.FAILED
            return False
        point.status = EvalStatus.OK

        for i in search.avg:
            search.avg_total += float(point.outputs[i])
            search.avg_count += 1
        for i in search.sums:
            search.sum_total += float(point.outputs[i])

        measured = search.measure(point)
        if measured is None:
            return False
        h, f = measured
        if h == 0.0:
            best = search.best_feasible
            if best is None or f < float(best.outputs[search.obj]):
                search.best_feasible = point
                return True
            return False

        best = search.best_infeasible
        if best is None or (h, f) < search.measure(best):
            search.best_infeasible = point
            return search.best_feasible is None
        return False

    def _order_by_surrogate(self, search: _Search, candidates: list[EvalPoint]) -> list[EvalPoint]:
        pending = []
        for candidate in candidates:
            if candidate.key() not in search.sgte_cache:
                pending.append(search.new_point(candidate.x.copy(), EvalType.SURROGATE))

        block_size = self._block_size(search)
        for start in range(0, len(pending), block_size):
            for point, accepted, _count in self._dispatch(search, pending[start : start + block_size]):
                search.sgte_eval += 1
                point.status = EvalStatus.OK if accepted else EvalStatus.FAILED
                search.sgte_cache[point.key()] = point

        def rank(candidate: EvalPoint) -> tuple[float, float]:
            sgte = search.sgte_cache.get(candidate.key())
            if sgte is None or sgte.status is not EvalStatus.OK:
                return (math.inf, math.inf)
            measured = search.measure(sgte)
            return measured if measured is not None else (math.inf, math.inf)

        return sorted(candidates, key=rank)

    def _stats(self, search: _Search) -> RunStats:
        stat_avg = None
        if search.avg:
            stat_avg = search.avg_total / search.avg_count if search.avg_count else 0.0
        stat_sum = search.sum_total if search.sums else None
        return RunStats(
            bb_eval=search.bb_eval,
            sgte_eval=search.sgte_eval,
            iterations=search.iterations,
            stat_avg=stat_avg,
            stat_sum=stat_sum,
            seed=search.seed,
            poll_size=search.poll_size,
        )
