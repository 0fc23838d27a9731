"""Worker pool for parallel point evaluation.

Uses threads or processes to evaluate a block of points while preserving
input order. Each worker process receives its own pickled copy of the
evaluator, so the callback must be picklable in process mode.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Literal

from madsbridge.core.point import EvalPoint
from madsbridge.engine.interfaces import Evaluator

Outcome = tuple[EvalPoint, bool, bool]


def _evaluate_one(evaluator: Evaluator, point: EvalPoint) -> Outcome:
    accepted, count_eval = evaluator.evaluate(point)
    return point, accepted, count_eval


@dataclass(slots=True)
class WorkerPool:
    """Parallel evaluator dispatch that preserves input order.

    Parameters
    ----------
    mode:
        "thread" (default) or "process".
    num_workers:
        Number of workers, at least one.
    """

    mode: Literal["thread", "process"] = "thread"
    num_workers: int = 2
    _pool: Executor | None = field(default=None, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.mode not in ("thread", "process"):
            raise ValueError(f"Unknown worker mode: {self.mode}")
        self.num_workers = max(1, int(self.num_workers))

    @property
    def started(self) -> bool:
        return self._pool is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_pool(self) -> Executor:
        if self._closed:
            raise RuntimeError("WorkerPool has been shut down")
        if self._pool is None:
            ExecutorCls = ThreadPoolExecutor if self.mode == "thread" else ProcessPoolExecutor
            self._pool = ExecutorCls(max_workers=self.num_workers)
        return self._pool

    def evaluate_block(self, evaluator: Evaluator, points: list[EvalPoint]) -> list[Outcome]:
        """Evaluate ``points`` concurrently and return outcomes in input order.

        In process mode the returned points are the workers' copies; callers
        must use them rather than the objects they passed in.
        """
        if not points:
            return []

        pool = self._ensure_pool()
        futures: list[Future] = []
        try:
            for point in points:
                futures.append(pool.submit(_evaluate_one, evaluator, point))
        except BaseException:
            for pending in futures:
                pending.cancel()
            raise

        results: list[Outcome] = []
        for idx, fut in enumerate(futures):
            try:
                results.append(fut.result())
            except BaseException:
                for pending in futures[idx + 1 :]:
                    pending.cancel()
                raise
        return results

    def shutdown(self) -> None:
        """Stop the workers; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        if self._pool is not None:
            self._pool.shutdown(wait=True, cancel_futures=True)
            self._pool = None
