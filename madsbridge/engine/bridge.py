"""Adapter from a flat-array callback to the engine's evaluator interface.

Each ``evaluate`` call builds a fresh request array, invokes the callback
once, adopts the returned response as a :class:`ResponseBuffer` and releases
it before returning. Nothing is shared between calls, so one bridge can serve
several workers, and a pickled copy can serve a worker process.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from madsbridge.core.point import EvalPoint, EvalType
from madsbridge.engine.buffers import ResponseBuffer
from madsbridge.engine.interfaces import Callback, Evaluator
from madsbridge.exceptions import CallbackContractError

SURROGATE_FLAG = 1.0
BLACKBOX_FLAG = 0.0


@dataclass(frozen=True)
class EvaluatorBridge(Evaluator):
    """Evaluator backed by ``callback(request) -> response``.

    Parameters
    ----------
    callback : Callback
        Receives ``n`` floats (``n + 1`` with ``has_surrogate``) and returns
        exactly ``m + 2`` floats: the outputs, the success flag and the
        count-eval flag.
    n : int
        Number of coordinates.
    m : int
        Number of blackbox outputs.
    has_surrogate : bool
        Append the surrogate flag to every request.
    """

    callback: Callback
    n: int
    m: int
    has_surrogate: bool = False

    def __post_init__(self) -> None:
        if self.n < 1:
            raise ValueError(f"n must be positive, got {self.n}")
        if self.m < 0:
            raise ValueError(f"m must be non-negative, got {self.m}")

    @property
    def request_size(self) -> int:
        return self.n + 1 if self.has_surrogate else self.n

    @property
    def response_size(self) -> int:
        return self.m + 2

    def build_request(self, point: EvalPoint) -> np.ndarray:
        if point.dimension < self.n:
            raise CallbackContractError(self.n, point.dimension, what="point")
        request = np.empty(self.request_size, dtype=np.float64)
        request[: self.n] = point.x[: self.n]
        if self.has_surrogate:
            request[self.n] = SURROGATE_FLAG if point.eval_type is EvalType.SURROGATE else BLACKBOX_FLAG
        return request

    def evaluate(self, point: EvalPoint) -> tuple[bool, bool]:
        """Evaluate ``point`` in place and return ``(accepted, count_eval)``."""
        request = self.build_request(point)
        buffer = ResponseBuffer.adopt(self.callback(request))
        with buffer:
            values = buffer.read(self.response_size)
            for i in range(self.m):
                point.set_output(i, float(values[i]))
            accepted = bool(values[self.m] == 1.0)
            count_eval = bool(values[self.m + 1] == 1.0)
        return accepted, count_eval
