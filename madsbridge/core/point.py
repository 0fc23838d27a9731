"""Engine-native evaluation points."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import ArrayLike, NDArray


class EvalType(Enum):
    """Which model a point is evaluated with.

    - ``BLACKBOX``: the true, expensive evaluation
    - ``SURROGATE``: the cheaper approximation
    """

    BLACKBOX = "BB"
    SURROGATE = "SGTE"


class EvalStatus(Enum):
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"
    INVALID = "invalid"


@dataclass(slots=True, eq=False)
class EvalPoint:
    """A trial point owned by the engine.

    ``x`` holds the coordinates and ``outputs`` the blackbox output slots the
    evaluator fills in place. Both are engine storage: callers that need the
    values after the run must copy them (see
    :func:`madsbridge.core.results.capture_point`).
    """

    x: NDArray[np.float64]
    outputs: NDArray[np.float64]
    eval_type: EvalType = EvalType.BLACKBOX
    status: EvalStatus = EvalStatus.PENDING
    tag: int = -1

    @classmethod
    def create(
        cls,
        x: ArrayLike,
        m: int,
        *,
        eval_type: EvalType = EvalType.BLACKBOX,
        tag: int = -1,
    ) -> EvalPoint:
        coords = np.array(x, dtype=np.float64).reshape(-1)
        outputs = np.full(m, np.nan, dtype=np.float64)
        return cls(x=coords, outputs=outputs, eval_type=eval_type, tag=tag)

    @property
    def dimension(self) -> int:
        return int(self.x.shape[0])

    @property
    def is_surrogate(self) -> bool:
        return self.eval_type is EvalType.SURROGATE

    def value(self, index: int) -> float:
        return float(self.x[index])

    def set_output(self, index: int, value: float) -> None:
        self.outputs[index] = value

    def key(self) -> tuple[float, ...]:
        """Hashable identity used by the engine cache."""
        return tuple(float(v) for v in self.x)

    def invalidate(self) -> None:
        """Wipe coordinates and outputs (the engine does this on reset)."""
        self.x.fill(np.nan)
        self.outputs.fill(np.nan)
        self.status = EvalStatus.INVALID

    def __len__(self) -> int:  # pragma: no cover - simple delegation
        return self.dimension
