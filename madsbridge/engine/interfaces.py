"""Engine protocol surfaces (no implementations).

Two boundaries matter for a run:

- **Evaluator**: what the engine calls for every trial point. It fills the
  point's output slots in place and reports whether the evaluation succeeded
  and whether it counts against the evaluation budget.
- **Engine**: the direct-search collaborator the orchestrator drives. It
  validates parameters, runs to completion, and owns process-wide state that
  must be torn down once per run.

The callback type describes the flat-buffer contract user code implements:
``n`` (or ``n + 1`` with surrogates) floats in, ``m + 2`` floats out.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol, Union

import numpy as np
from numpy.typing import NDArray

from madsbridge.core.point import EvalPoint
from madsbridge.engine.buffers import ResponseBuffer

if TYPE_CHECKING:
    from madsbridge.engine.parameters import DisplayConfig, Parameters
    from madsbridge.engine.types import EngineRun

Response = Union[ResponseBuffer, Sequence[float], NDArray[np.float64]]
Callback = Callable[[NDArray[np.float64]], Response]


class Evaluator(Protocol):
    """Evaluates one point for the engine.

    Implementations must be safe to call from several workers at once; they
    should keep no mutable state between calls.
    """

    def evaluate(self, point: EvalPoint) -> tuple[bool, bool]:
        """Fill ``point.outputs`` and return ``(accepted, counts_as_evaluation)``."""


class Engine(Protocol):
    """Direct-search engine driven by the orchestrator."""

    def validate(self, parameters: Parameters) -> None:
        """Raise :class:`~madsbridge.exceptions.ParameterError` on invalid parameters."""

    def run(self, parameters: Parameters, evaluator: Evaluator) -> EngineRun:
        """Run to completion and return the best points and statistics."""

    def reset(self) -> None:
        """Drop per-run state. Points from the last run become invalid."""

    def stop_workers(self, display: DisplayConfig) -> None:  # pragma: no cover - surface only
        """Stop any parallel workers the engine started."""

    def global_teardown(self) -> None:  # pragma: no cover - surface only
        """Release process-wide engine state."""
