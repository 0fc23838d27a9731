"""High-level entry point for Python blackboxes.

``optimize`` lets users write a natural blackbox::

    def blackbox(x):
        f = (x[0] - 1.0) ** 2 + x[1] ** 2
        c = x[0] + x[1] - 3.0
        return True, True, [f, c]

and derives everything ``run`` needs (dimension, output count, statistics,
surrogate capability) from the :class:`Parameters`.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from madsbridge.core.results import OptimizationResult
from madsbridge.engine.interfaces import Engine
from madsbridge.engine.orchestrator import run
from madsbridge.engine.parameters import DisplayConfig, Parameters
from madsbridge.exceptions import CallbackContractError, ParameterError
from madsbridge.utils.logging import get_logger

_LOGGER = get_logger("api")

Blackbox = Callable[..., tuple[bool, bool, Sequence[float]]]


@dataclass(frozen=True)
class FlatCallback:
    """Flatten ``blackbox(x) -> (success, count_eval, outputs)`` into a response array.

    With ``has_surrogate`` the last request coordinate is split off and passed
    as ``blackbox(x, surrogate)``. Module-level blackboxes keep the wrapper
    picklable for process workers.
    """

    blackbox: Blackbox
    n: int
    m: int
    has_surrogate: bool = False

    def __call__(self, request: NDArray[np.float64]) -> NDArray[np.float64]:
        x = np.array(request[: self.n], dtype=np.float64)
        if self.has_surrogate:
            success, count_eval, outputs = self.blackbox(x, bool(request[self.n] == 1.0))
        else:
            success, count_eval, outputs = self.blackbox(x)

        values = np.asarray(outputs, dtype=np.float64)
        if values.ndim != 1:
            raise CallbackContractError(self.m, int(values.size), what="blackbox output", ndim=values.ndim)
        if values.shape[0] != self.m:
            raise CallbackContractError(self.m, int(values.shape[0]), what="blackbox output")

        response = np.empty(self.m + 2, dtype=np.float64)
        response[: self.m] = values
        response[self.m] = 1.0 if success else 0.0
        response[self.m + 1] = 1.0 if count_eval else 0.0
        return response


def _accepts_surrogate(blackbox: Blackbox) -> bool:
    try:
        signature = inspect.signature(blackbox)
    except (TypeError, ValueError):
        return True
    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL)
    ]
    return len(positional) >= 2 or any(p.kind is p.VAR_POSITIONAL for p in positional)


def optimize(
    blackbox: Blackbox,
    parameters: Parameters,
    *,
    display: DisplayConfig | None = None,
    engine: Engine | None = None,
) -> OptimizationResult:
    """Minimise ``blackbox`` under ``parameters``.

    ``blackbox(x)`` returns ``(success, count_eval, outputs)`` with one output
    per entry of ``parameters.output_types``. When ``parameters.has_sgte`` is
    set it is called as ``blackbox(x, surrogate)``.

    Raises:
        ParameterError: If ``parameters.has_sgte`` is set but ``blackbox``
            cannot take the surrogate flag. Nothing is evaluated.
    """
    if parameters.has_sgte and not _accepts_surrogate(blackbox):
        raise ParameterError(
            "has_sgte is set but the blackbox takes a single argument.",
            suggestion="Define the blackbox as blackbox(x, surrogate) or unset has_sgte",
            details={"blackbox": getattr(blackbox, "__name__", repr(blackbox))},
        )

    n = parameters.dimension
    m = parameters.output_count
    callback = FlatCallback(blackbox=blackbox, n=n, m=m, has_surrogate=parameters.has_sgte)
    result = run(
        parameters,
        display,
        n,
        m,
        callback,
        has_stat_avg=parameters.has_stat_avg,
        has_stat_sum=parameters.has_stat_sum,
        has_surrogate=parameters.has_sgte,
        engine=engine,
    )
    if result.success:
        _LOGGER.info("Optimization finished after %d blackbox evaluations", result.bb_eval)
    else:
        _LOGGER.warning("Optimization failed; see the log for the interruption")
    return result
