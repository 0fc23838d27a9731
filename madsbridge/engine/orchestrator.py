"""Run orchestration: validate, run, capture, tear down.

``run`` walks a fixed sequence of states::

    Initialized -> ParametersValidated -> Running -> Completed | Failed
                                                       \\-> TearingDown

Validation errors reach the caller unchanged and nothing is started. Once
the engine runs, any exception is logged and turned into a failed
:class:`OptimizationResult`, except :class:`CallbackContractError`, which
marks a programming error and propagates. Teardown (stop workers, then
global engine teardown) runs exactly once on every path out of ``Running``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from madsbridge.core.results import OptimizationResult, capture_points
from madsbridge.engine.bridge import EvaluatorBridge
from madsbridge.engine.interfaces import Callback, Engine
from madsbridge.engine.mads import Mads
from madsbridge.engine.parameters import DisplayConfig, Parameters
from madsbridge.exceptions import CallbackContractError, ParameterError

_LOGGER = logging.getLogger(__name__)


class RunState(Enum):
    INITIALIZED = "initialized"
    PARAMETERS_VALIDATED = "parameters_validated"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TEARING_DOWN = "tearing_down"


def validate(
    engine: Engine,
    parameters: Parameters,
    n: int,
    m: int,
    *,
    has_stat_avg: bool = False,
    has_stat_sum: bool = False,
    has_surrogate: bool = False,
) -> None:
    """Check ``parameters`` and that the run arguments agree with them."""
    engine.validate(parameters)
    if n != parameters.dimension:
        raise ParameterError(
            f"n={n} does not match the dimension of x0 ({parameters.dimension}).",
            details={"n": n, "dimension": parameters.dimension},
        )
    if m != parameters.output_count:
        raise ParameterError(
            f"m={m} does not match the number of output types ({parameters.output_count}).",
            details={"m": m, "output_count": parameters.output_count},
        )
    if has_stat_avg and not parameters.has_stat_avg:
        raise ParameterError("has_stat_avg requested but no STAT_AVG output is declared.")
    if has_stat_sum and not parameters.has_stat_sum:
        raise ParameterError("has_stat_sum requested but no STAT_SUM output is declared.")
    if has_surrogate != parameters.has_sgte:
        raise ParameterError(
            f"has_surrogate={has_surrogate} disagrees with parameters.has_sgte={parameters.has_sgte}.",
            "Pass the same surrogate setting to run() and Parameters",
        )


@contextmanager
def teardown_scope(engine: Engine, display: DisplayConfig) -> Iterator[None]:
    """Stop workers and release global engine state when the block exits."""
    try:
        yield
    finally:
        _LOGGER.debug("state=%s", RunState.TEARING_DOWN.value)
        try:
            engine.stop_workers(display)
        finally:
            engine.global_teardown()


def run(
    parameters: Parameters,
    display: DisplayConfig | None,
    n: int,
    m: int,
    callback: Callback,
    has_stat_avg: bool = False,
    has_stat_sum: bool = False,
    has_surrogate: bool = False,
    *,
    engine: Engine | None = None,
) -> OptimizationResult:
    """Optimize ``callback`` and return the run's result.

    Raises
    ------
    ParameterError
        The parameters are invalid or disagree with ``n``, ``m`` or the
        requested capabilities. The callback is never called.
    CallbackContractError
        The callback returned a response of the wrong length.
    """
    display = display or DisplayConfig()
    engine = engine if engine is not None else Mads(display=display)

    validate(
        engine,
        parameters,
        n,
        m,
        has_stat_avg=has_stat_avg,
        has_stat_sum=has_stat_sum,
        has_surrogate=has_surrogate,
    )
    _LOGGER.debug("state=%s", RunState.PARAMETERS_VALIDATED.value)

    result = OptimizationResult.failure()
    with teardown_scope(engine, display):
        _LOGGER.debug("state=%s", RunState.RUNNING.value)
        try:
            bridge = EvaluatorBridge(callback=callback, n=n, m=m, has_surrogate=has_surrogate)
            outcome = engine.run(parameters, bridge)

            best_feasible, best_infeasible = capture_points(outcome.best_feasible, outcome.best_infeasible, n, m)
            stats = outcome.stats
            result = OptimizationResult(
                success=True,
                best_feasible=best_feasible,
                best_infeasible=best_infeasible,
                bb_eval=stats.bb_eval,
                stat_avg=stats.stat_avg if has_stat_avg else None,
                stat_sum=stats.stat_sum if has_stat_sum else None,
                seed=stats.seed if stats.seed is not None else parameters.seed,
            )
            engine.reset()
            parameters.release()
            _LOGGER.debug("state=%s", RunState.COMPLETED.value)
        except CallbackContractError:
            _LOGGER.error("Callback broke the response contract; aborting run")
            raise
        except Exception:
            _LOGGER.exception("Optimization run was interrupted")
            _LOGGER.debug("state=%s", RunState.FAILED.value)
            result = OptimizationResult.failure()

    if result.success and not (result.has_feasible or result.has_infeasible):
        _LOGGER.warning("Run completed without a feasible or an infeasible point")
    return result
