"""Evaluator bridge, run orchestration and the reference engine."""

from .bridge import EvaluatorBridge
from .buffers import BufferLedger, ResponseBuffer
from .executors.pool import WorkerPool
from .interfaces import Callback, Engine, Evaluator
from .mads import Mads
from .orchestrator import RunState, run, teardown_scope, validate
from .parameters import DisplayConfig, OutputType, Parameters
from .types import EngineRun, RunStats

__all__ = [
    "BufferLedger",
    "Callback",
    "DisplayConfig",
    "Engine",
    "EngineRun",
    "Evaluator",
    "EvaluatorBridge",
    "Mads",
    "OutputType",
    "Parameters",
    "ResponseBuffer",
    "RunState",
    "RunStats",
    "WorkerPool",
    "run",
    "teardown_scope",
    "validate",
]
