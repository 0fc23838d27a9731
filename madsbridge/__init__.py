"""madsbridge public interface.

``optimize`` runs a Python blackbox; ``run`` is the flat-callback boundary
underneath it. Lower-level pieces live under ``madsbridge.engine``.
"""

from __future__ import annotations

from .api import FlatCallback, optimize
from .core.results import OptimizationResult, PointSnapshot
from .engine import DisplayConfig, EvaluatorBridge, Mads, OutputType, Parameters, run
from .exceptions import (
    BufferReleaseError,
    CallbackContractError,
    EngineError,
    MadsBridgeError,
    ParameterError,
)

__all__ = [
    "BufferReleaseError",
    "CallbackContractError",
    "DisplayConfig",
    "EngineError",
    "EvaluatorBridge",
    "FlatCallback",
    "Mads",
    "MadsBridgeError",
    "OptimizationResult",
    "OutputType",
    "ParameterError",
    "Parameters",
    "PointSnapshot",
    "optimize",
    "run",
]

__version__ = "0.1.0"
