"""Core datatypes."""

from .point import EvalPoint, EvalStatus, EvalType
from .results import OptimizationResult, PointSnapshot, capture_point, capture_points

__all__ = [
    "EvalPoint",
    "EvalStatus",
    "EvalType",
    "OptimizationResult",
    "PointSnapshot",
    "capture_point",
    "capture_points",
]
