"""Worker pools for parallel evaluation."""

from .pool import WorkerPool

__all__ = ["WorkerPool"]
