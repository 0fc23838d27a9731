"""Process-wide engine state.

The engine keeps one global session per process: an initialised flag and the
worker pools started during the current run. ``begin`` opens it when a run
starts; ``stop_workers`` and ``end`` close it once the run is over. Both are
safe to call when nothing is open.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from madsbridge.engine.executors.pool import WorkerPool

_LOGGER = logging.getLogger(__name__)


class _EngineState:
    __slots__ = ("lock", "initialized", "pools", "runs")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.initialized = False
        self.pools: list[WorkerPool] = []
        self.runs = 0


_STATE = _EngineState()


def begin() -> None:
    with _STATE.lock:
        if _STATE.initialized:
            _LOGGER.warning("Engine session already open; a previous run was not torn down")
        _STATE.initialized = True
        _STATE.runs += 1


def is_initialized() -> bool:
    with _STATE.lock:
        return _STATE.initialized


def register_pool(pool: WorkerPool) -> None:
    with _STATE.lock:
        _STATE.pools.append(pool)


def active_pools() -> list[WorkerPool]:
    with _STATE.lock:
        return list(_STATE.pools)


def stop_workers() -> int:
    """Shut down every registered pool and return how many were stopped."""
    with _STATE.lock:
        pools = list(_STATE.pools)
        _STATE.pools.clear()
    for pool in pools:
        pool.shutdown()
    return len(pools)


def end() -> None:
    """Close the session, stopping any pool still registered."""
    leftover = stop_workers()
    if leftover:
        _LOGGER.debug("Stopped %d worker pool(s) during teardown", leftover)
    with _STATE.lock:
        _STATE.initialized = False


def run_count() -> int:
    with _STATE.lock:
        return _STATE.runs
