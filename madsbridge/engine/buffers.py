"""Ownership of callback response buffers.

The callback allocates a response; the bridge adopts it and is its only
releaser. A :class:`ResponseBuffer` makes that hand-over explicit: it can be
released exactly once, and a second release (or a read after release) raises
:class:`~madsbridge.exceptions.BufferReleaseError`.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from madsbridge.exceptions import BufferReleaseError, CallbackContractError


class BufferLedger:
    """Thread-safe allocation/release counter for response buffers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.allocated = 0
        self.released = 0

    def on_allocate(self) -> None:
        with self._lock:
            self.allocated += 1

    def on_release(self) -> None:
        with self._lock:
            self.released += 1

    @property
    def outstanding(self) -> int:
        with self._lock:
            return self.allocated - self.released


class ResponseBuffer:
    """A response owned by exactly one holder until released."""

    __slots__ = ("_data", "_ledger")

    def __init__(self, values: Sequence[float] | NDArray[np.float64], ledger: BufferLedger | None = None) -> None:
        self._data: NDArray[np.float64] | None = np.array(values, dtype=np.float64)
        self._ledger = ledger
        if ledger is not None:
            ledger.on_allocate()

    @classmethod
    def adopt(cls, response: ResponseBuffer | Sequence[float] | NDArray[np.float64]) -> ResponseBuffer:
        """Take ownership of whatever the callback returned."""
        if isinstance(response, ResponseBuffer):
            return response
        return cls(response)

    @property
    def released(self) -> bool:
        return self._data is None

    def __len__(self) -> int:
        return int(self._view().size)

    def read(self, expected: int) -> NDArray[np.float64]:
        """Return the values, failing fast unless exactly ``expected`` are present."""
        data = self._view()
        if data.ndim != 1:
            raise CallbackContractError(expected, int(data.size), ndim=data.ndim)
        if data.shape[0] != expected:
            raise CallbackContractError(expected, int(data.shape[0]))
        return data

    def release(self) -> None:
        if self._data is None:
            raise BufferReleaseError("Response buffer released twice.")
        self._data = None
        if self._ledger is not None:
            self._ledger.on_release()

    def _view(self) -> NDArray[np.float64]:
        if self._data is None:
            raise BufferReleaseError("Response buffer used after release.")
        return self._data

    def __enter__(self) -> ResponseBuffer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
