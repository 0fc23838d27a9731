"""Exception hierarchy for madsbridge.

Three classes of failure cross the run boundary differently:

- :class:`ParameterError` is raised before a run starts and always reaches
  the caller.
- :class:`EngineError` (and any other exception raised while the engine runs)
  is caught by the orchestrator and turned into a failed
  :class:`~madsbridge.core.results.OptimizationResult`.
- :class:`CallbackContractError` marks a malformed callback response. It is a
  programming error and propagates out of ``run`` after teardown.
"""

from __future__ import annotations

from typing import Any


class MadsBridgeError(Exception):
    """Base class for every madsbridge error.

    Attributes:
        message: Human-readable error description
        suggestion: Optional hint for fixing the error
        details: Optional dict with additional context
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg

    def __reduce__(self) -> tuple[Any, ...]:
        # Errors raised in worker processes are pickled back to the parent.
        return (_restore, (type(self), self.message, self.suggestion, self.details))


def _restore(
    cls: type[MadsBridgeError],
    message: str,
    suggestion: str | None,
    details: dict[str, Any],
) -> MadsBridgeError:
    error = cls.__new__(cls)
    MadsBridgeError.__init__(error, message, suggestion, details)
    return error


class ParameterError(MadsBridgeError, ValueError):
    """Raised when run parameters fail validation."""


class EngineError(MadsBridgeError, RuntimeError):
    """Raised by the engine when a run cannot proceed."""


class CallbackContractError(MadsBridgeError):
    """Raised when a callback breaks the request/response arity contract."""

    def __init__(self, expected: int, received: int, what: str = "response", ndim: int = 1) -> None:
        if ndim == 1:
            message = f"Callback {what} has length {received}, expected exactly {expected}."
        else:
            message = f"Callback {what} is {ndim}-dimensional, expected a flat array of {expected} values."
        suggestion = "Return m outputs followed by the success and count_eval flags"
        details: dict[str, Any] = {"expected": expected, "received": received}
        if ndim != 1:
            details["ndim"] = ndim
        super().__init__(message, suggestion, details)


class BufferReleaseError(MadsBridgeError):
    """Raised when a response buffer is used after release or released twice."""


__all__ = [
    "MadsBridgeError",
    "ParameterError",
    "EngineError",
    "CallbackContractError",
    "BufferReleaseError",
]
