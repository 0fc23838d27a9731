"""Utility exports."""

from .logging import console_handler, get_logger

__all__ = [
    "console_handler",
    "get_logger",
]
