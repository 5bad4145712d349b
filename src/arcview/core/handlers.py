"""Error policies for recoverable per-entry failures in streaming archives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Union

from arcview.core.constants import (
    ERROR_POLICY_IGNORE,
    ERROR_POLICY_LOG,
    ERROR_POLICY_RETHROW,
)
from arcview.utils.logging import get_logger

__all__ = [
    "ExceptionHandler",
    "RethrowingExceptionHandler",
    "SilentExceptionHandler",
    "LoggingExceptionHandler",
    "CallableExceptionHandler",
    "HandlerLike",
    "as_exception_handler",
    "handler_for_policy",
]


class ExceptionHandler(ABC):
    """
    Decides what happens when one entry of a streaming archive fails.

    Raising from handle() aborts the sequence; returning drops the entry and
    lets the sequence continue.
    """

    @abstractmethod
    def handle(self, label: str, exc: Exception) -> None:
        pass

    def __call__(self, label: str, exc: Exception) -> None:
        self.handle(label, exc)


class RethrowingExceptionHandler(ExceptionHandler):
    """Fail fast (default)."""

    def handle(self, label: str, exc: Exception) -> None:
        raise exc


class SilentExceptionHandler(ExceptionHandler):
    def handle(self, label: str, exc: Exception) -> None:
        return None


class LoggingExceptionHandler(ExceptionHandler):
    """Log the failure as a warning and continue."""

    def __init__(self, logger: Optional[Any] = None) -> None:
        self.logger = logger or get_logger(__name__)

    def handle(self, label: str, exc: Exception) -> None:
        self.logger.warning(
            "entry_decode_failed",
            label=label,
            error=str(exc),
            error_type=type(exc).__name__,
        )


class CallableExceptionHandler(ExceptionHandler):
    """Adapter for plain ``(label, exc)`` callables."""

    def __init__(self, func: Callable[[str, Exception], Any]) -> None:
        self.func = func

    def handle(self, label: str, exc: Exception) -> None:
        self.func(label, exc)


HandlerLike = Union[ExceptionHandler, Callable[[str, Exception], Any]]


def as_exception_handler(handler: HandlerLike) -> ExceptionHandler:
    if isinstance(handler, ExceptionHandler):
        return handler
    if callable(handler):
        return CallableExceptionHandler(handler)
    raise TypeError(f"Exception handler must be callable, got {type(handler).__name__}")


def handler_for_policy(policy: str) -> ExceptionHandler:
    """
    Build the built-in handler for a configured error policy.

    Raises:
        ValueError: If the policy name is unknown
    """
    if policy == ERROR_POLICY_RETHROW:
        return RethrowingExceptionHandler()
    if policy == ERROR_POLICY_IGNORE:
        return SilentExceptionHandler()
    if policy == ERROR_POLICY_LOG:
        return LoggingExceptionHandler()
    raise ValueError(f"Unknown error policy: {policy!r}")
