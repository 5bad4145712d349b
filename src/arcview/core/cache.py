"""Compute-once value holders used to avoid repeated decoding."""

from __future__ import annotations

from enum import Enum
from threading import Lock
from typing import Callable, Generic, Optional, TypeVar

from arcview.monitoring.metrics import DECODES_PERFORMED
from arcview.utils.logging import get_logger

__all__ = ["CachedDecoder", "CacheState"]

logger = get_logger(__name__)

T = TypeVar("T")


class CacheState(str, Enum):
    EMPTY = "empty"
    COMPUTING = "computing"
    READY = "ready"


class CachedDecoder(Generic[T]):
    """
    Lazy, compute-once, read-many value holder.

    Features:
    - Producer runs at most once per holder, even under concurrent get()
    - Same object returned on every access once computed
    - Producer failures propagate and leave the holder EMPTY (next get() retries)
    """

    def __init__(self, producer: Callable[[], T], label: str = "value") -> None:
        """
        Args:
            producer: Zero-argument callable performing the (possibly expensive) decode
            label: Name used in logs and metrics (e.g. "zip-raw", "zip-entries")
        """
        self._producer = producer
        self.label = label
        self._lock = Lock()
        self._state = CacheState.EMPTY
        self._value: Optional[T] = None

    @classmethod
    def of_value(cls, value: T, label: str = "value") -> "CachedDecoder[T]":
        """Holder that is READY from the start."""
        holder = cls(lambda: value, label=label)
        holder._value = value
        holder._state = CacheState.READY
        return holder

    @property
    def state(self) -> CacheState:
        return self._state

    def get(self) -> T:
        """Return the cached value, producing it on first access."""
        if self._state is CacheState.READY:
            return self._value  # type: ignore[return-value]

        with self._lock:
            # Another thread may have finished while we waited
            if self._state is CacheState.READY:
                return self._value  # type: ignore[return-value]

            self._state = CacheState.COMPUTING
            try:
                value = self._producer()
            except BaseException:
                self._state = CacheState.EMPTY
                raise

            self._value = value
            self._state = CacheState.READY

        DECODES_PERFORMED.labels(label=self.label).inc()
        logger.debug("decoder_value_computed", label=self.label)
        return value

    def __repr__(self) -> str:
        return f"CachedDecoder(label={self.label!r}, state={self._state.value})"
