"""Single-pass lazy entry sequences over streaming archives (tar+gzip)."""

from __future__ import annotations

import tarfile
import zlib
from typing import Any, BinaryIO, Dict, Iterator, Optional

from arcview.core.codecs import Codec, TarCursor
from arcview.core.constants import DEFAULT_MAX_CONSECUTIVE_FAILURES
from arcview.core.errors import CodecError, EntryDecodeFailure
from arcview.core.handlers import ExceptionHandler, RethrowingExceptionHandler
from arcview.core.models import Entry, StreamState
from arcview.core.sources import Source
from arcview.monitoring.metrics import ENTRY_FAILURES
from arcview.utils.logging import get_logger, log_context

__all__ = ["EntryStream", "TarReader"]

logger = get_logger(__name__)

# Failures a single pull may hit while the archive as a whole is still usable
_ENTRY_ERRORS = (OSError, EOFError, tarfile.TarError, zlib.error, CodecError)


class EntryStream(Iterator[Entry]):
    """
    One-shot iterator producing entries straight off the archive stream.

    States: OPEN -> READING -> {EXHAUSTED, CLOSED}. The tar cursor is opened
    on the first pull. Reaching the end-of-archive marker releases every
    underlying resource before StopIteration is raised; close() does the same
    for early termination and is idempotent.

    A bare ``for`` loop that breaks early leaves the gzip stream and the
    source open until the iterator is garbage collected. Use it as a context
    manager, or iterate the TarReader itself, which does that for you:

        with reader.to_stream() as entries:
            for entry in entries:
                ...

        for entry in reader:
            ...
    """

    def __init__(
        self,
        raw: BinaryIO,
        codec: Codec,
        exception_handler: Optional[ExceptionHandler] = None,
        max_entries: Optional[int] = None,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
        label: str = "<stream>",
    ) -> None:
        self._raw = raw
        self._codec = codec
        self._handler = exception_handler or RethrowingExceptionHandler()
        self.max_entries = max_entries
        self.max_consecutive_failures = max_consecutive_failures
        self.label = label

        self._cursor: Optional[TarCursor] = None
        self._state = StreamState.OPEN
        self._pulls = 0
        self._produced = 0
        self._released = False

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def produced(self) -> int:
        """Number of entries handed out so far."""
        return self._produced

    def __iter__(self) -> "EntryStream":
        return self

    def __next__(self) -> Entry:
        if self._state.is_terminal:
            raise StopIteration

        if self._state is StreamState.OPEN:
            self._open_cursor()

        failures = 0
        while True:
            if self.max_entries is not None and self._produced >= self.max_entries:
                logger.warning(
                    "max_entries_reached", source=self.label, max_entries=self.max_entries
                )
                self._finish(StreamState.EXHAUSTED)
                raise StopIteration

            index = self._pulls
            self._pulls += 1
            try:
                entry = self._codec.read_next_entry(self._cursor)  # type: ignore[arg-type]
            except _ENTRY_ERRORS as e:
                failures += 1
                self._on_failure(EntryDecodeFailure(index, e))
                if failures >= self.max_consecutive_failures:
                    logger.warning(
                        "tar_stream_abandoned",
                        source=self.label,
                        consecutive_failures=failures,
                    )
                    self._finish(StreamState.EXHAUSTED)
                    raise StopIteration
                continue

            if entry is None:
                self._finish(StreamState.EXHAUSTED)
                raise StopIteration

            self._produced += 1
            return entry

    def _open_cursor(self) -> None:
        try:
            self._cursor = self._codec.open_entries(self._raw)
        except BaseException:
            # open_entries already closed what it wrapped; make sure the raw
            # source is gone too and never reopen
            self._finish(StreamState.CLOSED)
            raise
        self._state = StreamState.READING
        logger.debug("tar_stream_opened", source=self.label)

    def _on_failure(self, failure: EntryDecodeFailure) -> None:
        ENTRY_FAILURES.labels(format=self._codec.format.value).inc()
        try:
            self._handler.handle(failure.label, failure)
        except BaseException:
            self._finish(StreamState.CLOSED)
            raise

    def _finish(self, state: StreamState) -> None:
        self._state = state
        self._release()

    def _release(self) -> None:
        if self._released:
            return
        self._released = True

        if self._cursor is not None:
            # the decoded stream under the cursor owns raw
            _close_quietly(self._cursor, self.label)
            self._cursor = None
        elif not getattr(self._raw, "closed", False):
            _close_quietly(self._raw, self.label)
        logger.debug(
            "tar_stream_released",
            source=self.label,
            state=self._state.value,
            entries=self._produced,
        )

    def close(self) -> None:
        if self._state.is_terminal:
            return
        self._finish(StreamState.CLOSED)

    def __del__(self) -> None:
        if not self._released:
            self._finish(StreamState.CLOSED)

    def __enter__(self) -> "EntryStream":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Any,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"EntryStream(source={self.label}, state={self._state.value}, "
            f"produced={self._produced})"
        )


def _close_quietly(resource: Any, label: str) -> None:
    try:
        resource.close()
    except (OSError, ValueError, tarfile.TarError) as e:
        logger.warning("stream_close_failed", source=label, error=str(e))


class TarReader:
    """
    Entry access for a tar+gzip source.

    Every to_stream() call opens the source again. Path and byte sources can
    therefore be read repeatedly; a caller-provided stream only once.
    """

    def __init__(
        self,
        source: Source,
        codec: Codec,
        exception_handler: Optional[ExceptionHandler] = None,
        max_entries: Optional[int] = None,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        self.source = source
        self.codec = codec
        self.exception_handler = exception_handler or RethrowingExceptionHandler()
        self.max_entries = max_entries
        self.max_consecutive_failures = max_consecutive_failures

    def to_stream(self) -> EntryStream:
        """
        Lazy sequence over the archive in physical order.

        Raises:
            IOFailure: If the source is a stream that was already consumed
        """
        return EntryStream(
            self.source.open(),
            self.codec,
            exception_handler=self.exception_handler,
            max_entries=self.max_entries,
            max_consecutive_failures=self.max_consecutive_failures,
            label=self.source.label,
        )

    def to_map(self) -> Dict[str, bytes]:
        """Drain the archive into an insertion-ordered map; last duplicate wins."""
        result: Dict[str, bytes] = {}
        with log_context(source=self.source.label, format=self.codec.format.value):
            with self.to_stream() as entries:
                for entry in entries:
                    result[entry.name] = entry.content
        return result

    def first(self) -> Optional[Entry]:
        """First entry in archive order, closing the stream right after it."""
        with self.to_stream() as entries:
            return next(entries, None)

    def __iter__(self) -> Iterator[Entry]:
        with self.to_stream() as entries:
            yield from entries
