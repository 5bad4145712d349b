"""Reader facade: one entry point for every supported format."""

from __future__ import annotations

import io
from typing import BinaryIO, Optional, cast

from arcview.config.reader_config import ReaderConfig
from arcview.core.cache import CachedDecoder
from arcview.core.codecs import Codec, ZipCodec, codec_for
from arcview.core.content import ArchiveContent
from arcview.core.entry_stream import TarReader
from arcview.core.handlers import (
    ExceptionHandler,
    HandlerLike,
    LoggingExceptionHandler,
    SilentExceptionHandler,
    as_exception_handler,
    handler_for_policy,
)
from arcview.core.models import Format
from arcview.core.sources import Source, SourceLike, resolve_source
from arcview.utils.logging import get_logger

__all__ = [
    "Reader",
    "DecodedContentReader",
    "GzipReader",
    "Bzip2Reader",
    "UncompressedContentReader",
    "read",
]

logger = get_logger(__name__)


class DecodedContentReader:
    """
    Decoded view of a compressed source.

    as_stream() hands out the live decompressing stream. as_bytes() drains
    it once; afterwards as_stream() returns a stream over the drained bytes.
    """

    def __init__(self, source: Source, codec: Codec) -> None:
        self.source = source
        self._codec = codec
        self._stream: Optional[BinaryIO] = None
        self._data: Optional[bytes] = None

    def _live_stream(self) -> BinaryIO:
        if self._stream is None:
            self._stream = self._codec.decode_stream(self.source.open())
        return self._stream

    def as_stream(self) -> BinaryIO:
        if self._data is not None:
            return io.BytesIO(self._data)
        return self._live_stream()

    def as_bytes(self) -> bytes:
        """
        Raises:
            CodecError: If the compressed framing is malformed or truncated
        """
        if self._data is None:
            stream = self._live_stream()
            try:
                self._data = stream.read()
            finally:
                stream.close()
            self._stream = None
        return self._data


class GzipReader(DecodedContentReader):
    """Decoded view of a gzip source."""


class Bzip2Reader(DecodedContentReader):
    """Decoded view of a bzip2 source (gzip and xz are detected as well)."""


class UncompressedContentReader:
    def __init__(self, source: Source, codec: ZipCodec, config: ReaderConfig) -> None:
        self.source = source
        self._codec = codec
        self._config = config

    def to_zip(self, entry_name: str) -> ArchiveContent:
        """
        Wrap the source as a single-entry zip archive.

        The zip is built lazily, once, on first access to the returned content.
        """
        raw = CachedDecoder(
            lambda: self._codec.encode_entry(entry_name, self.source.open()),
            label="zip-encode",
        )
        return ArchiveContent(raw, self._codec, text_encoding=self._config.text_encoding)


class Reader:
    """
    Entry point for reading gzip, bzip2, tar+gzip and zip content.

    Example:
        mapping = read().from_tar_gzip("bundle.tar.gz").to_map()
        text = read().from_zip(data).entry_as_string("test.txt")
    """

    def __init__(self, config: Optional[ReaderConfig] = None) -> None:
        self.config = config or ReaderConfig()
        self.exception_handler: ExceptionHandler = handler_for_policy(
            self.config.error_policy
        )

    # Error policy

    def with_exception_handler(self, handler: HandlerLike) -> "Reader":
        """Use ``handler`` for per-entry failures in streaming archives."""
        self.exception_handler = as_exception_handler(handler)
        return self

    def with_silently_ignore_exception_handler(self) -> "Reader":
        return self.with_exception_handler(SilentExceptionHandler())

    def with_logging_exception_handler(self, logger: Optional[object] = None) -> "Reader":
        return self.with_exception_handler(LoggingExceptionHandler(logger))

    # Formats

    def _source(self, source: SourceLike, fmt: Format) -> Source:
        resolved = resolve_source(source, buffer_size=self.config.buffer_size)
        logger.debug("reader_source_resolved", format=fmt.value, source=resolved.label)
        return resolved

    def from_gzip(self, source: SourceLike) -> GzipReader:
        return GzipReader(self._source(source, Format.GZIP), self._codec(Format.GZIP))

    def from_bzip2(self, source: SourceLike) -> Bzip2Reader:
        return Bzip2Reader(self._source(source, Format.BZIP2), self._codec(Format.BZIP2))

    def from_tar_gzip(self, source: SourceLike) -> TarReader:
        return TarReader(
            self._source(source, Format.TAR_GZIP),
            self._codec(Format.TAR_GZIP),
            exception_handler=self.exception_handler,
            max_entries=self.config.max_entries,
            max_consecutive_failures=self.config.max_consecutive_failures,
        )

    def from_zip(self, source: SourceLike) -> ArchiveContent:
        """
        Buffered zip view. Byte buffers are used as is; paths and streams are
        read in full on first access.
        """
        resolved = self._source(source, Format.ZIP)
        if isinstance(source, (bytes, bytearray, memoryview)):
            raw = CachedDecoder.of_value(resolved.read_all(), label="zip-raw")
        else:
            raw = CachedDecoder(resolved.read_all, label="zip-raw")
        return ArchiveContent(
            raw, self._zip_codec(), text_encoding=self.config.text_encoding
        )

    def from_uncompressed(self, source: SourceLike) -> UncompressedContentReader:
        return UncompressedContentReader(
            self._source(source, Format.ZIP), self._zip_codec(), self.config
        )

    def _codec(self, fmt: Format) -> Codec:
        return codec_for(
            fmt,
            self.config.buffer_size,
            zip_compression_level=self.config.zip_compression_level,
        )

    def _zip_codec(self) -> ZipCodec:
        return cast(ZipCodec, self._codec(Format.ZIP))

    def __repr__(self) -> str:
        return (
            f"Reader(error_policy={self.config.error_policy}, "
            f"handler={type(self.exception_handler).__name__})"
        )


def read(config: Optional[ReaderConfig] = None) -> Reader:
    """Create a Reader, optionally with a custom configuration."""
    return Reader(config)
