"""arcview core functionality."""

from .cache import CachedDecoder
from .codecs import Bzip2Codec, Codec, GzipCodec, TarGzipCodec, ZipCodec, open_compressed
from .content import ArchiveContent, ExtractedContent
from .entry_stream import EntryStream, TarReader
from .errors import (
    ArchiveError,
    CodecError,
    EntryDecodeFailure,
    IOFailure,
    SourceNotFound,
    UnsupportedOperation,
)
from .handlers import (
    ExceptionHandler,
    LoggingExceptionHandler,
    RethrowingExceptionHandler,
    SilentExceptionHandler,
)
from .models import ArchiveStats, Capability, Entry, Format, StreamState
from .reader import Bzip2Reader, GzipReader, Reader, UncompressedContentReader, read

__all__ = [
    "read",
    "Reader",
    "GzipReader",
    "Bzip2Reader",
    "UncompressedContentReader",
    "TarReader",
    "EntryStream",
    "ArchiveContent",
    "ExtractedContent",
    "CachedDecoder",
    "Codec",
    "GzipCodec",
    "Bzip2Codec",
    "TarGzipCodec",
    "ZipCodec",
    "open_compressed",
    "Entry",
    "ArchiveStats",
    "Format",
    "Capability",
    "StreamState",
    "ExceptionHandler",
    "RethrowingExceptionHandler",
    "SilentExceptionHandler",
    "LoggingExceptionHandler",
    "ArchiveError",
    "SourceNotFound",
    "CodecError",
    "UnsupportedOperation",
    "IOFailure",
    "EntryDecodeFailure",
]
