"""arcview - lazy, cached, format-uniform access to gzip, bzip2, tar+gzip and zip content."""

__version__ = "0.1.0"

from .core import (
    ArchiveContent,
    ArchiveError,
    CachedDecoder,
    CodecError,
    Entry,
    EntryDecodeFailure,
    EntryStream,
    IOFailure,
    Reader,
    SourceNotFound,
    TarReader,
    read,
)
from .config import ReaderConfig

__all__ = [
    "read",
    "Reader",
    "ReaderConfig",
    "TarReader",
    "EntryStream",
    "ArchiveContent",
    "CachedDecoder",
    "Entry",
    "ArchiveError",
    "SourceNotFound",
    "CodecError",
    "IOFailure",
    "EntryDecodeFailure",
]
