"""
Archive data models and structures.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

from arcview.core.constants import DEFAULT_TEXT_ENCODING


class Format(str, Enum):
    """Formats a Reader can be asked to open."""

    GZIP = "gzip"
    BZIP2 = "bzip2"
    TAR_GZIP = "tar+gzip"
    ZIP = "zip"


class Capability(str, Enum):
    """Operations a codec adapter may provide."""

    DECODE_BYTES = "decode-bytes"
    DECODE_ENTRIES = "decode-entries"
    ENCODE = "encode"


class StreamState(str, Enum):
    """Lifecycle of an EntryStream."""

    OPEN = "open"
    READING = "reading"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.EXHAUSTED, StreamState.CLOSED)


@dataclass(frozen=True)
class Entry:
    """
    A named payload read from an archive.

    Attributes:
        name: Member name as stored in the archive
        content: Fully decoded member bytes
    """

    name: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def as_string(self, encoding: str = DEFAULT_TEXT_ENCODING) -> str:
        return self.content.decode(encoding)

    def as_stream(self) -> BinaryIO:
        """Fresh stream over the payload; every call starts at offset 0."""
        return io.BytesIO(self.content)

    def __repr__(self) -> str:
        return f"Entry(name={self.name!r}, size={self.size})"


@dataclass
class ArchiveStats:
    """
    Statistics for a buffered archive.
    """

    total_entries: int
    total_size_bytes: int
    archive_size_bytes: int

    @property
    def compression_ratio(self) -> float:
        """
        Compression ratio (archive_size / decoded size).
        """
        if self.total_size_bytes == 0:
            return 0.0
        return self.archive_size_bytes / self.total_size_bytes

    def __repr__(self) -> str:
        return (
            f"ArchiveStats(entries={self.total_entries}, "
            f"size={self._human_size(self.total_size_bytes)}, "
            f"archive={self._human_size(self.archive_size_bytes)})"
        )

    @staticmethod
    def _human_size(size_bytes: float) -> str:
        """Format bytes as human-readable string."""
        for unit in ["B", "KB", "MB", "GB", "TB"]:
            if size_bytes < 1024:
                return f"{size_bytes:.1f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.1f}PB"
