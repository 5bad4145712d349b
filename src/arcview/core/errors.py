"""Exceptions raised by arcview readers and codecs."""

from __future__ import annotations

from typing import Optional


class ArchiveError(Exception):
    """Base class for arcview errors."""


class SourceNotFound(ArchiveError, FileNotFoundError):
    """The source path does not exist."""


class CodecError(ArchiveError, ValueError):
    """Malformed compressed or archive framing, or unexpected end of stream."""


class UnsupportedOperation(CodecError, NotImplementedError):
    """The codec does not provide the requested capability."""


class IOFailure(ArchiveError, OSError):
    """Underlying read/write failure unrelated to framing."""


class EntryDecodeFailure(ArchiveError):
    """
    A single entry of a streaming archive could not be read.

    Attributes:
        index: Zero-based position of the pull that failed
        label: Human readable context passed to exception handlers
        cause: The original exception
    """

    def __init__(self, index: int, cause: BaseException, label: Optional[str] = None) -> None:
        self.index = index
        self.label = label or f"tar entry #{index}"
        self.cause = cause
        super().__init__(f"Failed to read {self.label}: {cause}")


__all__ = [
    "ArchiveError",
    "SourceNotFound",
    "CodecError",
    "UnsupportedOperation",
    "IOFailure",
    "EntryDecodeFailure",
]
