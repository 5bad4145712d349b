"""Normalization of path, byte-buffer and stream inputs."""

from __future__ import annotations

import io
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Union

from arcview.core.constants import DEFAULT_BUFFER_SIZE
from arcview.core.errors import IOFailure, SourceNotFound

__all__ = [
    "SourceLike",
    "Source",
    "PathSource",
    "BytesSource",
    "StreamSource",
    "resolve_source",
]

SourceLike = Union[str, "os.PathLike[str]", bytes, bytearray, memoryview, BinaryIO]


class Source(ABC):
    """
    Something a binary stream can be opened from.

    Every stream returned by open() belongs to the caller, which must close it.
    """

    label: str = "<source>"

    @abstractmethod
    def open(self) -> BinaryIO:
        """Open a fresh readable binary stream."""

    def read_all(self) -> bytes:
        """Read the whole source and close the stream."""
        stream = self.open()
        try:
            return stream.read()
        except OSError as e:
            raise IOFailure(f"Failed to read {self.label}: {e}") from e
        finally:
            stream.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label})"


class PathSource(Source):
    def __init__(
        self,
        path: Union[str, "os.PathLike[str]"],
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        self.path = Path(path)
        self.label = str(self.path)
        self.buffer_size = buffer_size
        if not self.path.is_file():
            raise SourceNotFound(f"Source not found: {self.path}")

    def open(self) -> BinaryIO:
        try:
            return open(self.path, "rb", buffering=self.buffer_size)
        except FileNotFoundError as e:
            raise SourceNotFound(f"Source not found: {self.path}") from e
        except OSError as e:
            raise IOFailure(f"Failed to open {self.path}: {e}") from e

    def read_all(self) -> bytes:
        try:
            return self.path.read_bytes()
        except FileNotFoundError as e:
            raise SourceNotFound(f"Source not found: {self.path}") from e
        except OSError as e:
            raise IOFailure(f"Failed to read {self.path}: {e}") from e


class BytesSource(Source):
    label = "<bytes>"

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self.data = bytes(data)

    def open(self) -> BinaryIO:
        return io.BytesIO(self.data)

    def read_all(self) -> bytes:
        return self.data


class StreamSource(Source):
    """
    Caller-provided stream. It can be handed out exactly once; whoever
    receives it closes it when done.
    """

    label = "<stream>"

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._taken = False

    def open(self) -> BinaryIO:
        if self._taken:
            raise IOFailure("Stream source was already consumed; open a new reader")
        self._taken = True
        return self._stream


def resolve_source(source: SourceLike, buffer_size: int = DEFAULT_BUFFER_SIZE) -> Source:
    """
    Wrap a user supplied input in the matching Source.

    Raises:
        SourceNotFound: If a path is given that does not exist
        TypeError: If the input is neither a path, bytes, nor a readable stream
    """
    if isinstance(source, Source):
        return source
    if isinstance(source, (str, os.PathLike)):
        return PathSource(source, buffer_size=buffer_size)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BytesSource(source)
    if hasattr(source, "read"):
        return StreamSource(source)
    raise TypeError(f"Unsupported source type: {type(source).__name__}")
