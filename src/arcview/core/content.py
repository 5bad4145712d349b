"""Random-access views over fully buffered archives (zip)."""

from __future__ import annotations

import io
import os
from collections.abc import Mapping
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Union

from arcview.core.cache import CachedDecoder
from arcview.core.codecs import Codec
from arcview.core.constants import DEFAULT_TEXT_ENCODING
from arcview.core.errors import IOFailure
from arcview.core.models import ArchiveStats, Entry
from arcview.utils.logging import get_logger

__all__ = ["ArchiveContent", "ExtractedContent"]

logger = get_logger(__name__)

Destination = Union[str, "os.PathLike[str]", BinaryIO]


class ExtractedContent(Mapping):
    """
    Read-only name -> Entry snapshot of an archive.

    Produced by ArchiveContent.to_container(); lookups never touch the
    archive bytes again.
    """

    def __init__(self, entries: Dict[str, Entry]) -> None:
        self._entries = dict(entries)

    def __getitem__(self, name: str) -> Entry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> Iterator[Entry]:
        return iter(self._entries.values())

    def __repr__(self) -> str:
        return f"ExtractedContent(entries={list(self._entries)!r})"


class ArchiveContent:
    """
    Buffered zip archive with cached decoding.

    The raw archive bytes and the decoded name -> bytes map each live in a
    CachedDecoder, so the source is read once and the archive is decoded once
    no matter how many lookups follow.
    """

    def __init__(
        self,
        raw: CachedDecoder[bytes],
        codec: Codec,
        text_encoding: str = DEFAULT_TEXT_ENCODING,
    ) -> None:
        """
        Args:
            raw: Holder producing the raw zip bytes
            codec: Codec providing decode_entries()
            text_encoding: Default encoding for entry_as_string()
        """
        self._raw = raw
        self._codec = codec
        self.text_encoding = text_encoding
        self._decoded: CachedDecoder[Dict[str, bytes]] = CachedDecoder(
            lambda: self._codec.decode_entries(self._raw.get()),
            label=f"{codec.format.value}-entries",
        )

    def raw_bytes(self) -> bytes:
        return self._raw.get()

    def to_stream(self) -> BinaryIO:
        """Fresh stream over the raw archive bytes."""
        return io.BytesIO(self._raw.get())

    def write_to(self, destination: Destination) -> "ArchiveContent":
        """
        Write the raw archive bytes verbatim.

        Args:
            destination: File path (parent directories are created) or a
                writable binary stream (left open)

        Returns:
            self, for chaining

        Raises:
            IOFailure: If writing fails
        """
        data = self._raw.get()
        try:
            if hasattr(destination, "write"):
                destination.write(data)  # type: ignore[union-attr]
            else:
                path = Path(destination)  # type: ignore[arg-type]
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)
        except OSError as e:
            raise IOFailure(f"Failed to write archive to {destination}: {e}") from e

        logger.debug("archive_written", destination=str(destination), size=len(data))
        return self

    def _entries_by_name(self) -> Dict[str, bytes]:
        return self._decoded.get()

    def entry(self, name: str) -> bytes:
        """
        Bytes of the named entry.

        A missing entry yields b"", which is indistinguishable from an empty
        one; use ``name in content`` to check presence.
        """
        return self._entries_by_name().get(name, b"")

    def entry_stream(self, name: str) -> BinaryIO:
        return io.BytesIO(self.entry(name))

    def entry_as_string(self, name: str, encoding: Optional[str] = None) -> str:
        return self.entry(name).decode(encoding or self.text_encoding)

    def entries(self) -> Iterator[Entry]:
        """Lazy pass over the decoded entries; call again to restart."""
        for name, content in self._entries_by_name().items():
            yield Entry(name=name, content=content)

    def names(self) -> List[str]:
        return list(self._entries_by_name())

    def to_container(self) -> ExtractedContent:
        return ExtractedContent({entry.name: entry for entry in self.entries()})

    def stats(self) -> ArchiveStats:
        entries = self._entries_by_name()
        return ArchiveStats(
            total_entries=len(entries),
            total_size_bytes=sum(len(v) for v in entries.values()),
            archive_size_bytes=len(self._raw.get()),
        )

    def __contains__(self, name: object) -> bool:
        return name in self._entries_by_name()

    def __iter__(self) -> Iterator[Entry]:
        return self.entries()

    def __repr__(self) -> str:
        return f"ArchiveContent(format={self._codec.format.value}, raw={self._raw!r})"
