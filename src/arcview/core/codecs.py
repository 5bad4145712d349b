"""
Per-format codec adapters.

Each adapter declares the capabilities it provides; calling an operation
outside that set raises UnsupportedOperation. The compression algorithms
themselves come from the standard library (gzip, bz2, lzma, tarfile, zipfile).
"""

from __future__ import annotations

import bz2
import gzip
import io
import lzma
import shutil
import tarfile
import zipfile
import zlib
from abc import ABC
from typing import BinaryIO, Dict, FrozenSet, Optional

from arcview.core.constants import (
    BZIP2_MAGIC,
    COPY_CHUNK_SIZE,
    DEFAULT_BUFFER_SIZE,
    GZIP_MAGIC,
    SIGNATURE_PEEK_SIZE,
    XZ_MAGIC,
)
from arcview.core.errors import CodecError, IOFailure, UnsupportedOperation
from arcview.core.models import Capability, Entry, Format
from arcview.monitoring.metrics import BYTES_DECODED, ENTRIES_READ
from arcview.utils.logging import get_logger

__all__ = [
    "Codec",
    "GzipCodec",
    "Bzip2Codec",
    "TarGzipCodec",
    "ZipCodec",
    "DecodedStream",
    "TarCursor",
    "open_compressed",
    "sniff_compression",
    "codec_for",
]

logger = get_logger(__name__)

# Framing problems reported by the stdlib decompressors
_FRAMING_ERRORS = (gzip.BadGzipFile, EOFError, zlib.error, lzma.LZMAError)

# Signature -> compression format
COMPRESSOR_SIGNATURES = {
    GZIP_MAGIC: "gzip",
    BZIP2_MAGIC: "bzip2",
    XZ_MAGIC: "xz",
}


class DecodedStream(io.BufferedIOBase):
    """
    Read-only decoded stream that owns the raw stream underneath it.

    Framing errors surface as CodecError, other OS errors as IOFailure.
    Closing it closes the decompressor and the raw source.
    """

    def __init__(self, decoded: BinaryIO, raw: BinaryIO, format_name: str) -> None:
        super().__init__()
        self._decoded = decoded
        self._raw = raw
        self.format_name = format_name

    def readable(self) -> bool:
        return True

    def read(self, size: Optional[int] = -1) -> bytes:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        try:
            data = self._decoded.read(-1 if size is None else size)
        except _FRAMING_ERRORS as e:
            raise CodecError(f"Malformed {self.format_name} data: {e}") from e
        except OSError as e:
            raise IOFailure(f"Failed to read {self.format_name} stream: {e}") from e
        BYTES_DECODED.labels(format=self.format_name).inc(len(data))
        return data

    def read1(self, size: int = -1) -> bytes:
        return self.read(size)

    def readinto(self, buffer) -> int:  # type: ignore[override]
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._decoded.close()
        finally:
            try:
                self._raw.close()
            finally:
                super().close()


def _peekable(raw: BinaryIO, buffer_size: int) -> BinaryIO:
    if hasattr(raw, "peek"):
        return raw
    return io.BufferedReader(raw, buffer_size)  # type: ignore[arg-type]


def _peek(raw: BinaryIO, size: int) -> bytes:
    try:
        return raw.peek(size)[:size]  # type: ignore[attr-defined]
    except OSError as e:
        raise IOFailure(f"Failed to read source: {e}") from e


def sniff_compression(head: bytes) -> Optional[str]:
    """Return the compression format whose signature starts ``head``."""
    for signature, name in COMPRESSOR_SIGNATURES.items():
        if head.startswith(signature):
            return name
    return None


def open_compressed(raw: BinaryIO, buffer_size: int = DEFAULT_BUFFER_SIZE) -> DecodedStream:
    """
    Open a decompressing stream, auto-detecting gzip, bzip2 or xz framing.

    Raises:
        CodecError: If the stream does not start with a known signature
    """
    buffered = _peekable(raw, buffer_size)
    head = _peek(buffered, SIGNATURE_PEEK_SIZE)
    name = sniff_compression(head)
    if name == "gzip":
        decoded: BinaryIO = gzip.GzipFile(fileobj=buffered, mode="rb")
    elif name == "bzip2":
        decoded = bz2.BZ2File(buffered, mode="rb")
    elif name == "xz":
        decoded = lzma.LZMAFile(buffered, mode="rb")
    else:
        buffered.close()
        raise CodecError(
            f"Unknown compressor signature: {head.hex().upper() or '<empty>'}"
        )
    return DecodedStream(decoded, buffered, name)


class Codec(ABC):
    """Base class of the codec adapter family."""

    format: Format
    capabilities: FrozenSet[Capability] = frozenset()

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self.buffer_size = buffer_size

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def _unsupported(self, capability: Capability) -> UnsupportedOperation:
        return UnsupportedOperation(
            f"{self.format.value} codec does not support {capability.value}"
        )

    # DECODE_BYTES
    def decode_stream(self, raw: BinaryIO) -> DecodedStream:
        raise self._unsupported(Capability.DECODE_BYTES)

    def decode_bytes(self, raw: BinaryIO) -> bytes:
        """Fully materialize the decoded stream and close it."""
        stream = self.decode_stream(raw)
        try:
            return stream.read()
        finally:
            stream.close()

    # DECODE_ENTRIES (streaming)
    def open_entries(self, raw: BinaryIO) -> "TarCursor":
        raise self._unsupported(Capability.DECODE_ENTRIES)

    def read_next_entry(self, cursor: "TarCursor") -> Optional[Entry]:
        raise self._unsupported(Capability.DECODE_ENTRIES)

    # DECODE_ENTRIES (buffered)
    def decode_entries(self, data: bytes) -> Dict[str, bytes]:
        raise self._unsupported(Capability.DECODE_ENTRIES)

    # ENCODE
    def encode_entry(self, name: str, source: BinaryIO) -> bytes:
        raise self._unsupported(Capability.ENCODE)

    def __repr__(self) -> str:
        caps = ",".join(sorted(c.value for c in self.capabilities))
        return f"{type(self).__name__}(capabilities=[{caps}])"


class GzipCodec(Codec):
    format = Format.GZIP
    capabilities = frozenset({Capability.DECODE_BYTES})

    def decode_stream(self, raw: BinaryIO) -> DecodedStream:
        """
        Raises:
            CodecError: If the stream is empty or lacks the gzip magic
        """
        buffered = _peekable(raw, self.buffer_size)
        head = _peek(buffered, len(GZIP_MAGIC))
        if head != GZIP_MAGIC:
            buffered.close()
            if not head:
                raise CodecError("Empty gzip stream")
            raise CodecError(f"Not a gzip stream (magic {head.hex().upper()})")
        return DecodedStream(gzip.GzipFile(fileobj=buffered, mode="rb"), buffered, "gzip")


class Bzip2Codec(Codec):
    """bzip2 decoding through the signature-sniffing compressor factory."""

    format = Format.BZIP2
    capabilities = frozenset({Capability.DECODE_BYTES})

    def decode_stream(self, raw: BinaryIO) -> DecodedStream:
        return open_compressed(raw, self.buffer_size)


class TarCursor:
    """
    Sequential position inside a decoded tar stream.

    Headers are parsed with tarfile.TarInfo.fromtarfile(), which only needs a
    reader exposing fileobj, encoding, errors, offset and pax_headers; the
    cursor plays that role itself. The stream is never rewound.
    """

    def __init__(self, stream: DecodedStream, encoding: str = tarfile.ENCODING) -> None:
        self.stream = stream
        self.fileobj = self
        self.encoding = encoding
        self.errors = "surrogateescape"
        self.pax_headers: Dict[str, str] = {}
        # end of the last parsed member's data, maintained by TarInfo
        self.offset = 0
        self.position = 0
        self.next_header = 0
        # set after a bad header; the next pull scans block by block
        self.resyncing = False
        self.finished = False
        self.pending: Optional[tarfile.TarInfo] = None

    def read(self, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self.stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b"".join(chunks)
        self.position += len(data)
        return data

    def tell(self) -> int:
        return self.position

    def skip_to(self, offset: int) -> bool:
        """Discard data up to ``offset``; False if the stream ends first."""
        while self.position < offset:
            if not self.read(min(offset - self.position, COPY_CHUNK_SIZE)):
                return False
        return True

    def close(self) -> None:
        self.stream.close()


class TarGzipCodec(Codec):
    format = Format.TAR_GZIP
    capabilities = frozenset({Capability.DECODE_ENTRIES})

    def open_entries(self, raw: BinaryIO) -> TarCursor:
        """
        Open a gzip-compressed tar and parse its first header.

        Raises:
            CodecError: If the data is not gzip or the first tar header is invalid
        """
        cursor = TarCursor(GzipCodec(self.buffer_size).decode_stream(raw))
        try:
            cursor.pending = self._next_header(cursor)
            if cursor.pending is None and cursor.position == 0:
                raise CodecError("empty file")
        except CodecError as e:
            cursor.close()
            raise CodecError(f"Not a tar archive: {e}") from e
        except BaseException:
            cursor.close()
            raise
        cursor.finished = cursor.pending is None
        return cursor

    def _next_header(self, cursor: TarCursor) -> Optional[tarfile.TarInfo]:
        """
        Parse the header at ``cursor.next_header``.

        An all-zero block or the end of the stream ends the archive. An invalid
        header raises CodecError once; the following call skips ahead one block
        at a time until a valid header (or the end of the stream) turns up.
        """
        while True:
            header_at = cursor.next_header
            if not cursor.skip_to(header_at):
                return None
            try:
                info = tarfile.TarInfo.fromtarfile(cursor)
            except tarfile.EOFHeaderError:
                if cursor.resyncing:
                    cursor.next_header = header_at + tarfile.BLOCKSIZE
                    continue
                return None
            except tarfile.EmptyHeaderError:
                return None
            except CodecError:
                raise
            except (tarfile.HeaderError, ValueError) as e:
                cursor.next_header = header_at + tarfile.BLOCKSIZE
                if cursor.resyncing:
                    continue
                cursor.resyncing = True
                raise CodecError(f"invalid tar header at offset {header_at}: {e}") from e

            cursor.resyncing = False
            cursor.next_header = cursor.offset
            return info

    def read_next_entry(self, cursor: TarCursor) -> Optional[Entry]:
        """
        Read the next header and exactly ``header.size`` payload bytes.

        Returns:
            The entry, or None at the end-of-archive marker

        Raises:
            CodecError: If the header is invalid or the payload is cut short
        """
        if cursor.pending is not None:
            info, cursor.pending = cursor.pending, None
        elif cursor.finished:
            return None
        else:
            info = self._next_header(cursor)
        if info is None:
            cursor.finished = True
            return None

        content = b""
        if info.isreg():
            content = cursor.read(info.size)
            if len(content) != info.size:
                raise CodecError(
                    f"unexpected end of data in {info.name!r}: "
                    f"{len(content)} of {info.size} bytes"
                )

        ENTRIES_READ.labels(format=self.format.value).inc()
        return Entry(name=info.name, content=content)


class ZipCodec(Codec):
    format = Format.ZIP
    capabilities = frozenset({Capability.DECODE_ENTRIES, Capability.ENCODE})

    def __init__(
        self,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        compression_level: Optional[int] = None,
    ) -> None:
        super().__init__(buffer_size)
        self.compression_level = compression_level

    def decode_entries(self, data: bytes) -> Dict[str, bytes]:
        """
        Decode the whole archive into an insertion-ordered name -> bytes map.

        Duplicate names keep their first position and the last payload.
        Zero-length input is treated as an empty archive.

        Raises:
            CodecError: If the data is not a readable zip archive
        """
        if not data:
            return {}

        entries: Dict[str, bytes] = {}
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                for info in archive.infolist():
                    entries[info.filename] = archive.read(info)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, *_FRAMING_ERRORS) as e:
            raise CodecError(f"Malformed zip data: {e}") from e
        except (NotImplementedError, RuntimeError) as e:
            # unsupported compression method or encrypted member
            raise CodecError(f"Unreadable zip entry: {e}") from e

        ENTRIES_READ.labels(format=self.format.value).inc(len(entries))
        BYTES_DECODED.labels(format=self.format.value).inc(
            sum(len(v) for v in entries.values())
        )
        logger.debug("zip_entries_decoded", entries=len(entries), archive_bytes=len(data))
        return entries

    def encode_entry(self, name: str, source: BinaryIO) -> bytes:
        """
        Build a deflated zip holding exactly one entry copied from ``source``.

        The source is closed afterwards, whether or not encoding succeeds.

        Raises:
            ValueError: If the entry name is empty
            IOFailure: If reading the source fails
        """
        try:
            if not name:
                raise ValueError("Entry name cannot be empty")

            buffer = io.BytesIO()
            with zipfile.ZipFile(
                buffer,
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compression_level,
            ) as archive:
                with archive.open(name, mode="w") as target:
                    shutil.copyfileobj(source, target, COPY_CHUNK_SIZE)
            return buffer.getvalue()
        except OSError as e:
            raise IOFailure(f"Failed to build zip entry {name!r}: {e}") from e
        finally:
            source.close()


def codec_for(
    fmt: Format,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    zip_compression_level: Optional[int] = None,
) -> Codec:
    if fmt is Format.GZIP:
        return GzipCodec(buffer_size)
    if fmt is Format.BZIP2:
        return Bzip2Codec(buffer_size)
    if fmt is Format.TAR_GZIP:
        return TarGzipCodec(buffer_size)
    if fmt is Format.ZIP:
        return ZipCodec(buffer_size, compression_level=zip_compression_level)
    raise ValueError(f"Unknown format: {fmt!r}")
