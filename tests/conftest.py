import io
import sys
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, Iterable, Tuple

import pytest

# Ensure src/ is on sys.path for local test runs without installation
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast unit tests")
    config.addinivalue_line(
        "markers",
        "integration: tests that touch the filesystem or combine several components",
    )
    config.addinivalue_line("markers", "slow: slow-running tests")


EntrySpec = Iterable[Tuple[str, bytes]]


def build_tar_gz(entries: EntrySpec) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, data in entries:
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def build_zip(entries: EntrySpec) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def tar_gz_factory() -> Callable[[EntrySpec], bytes]:
    return build_tar_gz


@pytest.fixture
def zip_factory() -> Callable[[EntrySpec], bytes]:
    return build_zip


@pytest.fixture
def sample_entries():
    return [
        ("a.txt", b"alpha"),
        ("docs/b.bin", b"\x00\x01\x02\x03"),
        ("c.log", b"line1\nline2"),
    ]


@pytest.fixture
def sample_tar_gz(sample_entries) -> bytes:
    return build_tar_gz(sample_entries)


@pytest.fixture
def sample_zip(sample_entries) -> bytes:
    return build_zip(sample_entries)


class TrackingStream(io.BytesIO):
    """BytesIO that remembers how often it was closed."""

    def __init__(self, data: bytes = b"") -> None:
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


@pytest.fixture
def tracking_stream_factory() -> Callable[[bytes], TrackingStream]:
    return TrackingStream
