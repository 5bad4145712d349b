import threading
import time

import pytest

from arcview.core.cache import CachedDecoder, CacheState


@pytest.mark.unit
def test_producer_runs_once_for_repeated_get() -> None:
    calls = []

    def produce() -> bytes:
        calls.append(1)
        return b"payload"

    holder = CachedDecoder(produce, label="test")
    assert holder.state is CacheState.EMPTY

    first = holder.get()
    for _ in range(10):
        assert holder.get() is first

    assert len(calls) == 1
    assert holder.state is CacheState.READY


@pytest.mark.unit
def test_producer_runs_once_under_concurrent_get() -> None:
    calls = []
    lock = threading.Lock()
    workers = 8
    barrier = threading.Barrier(workers)

    def produce() -> object:
        with lock:
            calls.append(1)
        time.sleep(0.05)
        return object()

    holder = CachedDecoder(produce, label="threads")
    results = []

    def worker() -> None:
        barrier.wait()
        results.append(holder.get())

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len(results) == workers
    assert all(r is results[0] for r in results)


@pytest.mark.unit
def test_failed_production_is_retried() -> None:
    attempts = []

    def produce() -> str:
        attempts.append(1)
        if len(attempts) == 1:
            raise OSError("disk went away")
        return "ok"

    holder = CachedDecoder(produce)

    with pytest.raises(OSError, match="disk went away"):
        holder.get()
    assert holder.state is CacheState.EMPTY

    assert holder.get() == "ok"
    assert holder.get() == "ok"
    assert len(attempts) == 2


@pytest.mark.unit
def test_of_value_is_ready_without_calling_producer() -> None:
    holder = CachedDecoder.of_value(b"raw", label="preset")
    assert holder.state is CacheState.READY
    assert holder.get() == b"raw"
    assert "preset" in repr(holder)
