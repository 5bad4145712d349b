import pytest

from arcview.core.errors import EntryDecodeFailure
from arcview.core.handlers import (
    CallableExceptionHandler,
    LoggingExceptionHandler,
    RethrowingExceptionHandler,
    SilentExceptionHandler,
    as_exception_handler,
    handler_for_policy,
)


class RecordingLogger:
    def __init__(self) -> None:
        self.calls = []

    def warning(self, event, **kwargs):
        self.calls.append((event, kwargs))


def _failure() -> EntryDecodeFailure:
    return EntryDecodeFailure(4, OSError("boom"))


@pytest.mark.unit
def test_failure_label_and_message() -> None:
    failure = _failure()

    assert failure.index == 4
    assert failure.label == "tar entry #4"
    assert isinstance(failure.cause, OSError)
    assert "tar entry #4" in str(failure)
    assert "boom" in str(failure)


@pytest.mark.unit
def test_rethrowing_handler_raises_same_exception() -> None:
    failure = _failure()
    with pytest.raises(EntryDecodeFailure) as excinfo:
        RethrowingExceptionHandler().handle(failure.label, failure)
    assert excinfo.value is failure


@pytest.mark.unit
def test_silent_handler_returns() -> None:
    assert SilentExceptionHandler()("tar entry #4", _failure()) is None


@pytest.mark.unit
def test_logging_handler_emits_warning() -> None:
    logger = RecordingLogger()
    failure = _failure()

    LoggingExceptionHandler(logger).handle(failure.label, failure)

    assert len(logger.calls) == 1
    event, fields = logger.calls[0]
    assert event == "entry_decode_failed"
    assert fields["label"] == "tar entry #4"
    assert fields["error_type"] == "EntryDecodeFailure"


@pytest.mark.unit
def test_callable_handler_forwards_arguments() -> None:
    seen = []
    handler = as_exception_handler(lambda label, exc: seen.append((label, exc)))
    failure = _failure()

    handler("x", failure)

    assert isinstance(handler, CallableExceptionHandler)
    assert seen == [("x", failure)]


@pytest.mark.unit
def test_callable_handler_can_abort() -> None:
    def abort(label, exc):
        raise RuntimeError(label)

    with pytest.raises(RuntimeError, match="tar entry #4"):
        as_exception_handler(abort).handle("tar entry #4", _failure())


@pytest.mark.unit
def test_as_exception_handler_passes_handlers_through() -> None:
    handler = SilentExceptionHandler()
    assert as_exception_handler(handler) is handler
    with pytest.raises(TypeError):
        as_exception_handler("not callable")  # type: ignore[arg-type]


@pytest.mark.unit
@pytest.mark.parametrize(
    "policy,expected",
    [
        ("rethrow", RethrowingExceptionHandler),
        ("ignore", SilentExceptionHandler),
        ("log", LoggingExceptionHandler),
    ],
)
def test_handler_for_policy(policy, expected) -> None:
    assert isinstance(handler_for_policy(policy), expected)


@pytest.mark.unit
def test_handler_for_unknown_policy() -> None:
    with pytest.raises(ValueError):
        handler_for_policy("explode")
