"""Tiny helpers shared across test modules."""

from __future__ import annotations

from concurrent.futures import Executor, Future
from contextlib import contextmanager


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised.

    Parameters
    ----------
    exception: type[BaseException]
        Exception type that should not be raised within the context.

    Yields
    ------
    None
        Control enters the managed block when the exception is absent.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


class InlineExecutor(Executor):
    """Run submitted callables right away in the calling thread.

    Keeps fire-and-forget side effects deterministic in tests: by the time
    ``submit`` returns, the work is done and the future is resolved.
    """

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:  # noqa: BLE001 - handed to the future
            future.set_exception(exc)
        return future


class ClosedExecutor(Executor):
    """Executor that refuses work, like a pool after ``shutdown()``."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        raise RuntimeError("cannot schedule new futures after shutdown")
