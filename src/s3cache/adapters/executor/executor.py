"""Executor adapters implementing ExecutorPort."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Callable


class SynchronousExecutor:
    """Runs each submitted task immediately in the calling thread.

    Used when a download is configured with a concurrency of 1, and in tests
    that need a deterministic request order.
    """

    def submit(
        self,
        fn: Callable[..., object],
        *args: object,
        **kwargs: object,
    ) -> Future[object]:
        """Run fn now and return an already-completed Future.

        Exceptions are captured on the Future rather than raised, so callers
        see the same behavior as with a thread pool.
        """
        future: Future[object] = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def __enter__(self) -> SynchronousExecutor:
        return self

    def __exit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> object | None:
        return None


class ThreadPoolExecutorAdapter:
    """Bounded thread pool for concurrent range requests.

    The pool is single-use: leaving the context manager waits for every
    submitted task and shuts the pool down.
    """

    def __init__(self, max_workers: int | None = None) -> None:
        """Create the pool.

        Args:
            max_workers: Upper bound on concurrent tasks. None uses the
                concurrent.futures default.
        """
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="s3cache-range"
        )

    def submit(
        self,
        fn: Callable[..., object],
        *args: object,
        **kwargs: object,
    ) -> Future[object]:
        """Queue fn on the pool."""
        return self._executor.submit(fn, *args, **kwargs)

    def __enter__(self) -> ThreadPoolExecutorAdapter:
        return self

    def __exit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> object | None:
        self._executor.shutdown(wait=True)
        return None


def create_executor(max_workers: int) -> SynchronousExecutor | ThreadPoolExecutorAdapter:
    """Pick an executor for the given concurrency.

    A concurrency of 1 runs tasks inline; anything higher uses a thread pool.
    """
    if max_workers <= 1:
        return SynchronousExecutor()
    return ThreadPoolExecutorAdapter(max_workers=max_workers)
