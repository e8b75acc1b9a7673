"""Bounded-concurrency bulk executor.

Each bulk call gets its own thread pool, torn down on every exit path.
Tasks still running when the deadline trips are abandoned, not aborted;
this is only safe for idempotent operations such as delete-by-id or
unordered inserts of documents with fixed ids.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import CancelledError, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from contextlib import contextmanager
from typing import Callable, Iterator, Sequence, TypeVar

from contracts.errors import (
    BackendWriteError,
    BulkInterrupted,
    BulkTimeout,
    VectorStoreError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

THREAD_NAME_PREFIX = "astra-bulk"


@contextmanager
def worker_pool(size: int, operation: str) -> Iterator[ThreadPoolExecutor]:
    """Thread pool scoped to a single bulk call."""
    pool = ThreadPoolExecutor(
        max_workers=size, thread_name_prefix=f"{THREAD_NAME_PREFIX}-{operation}"
    )
    try:
        yield pool
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split *items* into consecutive lists of at most *size* elements."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BulkExecutor:
    """Run one task per item with bounded concurrency and a deadline."""

    def __init__(self, concurrency: int = 8, timeout_seconds: float = 30.0) -> None:
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._concurrency = concurrency
        self._timeout = timeout_seconds

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def run(
        self,
        operation: str,
        items: Sequence[T],
        task: Callable[[T], R],
        *,
        requested: int | None = None,
    ) -> list[R]:
        """Apply *task* to every item and return results in input order.

        *requested* is the number of documents the items stand for, reported
        on failures (defaults to ``len(items)``).

        Raises ``BulkTimeout`` when the deadline elapses, ``BulkInterrupted``
        when the waiting thread is interrupted, and otherwise re-raises the
        first task failure observed once the other tasks have finished.
        """
        if not items:
            return []

        count = requested if requested is not None else len(items)
        start = time.monotonic()
        results: list[R | None] = [None] * len(items)
        first_error: BaseException | None = None

        with worker_pool(self._concurrency, operation) as pool:
            futures = {pool.submit(task, item): i for i, item in enumerate(items)}
            try:
                for future in as_completed(futures, timeout=self._timeout):
                    exc = future.exception()
                    if exc is not None:
                        if first_error is None:
                            first_error = exc
                        continue
                    results[futures[future]] = future.result()
            except FuturesTimeoutError as exc:
                raise BulkTimeout(
                    f"Timeout when running {operation} on {count} document(s).",
                    requested=count,
                    details={"operation": operation, "timeout_seconds": self._timeout},
                ) from exc
            except (KeyboardInterrupt, CancelledError) as exc:
                raise BulkInterrupted(
                    f"Bulk {operation} was interrupted.",
                    requested=count,
                    details={"operation": operation},
                ) from exc

        elapsed_ms = (time.monotonic() - start) * 1000
        logger.debug("[%s.responseTime]=%.1f millis", operation, elapsed_ms)

        if first_error is not None:
            if isinstance(first_error, VectorStoreError):
                raise first_error
            raise BackendWriteError(
                f"Bulk {operation} failed: {first_error}",
                details={"operation": operation, "requested": count},
            ) from first_error

        return results  # type: ignore[return-value]
