"""Unit tests for the bounded-concurrency bulk executor."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from astra_store.bulk import THREAD_NAME_PREFIX, BulkExecutor, chunked
from contracts.errors import (
    BackendWriteError,
    BulkInterrupted,
    BulkTimeout,
)


# ── Helpers ─────────────────────────────────────────────────────────


def _bulk_threads() -> list[threading.Thread]:
    return [t for t in threading.enumerate() if t.name.startswith(THREAD_NAME_PREFIX)]


def _wait_for_pool_release(timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    for t in _bulk_threads():
        t.join(max(deadline - time.monotonic(), 0.0))


# ── Tests ───────────────────────────────────────────────────────────


class TestChunked:
    def test_partitions(self) -> None:
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty(self) -> None:
        assert chunked([], 20) == []


class TestBulkExecutor:
    def test_empty_input_is_noop(self) -> None:
        task = MagicMock()
        executor = BulkExecutor(concurrency=4, timeout_seconds=1)
        assert executor.run("delete", [], task) == []
        task.assert_not_called()

    def test_results_in_input_order(self) -> None:
        executor = BulkExecutor(concurrency=3, timeout_seconds=5)
        assert executor.run("double", [1, 2, 3, 4], lambda x: x * 2) == [2, 4, 6, 8]

    def test_concurrency_is_bounded(self) -> None:
        lock = threading.Lock()
        active = 0
        peak = 0

        def task(_: int) -> None:
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.05)
            with lock:
                active -= 1

        BulkExecutor(concurrency=2, timeout_seconds=5).run("delete", list(range(6)), task)
        assert peak <= 2

    def test_timeout_raises_and_releases_pool(self) -> None:
        release = threading.Event()

        def hang(_: str) -> None:
            release.wait(5)

        executor = BulkExecutor(concurrency=2, timeout_seconds=0.2)
        try:
            with pytest.raises(BulkTimeout) as excinfo:
                executor.run("delete", ["a", "b", "c"], hang)
        finally:
            release.set()

        assert excinfo.value.requested == 3
        assert excinfo.value.details["requested"] == 3
        _wait_for_pool_release()
        assert _bulk_threads() == []

    def test_first_failure_surfaces_after_others_finish(self) -> None:
        seen: list[str] = []
        lock = threading.Lock()

        def task(item: str) -> None:
            with lock:
                seen.append(item)
            if item == "bad":
                raise BackendWriteError("remote rejected")

        executor = BulkExecutor(concurrency=2, timeout_seconds=5)
        with pytest.raises(BackendWriteError, match="remote rejected"):
            executor.run("insert", ["a", "bad", "c", "d"], task)
        assert sorted(seen) == ["a", "bad", "c", "d"]

    def test_unexpected_error_is_wrapped(self) -> None:
        def task(_: str) -> None:
            raise ValueError("boom")

        with pytest.raises(BackendWriteError, match="boom") as excinfo:
            BulkExecutor(concurrency=1, timeout_seconds=5).run("delete", ["x"], task)
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_interrupted_wait(self) -> None:
        executor = BulkExecutor(concurrency=2, timeout_seconds=5)
        with patch("astra_store.bulk.as_completed", side_effect=KeyboardInterrupt):
            with pytest.raises(BulkInterrupted) as excinfo:
                executor.run("delete", ["a", "b"], lambda _: None)
        assert excinfo.value.requested == 2
        _wait_for_pool_release()
        assert _bulk_threads() == []

    def test_requested_override(self) -> None:
        release = threading.Event()
        executor = BulkExecutor(concurrency=1, timeout_seconds=0.1)
        try:
            with pytest.raises(BulkTimeout) as excinfo:
                executor.run("insert", [[1, 2], [3]], lambda _: release.wait(5), requested=3)
        finally:
            release.set()
        assert excinfo.value.requested == 3

    @pytest.mark.parametrize("concurrency, timeout", [(0, 1), (1, 0)])
    def test_invalid_settings(self, concurrency: int, timeout: float) -> None:
        with pytest.raises(ValueError):
            BulkExecutor(concurrency=concurrency, timeout_seconds=timeout)
