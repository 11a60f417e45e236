"""
Tests for cancellation tokens and chunked row execution.
"""

import threading
import unittest

import pytest

from OC_Libs.FilterLib.cancellation import (
    CancellationToken,
    check_cancelled,
    row_chunks,
    run_row_chunks,
)
from OC_Libs.FilterLib.errors import OperationCancelledError


class TestCancellationToken(unittest.TestCase):
    """Test CancellationToken."""

    def test_initially_not_cancelled(self):
        """Test that a new token is not cancelled."""
        token = CancellationToken()
        self.assertFalse(token.is_cancelled)
        token.raise_if_cancelled()

    def test_cancel(self):
        """Test that cancel() makes raise_if_cancelled raise."""
        token = CancellationToken()
        token.cancel()
        with self.assertRaises(OperationCancelledError) as ctx:
            token.raise_if_cancelled("bilateral filter")
        self.assertIn("bilateral filter", str(ctx.exception))

    def test_check_cancelled_tolerates_none(self):
        """Test that a missing token never raises."""
        check_cancelled(None, "anything")


class TestRowChunks:
    """Test row chunking."""

    def test_chunks_cover_range(self):
        """Test that chunks are consecutive and cover the range."""
        assert row_chunks(2, 10, 3) == [(2, 5), (5, 8), (8, 10)]

    def test_empty_range(self):
        """Test that an empty range gives no chunks."""
        assert row_chunks(5, 5, 4) == []

    def test_invalid_chunk_size(self):
        """Test that chunk_rows < 1 is rejected."""
        with pytest.raises(ValueError):
            row_chunks(0, 10, 0)

    @pytest.mark.parametrize("max_workers", [None, 4])
    def test_run_visits_every_chunk(self, max_workers):
        """Test that every chunk is processed once, sequentially or threaded."""
        seen = []
        lock = threading.Lock()

        def worker(start, stop):
            with lock:
                seen.append((start, stop))

        run_row_chunks(worker, 0, 20, chunk_rows=6, max_workers=max_workers)
        assert sorted(seen) == [(0, 6), (6, 12), (12, 18), (18, 20)]

    def test_cancel_midway(self):
        """Test that cancelling inside a chunk stops later chunks."""
        token = CancellationToken()
        seen = []

        def worker(start, stop):
            seen.append(start)
            token.cancel()

        with pytest.raises(OperationCancelledError):
            run_row_chunks(worker, 0, 10, cancel_token=token, chunk_rows=2)
        assert seen == [0]

    def test_worker_error_propagates(self):
        """Test that worker exceptions reach the caller from the thread pool."""
        def worker(start, stop):
            raise RuntimeError("bad rows")

        with pytest.raises(RuntimeError):
            run_row_chunks(worker, 0, 10, chunk_rows=2, max_workers=2)
