"""
Cancellation tokens and chunked row execution.

Filter passes are CPU-bound and synchronous. To stay responsive, the heavy
passes split their per-row work into chunks and check a CancellationToken
between chunks. Chunks write disjoint row ranges, so they may also be fanned
out over a thread pool (numpy releases the GIL for the array math).

Classes:
    CancellationToken: Thread-safe, one-way cancellation flag

Functions:
    row_chunks: Split a row range into ``(start, stop)`` pairs
    run_row_chunks: Run a per-chunk worker sequentially or on a thread pool
"""

import concurrent.futures
import logging
import threading
from typing import Callable, List, Optional, Tuple

from OC_Libs.constants import DEFAULT_CHUNK_ROWS
from OC_Libs.FilterLib.errors import OperationCancelledError

logger = logging.getLogger(__name__)

ChunkWorker = Callable[[int, int], None]


class CancellationToken:
    """
    Cooperative cancellation flag shared between a caller and a running pass.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.is_cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = "") -> None:
        """
        Raise OperationCancelledError if cancel() has been called.

        Args:
            where: Optional description of the interrupted work
        """
        if self._event.is_set():
            suffix = f" during {where}" if where else ""
            raise OperationCancelledError(f"Operation cancelled{suffix}")


def check_cancelled(token: Optional[CancellationToken], where: str = "") -> None:
    """Convenience wrapper that tolerates a missing token."""
    if token is not None:
        token.raise_if_cancelled(where)


def row_chunks(start: int, stop: int, chunk_rows: int = DEFAULT_CHUNK_ROWS) -> List[Tuple[int, int]]:
    """
    Split ``range(start, stop)`` into consecutive ``(start, stop)`` chunks.

    Raises:
        ValueError: If chunk_rows < 1
    """
    if chunk_rows < 1:
        raise ValueError(f"chunk_rows must be >= 1, got {chunk_rows}")
    return [(row, min(row + chunk_rows, stop)) for row in range(start, stop, chunk_rows)]


def run_row_chunks(
    worker: ChunkWorker,
    start: int,
    stop: int,
    cancel_token: Optional[CancellationToken] = None,
    chunk_rows: int = DEFAULT_CHUNK_ROWS,
    max_workers: Optional[int] = None,
    description: str = "row pass",
) -> None:
    """
    Run ``worker(row_start, row_stop)`` over every chunk of a row range.

    Args:
        worker: Callable processing rows ``[row_start, row_stop)``; chunks
                must write disjoint output rows
        start: First row (inclusive)
        stop: Last row (exclusive)
        cancel_token: Checked before every chunk
        chunk_rows: Rows per chunk
        max_workers: None or 1 runs sequentially; >1 uses a thread pool
        description: Used in log and cancellation messages

    Raises:
        OperationCancelledError: If the token is cancelled before a chunk
        Exception: Any exception raised by the worker
    """
    chunks = row_chunks(start, stop, chunk_rows)
    if not chunks:
        return

    if max_workers is None or max_workers <= 1 or len(chunks) == 1:
        for chunk_start, chunk_stop in chunks:
            check_cancelled(cancel_token, description)
            worker(chunk_start, chunk_stop)
        return

    logger.debug(f"Running {description} over {len(chunks)} chunks with {max_workers} workers")

    def guarded(chunk_start: int, chunk_stop: int) -> None:
        check_cancelled(cancel_token, description)
        worker(chunk_start, chunk_stop)

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(guarded, s, e) for s, e in chunks]
        try:
            for future in concurrent.futures.as_completed(futures):
                future.result()
        except Exception:
            for future in futures:
                future.cancel()
            raise
