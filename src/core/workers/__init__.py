"""Worker pool consuming line-aligned chunks concurrently."""

from .cancellation import CancellationToken
from .pool import CountDownLatch, WorkerPool, split_rows

__all__ = ["CancellationToken", "CountDownLatch", "WorkerPool", "split_rows"]
