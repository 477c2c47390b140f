"""Fixed-size thread pool fed by a bounded chunk queue."""
from __future__ import annotations

import queue
import threading
from typing import Callable, List, Optional

from common.errors import JobFailedError, ProcessorStateError
from common.models import Chunk
from .cancellation import CancellationToken

ChunkCallback = Optional[Callable[[Chunk, int], None]]

_CLOSE = object()


def split_rows(data: bytes, *, encoding: str = "utf-8", errors: str = "strict") -> List[str]:
    """Decode a chunk and split it into rows on the line-break character.

    A trailing break closes the last row rather than opening an empty one;
    empty lines inside the chunk are kept.
    """

    if not data:
        return []
    text = data.decode(encoding, errors=errors)
    rows = text.split("\n")
    if text.endswith("\n"):
        rows.pop()
    return rows


class CountDownLatch:
    """Blocks waiters until ``count_down`` has been called ``count`` times."""

    def __init__(self, count: int) -> None:
        self._count = max(0, count)
        self._condition = threading.Condition()

    @property
    def count(self) -> int:
        with self._condition:
            return self._count

    def count_down(self) -> None:
        with self._condition:
            if self._count > 0:
                self._count -= 1
            if self._count == 0:
                self._condition.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout=timeout)


class WorkerPool:
    """Runs ``number_of_workers`` threads that invoke each chunk's job.

    The queue holds at most one chunk per worker, so ``submit`` blocks the
    producer once every worker is busy and the queue is full. After the first
    job failure (or cancellation) the remaining chunks are drained without
    being processed so the producer never stays blocked.
    """

    def __init__(
        self,
        number_of_workers: int,
        *,
        encoding: str = "utf-8",
        errors: str = "strict",
        cancel_token: Optional[CancellationToken] = None,
        on_chunk_processed: ChunkCallback = None,
    ) -> None:
        self.number_of_workers = max(1, number_of_workers)
        self.encoding = encoding
        self.errors = errors
        self.cancel_token = cancel_token
        self.on_chunk_processed = on_chunk_processed
        self.queue: "queue.Queue[object]" = queue.Queue(maxsize=self.number_of_workers)
        self.chunks_processed = 0
        self.chunks_discarded = 0
        self.rows_delivered = 0
        self.failure: Optional[JobFailedError] = None
        self._latch = CountDownLatch(self.number_of_workers)
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._abort = threading.Event()
        self._closed = False

    @property
    def failed(self) -> bool:
        return self._abort.is_set()

    def alive_workers(self) -> int:
        return sum(1 for thread in self._threads if thread.is_alive())

    def start(self) -> None:
        if self._threads:
            raise ProcessorStateError("worker pool already started")
        for idx in range(self.number_of_workers):
            thread = threading.Thread(
                target=self._worker_loop,
                name=f"chunk-worker-{idx}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def submit(self, chunk: Chunk) -> None:
        if self._closed:
            raise ProcessorStateError("cannot submit to a closed worker pool")
        self.queue.put(chunk)

    def close(self) -> None:
        """Signal that no more chunks follow: one close marker per worker."""

        if self._closed:
            return
        self._closed = True
        for _ in self._threads:
            self.queue.put(_CLOSE)

    def wait(self, timeout: Optional[float] = None) -> bool:
        finished = self._latch.wait(timeout)
        if finished:
            for thread in self._threads:
                thread.join()
        return finished

    def shutdown(self) -> None:
        self.close()
        self.wait()

    # Internal helpers -------------------------------------------------

    def _worker_loop(self) -> None:
        try:
            while True:
                item = self.queue.get()
                try:
                    if item is _CLOSE:
                        return
                    self._process(item)  # type: ignore[arg-type]
                finally:
                    self.queue.task_done()
        finally:
            self._latch.count_down()

    def _process(self, chunk: Chunk) -> None:
        if self._abort.is_set() or (self.cancel_token is not None and self.cancel_token.cancelled):
            with self._lock:
                self.chunks_discarded += 1
            return
        try:
            rows = split_rows(chunk.data, encoding=self.encoding, errors=self.errors)
            if chunk.job is not None:
                chunk.job(chunk.header, rows)
            with self._lock:
                self.chunks_processed += 1
                self.rows_delivered += len(rows)
            if self.on_chunk_processed:
                self.on_chunk_processed(chunk, len(rows))
        except BaseException as exc:
            # Includes SystemExit and KeyboardInterrupt; the worker keeps draining.
            with self._lock:
                if self.failure is None:
                    self.failure = JobFailedError(exc, chunk_index=chunk.index)
                    self.failure.__cause__ = exc
            self._abort.set()
