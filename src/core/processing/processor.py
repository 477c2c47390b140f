"""Processor orchestrating one chunked, parallel pass over a line stream."""
from __future__ import annotations

import contextlib
import io
import time
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Tuple

from common.config import error_mode_from_policy, validate_config
from common.errors import BackendError, InvalidReaderError, RunCancelledError
from common.models import MAX_HEADER_BYTES, Chunk, Job, ProcessorConfig, RunProgress, RunSummary, default_config
from common.progress import ProgressLogger
from core.chunking import ChunkReader, HeaderExtractor
from core.jobs import ProcessorState, ProcessorStateMachine
from core.workers import CancellationToken, WorkerPool

ProgressCallback = Optional[Callable[[RunProgress], None]]


class Processor:
    """Reads a byte stream in line-aligned chunks and fans them out to workers.

    The header (if enabled) is consumed during construction, so a processor
    that exists always has a valid header. A processor serves exactly one
    ``run``; the stream is owned by the caller and is not closed here.
    """

    def __init__(
        self,
        stream: Optional[BinaryIO],
        config: Optional[ProcessorConfig] = None,
        *,
        progress_log: Optional[Path] = None,
        progress_callback: ProgressCallback = None,
    ) -> None:
        self._stream = _as_binary_stream(stream)
        self._config = validate_config(config if config is not None else default_config())
        self._errors = error_mode_from_policy(self._config.error_policy)
        self.progress_logger = ProgressLogger(progress_log) if progress_log else None
        self.progress_callback = progress_callback
        self._state = ProcessorStateMachine(on_transition=self._record_transition)
        self._pool: Optional[WorkerPool] = None
        self._reader: Optional[ChunkReader] = None
        self._chunks_dispatched = 0

        extractor = HeaderExtractor(
            self._config.header_config,
            encoding=self._config.encoding,
            errors=self._errors,
            max_line_bytes=max(self._config.bytes_per_worker, MAX_HEADER_BYTES),
        )
        self._header: Tuple[str, ...] = extractor.extract(self._stream)
        self._header_bytes = extractor.consumed_bytes
        self._state.transition(ProcessorState.HEADER_READ)

    @property
    def config(self) -> ProcessorConfig:
        return self._config

    @property
    def header(self) -> Tuple[str, ...]:
        return self._header

    @property
    def state(self) -> ProcessorState:
        return self._state.state

    def run(self, job: Job, *, cancel_token: Optional[CancellationToken] = None) -> RunSummary:
        """Process the whole stream, blocking until every chunk is handled.

        Raises EmptyFileError, ReadFailureError, JobFailedError or
        RunCancelledError. On every path the queue is closed and all workers
        have exited before this method returns or raises.
        """

        if not callable(job):
            raise TypeError("job must be callable with (header, rows)")
        self._state.begin_run()
        start = time.perf_counter()
        pool = WorkerPool(
            self._config.number_of_workers,
            encoding=self._config.encoding,
            errors=self._errors,
            cancel_token=cancel_token,
            on_chunk_processed=self._on_chunk_processed,
        )
        reader = ChunkReader(
            self._stream,
            chunk_size=self._config.bytes_per_worker,
            header=self._header,
            job=job,
            allow_empty=self._header_bytes > 0,
            on_grow=self._on_buffer_grown,
        )
        self._pool, self._reader = pool, reader

        try:
            self._produce(reader, pool, cancel_token)
        except RunCancelledError as exc:
            self._record_failure(cancelled=True, detail=str(exc))
            raise
        except BackendError as exc:
            self._record_failure(detail=str(exc))
            raise
        except BaseException as exc:
            self._record_failure(detail=repr(exc))
            raise

        summary = RunSummary(
            header=self._header,
            chunks_dispatched=self._chunks_dispatched,
            chunks_processed=pool.chunks_processed,
            rows_delivered=pool.rows_delivered,
            bytes_read=reader.bytes_read,
            duration_seconds=time.perf_counter() - start,
            number_of_workers=pool.number_of_workers,
        )
        self._state.transition(ProcessorState.COMPLETED)
        self._emit("run-complete")
        return summary

    def _produce(
        self,
        reader: ChunkReader,
        pool: WorkerPool,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        pool.start()
        try:
            for chunk in reader.iter_chunks(cancel_token):
                if pool.failed:
                    break
                pool.submit(chunk)
                self._chunks_dispatched += 1
        finally:
            pool.shutdown()
        if pool.failure is not None:
            raise pool.failure
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

    # Progress reporting -----------------------------------------------

    def _record_transition(self, state: ProcessorState, detail: Optional[str]) -> None:
        self._emit("state", detail=f"{state.value}: {detail}" if detail else state.value)

    def _on_chunk_processed(self, chunk: Chunk, rows: int) -> None:
        self._emit("chunk-processed", detail=f"chunk={chunk.index} offset={chunk.offset} rows={rows}")

    def _on_buffer_grown(self, previous: int, capacity: int) -> None:
        self._emit(
            "buffer-grown",
            detail=f"line longer than {previous} bytes; buffer grown to {capacity} bytes",
        )

    def _record_failure(self, *, detail: str, cancelled: bool = False) -> None:
        # Progress sink errors never replace the run error.
        with contextlib.suppress(Exception):
            if cancelled:
                self._state.mark_cancelled(detail)
            else:
                self._state.mark_failed(detail)
        with contextlib.suppress(Exception):
            self._emit("run-cancelled" if cancelled else "run-failed", detail=detail)

    def _emit(self, phase: str, *, detail: Optional[str] = None) -> None:
        if not self.progress_logger and not self.progress_callback:
            return
        pool, reader = self._pool, self._reader
        progress = RunProgress(
            phase=phase,
            chunks_dispatched=self._chunks_dispatched,
            chunks_processed=pool.chunks_processed if pool else 0,
            rows_delivered=pool.rows_delivered if pool else 0,
            bytes_read=reader.bytes_read if reader else 0,
            detail=detail,
        )
        if self.progress_callback:
            self.progress_callback(progress)
        if self.progress_logger:
            self.progress_logger.emit(progress)


def process_file(
    path: Path,
    job: Job,
    config: Optional[ProcessorConfig] = None,
    *,
    progress_log: Optional[Path] = None,
    progress_callback: ProgressCallback = None,
    cancel_token: Optional[CancellationToken] = None,
) -> Tuple[Tuple[str, ...], RunSummary]:
    """Open ``path`` in binary mode, run ``job`` over it and return ``(header, summary)``."""

    with Path(path).open("rb") as handle:
        processor = Processor(
            handle,
            config,
            progress_log=progress_log,
            progress_callback=progress_callback,
        )
        summary = processor.run(job, cancel_token=cancel_token)
    return processor.header, summary


def _as_binary_stream(stream: Optional[BinaryIO]) -> BinaryIO:
    if stream is None:
        raise InvalidReaderError()
    if isinstance(stream, io.TextIOBase):
        buffer = getattr(stream, "buffer", None)
        if buffer is None:
            raise InvalidReaderError("text streams are not supported; pass a binary stream")
        stream = buffer
    if not callable(getattr(stream, "read", None)):
        raise InvalidReaderError()
    if getattr(stream, "closed", False):
        raise InvalidReaderError("input reader is closed")
    if isinstance(stream, io.RawIOBase):
        return io.BufferedReader(stream)
    return stream
