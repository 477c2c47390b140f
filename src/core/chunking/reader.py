"""Line-aligned chunk reading with bounded buffers."""
from __future__ import annotations

from typing import BinaryIO, Callable, Iterator, List, Optional, Sequence

from common.errors import EmptyFileError, ReadFailureError
from common.models import LINE_BREAK, Chunk, Job
from core.workers.cancellation import CancellationToken

GrowCallback = Optional[Callable[[int, int], None]]


class ChunkReader:
    """Owns the sequential read cursor and cuts the stream at line boundaries.

    Every emitted chunk ends with a line break except possibly the last one,
    so concatenating chunk payloads in order reproduces the stream. When a
    single line does not fit into the buffer, the buffer is doubled until the
    line fits instead of cutting it.
    """

    def __init__(
        self,
        stream: BinaryIO,
        *,
        chunk_size: int,
        header: Sequence[str] = (),
        job: Optional[Job] = None,
        allow_empty: bool = False,
        on_grow: GrowCallback = None,
    ) -> None:
        self.stream = stream
        self.chunk_size = max(1, chunk_size)
        self.header = tuple(header)
        self.job = job
        self.allow_empty = allow_empty
        self.on_grow = on_grow
        self.capacity = self.chunk_size
        self.bytes_read = 0
        self.chunks_emitted = 0
        self._offset = 0

    def iter_chunks(self, cancel_token: Optional[CancellationToken] = None) -> Iterator[Chunk]:
        pending = b""
        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            block, eof = self._fill(self.capacity - len(pending))
            buffer = pending + block if pending else block
            if eof:
                break
            cut = buffer.rfind(LINE_BREAK)
            if cut == -1:
                self._grow()
                pending = buffer
                continue
            pending = buffer[cut + 1 :]
            yield self._emit(buffer[: cut + 1])
            self._reset_capacity(len(pending))

        if self.bytes_read == 0 and not self.allow_empty:
            raise EmptyFileError()
        if buffer:
            yield self._emit(buffer)

    def _fill(self, size: int) -> tuple[bytes, bool]:
        """Read until ``size`` bytes are collected or the stream is exhausted."""

        parts: List[bytes] = []
        remaining = size
        eof = False
        while remaining > 0:
            try:
                data = self.stream.read(remaining)
            except (OSError, ValueError) as exc:
                raise ReadFailureError(exc, bytes_read=self.bytes_read) from exc
            if not data:
                eof = True
                break
            parts.append(data)
            remaining -= len(data)
        block = b"".join(parts)
        self.bytes_read += len(block)
        return block, eof

    def _emit(self, payload: bytes) -> Chunk:
        chunk = Chunk(
            index=self.chunks_emitted,
            offset=self._offset,
            data=payload,
            header=self.header,
            job=self.job,
        )
        self.chunks_emitted += 1
        self._offset += len(payload)
        return chunk

    def _grow(self) -> None:
        previous = self.capacity
        self.capacity *= 2
        if self.on_grow:
            self.on_grow(previous, self.capacity)

    def _reset_capacity(self, carried: int) -> None:
        capacity = self.chunk_size
        while capacity <= carried:
            capacity *= 2
        self.capacity = capacity
