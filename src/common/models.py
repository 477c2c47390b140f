"""Data models shared across the CLI, reader, worker pool and processor."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .units import MB

Job = Callable[[Sequence[str], List[str]], None]
"""Caller-supplied callback invoked once per chunk with ``(header, rows)``."""

DEFAULT_NUMBER_OF_WORKERS = 8
DEFAULT_SEPARATOR = ","
DEFAULT_BYTES_PER_WORKER = 10 * MB
LINE_BREAK = b"\n"
MAX_HEADER_BYTES = 1 * MB


@dataclass(frozen=True, slots=True)
class HeaderConfig:
    """Whether the first input line holds field names, and how to split it."""

    has_header: bool = True
    separator: str = DEFAULT_SEPARATOR


@dataclass(frozen=True, slots=True)
class ProcessorConfig:
    """Immutable settings for a single processor run."""

    number_of_workers: int = DEFAULT_NUMBER_OF_WORKERS
    header_config: HeaderConfig = field(default_factory=HeaderConfig)
    bytes_per_worker: int = DEFAULT_BYTES_PER_WORKER
    encoding: str = "utf-8"
    error_policy: str = "fail-fast"  # fail-fast | replace

    @property
    def queue_capacity(self) -> int:
        return self.number_of_workers

    @property
    def memory_bound_bytes(self) -> int:
        """Approximate peak buffered bytes: queued chunks plus the one being filled."""

        return (self.queue_capacity + 1) * self.bytes_per_worker


def default_config() -> ProcessorConfig:
    return ProcessorConfig()


@dataclass(frozen=True, slots=True)
class Chunk:
    """Line-aligned slice of the input handed to exactly one worker."""

    index: int
    offset: int
    data: bytes
    header: Tuple[str, ...] = ()
    job: Optional[Job] = None

    @property
    def end(self) -> int:
        return self.offset + len(self.data)


@dataclass(slots=True)
class RunProgress:
    """Progress payload emitted while a run is in flight."""

    phase: str
    chunks_dispatched: int = 0
    chunks_processed: int = 0
    rows_delivered: int = 0
    bytes_read: int = 0
    detail: Optional[str] = None


@dataclass(slots=True)
class RunSummary:
    """Outcome of a completed run."""

    header: Tuple[str, ...]
    chunks_dispatched: int
    chunks_processed: int
    rows_delivered: int
    bytes_read: int
    duration_seconds: float
    number_of_workers: int

    @property
    def rows_per_second(self) -> float:
        if not self.duration_seconds:
            return float(self.rows_delivered)
        return self.rows_delivered / self.duration_seconds

    def to_metrics(self) -> dict:
        return {
            "chunks": self.chunks_processed,
            "rows": self.rows_delivered,
            "bytes_read": self.bytes_read,
            "duration_seconds": self.duration_seconds,
            "rows_per_second": self.rows_per_second,
            "workers": self.number_of_workers,
        }
