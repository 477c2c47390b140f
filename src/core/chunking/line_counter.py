"""Chunked line counting with bounded memory usage."""
from __future__ import annotations

from pathlib import Path

from common.units import MB


class LineCounter:
    """Counts newline-delimited rows without materializing the entire file.

    Uses the same row rules as the worker pool: a final line without a
    trailing break still counts, and ``skip_header`` drops the first line.
    """

    def __init__(self, *, chunk_size: int = MB) -> None:
        self.chunk_size = max(1024, chunk_size)

    def count(self, path: Path, *, skip_header: bool = False) -> int:
        line_count = 0
        has_data = False
        last_char = b""
        with path.open("rb") as handle:
            while True:
                chunk = handle.read(self.chunk_size)
                if not chunk:
                    break
                has_data = True
                line_count += chunk.count(b"\n")
                last_char = chunk[-1:]
        if has_data and last_char not in {b"\n", b""}:
            line_count += 1
        if skip_header:
            line_count = max(0, line_count - 1)
        return line_count
