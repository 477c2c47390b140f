"""Header line extraction from the front of the input stream."""
from __future__ import annotations

from typing import BinaryIO, Tuple

from common.errors import HeaderNotFoundError
from common.models import LINE_BREAK, MAX_HEADER_BYTES, HeaderConfig


class HeaderExtractor:
    """Reads the first line of a stream and splits it into field names."""

    def __init__(
        self,
        header_config: HeaderConfig,
        *,
        encoding: str = "utf-8",
        errors: str = "strict",
        max_line_bytes: int = MAX_HEADER_BYTES,
    ) -> None:
        self.header_config = header_config
        self.max_line_bytes = max(1, max_line_bytes)
        self.encoding = encoding
        self.errors = errors
        self.consumed_bytes = 0

    def extract(self, stream: BinaryIO) -> Tuple[str, ...]:
        """Consume the header line, leaving the cursor at the first data byte.

        Returns an empty tuple (and reads nothing) when header mode is off.
        """

        if not self.header_config.has_header:
            return ()
        try:
            line = _read_line(stream, self.max_line_bytes)
        except (OSError, ValueError) as exc:
            raise HeaderNotFoundError(f"header not found: {exc}") from exc
        self.consumed_bytes = len(line)
        if not line.endswith(LINE_BREAK):
            if len(line) >= self.max_line_bytes:
                raise HeaderNotFoundError(f"header not found within the first {self.max_line_bytes} bytes")
            raise HeaderNotFoundError()
        try:
            text = line[: -len(LINE_BREAK)].decode(self.encoding, errors=self.errors)
        except UnicodeDecodeError as exc:
            raise HeaderNotFoundError(f"header line is not valid {self.encoding}: {exc}") from exc
        return tuple(text.split(self.header_config.separator))


def _read_line(stream: BinaryIO, limit: int) -> bytes:
    readline = getattr(stream, "readline", None)
    if callable(readline):
        return readline(limit)
    # Byte-at-a-time so nothing past the header is consumed.
    parts = []
    while len(parts) < limit:
        byte = stream.read(1)
        if not byte:
            break
        parts.append(byte)
        if byte == LINE_BREAK:
            break
    return b"".join(parts)
