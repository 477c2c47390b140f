"""Shared error codes and exceptions for the chunk processor."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    STATE_ERROR = "STATE_ERROR"
    INVALID_READER = "INVALID_READER"
    HEADER_NOT_FOUND = "HEADER_NOT_FOUND"
    EMPTY_FILE = "EMPTY_FILE"
    READ_FAILURE = "READ_FAILURE"
    JOB_FAILED = "JOB_FAILED"
    CANCELLED = "CANCELLED"


class BackendError(RuntimeError):
    """Exception carrying a structured error code for CLI/agents."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class ConfigError(BackendError):
    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.CONFIG_ERROR, message, context=context)


class ProcessorStateError(BackendError):
    """Raised when a processor is driven outside its lifecycle (e.g. run twice)."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.STATE_ERROR, message, context=context)


class InvalidReaderError(BackendError):
    def __init__(self, message: str = "input reader should be correctly initialized") -> None:
        super().__init__(ErrorCode.INVALID_READER, message)


class HeaderNotFoundError(BackendError):
    def __init__(self, message: str = "header not found") -> None:
        super().__init__(ErrorCode.HEADER_NOT_FOUND, message)


class EmptyFileError(BackendError):
    def __init__(self, message: str = "file is empty") -> None:
        super().__init__(ErrorCode.EMPTY_FILE, message)


class ReadFailureError(BackendError):
    """Wraps any I/O error raised by the input stream during a run.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, cause: BaseException, *, bytes_read: int = 0) -> None:
        super().__init__(
            ErrorCode.READ_FAILURE,
            f"reading input failed after {bytes_read} bytes: {cause}",
            context={"bytes_read": bytes_read, "error_type": type(cause).__name__},
        )
        self.cause = cause


class JobFailedError(BackendError):
    """Raised when a job callback raises while processing a chunk."""

    def __init__(self, cause: BaseException, *, chunk_index: int) -> None:
        super().__init__(
            ErrorCode.JOB_FAILED,
            f"job failed on chunk {chunk_index}: {cause!r}",
            context={"chunk_index": chunk_index, "error_type": type(cause).__name__},
        )
        self.cause = cause
        self.chunk_index = chunk_index


class RunCancelledError(BackendError):
    def __init__(self, message: str = "run cancelled") -> None:
        super().__init__(ErrorCode.CANCELLED, message)
