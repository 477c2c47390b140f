"""State machine tracking the lifecycle of a single processor run."""
from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Dict, Optional

from common.errors import ProcessorStateError


class ProcessorState(str, Enum):
    """Supported lifecycle states for a processor."""

    CREATED = "CREATED"
    HEADER_READ = "HEADER_READ"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TransitionCallback = Optional[Callable[[ProcessorState, Optional[str]], None]]

_TERMINAL_STATES = {ProcessorState.COMPLETED, ProcessorState.FAILED, ProcessorState.CANCELLED}
_STATE_ORDER: Dict[ProcessorState, int] = {
    ProcessorState.CREATED: 0,
    ProcessorState.HEADER_READ: 1,
    ProcessorState.RUNNING: 2,
    ProcessorState.COMPLETED: 3,
}


class ProcessorStateMachine:
    """Thread-safe helper that enforces forward-only, single-use transitions."""

    def __init__(self, *, on_transition: TransitionCallback = None) -> None:
        self._state = ProcessorState.CREATED
        self._lock = threading.Lock()
        self._on_transition = on_transition

    @property
    def state(self) -> ProcessorState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state in _TERMINAL_STATES

    def transition(self, target: ProcessorState, *, detail: str | None = None) -> None:
        with self._lock:
            if target == self._state:
                return
            if not self._can_transition(target):
                raise ProcessorStateError(
                    f"Invalid transition {self._state.value} -> {target.value}",
                    context={"state": self._state.value, "target": target.value},
                )
            self._state = target
        self._record(target, detail)

    def begin_run(self) -> None:
        """Move HEADER_READ -> RUNNING; any other starting state means reuse."""

        with self._lock:
            if self._state != ProcessorState.HEADER_READ:
                raise ProcessorStateError(
                    f"Processor cannot run from state {self._state.value}; create a new processor per stream",
                    context={"state": self._state.value},
                )
            self._state = ProcessorState.RUNNING
        self._record(ProcessorState.RUNNING, None)

    def mark_failed(self, detail: str | None = None) -> None:
        self._finish(ProcessorState.FAILED, detail)

    def mark_cancelled(self, detail: str | None = None) -> None:
        self._finish(ProcessorState.CANCELLED, detail)

    def _finish(self, target: ProcessorState, detail: str | None) -> None:
        with self._lock:
            if self._state in _TERMINAL_STATES:
                return
            self._state = target
        self._record(target, detail)

    def _can_transition(self, target: ProcessorState) -> bool:
        if self._state in _TERMINAL_STATES:
            return False
        if target in {ProcessorState.FAILED, ProcessorState.CANCELLED}:
            return True
        current_rank = _STATE_ORDER.get(self._state, -1)
        target_rank = _STATE_ORDER.get(target, -1)
        return target_rank == current_rank + 1

    def _record(self, state: ProcessorState, detail: str | None) -> None:
        if self._on_transition:
            self._on_transition(state, detail)
