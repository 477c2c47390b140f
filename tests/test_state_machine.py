from __future__ import annotations

import pytest

from common.errors import ProcessorStateError
from core.jobs import ProcessorState, ProcessorStateMachine


def test_happy_path_records_transitions() -> None:
    recorded = []
    machine = ProcessorStateMachine(on_transition=lambda state, detail: recorded.append((state, detail)))
    machine.transition(ProcessorState.HEADER_READ)
    machine.begin_run()
    machine.transition(ProcessorState.COMPLETED, detail="done")
    assert machine.state == ProcessorState.COMPLETED
    assert machine.finished
    assert recorded == [
        (ProcessorState.HEADER_READ, None),
        (ProcessorState.RUNNING, None),
        (ProcessorState.COMPLETED, "done"),
    ]


def test_cannot_skip_states() -> None:
    machine = ProcessorStateMachine()
    with pytest.raises(ProcessorStateError):
        machine.transition(ProcessorState.COMPLETED)


def test_run_requires_header_read() -> None:
    machine = ProcessorStateMachine()
    with pytest.raises(ProcessorStateError):
        machine.begin_run()


def test_terminal_states_are_final() -> None:
    machine = ProcessorStateMachine()
    machine.transition(ProcessorState.HEADER_READ)
    machine.begin_run()
    machine.mark_failed("read error")
    machine.mark_cancelled("late")
    assert machine.state == ProcessorState.FAILED
    with pytest.raises(ProcessorStateError):
        machine.begin_run()
    with pytest.raises(ProcessorStateError):
        machine.transition(ProcessorState.COMPLETED)
