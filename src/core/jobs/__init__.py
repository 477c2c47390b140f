"""Processor lifecycle tracking."""

from .state_machine import ProcessorState, ProcessorStateMachine

__all__ = ["ProcessorState", "ProcessorStateMachine"]
