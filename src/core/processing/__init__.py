"""Processor orchestration: header, chunk reader, worker pool and run lifecycle."""

from .processor import Processor, process_file

__all__ = ["Processor", "process_file"]
