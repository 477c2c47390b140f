"""Structured progress logging utilities."""
from __future__ import annotations

import json
import threading
import time
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from .models import RunProgress


class ProgressLogger:
    """Writes progress events to JSONL for later inspection.

    Workers emit concurrently, so appends are serialized.
    """

    def __init__(self, path: Optional[Path]) -> None:
        self.path = path
        self._lock = threading.Lock()
        if path:
            path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, progress: RunProgress) -> None:
        if not self.path:
            return
        payload = asdict(progress)
        payload["timestamp"] = time.time()
        with self._lock:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(payload))
                handle.write("\n")


class BenchmarkRecorder:
    """Stores throughput measurements for later analysis."""

    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)

    def record(self, dataset: str, metrics: dict) -> None:
        payload = {"dataset": dataset, **metrics, "timestamp": time.time()}
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload))
            handle.write("\n")
