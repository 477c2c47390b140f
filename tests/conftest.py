from __future__ import annotations

import random
from pathlib import Path

import pytest


@pytest.fixture
def without_header_csv(tmp_path: Path) -> Path:
    """200 data lines, no header, no trailing line break."""

    rng = random.Random(200)
    lines = [
        f"{idx},{rng.randint(0, 10_000)},{''.join(rng.choice('abcdef') for _ in range(rng.randint(5, 40)))}"
        for idx in range(200)
    ]
    path = tmp_path / "without_header.csv"
    path.write_bytes("\n".join(lines).encode("utf-8"))
    return path


@pytest.fixture
def mid_csv(tmp_path: Path) -> Path:
    """Header plus 25,000 height/weight rows."""

    rng = random.Random(25_000)
    rows = ["Index,Height(Inches),Weight(Pounds)"]
    rows.extend(
        f"{idx},{rng.uniform(60, 75):.5f},{rng.uniform(90, 160):.5f}" for idx in range(1, 25_001)
    )
    path = tmp_path / "mid.csv"
    path.write_bytes(("\n".join(rows) + "\n").encode("utf-8"))
    return path
