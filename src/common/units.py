"""Binary byte-size units and helpers for human-readable chunk sizes."""
from __future__ import annotations

import re
from typing import Dict, Final

KB: Final = 1024
MB: Final = KB * 1024
GB: Final = MB * 1024
TB: Final = GB * 1024

_UNITS: Dict[str, int] = {"": 1, "B": 1, "KB": KB, "MB": MB, "GB": GB, "TB": TB}
_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([KMGT]?B?)\s*$", re.IGNORECASE)


def parse_byte_size(value: int | str) -> int:
    """Convert ``"5KB"``, ``"10 MB"`` or a plain integer into a byte count.

    Units are binary (``KB`` is 1024 bytes). ``K``/``M``/``G``/``T`` without the
    trailing ``B`` are accepted as well.
    """

    if isinstance(value, bool):
        raise ValueError(f"Invalid byte size {value!r}")
    if isinstance(value, int):
        return value
    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid byte size {value!r}")
    number, unit = match.groups()
    unit = unit.upper()
    if unit and not unit.endswith("B"):
        unit += "B"
    return int(number) * _UNITS[unit]


def format_byte_size(count: int) -> str:
    for name in ("TB", "GB", "MB", "KB"):
        size = _UNITS[name]
        if count >= size:
            return f"{count / size:.1f}{name}"
    return f"{count}B"
