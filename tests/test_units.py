from __future__ import annotations

import pytest

from common.units import GB, KB, MB, TB, format_byte_size, parse_byte_size


def test_binary_units() -> None:
    assert KB == 1024
    assert MB == 1_048_576
    assert GB == 1_073_741_824
    assert TB == 1_099_511_627_776


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (4096, 4096),
        ("4096", 4096),
        ("5KB", 5 * KB),
        ("5 kb", 5 * KB),
        ("10M", 10 * MB),
        ("2GB", 2 * GB),
    ],
)
def test_parse_byte_size(raw, expected) -> None:
    assert parse_byte_size(raw) == expected


@pytest.mark.parametrize("raw", ["", "ten", "5XB", "1.5MB", True])
def test_parse_byte_size_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_byte_size(raw)


def test_format_byte_size() -> None:
    assert format_byte_size(512) == "512B"
    assert format_byte_size(10 * MB) == "10.0MB"
