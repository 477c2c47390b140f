"""Tests for processor configuration loading and validation."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from common.config import error_mode_from_policy, load_processor_config, validate_config
from common.errors import ConfigError, ErrorCode
from common.models import HeaderConfig, ProcessorConfig, default_config
from common.units import KB, MB


def test_default_config_values() -> None:
    config = default_config()
    assert config.number_of_workers == 8
    assert config.header_config == HeaderConfig(has_header=True, separator=",")
    assert config.bytes_per_worker == 10 * MB
    assert config.queue_capacity == 8


def test_load_default_profile_matches_defaults() -> None:
    config = load_processor_config("default")
    assert config == default_config()


def test_profile_overrides_are_validated(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {"only": _profile_payload()})
    config = load_processor_config(
        "only",
        config_path=config_path,
        overrides={"profile": {"number_of_workers": 3, "bytes_per_worker": "5KB", "separator": "|"}},
    )
    assert config.number_of_workers == 3
    assert config.bytes_per_worker == 5 * KB
    assert config.header_config.separator == "|"


def test_error_mode_resolution() -> None:
    assert error_mode_from_policy("fail-fast") == "strict"
    assert error_mode_from_policy("replace") == "replace"


def test_missing_profile_raises_config_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {"only": _profile_payload()})
    with pytest.raises(ConfigError) as exc:
        load_processor_config("missing", config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_invalid_error_policy_rejected(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {"default": _profile_payload()}, error_policy="panic")
    with pytest.raises(ConfigError) as exc:
        load_processor_config("default", config_path=config_path)
    assert "error_policy" in str(exc.value)


@pytest.mark.parametrize(
    ("field", "value"),
    [("number_of_workers", 0), ("number_of_workers", "many"), ("bytes_per_worker", "huge"), ("bytes_per_worker", 0)],
)
def test_non_positive_sizes_rejected(tmp_path: Path, field: str, value) -> None:
    payload = _profile_payload()
    payload[field] = value
    config_path = _write_config(tmp_path, {"default": payload})
    with pytest.raises(ConfigError) as exc:
        load_processor_config("default", config_path=config_path)
    assert field in str(exc.value)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_processor_config("default", config_path=tmp_path / "absent.json")


def test_validate_config_rejects_bad_values() -> None:
    with pytest.raises(ConfigError):
        validate_config(ProcessorConfig(number_of_workers=0))
    with pytest.raises(ConfigError):
        validate_config(ProcessorConfig(bytes_per_worker=0))
    with pytest.raises(ConfigError):
        validate_config(ProcessorConfig(header_config=HeaderConfig(separator="")))
    with pytest.raises(ConfigError):
        validate_config(ProcessorConfig(encoding="no-such-codec"))
    # An empty separator is fine when there is no header to split.
    validate_config(ProcessorConfig(header_config=HeaderConfig(has_header=False, separator="")))


def _write_config(tmp_path: Path, profiles: dict, *, error_policy: str = "fail-fast") -> Path:
    path = tmp_path / "config.json"
    payload = {
        "version": 1,
        "global": {"encoding": "utf-8", "error_policy": error_policy},
        "profiles": profiles,
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def _profile_payload() -> dict:
    return {
        "description": "tmp",
        "number_of_workers": 2,
        "has_header": True,
        "separator": ",",
        "bytes_per_worker": 1024,
    }
