"""Helpers for loading processor configuration profiles."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError
from .models import HeaderConfig, ProcessorConfig
from .units import parse_byte_size

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "defaults.json"
ALLOWED_ERROR_POLICIES = {"fail-fast", "strict", "replace"}


@dataclass(slots=True)
class GlobalSettings:
    """Knobs that apply across profiles."""

    encoding: str = "utf-8"
    error_policy: str = "fail-fast"


@dataclass(slots=True)
class ConfigDocument:
    source: Path
    version: int
    global_settings: GlobalSettings
    profiles: Dict[str, ProcessorConfig]


def load_processor_config(
    profile: str = "default",
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> ProcessorConfig:
    """Load configuration JSON, validate it, and resolve a specific profile."""

    document = load_config_document(
        profile_name=profile,
        config_path=config_path,
        overrides=overrides,
    )
    return document.profiles[profile]


def load_config_document(
    *,
    profile_name: Optional[str] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> ConfigDocument:
    cfg_path = config_path or DEFAULT_CONFIG_PATH
    raw = _read_config_json(cfg_path)

    version = _require_positive_int(raw.get("version"), "version", cfg_path)
    global_section = raw.get("global")
    if not isinstance(global_section, Mapping):
        raise ConfigError(f"'global' section missing in {cfg_path}")

    overrides = overrides or {}
    global_data = {**global_section, **(overrides.get("global") or {})}
    global_settings = _build_global_settings(global_data, cfg_path)

    profiles_section = raw.get("profiles")
    if not isinstance(profiles_section, Mapping) or not profiles_section:
        raise ConfigError(f"'profiles' section missing in {cfg_path}")

    profile_overrides = overrides.get("profile") or {}
    profiles: Dict[str, ProcessorConfig] = {}
    for name, profile_data in profiles_section.items():
        if not isinstance(profile_data, Mapping):
            raise ConfigError(f"Profile '{name}' must be an object in {cfg_path}")
        merged = dict(profile_data)
        if profile_name and name == profile_name and profile_overrides:
            merged = {**merged, **profile_overrides}
        profiles[name] = _build_profile(name, merged, global_settings, cfg_path)

    if profile_name and profile_name not in profiles:
        raise ConfigError(
            f"Profile '{profile_name}' not found in {cfg_path}",
            context={"available": sorted(profiles)},
        )

    return ConfigDocument(
        source=cfg_path,
        version=version,
        global_settings=global_settings,
        profiles=profiles,
    )


def validate_config(config: ProcessorConfig) -> ProcessorConfig:
    """Check the invariants of an in-memory config; raise ConfigError on violation."""

    if not isinstance(config, ProcessorConfig):
        raise ConfigError(f"Expected ProcessorConfig, got {type(config).__name__}")
    if isinstance(config.number_of_workers, bool) or not isinstance(config.number_of_workers, int):
        raise ConfigError("number_of_workers must be an integer")
    if config.number_of_workers < 1:
        raise ConfigError("number_of_workers must be greater than zero")
    if isinstance(config.bytes_per_worker, bool) or not isinstance(config.bytes_per_worker, int):
        raise ConfigError("bytes_per_worker must be an integer")
    if config.bytes_per_worker < 1:
        raise ConfigError("bytes_per_worker must be greater than zero")
    if config.header_config.has_header and not config.header_config.separator:
        raise ConfigError("header separator must be non-empty when has_header is enabled")
    if config.error_policy.lower() not in ALLOWED_ERROR_POLICIES:
        allowed = ", ".join(sorted(ALLOWED_ERROR_POLICIES))
        raise ConfigError(f"Unsupported error_policy '{config.error_policy}'. Allowed: {allowed}")
    try:
        "".encode(config.encoding)
    except LookupError as exc:
        raise ConfigError(f"Unknown encoding '{config.encoding}'") from exc
    return config


def error_mode_from_policy(policy: str) -> str:
    """Translate human-friendly error policy into Python's encoding error handler."""

    return "strict" if policy.lower() in {"fail-fast", "strict"} else "replace"


# ---------------------------------------------------------------------------
# Internal helpers


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file '{path}' not found") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file '{path}' is not valid JSON: {exc}") from exc


def _build_global_settings(data: Mapping[str, Any], source: Path) -> GlobalSettings:
    encoding = _require_string(data.get("encoding", GlobalSettings().encoding), "global.encoding", source)
    error_policy = _normalize_error_policy(
        data.get("error_policy", GlobalSettings().error_policy),
        source,
    )
    return GlobalSettings(encoding=encoding, error_policy=error_policy)


def _build_profile(
    name: str,
    data: Mapping[str, Any],
    global_settings: GlobalSettings,
    source: Path,
) -> ProcessorConfig:
    prefix = f"profiles.{name}"
    required_fields = ("description", "number_of_workers", "bytes_per_worker")
    missing = [field for field in required_fields if field not in data]
    if missing:
        raise ConfigError(f"Profile '{name}' missing fields {missing} in {source}")

    _require_string(data.get("description"), f"{prefix}.description", source)
    workers = _require_positive_int(data.get("number_of_workers"), f"{prefix}.number_of_workers", source)
    chunk_size = _require_byte_size(data.get("bytes_per_worker"), f"{prefix}.bytes_per_worker", source)

    has_header = data.get("has_header", HeaderConfig().has_header)
    if not isinstance(has_header, bool):
        raise ConfigError(f"{prefix}.has_header must be a boolean in {source}")
    separator = data.get("separator", HeaderConfig().separator)
    if not isinstance(separator, str) or (has_header and not separator):
        raise ConfigError(f"{prefix}.separator must be a non-empty string in {source}")

    config = ProcessorConfig(
        number_of_workers=workers,
        header_config=HeaderConfig(has_header=has_header, separator=separator),
        bytes_per_worker=chunk_size,
        encoding=global_settings.encoding,
        error_policy=global_settings.error_policy,
    )
    try:
        return validate_config(config)
    except ConfigError as exc:
        raise ConfigError(f"{prefix}: {exc.args[0]} in {source}") from exc


def _normalize_error_policy(value: Any, source: Path) -> str:
    policy = _require_string(value, "global.error_policy", source).lower()
    if policy not in ALLOWED_ERROR_POLICIES:
        allowed = ", ".join(sorted(ALLOWED_ERROR_POLICIES))
        raise ConfigError(f"Unsupported error_policy '{value}' in {source}. Allowed: {allowed}")
    return "fail-fast" if policy in {"fail-fast", "strict"} else "replace"


def _require_string(value: Any, field: str, source: Path) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{field} must be a string in {source}")
    text = value.strip()
    if not text:
        raise ConfigError(f"{field} must be non-empty in {source}")
    return text


def _require_positive_int(value: Any, field: str, source: Path) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{field} must be an integer in {source}")
    try:
        num = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field} must be an integer in {source}") from exc
    if num <= 0:
        raise ConfigError(f"{field} must be greater than zero in {source}")
    return num


def _require_byte_size(value: Any, field: str, source: Path) -> int:
    try:
        num = parse_byte_size(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field} must be a byte count or size like '10MB' in {source}") from exc
    if num <= 0:
        raise ConfigError(f"{field} must be greater than zero in {source}")
    return num
