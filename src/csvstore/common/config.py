"""Helpers for loading runtime configuration profiles."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from csvstore.common.errors import CSVStoreError, ErrorCode
from csvstore.common.models import GlobalSettings, ProfileSettings, RuntimeConfig

DEFAULT_CONFIG_PATH = Path("config/defaults.json")
DEFAULT_PROFILE = "default"
BUILTIN_SOURCE = Path("<builtin>")
ALLOWED_ERROR_POLICIES = {"fail-fast", "strict", "replace"}

BUILTIN_CONFIG: Dict[str, Any] = {
    "version": 1,
    "global": {"encoding": "utf-8", "delimiter": ",", "error_policy": "fail-fast"},
    "profiles": {
        "default": {
            "description": "Atomic rewrites without fsync",
            "read_chunk_size": 65536,
            "atomic_rewrite": True,
            "fsync": False,
            "json_indent": None,
        },
        "durable": {
            "description": "Atomic rewrites flushed to disk before replace",
            "read_chunk_size": 65536,
            "atomic_rewrite": True,
            "fsync": True,
            "json_indent": 2,
        },
    },
}


@dataclass(slots=True)
class ConfigDocument:
    source: Path
    version: int
    global_settings: GlobalSettings
    profiles: Dict[str, ProfileSettings]


def load_runtime_config(
    profile: str = DEFAULT_PROFILE,
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> RuntimeConfig:
    """Load configuration JSON, validate it, and resolve a specific profile.

    Without an explicit ``config_path`` the file at ``config/defaults.json`` is
    used when present, otherwise the built-in document.
    """

    document = load_config_document(
        profile_name=profile,
        config_path=config_path,
        overrides=overrides,
    )
    return RuntimeConfig(global_settings=document.global_settings, profile=document.profiles[profile])


def default_runtime_config(profile: str = DEFAULT_PROFILE) -> RuntimeConfig:
    """Resolve a profile from the built-in document only, ignoring files on disk."""

    document = _build_document(BUILTIN_CONFIG, BUILTIN_SOURCE, profile_name=profile)
    return RuntimeConfig(global_settings=document.global_settings, profile=document.profiles[profile])


def load_config_document(
    *,
    profile_name: Optional[str] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> ConfigDocument:
    if config_path is not None:
        cfg_path = Path(config_path)
        raw = _read_config_json(cfg_path)
    elif DEFAULT_CONFIG_PATH.is_file():
        cfg_path = DEFAULT_CONFIG_PATH
        raw = _read_config_json(cfg_path)
    else:
        cfg_path = BUILTIN_SOURCE
        raw = BUILTIN_CONFIG
    return _build_document(raw, cfg_path, profile_name=profile_name, overrides=overrides)


def _build_document(
    raw: Mapping[str, Any],
    cfg_path: Path,
    *,
    profile_name: Optional[str] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> ConfigDocument:
    version = _require_positive_int(raw.get("version"), "version", cfg_path)
    global_section = raw.get("global")
    if not isinstance(global_section, Mapping):
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"'global' section missing in {cfg_path}")

    overrides = overrides or {}
    global_data = {**global_section, **(overrides.get("global") or {})}
    global_settings = _build_global_settings(global_data, cfg_path)

    profiles_section = raw.get("profiles")
    if not isinstance(profiles_section, Mapping) or not profiles_section:
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"'profiles' section missing in {cfg_path}")

    profile_overrides = overrides.get("profile") or {}
    profiles: Dict[str, ProfileSettings] = {}
    for name, profile_data in profiles_section.items():
        if not isinstance(profile_data, Mapping):
            raise CSVStoreError(
                ErrorCode.CONFIG_ERROR,
                f"Profile '{name}' must be an object in {cfg_path}",
            )
        merged = dict(profile_data)
        if profile_name and name == profile_name and profile_overrides:
            merged = {**merged, **profile_overrides}
        profiles[name] = _build_profile_settings(name, merged, cfg_path)

    if profile_name and profile_name not in profiles:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"Profile '{profile_name}' not found in {cfg_path}",
        )

    return ConfigDocument(
        source=cfg_path,
        version=version,
        global_settings=global_settings,
        profiles=profiles,
    )


def error_mode_from_policy(policy: str) -> str:
    """Translate human-friendly error policy into Python's encoding error handler."""

    return "strict" if policy.lower() in {"fail-fast", "strict"} else "replace"


# ---------------------------------------------------------------------------
# Internal helpers


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' not found") from exc
    except json.JSONDecodeError as exc:
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' must contain an object")
    return data


def _build_global_settings(data: Mapping[str, Any], source: Path) -> GlobalSettings:
    defaults = GlobalSettings()
    encoding = _require_string(data.get("encoding", defaults.encoding), "global.encoding", source)
    delimiter = data.get("delimiter", defaults.delimiter)
    if not isinstance(delimiter, str) or not delimiter:
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"global.delimiter must be a non-empty string in {source}")
    if '"' in delimiter or "\n" in delimiter:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"global.delimiter may not contain quotes or line breaks in {source}",
        )
    error_policy = _normalize_error_policy(data.get("error_policy", defaults.error_policy), source)
    return GlobalSettings(encoding=encoding, delimiter=delimiter, error_policy=error_policy)


def _build_profile_settings(name: str, data: Mapping[str, Any], source: Path) -> ProfileSettings:
    prefix = f"profiles.{name}"
    required_fields = ("description", "read_chunk_size")
    missing = [field for field in required_fields if field not in data]
    if missing:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"Profile '{name}' missing fields {missing} in {source}",
        )

    return ProfileSettings(
        description=_require_string(data.get("description"), f"{prefix}.description", source),
        read_chunk_size=_require_positive_int(data.get("read_chunk_size"), f"{prefix}.read_chunk_size", source),
        atomic_rewrite=_require_bool(data.get("atomic_rewrite", True), f"{prefix}.atomic_rewrite", source),
        fsync=_require_bool(data.get("fsync", False), f"{prefix}.fsync", source),
        json_indent=_optional_non_negative_int(data.get("json_indent"), f"{prefix}.json_indent", source),
    )


def _normalize_error_policy(value: Any, source: Path) -> str:
    policy = _require_string(value, "global.error_policy", source).lower()
    if policy not in ALLOWED_ERROR_POLICIES:
        allowed = ", ".join(sorted(ALLOWED_ERROR_POLICIES))
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"Unsupported error_policy '{value}' in {source}. Allowed: {allowed}",
        )
    return "fail-fast" if policy in {"fail-fast", "strict"} else "replace"


def _require_string(value: Any, field: str, source: Path) -> str:
    if not isinstance(value, str):
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"{field} must be a string in {source}")
    text = value.strip()
    if not text:
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"{field} must be non-empty in {source}")
    return text


def _require_bool(value: Any, field: str, source: Path) -> bool:
    if not isinstance(value, bool):
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"{field} must be a boolean in {source}")
    return value


def _require_positive_int(value: Any, field: str, source: Path) -> int:
    if isinstance(value, bool):
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"{field} must be an integer in {source}")
    try:
        num = int(value)
    except (TypeError, ValueError) as exc:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be an integer in {source}",
        ) from exc
    if num <= 0:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be greater than zero in {source}",
        )
    return num


def _optional_non_negative_int(value: Any, field: str, source: Path) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise CSVStoreError(ErrorCode.CONFIG_ERROR, f"{field} must be an integer in {source}")
    try:
        num = int(value)
    except (TypeError, ValueError) as exc:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be an integer in {source}",
        ) from exc
    if num < 0:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must not be negative in {source}",
        )
    return num
