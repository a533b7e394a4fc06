from __future__ import annotations

import os
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from duochat.config.paths import get_global_config_path, get_project_config_path
from duochat.config.schema import (
    CONVERSATIONAL_KEY_ENV_NAMES,
    DOCUMENT_KEY_ENV_NAMES,
    AppConfig,
)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root type: {type(data)}")
    return data


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = dict(base)
    for k, v in override.items():
        existing = out.get(k)
        if isinstance(v, dict) and isinstance(existing, dict):
            out[k] = _merge_dicts(existing, v)
        else:
            out[k] = v
    return out


def _resolve_env(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("$") and len(value) > 1:
        return os.getenv(value[1:])
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env(v) for v in value]
    return value


def first_env(names: Iterable[str]) -> str | None:
    """Return the first non-empty environment variable among ``names``."""

    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def load_raw_config() -> dict[str, Any]:
    global_cfg = _read_yaml(get_global_config_path())
    project_cfg = _read_yaml(get_project_config_path())
    merged = _merge_dicts(global_cfg, project_cfg)
    resolved = _resolve_env(merged)
    if not isinstance(resolved, dict):
        raise ValueError("Config root must be a mapping")
    return resolved


def load_config() -> AppConfig:
    """Build the application config.

    Sources, lowest priority first: global YAML, project YAML, ``$NAME``
    references inside them, then the well-known provider key variables for
    any key still unset.
    """

    config = AppConfig.model_validate(load_raw_config())
    conversational = config.providers.conversational
    if not conversational.api_key:
        conversational.api_key = first_env(CONVERSATIONAL_KEY_ENV_NAMES)
    document = config.providers.document
    if not document.api_key:
        document.api_key = first_env(DOCUMENT_KEY_ENV_NAMES)
    return config


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    return load_config()
