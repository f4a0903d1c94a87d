"""Configuration loading with deterministic precedence.

The cascade is always:
1) CLI params
2) Environment variables
3) ~/.config/urchin/urchin.yaml
4) Built-in defaults

Environment variable format:
- Prefix: ``URCHIN_``
- Nested keys: ``__`` separator
- Example: ``URCHIN_CLIENT__ENDPOINT=http://10.0.0.5:65004`` -> ``client.endpoint``
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import BUILTIN_DEFAULTS
from .models import UrchinSettings

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "urchin" / "urchin.yaml"
ENV_PREFIX = "URCHIN_"


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> UrchinSettings:
    """Resolve the cascade and validate it into ``UrchinSettings``."""
    merged = load_config(
        cli_params=cli_params,
        environ=environ,
        config_path=config_path,
    )
    return UrchinSettings.model_validate(merged)


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Merge defaults, YAML file, environment and CLI params into one mapping."""
    merged = _as_plain_dict(defaults if defaults is not None else BUILTIN_DEFAULTS)
    for layer in (
        _load_file_config(path=config_path),
        _load_env_config(environ=environ, prefix=env_prefix),
        _drop_unset(cli_params or {}),
    ):
        merged = _merge_dicts(merged, layer)
    return merged


def _load_file_config(*, path: str | Path | None) -> dict[str, Any]:
    """Load YAML config from disk; return empty dict when file is absent."""
    resolved = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not resolved.exists():
        return {}

    with resolved.open("r", encoding="utf-8") as handle:
        try:
            parsed = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in config file {resolved}: {exc}") from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must contain a top-level mapping: {resolved}")
    return _as_plain_dict(parsed)


def _load_env_config(
    *, environ: Mapping[str, str] | None, prefix: str
) -> dict[str, Any]:
    """Extract prefixed environment variables into a nested mapping."""
    env = environ if environ is not None else os.environ
    output: dict[str, Any] = {}

    for key, raw_value in env.items():
        if not key.startswith(prefix):
            continue
        path = [
            segment.strip().lower()
            for segment in key[len(prefix) :].split("__")
            if segment.strip()
        ]
        if path:
            _set_nested(output, path, _coerce_scalar(raw_value))

    return output


def _drop_unset(values: Mapping[str, Any]) -> dict[str, Any]:
    """Remove ``None`` leaves so unset CLI options never mask lower layers."""
    output: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, Mapping):
            nested = _drop_unset(value)
            if nested:
                output[str(key)] = nested
        elif value is not None:
            output[str(key)] = value
    return output


def _set_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Set a nested mapping value by path, creating intermediate dicts."""
    cursor = target
    for segment in path[:-1]:
        child = cursor.get(segment)
        if not isinstance(child, dict):
            child = {}
            cursor[segment] = child
        cursor = child
    cursor[path[-1]] = value


def _merge_dicts(
    base: Mapping[str, Any], override: Mapping[str, Any]
) -> dict[str, Any]:
    """Recursively merge mappings, with ``override`` taking precedence."""
    result = _as_plain_dict(base)
    for key, override_value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(override_value, Mapping):
            result[key] = _merge_dicts(base_value, override_value)
        else:
            result[key] = copy.deepcopy(override_value)
    return result


def _coerce_scalar(raw: str) -> Any:
    """Coerce env strings into bool/None/int/float/JSON when obvious."""
    value = raw.strip()
    lowered = value.lower()

    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    if value.startswith(("{", "[")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return raw

    for kind in (int, float):
        try:
            return kind(value)
        except ValueError:
            continue
    return raw


def _as_plain_dict(value: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-copy a mapping into plain ``dict`` values recursively."""
    return {
        str(key): _as_plain_dict(item) if isinstance(item, Mapping) else copy.deepcopy(item)
        for key, item in value.items()
    }
