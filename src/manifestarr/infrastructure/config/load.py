"""Layered configuration loading: defaults < YAML < environment < CLI."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_TOP_LEVEL_KEYS = ("app_name", "environment")
_SECTIONS = ("resolver", "browser", "cache", "server", "logging")

# Flat keys (env / CLI) and the section field each one sets.
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "embed_domain": ("resolver", "embed_domain"),
    "resolve_timeout_seconds": ("resolver", "timeout_seconds"),
    "single_flight": ("resolver", "single_flight"),
    "browser_headless": ("browser", "headless"),
    "browser_user_agent": ("browser", "user_agent"),
    "browser_stealth": ("browser", "stealth"),
    "navigation_timeout_ms": ("browser", "navigation_timeout_ms"),
    "cache_ttl_seconds": ("cache", "ttl_seconds"),
    "shutdown_drain_seconds": ("server", "shutdown_drain_seconds"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Merge *layer* into *target* in place; nested mappings merge per key."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = deepcopy(value)


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape AppConfig validates.

    Section blocks are copied as-is. Flat keys are moved under their
    section. Unknown keys are dropped.
    """
    out: dict[str, Any] = {k: layer[k] for k in _TOP_LEVEL_KEYS if k in layer}

    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)

    for flat_key, (section, field) in _FLAT_KEYS.items():
        if flat_key in layer:
            out.setdefault(section, {})[field] = layer[flat_key]

    return out


def _yaml_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(data)!r}")
    return data


def _layers(
    config_path: Path | None, cli_overrides: Mapping[str, Any]
) -> Iterable[Mapping[str, Any]]:
    yield DEFAULT_CONFIG
    if config_path is not None:
        yield _yaml_layer(config_path)
    # Read after the dotenv file has been loaded into os.environ.
    yield EnvOverrides().to_update_dict()
    yield cli_overrides


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated AppConfig.

    Later layers win: defaults, then the YAML file, then MANIFESTARR_*
    environment variables (a dotenv file feeds this layer without
    overriding variables already set), then CLI overrides.

    Reads files only; never creates any.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    merged: dict[str, Any] = {}
    for layer in _layers(config_path, cli_overrides or {}):
        _merge_into(merged, _sectioned(layer))

    return AppConfig.model_validate(merged)
