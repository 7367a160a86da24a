"""
Configuration assembly with YAML and environment variable overrides.

Precedence, lowest first:

1. built-in defaults (field defaults on ``LookupConfig``)
2. bulk override mapping (usually the YAML file), merged section by section
3. individual scalar overrides (``ScalarOverrides``, usually ``CENSO_*`` env vars)

The result is validated once and is immutable afterwards.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from ..exceptions import ConfigurationError
from ..utils.logging import get_logger
from .schema import LookupConfig

logger = get_logger(__name__)

ENV_PREFIX = "CENSO_"
CONFIG_PATH_ENV = "CENSO_CONFIG_PATH"


class ScalarOverrides(BaseModel):
    """Individually overridable settings, one flat field each."""

    model_config = ConfigDict(extra="forbid")

    proxy_urls: Optional[str] = None
    proxy_url: Optional[str] = None
    cedula_column: Optional[str] = None
    codigo_column: Optional[str] = None
    cedula_found_message: Optional[str] = None
    codigo_found_message: Optional[str] = None
    cedula_not_found_message: Optional[str] = None
    codigo_not_found_message: Optional[str] = None
    error_search_message: Optional[str] = None
    invalid_input_message: Optional[str] = None
    loading_message: Optional[str] = None
    cedula_not_found_url: Optional[str] = None
    codigo_not_found_url: Optional[str] = None
    cedula_min_length: Optional[int] = None
    cedula_max_length: Optional[int] = None
    codigo_min_length: Optional[int] = None
    codigo_max_length: Optional[int] = None
    snapshot_ttl_seconds: Optional[float] = None
    result_ttl_seconds: Optional[float] = None
    result_cache_max_entries: Optional[int] = None
    cooldown_seconds: Optional[float] = None
    log_level: Optional[str] = None


# Where each scalar lands in the sectioned configuration
_SCALAR_TARGETS: Dict[str, Tuple[str, ...]] = {
    "proxy_urls": ("endpoints",),
    "proxy_url": ("probe_endpoint",),
    "cedula_column": ("columns", "cedula_column"),
    "codigo_column": ("columns", "codigo_column"),
    "cedula_found_message": ("messages", "cedula_found"),
    "codigo_found_message": ("messages", "codigo_found"),
    "cedula_not_found_message": ("messages", "cedula_not_found"),
    "codigo_not_found_message": ("messages", "codigo_not_found"),
    "error_search_message": ("messages", "error_search"),
    "invalid_input_message": ("messages", "invalid_input"),
    "loading_message": ("messages", "loading"),
    "cedula_not_found_url": ("redirect_urls", "cedula_not_found"),
    "codigo_not_found_url": ("redirect_urls", "codigo_not_found"),
    "cedula_min_length": ("validation", "cedula_min_length"),
    "cedula_max_length": ("validation", "cedula_max_length"),
    "codigo_min_length": ("validation", "codigo_min_length"),
    "codigo_max_length": ("validation", "codigo_max_length"),
    "snapshot_ttl_seconds": ("cache", "snapshot_ttl_seconds"),
    "result_ttl_seconds": ("cache", "result_ttl_seconds"),
    "result_cache_max_entries": ("cache", "result_cache_max_entries"),
    "cooldown_seconds": ("balancer", "cooldown_seconds"),
    "log_level": ("logging", "level"),
}


def _merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``base`` updated with ``override``; nested mappings merge per key."""
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _scalar_sections(scalars: ScalarOverrides) -> Dict[str, Any]:
    sections: Dict[str, Any] = {}
    for name, value in scalars.model_dump(exclude_none=True).items():
        *parents, leaf = _SCALAR_TARGETS[name]
        target = sections
        for parent in parents:
            target = target.setdefault(parent, {})
        target[leaf] = value
    return sections


def assemble_config(
    overrides: Optional[Mapping[str, Any]] = None,
    scalars: Optional[ScalarOverrides] = None,
) -> LookupConfig:
    """Build the configuration from defaults, a bulk override and scalar overrides.

    Raises:
        ConfigurationError: if the merged values fail validation
    """
    data = _merge({}, overrides or {})
    if scalars is not None:
        data = _merge(data, _scalar_sections(scalars))

    try:
        return LookupConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def scalars_from_env(environ: Optional[Mapping[str, str]] = None) -> ScalarOverrides:
    """Collect ``CENSO_<FIELD>`` variables; empty values are ignored."""
    environ = os.environ if environ is None else environ
    values = {}
    for name in ScalarOverrides.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw.strip():
            values[name] = raw.strip()

    try:
        return ScalarOverrides.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment override: {e}") from e


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Configuration file is not valid YAML: {path}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}")
    return raw


def load_config(
    path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> LookupConfig:
    """Load configuration from an optional YAML file plus environment overrides."""
    environ = os.environ if environ is None else environ
    path = path or environ.get(CONFIG_PATH_ENV)

    overrides = _load_yaml(Path(path)) if path else {}
    scalars = scalars_from_env(environ)
    config = assemble_config(overrides, scalars)

    logger.info(
        "config_loaded",
        extra={
            "path": str(path) if path else None,
            "endpoint_count": len(config.endpoints),
            "scalar_overrides": sorted(scalars.model_dump(exclude_none=True)),
        },
    )
    return config
