"""Configuration for the lookup layer."""

from .loader import ScalarOverrides, assemble_config, load_config, scalars_from_env
from .schema import (
    BalancerSettings,
    CacheSettings,
    ColumnSettings,
    LoggingSettings,
    LookupConfig,
    MessageSettings,
    RedirectSettings,
    ValidationSettings,
)

__all__ = [
    "LookupConfig",
    "ColumnSettings",
    "MessageSettings",
    "RedirectSettings",
    "ValidationSettings",
    "CacheSettings",
    "BalancerSettings",
    "LoggingSettings",
    "ScalarOverrides",
    "assemble_config",
    "load_config",
    "scalars_from_env",
]
