"""
Configuration schema using Pydantic.

One immutable structure with named, typed fields. Built-in defaults live on
the field definitions; overrides are applied by ``censo_lookup.config.loader``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models import Dimension


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ColumnSettings(_Frozen):
    """Spreadsheet column matching."""

    cedula_column: str = Field("Numero de documento", description="Display label of the cedula column")
    codigo_column: str = Field("N de registro", description="Display label of the codigo column")
    cedula_fragments: Tuple[str, ...] = Field(
        ("documento", "cedula"), description="Header fragments identifying the cedula column"
    )
    codigo_fragments: Tuple[str, ...] = Field(
        ("registro", "codigo"), description="Header fragments identifying the codigo column"
    )

    @field_validator("cedula_fragments", "codigo_fragments")
    @classmethod
    def validate_fragments(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        fragments = tuple(f.strip().lower() for f in v if f and f.strip())
        if not fragments:
            raise ValueError("At least one header fragment is required")
        return fragments

    def fragments_for(self, dimension: Dimension) -> Tuple[str, ...]:
        if dimension is Dimension.CEDULA:
            return self.cedula_fragments
        return self.codigo_fragments

    def label_for(self, dimension: Dimension) -> str:
        """Display name of the sheet column searched along ``dimension``."""
        if dimension is Dimension.CEDULA:
            return self.cedula_column
        return self.codigo_column

    @property
    def header_fragments(self) -> Dict[Dimension, Tuple[str, ...]]:
        return {dimension: self.fragments_for(dimension) for dimension in Dimension}


class MessageSettings(_Frozen):
    """User-facing messages."""

    cedula_found: str = "Ya fuiste censado con este número de documento."
    codigo_found: str = "Ya fuiste censado con este número de registro."
    cedula_not_found: str = "No fuiste censado aún. Te redirigiremos al formulario."
    codigo_not_found: str = "No fuiste censado aún. Te redirigiremos al formulario."
    error_search: str = "Error al realizar la búsqueda. Intenta nuevamente."
    invalid_input: str = "Por favor ingresa un valor válido."
    loading: str = "Buscando en la base de datos..."

    def for_outcome(self, dimension: Dimension, found: bool) -> str:
        """Message for a ``(dimension, found)`` pair."""
        if dimension is Dimension.CEDULA:
            return self.cedula_found if found else self.cedula_not_found
        return self.codigo_found if found else self.codigo_not_found


class RedirectSettings(_Frozen):
    """Registration form URLs shown when an identifier is not found."""

    cedula_not_found: str = "https://google.com"
    codigo_not_found: str = "https://google.com"

    def for_dimension(self, dimension: Dimension) -> str:
        if dimension is Dimension.CEDULA:
            return self.cedula_not_found
        return self.codigo_not_found


class ValidationSettings(_Frozen):
    """Input format limits."""

    cedula_min_length: int = Field(7, ge=1)
    cedula_max_length: int = Field(12, ge=1)
    codigo_min_length: int = Field(4, ge=1)
    codigo_max_length: int = Field(999, ge=1)
    codigo_prefix: str = "RBAQ"

    @model_validator(mode="after")
    def validate_ranges(self) -> "ValidationSettings":
        if self.cedula_min_length > self.cedula_max_length:
            raise ValueError("cedula_min_length must be <= cedula_max_length")
        if self.codigo_min_length > self.codigo_max_length:
            raise ValueError("codigo_min_length must be <= codigo_max_length")
        return self


class CacheSettings(_Frozen):
    """Cache lifetimes and sizes."""

    snapshot_ttl_seconds: float = Field(120.0, gt=0, description="Bulk snapshot TTL")
    result_ttl_seconds: float = Field(300.0, gt=0, description="Per-query result TTL")
    result_cache_max_entries: int = Field(
        1000, ge=1, description="Result count that triggers an expiry sweep"
    )


class BalancerSettings(_Frozen):
    """Relay rotation."""

    cooldown_seconds: float = Field(30.0, ge=0, description="Exclusion time after a failure")


class LoggingSettings(_Frozen):
    level: str = "INFO"
    file: Optional[Path] = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class LookupConfig(_Frozen):
    """Complete lookup configuration."""

    endpoints: Tuple[str, ...] = Field((), description="Relay endpoint URLs, in rotation order")
    probe_endpoint: Optional[str] = Field(None, description="Endpoint for connection checks")
    columns: ColumnSettings = Field(default_factory=ColumnSettings)
    messages: MessageSettings = Field(default_factory=MessageSettings)
    redirect_urls: RedirectSettings = Field(default_factory=RedirectSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    balancer: BalancerSettings = Field(default_factory=BalancerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("endpoints", mode="before")
    @classmethod
    def split_endpoints(cls, v: Any) -> Any:
        """Accept a comma separated string as well as a list."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split(",")
        return tuple(url.strip() for url in v if url and url.strip())

    @field_validator("endpoints")
    @classmethod
    def validate_endpoints(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        for url in v:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"Endpoint is not an http(s) URL: {url}")
        return v

    @property
    def effective_probe_endpoint(self) -> Optional[str]:
        if self.probe_endpoint:
            return self.probe_endpoint
        return self.endpoints[0] if self.endpoints else None
