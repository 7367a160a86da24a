"""Input format checks applied before a lookup is attempted."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from .config.schema import ValidationSettings
from .models import Dimension

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error_message: Optional[str] = None


def validate_cedula(value: str, settings: ValidationSettings) -> bool:
    """Document numbers count digits only; separators are ignored."""
    digits = _NON_DIGITS.sub("", value)
    return settings.cedula_min_length <= len(digits) <= settings.cedula_max_length


def validate_codigo(value: str, settings: ValidationSettings) -> bool:
    """Registration codes carry a fixed prefix followed by at least one character."""
    prefix = settings.codigo_prefix
    return (
        value.startswith(prefix)
        and len(value) > len(prefix)
        and settings.codigo_min_length <= len(value) <= settings.codigo_max_length
    )


def validate_search_value(
    dimension: Union[Dimension, str],
    value: Optional[str],
    settings: ValidationSettings,
    invalid_input_message: str = "Por favor ingresa un valor válido.",
) -> ValidationResult:
    dimension = Dimension(dimension)
    value = (value or "").strip()
    if not value:
        return ValidationResult(False, invalid_input_message)

    if dimension is Dimension.CEDULA:
        if validate_cedula(value, settings):
            return ValidationResult(True)
        return ValidationResult(
            False,
            f"El número de documento debe tener entre {settings.cedula_min_length} "
            f"y {settings.cedula_max_length} dígitos",
        )

    if validate_codigo(value, settings):
        return ValidationResult(True)
    return ValidationResult(
        False,
        f"El número de registro debe empezar con {settings.codigo_prefix} "
        f"y tener al menos {settings.codigo_min_length} caracteres",
    )
