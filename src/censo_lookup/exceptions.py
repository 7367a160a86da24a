"""
Lookup exceptions with recovery hints.

Every failure of a lookup is classified as exactly one of
``ConfigurationError``, ``TransportError`` or ``ProtocolError`` so callers can
branch on the type instead of matching message text.
"""

from __future__ import annotations


class CensoLookupError(Exception):
    """Base exception for the lookup layer."""

    def __init__(
        self,
        message: str,
        recovery_action: str | None = None,
        is_recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.recovery_action = recovery_action
        self.is_recoverable = is_recoverable


class ConfigurationError(CensoLookupError):
    """No relay endpoints are configured, or configuration values are invalid."""

    def __init__(self, message: str = "No relay endpoints configured"):
        super().__init__(
            message,
            recovery_action="Provide at least one relay endpoint URL",
            is_recoverable=False,
        )


class TransportError(CensoLookupError):
    """A remote call did not produce a response."""

    def __init__(self, endpoint: str, message: str = "Relay endpoint unreachable"):
        self.endpoint = endpoint
        super().__init__(
            message,
            recovery_action="Retrying through another relay endpoint",
            is_recoverable=True,
        )


class ProtocolError(CensoLookupError):
    """A response arrived but reported failure or could not be understood."""

    def __init__(
        self,
        message: str = "Error del servidor",
        endpoint: str | None = None,
        status: int | None = None,
    ):
        self.endpoint = endpoint
        self.status = status
        super().__init__(
            message,
            recovery_action="Check the relay deployment and spreadsheet access",
            is_recoverable=False,
        )
