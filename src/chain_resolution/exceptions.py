"""
Exception classes for the resolution library.

All exceptions inherit from ResolutionLibError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional

from .enums import (
    ConfigurationErrorCode,
    DnsRecordsErrorCode,
    ProviderErrorCode,
    ResolutionErrorCode,
)


class ResolutionLibError(Exception):
    """Base exception for all resolution library errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


_RESOLUTION_MESSAGES = {
    ResolutionErrorCode.UNSUPPORTED_DOMAIN: "Domain {domain} is not supported",
    ResolutionErrorCode.NAMING_SERVICE_DOWN: "{method} naming service is down at the moment",
    ResolutionErrorCode.RECORD_NOT_FOUND: "No {record} record found for {domain}",
    ResolutionErrorCode.UNSUPPORTED_CURRENCY: "{currency_ticker} is not supported",
    ResolutionErrorCode.UNSPECIFIED_CURRENCY: "Domain {domain} has no {currency_ticker} attached to it",
    ResolutionErrorCode.UNREGISTERED_DOMAIN: "Domain {domain} is not registered",
    ResolutionErrorCode.UNSPECIFIED_RESOLVER: "Domain {domain} is not configured",
    ResolutionErrorCode.UNSUPPORTED_METHOD: "Method {method_name} is not supported for {domain}",
}

_CONFIGURATION_MESSAGES = {
    ConfigurationErrorCode.INCORRECT_PROVIDER: "Provider doesn't implement {expected}",
    ConfigurationErrorCode.UNSPECIFIED_NETWORK: "Unspecified network for {method}",
    ConfigurationErrorCode.UNSPECIFIED_URL: "Unspecified url for {method}",
    ConfigurationErrorCode.UNSUPPORTED_NETWORK: "Unsupported network {network} for {method}",
}


class _Details(dict):
    def __missing__(self, key: str) -> str:
        return "?"


class ResolutionError(ResolutionLibError):
    """Raised when a domain cannot be resolved."""

    def __init__(
        self,
        code: ResolutionErrorCode,
        details: Optional[dict] = None,
        message: Optional[str] = None,
    ) -> None:
        self.error_code = code
        details = details or {}
        if message is None:
            message = _RESOLUTION_MESSAGES[code].format_map(_Details(details))
        super().__init__(code.value, message, details)


class ConfigurationError(ResolutionLibError):
    """Raised when a backend or provider is misconfigured at construction time."""

    def __init__(
        self,
        code: ConfigurationErrorCode,
        details: Optional[dict] = None,
        message: Optional[str] = None,
    ) -> None:
        self.error_code = code
        details = details or {}
        if message is None:
            message = _CONFIGURATION_MESSAGES[code].format_map(_Details(details))
        super().__init__(code.value, message, details)


class DnsRecordsError(ResolutionLibError):
    """Raised when DNS records cannot be decoded or encoded."""

    def __init__(
        self,
        code: DnsRecordsErrorCode,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.error_code = code
        super().__init__(code.value, message, details)


class ProviderError(ResolutionLibError):
    """Raised by provider adapters on transport or JSON-RPC failures."""

    def __init__(
        self,
        code: ProviderErrorCode,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.error_code = code
        super().__init__(code.value, message, details)
