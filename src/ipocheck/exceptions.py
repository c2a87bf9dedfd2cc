"""Exception hierarchy for ``ipocheck``."""

from __future__ import annotations


class IpoCheckError(Exception):
    """Base class for all errors raised by this package."""


class UnsupportedProvider(IpoCheckError, LookupError):
    """Raised when a provider id is not in the registry."""

    def __init__(self, provider_id: str, supported: list[str] | tuple[str, ...] = ()) -> None:
        message = f"Unsupported provider: {provider_id}"
        if supported:
            message += f". Supported providers: {', '.join(supported)}"
        super().__init__(message)
        self.provider_id = provider_id
        self.supported = tuple(supported)


class TransportError(IpoCheckError):
    """Provider could not be reached or answered with something unusable."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigError(IpoCheckError, ValueError):
    """Invalid configuration value or file."""


__all__ = ["ConfigError", "IpoCheckError", "TransportError", "UnsupportedProvider"]
