"""
Error taxonomy for the verification gateway.

Only MalformedInputError is meant to reach API callers directly; the
others are recovered by the fallback chain or surface from direct
(non-chained) provider clients.
"""


class KycGatewayError(Exception):
    """Base class for all gateway errors."""

    def __init__(self, message: str, provider_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider_id = provider_id


class ConfigurationMissingError(KycGatewayError):
    """Required credentials for a provider are absent."""


class TransportFailureError(KycGatewayError):
    """Network error, timeout, or an unstructured non-2xx response."""


class TokenExchangeError(TransportFailureError):
    """Client-credential exchange against a token endpoint failed."""


class ProviderRejectedError(KycGatewayError):
    """Provider returned a well-formed negative answer."""

    def __init__(
        self,
        message: str,
        provider_id: str | None = None,
        payload: object | None = None,
    ) -> None:
        super().__init__(message, provider_id)
        self.payload = payload


class MalformedInputError(KycGatewayError):
    """Request failed validation before any provider was contacted."""


class ExtractionMissError(KycGatewayError):
    """No recoverable fields in the provider output."""
