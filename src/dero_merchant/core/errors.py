"""
Exception hierarchy shared by the client and the webhook helpers.

Every failure raised by this package derives from :class:`DeroMerchantError`,
so callers can tell an :class:`APIError` reported by the service apart from a
:class:`TransportError` or a webhook authentication failure by class alone.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "APIError",
    "ConfigError",
    "DecodeError",
    "DeroMerchantError",
    "InvalidSignatureError",
    "NoSignatureError",
    "TransportError",
    "TransportErrorKind",
    "WebhookDecodeError",
    "WebhookError",
]


class DeroMerchantError(Exception):
    """Base class for every error raised by ``dero_merchant``."""


class ConfigError(DeroMerchantError):
    """Raised when the supplied configuration is invalid."""


class APIError(DeroMerchantError):
    """
    Error object returned by the server when a request fails.

    Raised unmodified to the caller; the client never retries on it.
    """

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"DeroMerchant Client: API Error {self.code}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, APIError):
            return NotImplemented
        return (self.code, self.message) == (other.code, other.message)

    def __hash__(self) -> int:
        return hash((self.code, self.message))


class TransportErrorKind(str, Enum):
    NETWORK = "network"
    NOT_FOUND = "not_found"
    UNEXPECTED_STATUS = "unexpected_status"
    MALFORMED_RESPONSE = "malformed_response"
    INVALID_REQUEST = "invalid_request"


class TransportError(DeroMerchantError):
    """
    Failure that is not an error reported by the service itself.

    Covers network errors, undecodable success bodies and non-2xx responses
    that do not carry the service's error envelope.
    """

    def __init__(
        self,
        kind: TransportErrorKind,
        detail: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(detail)
        self.kind = kind
        self.detail = detail
        self.url = url
        self.status_code = status_code

    def __str__(self) -> str:
        return self.detail


class DecodeError(DeroMerchantError, ValueError):
    """Raised when a hex encoded key or signature cannot be decoded."""


class WebhookError(DeroMerchantError):
    """Base class for webhook requests that must not be trusted."""


class NoSignatureError(WebhookError):
    def __init__(self) -> None:
        super().__init__("DeroMerchant: webhook request has no signature header")


class InvalidSignatureError(WebhookError):
    def __init__(self) -> None:
        super().__init__("DeroMerchant: webhook request has invalid signature")


class WebhookDecodeError(WebhookError, DecodeError):
    """The signature header or the webhook secret key is not valid hex."""
