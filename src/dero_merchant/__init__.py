"""
Python client for the DERO Merchant REST API.

Provides a :class:`Client` that signs and sends requests to the API, and the
helpers needed to authenticate and parse the webhook requests the service
sends back. The names below are re-exported so integrators can
``from dero_merchant import ...`` without navigating the package.
"""

from .api import create_client, create_webhook_verifier
from .core import (
    APIError,
    Client,
    ClientConfig,
    ClientParameters,
    ConfigError,
    DecodeError,
    DeroMerchantError,
    FilteredPayments,
    InvalidSignatureError,
    NoSignatureError,
    Payment,
    PaymentUpdateEvent,
    PingResponse,
    TransportError,
    TransportErrorKind,
    WebhookConfig,
    WebhookDecodeError,
    WebhookError,
    WebhookRequest,
    WebhookVerifier,
    load_client_config,
    load_webhook_config,
    parse_webhook_request,
    verify_and_parse_webhook_request,
    verify_webhook_signature,
)
from .receiver import WebhookReceiver

__version__ = "1.0.0"

__all__ = (
    "APIError",
    "Client",
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "DecodeError",
    "DeroMerchantError",
    "FilteredPayments",
    "InvalidSignatureError",
    "NoSignatureError",
    "Payment",
    "PaymentUpdateEvent",
    "PingResponse",
    "TransportError",
    "TransportErrorKind",
    "WebhookConfig",
    "WebhookDecodeError",
    "WebhookError",
    "WebhookReceiver",
    "WebhookRequest",
    "WebhookVerifier",
    "create_client",
    "create_webhook_verifier",
    "load_client_config",
    "load_webhook_config",
    "parse_webhook_request",
    "verify_and_parse_webhook_request",
    "verify_webhook_signature",
)
