"""
Core primitives: request signing, response decoding and webhook verification.
"""

from .client import Client, encode_json_body
from .config import (
    ClientConfig,
    ClientParameters,
    WebhookConfig,
    build_base_url,
    load_client_config,
    load_webhook_config,
)
from .crypto import decode_hex, sign_hex, sign_message, valid_mac
from .environment import MerchantEnvironment, build_environment, load_env_file, read_env_file
from .errors import (
    APIError,
    ConfigError,
    DecodeError,
    DeroMerchantError,
    InvalidSignatureError,
    NoSignatureError,
    TransportError,
    TransportErrorKind,
    WebhookDecodeError,
    WebhookError,
)
from .payloads import FilteredPayments, Payment, PaymentUpdateEvent, PingResponse
from .responses import decode_response, encode_error_envelope, parse_error_envelope
from .webhook import (
    WebhookRequest,
    WebhookVerifier,
    parse_webhook_request,
    verify_and_parse_webhook_request,
    verify_webhook_signature,
)

__all__ = [
    "APIError",
    "Client",
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "DecodeError",
    "DeroMerchantError",
    "FilteredPayments",
    "InvalidSignatureError",
    "MerchantEnvironment",
    "NoSignatureError",
    "Payment",
    "PaymentUpdateEvent",
    "PingResponse",
    "TransportError",
    "TransportErrorKind",
    "WebhookConfig",
    "WebhookDecodeError",
    "WebhookError",
    "WebhookRequest",
    "WebhookVerifier",
    "build_base_url",
    "build_environment",
    "decode_hex",
    "decode_response",
    "encode_error_envelope",
    "encode_json_body",
    "load_client_config",
    "load_env_file",
    "load_webhook_config",
    "parse_error_envelope",
    "parse_webhook_request",
    "read_env_file",
    "sign_hex",
    "sign_message",
    "valid_mac",
    "verify_and_parse_webhook_request",
    "verify_webhook_signature",
]
