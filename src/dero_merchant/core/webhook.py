"""
Authentication and parsing of webhook requests sent by DERO Merchant.

A webhook request is trusted only after :func:`verify_webhook_signature`
succeeded for it; requests that fail verification must be discarded.
"""

from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass
from typing import BinaryIO, Mapping, Optional, Union

from requests.structures import CaseInsensitiveDict

from .config import WebhookConfig
from .crypto import decode_hex, valid_mac
from .errors import (
    DecodeError,
    InvalidSignatureError,
    NoSignatureError,
    WebhookDecodeError,
    WebhookError,
)
from .payloads import PaymentUpdateEvent

__all__ = [
    "WebhookRequest",
    "WebhookVerifier",
    "parse_webhook_request",
    "verify_and_parse_webhook_request",
    "verify_webhook_signature",
]

SIGNATURE_HEADER = "X-Signature"


@dataclass(frozen=True)
class WebhookRequest:
    """
    An inbound webhook request with its body fully buffered.

    Build it once where the hosting server hands over the request and pass
    the same instance to verification and parsing. ``body`` is immutable, so
    every consumer sees the exact bytes that were signed.
    """

    headers: Mapping[str, str]
    body: bytes
    method: str = "POST"
    path: str = "/"

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", CaseInsensitiveDict(self.headers))

    @classmethod
    def from_stream(
        cls,
        headers: Mapping[str, str],
        stream: BinaryIO,
        content_length: Optional[int] = None,
        *,
        method: str = "POST",
        path: str = "/",
    ) -> "WebhookRequest":
        """
        Drain ``stream`` into a request.

        With ``content_length`` exactly that many bytes are read, which is
        what a socket backed stream such as ``BaseHTTPRequestHandler.rfile``
        needs; otherwise the stream is read to EOF.
        """
        if content_length is None:
            body = stream.read()
        else:
            body = stream.read(content_length)
            if len(body) != content_length:
                raise WebhookError(
                    f"DeroMerchant: webhook body truncated "
                    f"({len(body)} of {content_length} bytes)"
                )
        return cls(headers=headers, body=bytes(body), method=method, path=path)

    @property
    def signature(self) -> str:
        return self.headers.get(SIGNATURE_HEADER, "")

    def body_stream(self) -> BinaryIO:
        """Return a fresh reader over the body for stream based consumers."""
        return io.BytesIO(self.body)


def verify_webhook_signature(request: WebhookRequest, webhook_secret_key: str) -> bool:
    """
    Check the ``X-Signature`` header of ``request`` against its body.

    Returns ``True`` for a valid signature, otherwise raises
    :class:`NoSignatureError`, :class:`WebhookDecodeError` or
    :class:`InvalidSignatureError`.
    """
    header = request.signature
    if not header:
        logging.warning("Rejected webhook %s: no signature header", request.path)
        raise NoSignatureError()

    try:
        signature = decode_hex(header, "webhook signature")
        key = decode_hex(webhook_secret_key, "webhook secret key")
    except DecodeError as exc:
        raise WebhookDecodeError(f"DeroMerchant: {exc}") from exc

    if not valid_mac(request.body, signature, key):
        logging.error("Rejected webhook %s: invalid signature", request.path)
        raise InvalidSignatureError()

    return True


def parse_webhook_request(request: WebhookRequest) -> PaymentUpdateEvent:
    """
    Decode the body of ``request`` into a :class:`PaymentUpdateEvent`.

    Only call this for requests that passed :func:`verify_webhook_signature`.
    """
    try:
        return PaymentUpdateEvent.from_response(json.loads(request.body))
    except (ValueError, TypeError, UnicodeDecodeError) as exc:
        raise WebhookError(f"DeroMerchant: cannot parse webhook body: {exc}") from exc


def verify_and_parse_webhook_request(
    request: WebhookRequest, webhook_secret_key: str
) -> PaymentUpdateEvent:
    verify_webhook_signature(request, webhook_secret_key)
    return parse_webhook_request(request)


class WebhookVerifier:
    """
    Verifies webhook requests against one immutable webhook secret key.

    Holds no mutable state and can be shared between threads.
    """

    def __init__(self, config: Union[WebhookConfig, str]) -> None:
        if isinstance(config, str):
            config = WebhookConfig(webhook_secret_key=config)
        self._config = config

    def __repr__(self) -> str:
        return "WebhookVerifier()"

    def verify(self, request: WebhookRequest) -> bool:
        return verify_webhook_signature(request, self._config.webhook_secret_key)

    def parse(self, request: WebhookRequest) -> PaymentUpdateEvent:
        return parse_webhook_request(request)

    def verify_and_parse(self, request: WebhookRequest) -> PaymentUpdateEvent:
        return verify_and_parse_webhook_request(request, self._config.webhook_secret_key)
