"""
Interpretation of raw HTTP responses returned by the DERO Merchant API.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, TypeVar

from .errors import APIError, TransportError, TransportErrorKind

__all__ = [
    "decode_response",
    "encode_error_envelope",
    "parse_error_envelope",
]

T = TypeVar("T")


def parse_error_envelope(body: bytes) -> Optional[APIError]:
    """
    Return the :class:`APIError` carried by ``{"error": {"code", "message"}}``.

    ``None`` means the body is not the service's error envelope, which is
    common for responses produced by proxies or load balancers.
    """
    try:
        document = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(document, dict):
        return None

    error = document.get("error")
    if not isinstance(error, dict):
        return None
    code = error.get("code")
    message = error.get("message")
    if isinstance(code, bool) or not isinstance(code, int) or not isinstance(message, str):
        return None
    return APIError(code, message)


def encode_error_envelope(code: int, message: str) -> bytes:
    return json.dumps(
        {"error": {"code": code, "message": message}}, separators=(",", ":")
    ).encode("utf-8")


def decode_response(
    status_code: int,
    body: bytes,
    url: str,
    result: Optional[Callable[[Any], T]] = None,
) -> Optional[T]:
    """
    Turn a response into ``result(decoded_json)`` or raise.

    Non-2xx responses raise :class:`APIError` when the body is the error
    envelope and :class:`TransportError` otherwise. A 2xx body that cannot
    be decoded into ``result`` is a :class:`TransportError` as well.
    """
    if status_code < 200 or status_code > 299:
        api_error = parse_error_envelope(body)
        if api_error is not None:
            logging.info("API error %s from %s: %s", api_error.code, url, api_error.message)
            raise api_error

        if status_code == 404:
            raise TransportError(
                TransportErrorKind.NOT_FOUND,
                f"DeroMerchant Client: error 404: page {url} not found",
                url=url,
                status_code=status_code,
            )
        raise TransportError(
            TransportErrorKind.UNEXPECTED_STATUS,
            f"DeroMerchant Client: error {status_code} returned by {url}",
            url=url,
            status_code=status_code,
        )

    if result is None:
        return None

    try:
        return result(json.loads(body))
    except (ValueError, TypeError, UnicodeDecodeError) as exc:
        raise TransportError(
            TransportErrorKind.MALFORMED_RESPONSE,
            f"DeroMerchant Client: malformed response from {url}: {exc}",
            url=url,
            status_code=status_code,
        ) from exc
