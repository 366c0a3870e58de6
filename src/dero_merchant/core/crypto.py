"""
HMAC-SHA256 helpers used to sign requests and authenticate webhooks.
"""

from __future__ import annotations

import hashlib
import hmac

from .errors import DecodeError

__all__ = [
    "decode_hex",
    "sign_hex",
    "sign_message",
    "valid_mac",
]


def sign_message(message: bytes, key: bytes) -> bytes:
    """Return the raw HMAC-SHA256 digest of ``message`` under ``key``."""
    return hmac.new(key, message, hashlib.sha256).digest()


def valid_mac(message: bytes, message_mac: bytes, key: bytes) -> bool:
    """
    Recompute the MAC of ``message`` and compare it to ``message_mac``.

    The comparison runs in constant time regardless of where the digests
    first differ.
    """
    expected = sign_message(message, key)
    return hmac.compare_digest(expected, message_mac)


def decode_hex(value: str, what: str) -> bytes:
    # bytes.fromhex() tolerates spaces between pairs, a signature must not
    if not isinstance(value, str) or any(char.isspace() for char in value):
        raise DecodeError(f"{what} is not valid hexadecimal")
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        # the value may be a secret, only name it
        raise DecodeError(f"{what} is not valid hexadecimal") from exc


def sign_hex(message: bytes, hex_key: str) -> str:
    """
    Sign ``message`` with a hex encoded key and return a lowercase hex digest.
    """
    key = decode_hex(hex_key, "secret key")
    return sign_message(message, key).hex()
