"""
Typed views over the JSON documents exchanged with DERO Merchant.

Each ``from_response`` keeps the decoded payload in ``raw``. Missing fields
fall back to zero values; a payload of the wrong JSON type raises
``TypeError``, which the response decoder reports as a malformed response.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

__all__ = [
    "FilteredPayments",
    "Payment",
    "PaymentUpdateEvent",
    "PingResponse",
    "build_create_payment_payload",
    "parse_payment_list",
]

# the server trims trailing zeros and may send up to nine fractional digits
_FRACTION_RE = re.compile(r"\.(\d+)")


def _six_digit_fraction(match: "re.Match[str]") -> str:
    return "." + (match.group(1) + "000000")[:6]


def _expect_mapping(payload: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise TypeError(f"{name} must be a JSON object, got {type(payload).__name__}")
    return payload


def _expect_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a JSON string, got {type(value).__name__}")
    return value


def _expect_float(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    # bool is an int subclass but never a JSON number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} must be a JSON number, got {type(value).__name__}")
    return float(value)


def _expect_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key} must be a JSON integer, got {type(value).__name__}")
    return value


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    text = value
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(_FRACTION_RE.sub(_six_digit_fraction, text, count=1))


@dataclass(frozen=True)
class Payment:
    payment_id: str
    status: str
    currency: str
    currency_amount: float
    exchange_rate: float
    dero_amount: str
    atomic_dero_amount: int
    integrated_address: str
    creation_time: Optional[datetime]
    ttl: int
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, payload: Any) -> "Payment":
        data = _expect_mapping(payload, "payment")
        return cls(
            payment_id=_expect_str(data, "paymentID"),
            status=_expect_str(data, "status"),
            currency=_expect_str(data, "currency"),
            currency_amount=_expect_float(data, "currencyAmount"),
            exchange_rate=_expect_float(data, "exchangeRate"),
            dero_amount=_expect_str(data, "deroAmount"),
            atomic_dero_amount=_expect_int(data, "atomicDeroAmount"),
            integrated_address=_expect_str(data, "integratedAddress"),
            creation_time=_parse_timestamp(_expect_str(data, "creationTime")),
            ttl=_expect_int(data, "ttl"),
            raw=dict(data),
        )


def parse_payment_list(payload: Any) -> List[Payment]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise TypeError(f"payments must be a JSON array, got {type(payload).__name__}")
    return [Payment.from_response(item) for item in payload]


@dataclass(frozen=True)
class FilteredPayments:
    limit: int
    page: int
    total_payments: int
    total_pages: int
    payments: List[Payment]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, payload: Any) -> "FilteredPayments":
        data = _expect_mapping(payload, "filtered payments")
        return cls(
            limit=_expect_int(data, "limit"),
            page=_expect_int(data, "page"),
            total_payments=_expect_int(data, "totalPayments"),
            total_pages=_expect_int(data, "totalPages"),
            payments=parse_payment_list(data.get("payments")),
            raw=dict(data),
        )


@dataclass(frozen=True)
class PingResponse:
    ping: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, payload: Any) -> "PingResponse":
        data = _expect_mapping(payload, "ping response")
        return cls(ping=_expect_str(data, "ping"), raw=dict(data))


@dataclass(frozen=True)
class PaymentUpdateEvent:
    """Body of a webhook notification sent when a payment changes status."""

    payment_id: str
    status: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, payload: Any) -> "PaymentUpdateEvent":
        data = _expect_mapping(payload, "payment update event")
        return cls(
            payment_id=_expect_str(data, "paymentID"),
            status=_expect_str(data, "status"),
            raw=dict(data),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.payment_id:
            payload["paymentID"] = self.payment_id
        if self.status:
            payload["status"] = self.status
        return payload


def build_create_payment_payload(currency: str, amount: float | int) -> Dict[str, Any]:
    """Body of ``POST /payment``; key order is part of the signed bytes."""
    return {"currency": currency, "amount": amount}
