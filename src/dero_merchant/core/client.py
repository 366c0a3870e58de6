"""
HTTP client for the DERO Merchant REST API.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar
from urllib.parse import quote

import requests

from .config import ClientConfig
from .crypto import sign_hex
from .errors import TransportError, TransportErrorKind
from .payloads import (
    FilteredPayments,
    Payment,
    PingResponse,
    build_create_payment_payload,
    parse_payment_list,
)
from .responses import decode_response

__all__ = [
    "Client",
    "SIGNATURE_HEADER",
    "USER_AGENT",
    "encode_json_body",
]

T = TypeVar("T")

USER_AGENT = "DeroMerchant_Client_Python/1.0"
SIGNATURE_HEADER = "X-Signature"
API_KEY_HEADER = "X-API-Key"


def encode_json_body(payload: Any) -> bytes:
    """
    Serialize ``payload`` once; these bytes are both sent and signed.
    """
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Client:
    """
    Builds, signs and sends requests to the DERO Merchant API.

    The base URL is validated on construction, so a bad scheme, host or API
    version raises :class:`~dero_merchant.core.errors.ConfigError` before any
    request is attempted. The optional ``session`` is the transport: pooling,
    proxies and its default headers, auth and cookies are left to it.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url
        self.session = session or requests.Session()

    def new_request(
        self,
        method: str,
        endpoint: str,
        query_params: Optional[Mapping[str, Any]] = None,
        payload: Any = None,
    ) -> requests.PreparedRequest:
        """
        Return a request ready for :meth:`send_request` or :meth:`send_signed_request`.

        The request is prepared by the session, so its default headers, auth
        and cookies apply. ``None`` query parameter values are left out.
        """
        headers: Dict[str, Optional[str]] = {
            "User-Agent": USER_AGENT,
            API_KEY_HEADER: self.config.api_key,
            # a None value drops the session default
            "Accept": None,
        }
        body: Optional[bytes] = None
        if payload is not None:
            body = encode_json_body(payload)
            headers["Content-Type"] = "application/json"
            headers["Accept"] = "application/json"

        params = None
        if query_params:
            params = [
                (key, _query_value(value))
                for key, value in sorted(query_params.items())
                if value is not None
            ]

        return self.session.prepare_request(
            requests.Request(
                method=method.upper(),
                url=self.base_url + endpoint,
                headers=headers,
                params=params,
                data=body,
            )
        )

    def sign_request(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        """
        Return a copy of ``request`` carrying the ``X-Signature`` header.

        Requests without a body have nothing to authenticate and come back
        unchanged. The body itself is only read, never replaced.
        """
        if request.body is None:
            return request

        body = request.body
        if isinstance(body, str):
            body = body.encode("utf-8")
        if not isinstance(body, bytes):
            raise TypeError("only requests with an in-memory body can be signed")

        signed = request.copy()
        signed.headers[SIGNATURE_HEADER] = sign_hex(body, self.config.secret_key)
        logging.debug("Signed %s %s (%d body bytes)", signed.method, signed.url, len(body))
        return signed

    def send_request(
        self,
        request: requests.PreparedRequest,
        result: Optional[Callable[[Any], T]] = None,
    ) -> Optional[T]:
        """Send ``request`` as-is and decode the response into ``result``."""
        url = request.url or ""
        logging.info("Sending %s %s", request.method, url)
        settings = self.session.merge_environment_settings(url, {}, None, None, None)
        try:
            response = self.session.send(
                request, timeout=self.config.timeout_seconds, **settings
            )
        except requests.RequestException as exc:
            raise TransportError(
                TransportErrorKind.NETWORK,
                f"DeroMerchant Client: request to {url} failed: {exc}",
                url=url,
            ) from exc

        with response:
            return decode_response(response.status_code, response.content, url, result)

    def send_signed_request(
        self,
        request: requests.PreparedRequest,
        result: Optional[Callable[[Any], T]] = None,
    ) -> Optional[T]:
        """
        Sign the request body with the secret key and send it.

        The MAC of the body is sent in the ``X-Signature`` header as
        lowercase hex.
        """
        return self.send_request(self.sign_request(request), result)

    def pay_helper_url(self, payment_id: str) -> str:
        """
        Return the URL of the Pay helper page of ``payment_id``.

        Example: https://merchant.dero.io/pay/38ad8cf0c5da388fe9b5b44f6641619659c99df6cdece60c6e202acd78e895b1
        """
        return f"{self.config.scheme}://{self.config.host}/pay/{payment_id}"

    def ping(self) -> PingResponse:
        """
        Check whether the server is reachable with the configured scheme, host
        and API version.
        """
        request = self.new_request("GET", "/ping")
        return self.send_request(request, PingResponse.from_response)

    def create_payment(self, currency: str, amount: float | int) -> Payment:
        payload = build_create_payment_payload(currency, amount)
        request = self.new_request("POST", "/payment", payload=payload)
        return self.send_signed_request(request, Payment.from_response)

    def get_payment(self, payment_id: str) -> Payment:
        request = self.new_request("GET", f"/payment/{quote(payment_id, safe='')}")
        return self.send_request(request, Payment.from_response)

    def get_payments(self, payment_ids: Sequence[str]) -> List[Payment]:
        """
        Fetch several payments at once.

        An empty ``payment_ids`` is rejected rather than answered with an
        empty list.
        """
        payment_ids = list(payment_ids)
        if not payment_ids:
            raise TransportError(
                TransportErrorKind.INVALID_REQUEST,
                "DeroMerchant Client: no payment IDs given",
            )
        request = self.new_request("POST", "/payments", payload=payment_ids)
        return self.send_request(request, parse_payment_list)

    def get_filtered_payments(
        self,
        limit: int,
        page: int,
        sort_by: str = "",
        order_by: str = "",
        status_filter: str = "",
        currency_filter: str = "",
    ) -> FilteredPayments:
        query_params = {
            "limit": limit,
            "page": page,
            "sort_by": sort_by,
            "order_by": order_by,
            "status": status_filter,
            "currency": currency_filter,
        }
        request = self.new_request("GET", "/payments", query_params=query_params)
        return self.send_request(request, FilteredPayments.from_response)
