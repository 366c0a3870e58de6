"""Client tests against a local fake of the DERO Merchant API."""

import socket
from datetime import datetime, timezone

import pytest

from dero_merchant import APIError, Client, ClientConfig, TransportError, TransportErrorKind
from dero_merchant.core.crypto import sign_hex


pytestmark = pytest.mark.integration

KNOWN_ID = "38ad8cf0c5da388fe9b5b44f6641619659c99df6cdece60c6e202acd78e895b1"
INVALID_API_KEY = "7960a3f4b301de77d773deb4b9cdd7f74ef096e18b8cdef27610f57b304fadcc"
INVALID_SECRET_KEY = "23b6000f6aba43f8a15a09995bd3c33ab76f9c58a6df02b4a3c229e0cb53c6fa"


class TestCreatePayment:

    def test_signed_create_payment(self, fake_api, client_factory):
        fake_api._server.secret_key = "aa11"
        client = client_factory(secret_key="aa11")

        payment = client.create_payment("DERO", 10)

        assert payment.currency == "DERO"
        assert payment.currency_amount == 10
        assert payment.payment_id
        received = fake_api.requests[-1]
        assert received["body"] == b'{"currency":"DERO","amount":10}'
        assert received["headers"]["X-Signature"] == sign_hex(received["body"], "aa11")
        assert received["headers"]["Content-Type"] == "application/json"

    def test_wrong_api_key_is_transport_error(self, client_factory):
        client = client_factory(api_key=INVALID_API_KEY)
        with pytest.raises(TransportError) as info:
            client.create_payment("USD", 1.5)
        assert not isinstance(info.value, APIError)
        assert info.value.kind is TransportErrorKind.UNEXPECTED_STATUS
        assert info.value.status_code == 403
        assert str(info.value).startswith("DeroMerchant Client: error 403 returned by http://")

    def test_wrong_secret_key_is_api_error(self, client_factory):
        client = client_factory(secret_key=INVALID_SECRET_KEY)
        with pytest.raises(APIError) as info:
            client.create_payment("USD", 1.5)
        assert info.value == APIError(401, "Unauthorized")


class TestReadEndpoints:

    def test_ping(self, client, fake_api):
        assert client.ping().ping == "pong"
        received = fake_api.requests[-1]
        assert received["method"] == "GET"
        assert received["path"] == "/api/v1/ping"
        assert "X-Signature" not in received["headers"]
        assert "Content-Type" not in received["headers"]
        assert received["headers"]["User-Agent"] == "DeroMerchant_Client_Python/1.0"

    def test_get_payment(self, client):
        payment = client.get_payment(KNOWN_ID)
        assert payment.payment_id == KNOWN_ID
        assert payment.atomic_dero_amount == 50000000000000
        assert payment.creation_time == datetime(2020, 6, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert payment.raw["integratedAddress"] == "dETiaddr"

    def test_get_unknown_payment_is_api_error(self, client):
        with pytest.raises(APIError) as info:
            client.get_payment("ffff")
        assert info.value.code == 404

    def test_payment_id_stays_one_path_segment(self, client, fake_api):
        with pytest.raises(APIError):
            client.get_payment("../ping?x=1")
        received = fake_api.requests[-1]
        assert received["path"] == "/api/v1/payment/..%2Fping%3Fx%3D1"
        assert received["query"] == {}

    def test_get_payments(self, client, fake_api):
        payments = client.get_payments([KNOWN_ID, "ffff"])
        assert [payment.payment_id for payment in payments] == [KNOWN_ID]
        assert fake_api.requests[-1]["body"] == f'["{KNOWN_ID}","ffff"]'.encode()

    def test_get_filtered_payments(self, client, fake_api):
        result = client.get_filtered_payments(5, 2, "creation_time", "desc", "pending", "USD")
        assert (result.limit, result.page, result.total_pages) == (5, 2, 1)
        assert result.payments[0].payment_id == KNOWN_ID
        assert fake_api.requests[-1]["query"] == {
            "currency": ["USD"],
            "limit": ["5"],
            "order_by": ["desc"],
            "page": ["2"],
            "sort_by": ["creation_time"],
            "status": ["pending"],
        }


class TestFailures:

    def test_unknown_path_is_not_found(self, client):
        request = client.new_request("GET", "/nowhere")
        with pytest.raises(TransportError) as info:
            client.send_request(request)
        assert info.value.kind is TransportErrorKind.NOT_FOUND
        assert str(info.value) == f"DeroMerchant Client: error 404: page {request.url} not found"

    def test_gateway_page_is_unexpected_status(self, client):
        request = client.new_request("GET", "/gateway")
        with pytest.raises(TransportError) as info:
            client.send_request(request)
        assert info.value.kind is TransportErrorKind.UNEXPECTED_STATUS
        assert info.value.status_code == 502

    def test_malformed_success_body(self, client):
        request = client.new_request("GET", "/broken")
        with pytest.raises(TransportError) as info:
            client.send_request(request, dict)
        assert info.value.kind is TransportErrorKind.MALFORMED_RESPONSE

    def test_connection_refused_is_network_error(self, session):
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]
        config = ClientConfig(
            api_key="k",
            secret_key="aa11",
            scheme="http",
            host=f"127.0.0.1:{port}",
            timeout_seconds=2,
        )
        client = Client(config, session=session)
        with pytest.raises(TransportError) as info:
            client.ping()
        assert info.value.kind is TransportErrorKind.NETWORK
        assert info.value.__cause__ is not None

    def test_signed_request_without_body_is_sent_unsigned(self, client, fake_api):
        request = client.new_request("GET", "/ping")
        assert client.send_signed_request(request, dict) == {"ping": "pong"}
        assert "X-Signature" not in fake_api.requests[-1]["headers"]
