import hashlib
import hmac
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from dero_merchant import Client, ClientConfig, WebhookVerifier


API_KEY = "bfe737bcdc5d8886a03be6e6c34c545d85ab8fa39052b9e3be36d3626c180a6f"
SECRET_KEY = "b3cef2080cf82a010acba9bd00c9bd5797ec07767fbd7c08702a921d67c8155a"
WEBHOOK_SECRET_KEY = "010f2b45384c57bd388bccb520722abd8d5a61f66ca71fcd25bf7942d067ca73"
OTHER_WEBHOOK_SECRET_KEY = "1e9a0eefcff11530a1bc247672e9ebcb712fc6ab82e0b54b0e586c8adc33b0c0"

KNOWN_PAYMENT = {
    "paymentID": "38ad8cf0c5da388fe9b5b44f6641619659c99df6cdece60c6e202acd78e895b1",
    "status": "pending",
    "currency": "USD",
    "currencyAmount": 12.5,
    "exchangeRate": 0.25,
    "deroAmount": "50.000000000000",
    "atomicDeroAmount": 50000000000000,
    "integratedAddress": "dETiaddr",
    "creationTime": "2020-06-01T10:00:00.123456789Z",
    "ttl": 60,
}


def _error(code, message):
    return json.dumps({"error": {"code": code, "message": message}}).encode()


class _FakeMerchantHandler(BaseHTTPRequestHandler):
    """A stand-in for the DERO Merchant API under /api/v1."""

    def _send(self, code, body=b""):
        self.send_response(code)
        if body:
            self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _record(self):
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length) if length else b""
        parts = urlsplit(self.path)
        self.server.requests.append({
            "method": self.command,
            "path": parts.path,
            "query": parse_qs(parts.query, keep_blank_values=True),
            "headers": dict(self.headers.items()),
            "body": body,
        })
        return parts.path, body

    def _authorized(self):
        return self.headers.get("X-API-Key") == self.server.api_key

    def do_GET(self):
        path, _ = self._record()
        if path == "/api/v1/ping":
            self._send(200, b'{"ping":"pong"}')
        elif path == "/api/v1/broken":
            self._send(200, b"this is not json")
        elif path == "/api/v1/gateway":
            self._send(502, b"<html>Bad Gateway</html>")
        elif path.startswith("/api/v1/payment/"):
            payment_id = path.rsplit("/", 1)[1]
            if payment_id == KNOWN_PAYMENT["paymentID"]:
                self._send(200, json.dumps(KNOWN_PAYMENT).encode())
            else:
                self._send(404, _error(404, "Payment not found"))
        elif path == "/api/v1/payments":
            query = self.server.requests[-1]["query"]
            self._send(200, json.dumps({
                "limit": int(query["limit"][0]),
                "page": int(query["page"][0]),
                "totalPayments": 1,
                "totalPages": 1,
                "payments": [KNOWN_PAYMENT],
            }).encode())
        else:
            self._send(404)

    def do_POST(self):
        path, body = self._record()
        if path == "/api/v1/payment":
            if not self._authorized():
                self._send(403)
                return
            expected = hmac.new(
                bytes.fromhex(self.server.secret_key), body, hashlib.sha256
            ).hexdigest()
            if self.headers.get("X-Signature") != expected:
                self._send(401, _error(401, "Unauthorized"))
                return
            request = json.loads(body)
            self._send(201, json.dumps({
                "paymentID": "6c8dd967897d8c46879d75236027f4791816146bed38a259a1dbdb8e047c10b4",
                "status": "pending",
                "currency": request["currency"],
                "currencyAmount": request["amount"],
            }).encode())
        elif path == "/api/v1/payments":
            ids = json.loads(body or b"null")
            if not isinstance(ids, list) or not ids:
                self._send(400, _error(400, "Bad Request"))
                return
            found = [KNOWN_PAYMENT for payment_id in ids if payment_id == KNOWN_PAYMENT["paymentID"]]
            self._send(200, json.dumps(found).encode())
        else:
            self._send(404)

    def log_message(self, format, *args):
        pass


class FakeMerchantAPI:
    def __init__(self, api_key=API_KEY, secret_key=SECRET_KEY):
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), _FakeMerchantHandler)
        self._server.api_key = api_key
        self._server.secret_key = secret_key
        self._server.requests = []
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    def start(self):
        self._thread.start()

    def stop(self):
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=5)

    @property
    def host(self):
        return f"127.0.0.1:{self._server.server_address[1]}"

    @property
    def requests(self):
        return self._server.requests


@pytest.fixture
def session():
    """A session that ignores proxy settings from the environment."""
    s = requests.Session()
    s.trust_env = False
    yield s
    s.close()


@pytest.fixture
def fake_api():
    api = FakeMerchantAPI()
    api.start()
    yield api
    api.stop()


@pytest.fixture
def client_factory(fake_api, session):
    def make(api_key=API_KEY, secret_key=SECRET_KEY):
        config = ClientConfig(
            api_key=api_key,
            secret_key=secret_key,
            scheme="http",
            host=fake_api.host,
            timeout_seconds=5,
        )
        return Client(config, session=session)

    return make


@pytest.fixture
def client(client_factory):
    return client_factory()


@pytest.fixture
def offline_client():
    """A client pointed at a local address, for tests that never send."""
    config = ClientConfig(
        api_key=API_KEY,
        secret_key=SECRET_KEY,
        scheme="http",
        host="localhost:8080",
    )
    return Client(config)


@pytest.fixture
def verifier():
    return WebhookVerifier(WEBHOOK_SECRET_KEY)


def sign(body, hex_key):
    return hmac.new(bytes.fromhex(hex_key), body, hashlib.sha256).hexdigest()


@pytest.fixture
def webhook_signer():
    return sign
