"""
A small threaded HTTP server that receives DERO Merchant webhooks.

Each POST body is buffered once into a :class:`WebhookRequest`, verified and
only then parsed and handed to the user supplied handler.
"""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional

from .core.errors import WebhookError
from .core.payloads import PaymentUpdateEvent
from .core.responses import encode_error_envelope
from .core.webhook import WebhookRequest, WebhookVerifier, parse_webhook_request

__all__ = ["WebhookReceiver"]

EventHandler = Callable[[PaymentUpdateEvent], None]

DEFAULT_MAX_BODY_BYTES = 1024 * 1024
_MAX_LINE_BYTES = 8192


class _BodyError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class _WebhookHandler(BaseHTTPRequestHandler):
    server: "_ReceiverServer"

    def setup(self) -> None:
        super().setup()
        self.connection.settimeout(self.server.timeout_seconds)

    def _reply(self, code: int, body: bytes) -> None:
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_line(self) -> bytes:
        line = self.rfile.readline(_MAX_LINE_BYTES + 1)
        if len(line) > _MAX_LINE_BYTES or not line.endswith(b"\n"):
            raise _BodyError(400, "Bad Request")
        return line

    def _read_exactly(self, size: int) -> bytes:
        data = self.rfile.read(size)
        if len(data) != size:
            raise _BodyError(400, "Bad Request")
        return data

    def _read_chunked(self, limit: int) -> bytes:
        chunks = []
        total = 0
        while True:
            size_field = self._read_line().split(b";", 1)[0].strip()
            try:
                size = int(size_field, 16)
            except ValueError:
                raise _BodyError(400, "Bad Request") from None
            if size < 0:
                raise _BodyError(400, "Bad Request")
            if size == 0:
                break
            total += size
            if total > limit:
                raise _BodyError(413, "Payload Too Large")
            chunks.append(self._read_exactly(size))
            if self._read_line().strip():
                raise _BodyError(400, "Bad Request")
        # optional trailer fields end with an empty line
        while self._read_line().strip():
            pass
        return b"".join(chunks)

    def _read_body(self) -> bytes:
        limit = self.server.max_body_bytes
        transfer_encoding = self.headers.get("Transfer-Encoding")
        if transfer_encoding is not None:
            codings = [c.strip().lower() for c in transfer_encoding.split(",")]
            if codings[-1] != "chunked":
                raise _BodyError(400, "Bad Request")
            if codings != ["chunked"]:
                raise _BodyError(501, "Not Implemented")
            return self._read_chunked(limit)

        raw_length = self.headers.get("Content-Length")
        if raw_length is None:
            return b""
        try:
            content_length = int(raw_length)
        except ValueError:
            raise _BodyError(400, "Bad Request") from None
        if content_length < 0:
            raise _BodyError(400, "Bad Request")
        if content_length > limit:
            raise _BodyError(413, "Payload Too Large")
        return self._read_exactly(content_length)

    def do_POST(self) -> None:
        try:
            body = self._read_body()
        except _BodyError as exc:
            # the rest of the body is unread, the connection can't be reused
            self.close_connection = True
            logging.warning("Refused webhook body on %s: %s", self.path, exc.message)
            self._reply(exc.code, encode_error_envelope(exc.code, exc.message))
            return

        if self.path.split("?", 1)[0] != self.server.path:
            self._reply(404, encode_error_envelope(404, "Not Found"))
            return

        request = WebhookRequest(
            headers=dict(self.headers.items()),
            body=body,
            method="POST",
            path=self.path,
        )
        try:
            self.server.verifier.verify(request)
        except WebhookError as exc:
            self._reply(401, encode_error_envelope(401, str(exc)))
            return

        try:
            event = parse_webhook_request(request)
        except WebhookError as exc:
            logging.warning("Verified webhook with unreadable body: %s", exc)
            self._reply(400, encode_error_envelope(400, "Bad Request"))
            return

        try:
            self.server.handler(event)
        except Exception:
            logging.exception("Webhook handler failed for payment %s", event.payment_id)
            self._reply(500, encode_error_envelope(500, "Internal Server Error"))
            return
        self._reply(200, json.dumps({"status": "ok"}).encode("utf-8"))

    def log_message(self, format, *args):
        logging.debug("webhook receiver: " + format, *args)


class _ReceiverServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(
        self,
        address,
        verifier: WebhookVerifier,
        handler: EventHandler,
        path: str,
        timeout_seconds: float,
        max_body_bytes: int,
    ) -> None:
        super().__init__(address, _WebhookHandler)
        self.verifier = verifier
        self.handler = handler
        self.path = path
        self.timeout_seconds = timeout_seconds
        self.max_body_bytes = max_body_bytes


class WebhookReceiver:
    """
    Serve a webhook endpoint on ``host:port`` in a background thread.

    ``handler`` is called with each verified :class:`PaymentUpdateEvent`.
    Requests failing verification get a ``401`` with the error envelope and
    never reach the handler. Bodies may be sent with ``Content-Length`` or
    chunked; anything above ``max_body_bytes`` is refused with ``413``.
    """

    def __init__(
        self,
        verifier: WebhookVerifier,
        handler: EventHandler,
        host: str = "127.0.0.1",
        port: int = 0,
        path: str = "/webhook",
        timeout_seconds: float = 10.0,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        self._host = host
        self._port = port
        self._verifier = verifier
        self._handler = handler
        self._path = path
        self._timeout_seconds = timeout_seconds
        self._max_body_bytes = max_body_bytes
        self._server: Optional[_ReceiverServer] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._server = _ReceiverServer(
            (self._host, self._port),
            self._verifier,
            self._handler,
            self._path,
            self._timeout_seconds,
            self._max_body_bytes,
        )
        # port=0 picks a free port
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logging.info("Webhook receiver listening on %s", self.url)

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    def __enter__(self) -> "WebhookReceiver":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}{self._path}"

    @property
    def port(self) -> int:
        return self._port
