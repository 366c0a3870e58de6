"""
Serve a webhook endpoint that logs verified payment status updates.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

from dero_merchant import ConfigError, PaymentUpdateEvent, WebhookReceiver, create_webhook_verifier


def _on_event(event: PaymentUpdateEvent) -> None:
    logging.info("Payment %s is now %s", event.payment_id, event.status)


def main() -> int:
    parser = argparse.ArgumentParser(description="Receive DERO Merchant webhooks")
    parser.add_argument("--env-file", default=".env")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--path", default="/webhook")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        verifier = create_webhook_verifier(env_file=args.env_file)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    with WebhookReceiver(verifier, _on_event, host=args.host, port=args.port, path=args.path):
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logging.info("Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
