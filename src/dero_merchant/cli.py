"""
Command-line interface for exercising the DERO Merchant API.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Sequence, Tuple

from .api import create_client, create_webhook_verifier
from .core.config import ConfigError, load_client_config, load_webhook_config
from .core.errors import DeroMerchantError
from .core.webhook import WebhookRequest


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _amount(value: str) -> float | int:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError(f"'{value}' is not a finite number")
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dero-merchant",
        description="Talk to the DERO Merchant API and check webhook signatures",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing DERO_MERCHANT_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("ping", help="Check that the API is reachable")

    create = commands.add_parser("create-payment", help="Create a new payment")
    create.add_argument("currency", help="Currency of AMOUNT, e.g. DERO or USD")
    create.add_argument("amount", type=_amount, help="Amount in CURRENCY")

    get_one = commands.add_parser("get-payment", help="Show one payment")
    get_one.add_argument("payment_id")

    get_many = commands.add_parser("get-payments", help="Show several payments")
    get_many.add_argument("payment_ids", nargs="+", metavar="payment_id")

    listing = commands.add_parser("list-payments", help="List payments with filters")
    listing.add_argument("--limit", type=int, default=10)
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--sort-by", default="")
    listing.add_argument("--order-by", default="")
    listing.add_argument("--status", default="")
    listing.add_argument("--currency", default="")

    pay_url = commands.add_parser("pay-url", help="Print the Pay helper URL of a payment")
    pay_url.add_argument("payment_id")

    webhook = commands.add_parser(
        "verify-webhook",
        help="Verify a stored webhook body against its X-Signature value",
    )
    webhook.add_argument("body_file", type=Path, help="File holding the raw request body")
    webhook.add_argument("signature", help="Value of the X-Signature header")
    return parser


def _print_json(document: Any) -> None:
    print(json.dumps(document, indent=2, default=str))


def _run_webhook_command(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    try:
        config = load_webhook_config(env_file=args.env_file, overrides=overrides)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    verifier = create_webhook_verifier(config=config)
    try:
        body = args.body_file.read_bytes()
    except OSError as exc:
        logging.error("Cannot read %s: %s", args.body_file, exc)
        return 1

    request = WebhookRequest(headers={"X-Signature": args.signature}, body=body)
    try:
        event = verifier.verify_and_parse(request)
    except DeroMerchantError as exc:
        logging.error("Webhook rejected: %s", exc)
        return 1

    logging.info("Webhook signature is valid")
    _print_json(event.raw)
    return 0


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    if args.command == "verify-webhook":
        return _run_webhook_command(args, overrides)

    try:
        config = load_client_config(env_file=args.env_file, overrides=overrides)
        client = create_client(config=config)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    if args.command == "pay-url":
        print(client.pay_helper_url(args.payment_id))
        return 0

    try:
        if args.command == "ping":
            _print_json(client.ping().raw)
        elif args.command == "create-payment":
            payment = client.create_payment(args.currency, args.amount)
            _print_json(payment.raw)
            logging.info("Pay helper: %s", client.pay_helper_url(payment.payment_id))
        elif args.command == "get-payment":
            _print_json(client.get_payment(args.payment_id).raw)
        elif args.command == "get-payments":
            _print_json([payment.raw for payment in client.get_payments(args.payment_ids)])
        elif args.command == "list-payments":
            result = client.get_filtered_payments(
                args.limit,
                args.page,
                sort_by=args.sort_by,
                order_by=args.order_by,
                status_filter=args.status,
                currency_filter=args.currency,
            )
            _print_json(result.raw)
    except DeroMerchantError as exc:
        logging.error("%s failed: %s", args.command, exc)
        return 1

    return 0


def main() -> None:
    sys.exit(run_cli())
