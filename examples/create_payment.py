"""
Minimal script that uses the public API to create a DERO Merchant payment.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Tuple

from dero_merchant import APIError, ConfigError, DeroMerchantError, create_client, load_client_config


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a DERO Merchant payment using the SDK API")
    parser.add_argument("currency", help="Currency of the amount, e.g. DERO, USD, EUR")
    parser.add_argument("amount", type=float, help="Amount to charge in CURRENCY")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing DERO_MERCHANT_* settings",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--api-key", help="API key, instead of DERO_MERCHANT_API_KEY")
    parser.add_argument("--secret-key", help="Hex secret key, instead of DERO_MERCHANT_SECRET_KEY")
    parser.add_argument("--host", help="Override the API host (default: merchant.dero.io)")
    parser.add_argument("--scheme", help="Override the URL scheme (default: https)")
    return parser.parse_args()


def _collect_parameter_kwargs(args: argparse.Namespace) -> dict[str, object]:
    possible_values = {
        "api_key": args.api_key,
        "secret_key": args.secret_key,
        "host": args.host,
        "scheme": args.scheme,
    }
    return {key: value for key, value in possible_values.items() if value is not None}


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        config = load_client_config(
            env_file=args.env_file,
            overrides=_build_overrides(args.set or ()),
            **_collect_parameter_kwargs(args),
        )
        client = create_client(config=config)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    try:
        client.ping()
        payment = client.create_payment(args.currency, args.amount)
    except APIError as exc:
        logging.error("Server refused the payment (code %s): %s", exc.code, exc.message)
        return 1
    except DeroMerchantError as exc:
        logging.error("Request failed: %s", exc)
        return 1

    logging.info(
        "Created payment %s for %s %s (%s DERO)",
        payment.payment_id,
        payment.currency_amount,
        payment.currency,
        payment.dero_amount,
    )
    logging.info("Send the payer to %s", client.pay_helper_url(payment.payment_id))
    return 0


if __name__ == "__main__":
    sys.exit(main())
