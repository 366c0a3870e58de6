"""
Public, high-level helpers for building DERO Merchant clients and verifiers.
"""

from __future__ import annotations

from typing import Mapping, Optional

import requests

from .core.client import Client
from .core.config import (
    ClientConfig,
    ClientParameters,
    WebhookConfig,
    load_client_config,
    load_webhook_config,
)
from .core.webhook import WebhookVerifier

__all__ = [
    "create_client",
    "create_webhook_verifier",
]


def create_client(
    *,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    scheme: Optional[str] = None,
    host: Optional[str] = None,
    api_version: Optional[str] = None,
    api_key: Optional[str] = None,
    secret_key: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
) -> Client:
    """
    Construct a :class:`Client`.

    Callers can either supply a ready-made :class:`ClientConfig` or let the
    helper assemble one from environment data.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            scheme,
            host,
            api_version,
            api_key,
            secret_key,
            timeout_seconds,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built ClientConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_client_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            scheme=scheme,
            host=host,
            api_version=api_version,
            api_key=api_key,
            secret_key=secret_key,
            timeout_seconds=timeout_seconds,
        )
    return Client(cfg, session=session)


def create_webhook_verifier(
    *,
    config: Optional[WebhookConfig] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    webhook_secret_key: Optional[str] = None,
) -> WebhookVerifier:
    if config is not None:
        if any(item is not None and item != {} for item in (overrides, base, webhook_secret_key)):
            raise ValueError(
                "Provide either a pre-built WebhookConfig or individual parameters, not both."
            )
        return WebhookVerifier(config)

    return WebhookVerifier(
        load_webhook_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            webhook_secret_key=webhook_secret_key,
        )
    )
