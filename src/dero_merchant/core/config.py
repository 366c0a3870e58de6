"""
Configuration objects and helpers for the DERO Merchant client.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit

from .environment import MerchantEnvironment, build_environment
from .errors import ConfigError

__all__ = [
    "ClientConfig",
    "ClientParameters",
    "WebhookConfig",
    "build_base_url",
    "load_client_config",
    "load_webhook_config",
]

DEFAULT_SCHEME = "https"
DEFAULT_HOST = "merchant.dero.io"
DEFAULT_API_VERSION = "v1"
DEFAULT_TIMEOUT_SECONDS = 10.0

_PARAMETER_TO_ENV_KEY = {
    "scheme": "DERO_MERCHANT_SCHEME",
    "host": "DERO_MERCHANT_HOST",
    "api_version": "DERO_MERCHANT_API_VERSION",
    "api_key": "DERO_MERCHANT_API_KEY",
    "secret_key": "DERO_MERCHANT_SECRET_KEY",
    "timeout_seconds": "DERO_MERCHANT_TIMEOUT_SECONDS",
}

WEBHOOK_SECRET_ENV_KEY = "DERO_MERCHANT_WEBHOOK_SECRET_KEY"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`ClientConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_client_config`.
    """

    scheme: Optional[str] = None
    host: Optional[str] = None
    api_version: Optional[str] = None
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    timeout_seconds: Optional[float | int | str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


def build_base_url(scheme: str, host: str, api_version: str) -> str:
    """
    Return ``{scheme}://{host}/api/{api_version}`` or raise :class:`ConfigError`.
    """
    if not _SCHEME_RE.match(scheme or ""):
        raise ConfigError(f"Invalid scheme '{scheme}'")

    if not host or any(char.isspace() for char in host):
        raise ConfigError(f"Invalid host '{host}'")
    try:
        authority = urlsplit(f"//{host}")
        authority.port
    except ValueError as exc:
        raise ConfigError(f"Invalid host '{host}'") from exc
    if authority.netloc != host or authority.path or not authority.hostname:
        raise ConfigError(f"Invalid host '{host}'")

    if not api_version or "/" in api_version or any(
        char.isspace() or char in "?#" for char in api_version
    ):
        raise ConfigError(f"Invalid API version '{api_version}'")

    return f"{scheme}://{host}/api/{api_version}"


def _parse_timeout(environment: MerchantEnvironment) -> float:
    key = "DERO_MERCHANT_TIMEOUT_SECONDS"
    raw = environment.get(key)
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(
            f"{environment.describe(key)} must be a number, got '{raw}'"
        ) from exc
    if timeout <= 0:
        raise ConfigError(f"{environment.describe(key)} must be greater than zero")
    return timeout


@dataclass(frozen=True)
class ClientConfig:
    """
    Everything a :class:`~dero_merchant.core.client.Client` needs.

    ``secret_key`` is the hex encoded key used to sign request bodies. It is
    only decoded when a signed request is sent.
    """

    api_key: str
    secret_key: str
    scheme: str = DEFAULT_SCHEME
    host: str = DEFAULT_HOST
    api_version: str = DEFAULT_API_VERSION
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def base_url(self) -> str:
        return build_base_url(self.scheme, self.host, self.api_version)

    def __repr__(self) -> str:
        # keep keys out of logs and tracebacks
        return (
            f"ClientConfig(scheme={self.scheme!r}, host={self.host!r}, "
            f"api_version={self.api_version!r}, timeout_seconds={self.timeout_seconds!r})"
        )

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, str] | MerchantEnvironment
    ) -> "ClientConfig":
        """
        Build a config from ``DERO_MERCHANT_*`` keys; other keys are ignored.
        """
        environment = MerchantEnvironment.from_mapping(values)
        return cls(
            api_key=environment.require("DERO_MERCHANT_API_KEY"),
            secret_key=environment.require("DERO_MERCHANT_SECRET_KEY"),
            scheme=environment.get("DERO_MERCHANT_SCHEME", DEFAULT_SCHEME),
            host=environment.get("DERO_MERCHANT_HOST", DEFAULT_HOST),
            api_version=environment.get("DERO_MERCHANT_API_VERSION", DEFAULT_API_VERSION),
            timeout_seconds=_parse_timeout(environment),
        )

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "ClientConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
                "scheme": scheme,
                "host": host,
                "api_version": api_version,
                "api_key": api_key,
                "secret_key": secret_key,
                "timeout_seconds": timeout_seconds,
            },
        )
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment)


@dataclass(frozen=True)
class WebhookConfig:
    """
    Holds the webhook secret key, kept apart from the API credentials.
    """

    webhook_secret_key: str

    def __repr__(self) -> str:
        return "WebhookConfig(webhook_secret_key=<hidden>)"

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, str] | MerchantEnvironment
    ) -> "WebhookConfig":
        environment = MerchantEnvironment.from_mapping(values)
        return cls(webhook_secret_key=environment.require(WEBHOOK_SECRET_ENV_KEY))

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        webhook_secret_key: Optional[str] = None,
    ) -> "WebhookConfig":
        merged_overrides = dict(overrides or {})
        if webhook_secret_key is not None:
            merged_overrides[WEBHOOK_SECRET_ENV_KEY] = webhook_secret_key

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment)


def load_client_config(
    *,
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
) -> ClientConfig:
    """
    Convenience wrapper that mirrors :meth:`ClientConfig.from_env`.

    The configuration can be provided entirely through environment variables,
    a ``.env`` file, direct keyword arguments, or any combination of the three.
    """
    return ClientConfig.from_env(
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


def load_webhook_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    webhook_secret_key: Optional[str] = None,
) -> WebhookConfig:
    """Convenience wrapper that mirrors :meth:`WebhookConfig.from_env`."""
    return WebhookConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        webhook_secret_key=webhook_secret_key,
    )
