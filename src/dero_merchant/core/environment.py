"""
Resolution of the ``DERO_MERCHANT_*`` settings.

Settings are layered from the process environment, an optional ``.env``
file and explicit overrides. Only ``DERO_MERCHANT_*`` keys survive, and each
remembers where it came from so configuration errors can point at the
right source.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

from .errors import ConfigError

ENV_PREFIX = "DERO_MERCHANT_"

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _parse_value(raw: str) -> str:
    raw = raw.strip()
    if raw[:1] in ("'", '"'):
        end = raw.find(raw[0], 1)
        if end > 0:
            return raw[1:end]
    # unquoted values may carry a trailing comment
    return raw.split(" #", 1)[0].rstrip()


def _iter_env_file(path: Path) -> Iterator[Tuple[str, str]]:
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return

    for lineno, raw_line in enumerate(data.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not _KEY_RE.match(key):
            raise ConfigError(f"{path}:{lineno}: expected KEY=VALUE")
        yield key, _parse_value(value)


def read_env_file(path: str) -> Dict[str, str]:
    """Return every assignment of the ``.env`` file at ``path``; a missing file is empty."""
    return dict(_iter_env_file(Path(path)))


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Merge the variables of ``path`` into ``environ`` (default :data:`os.environ`).

    Keys already present in ``environ`` are left alone. Returns a copy of the
    merged mapping.
    """
    target: MutableMapping[str, str] = environ if environ is not None else os.environ
    for key, value in _iter_env_file(Path(path)):
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class MerchantEnvironment:
    """
    The ``DERO_MERCHANT_*`` settings with the source each one was taken from.
    """

    variables: Mapping[str, str]
    origins: Mapping[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, str] | "MerchantEnvironment",
        origin: str = "configuration",
    ) -> "MerchantEnvironment":
        if isinstance(values, MerchantEnvironment):
            return values
        variables = {k: v for k, v in values.items() if k.startswith(ENV_PREFIX)}
        return cls(variables=variables, origins={key: origin for key in variables})

    def origin(self, key: str) -> Optional[str]:
        return self.origins.get(key)

    def describe(self, key: str) -> str:
        origin = self.origin(key)
        return f"{key} (from {origin})" if origin else key

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the stripped value of ``key``; blank values count as unset."""
        value = (self.variables.get(key) or "").strip()
        return value or default

    def require(self, key: str) -> str:
        if key not in self.variables:
            raise ConfigError(f"{key} must be provided")
        value = self.get(key)
        if value is None:
            raise ConfigError(f"{self.describe(key)} must not be empty")
        return value


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> MerchantEnvironment:
    """
    Layer ``base`` (default :data:`os.environ`), ``env_file`` and ``overrides``.

    File entries only fill keys missing from ``base``; ``overrides`` always
    win. Pass ``env_file=None`` to skip the file.
    """
    variables: Dict[str, str] = {}
    origins: Dict[str, str] = {}

    def layer(values: Mapping[str, str], origin: str, replace: bool) -> None:
        for key, value in values.items():
            if not key.startswith(ENV_PREFIX):
                continue
            if replace or key not in variables:
                variables[key] = value
                origins[key] = origin

    layer(os.environ if base is None else base, "environment", replace=True)
    if env_file is not None:
        layer(read_env_file(env_file), env_file, replace=False)
    if overrides:
        layer(overrides, "overrides", replace=True)

    return MerchantEnvironment(variables=variables, origins=origins)
