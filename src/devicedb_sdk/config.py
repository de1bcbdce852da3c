"""Connection configuration shared by every request a client issues."""

from __future__ import annotations

import os
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlparse

from .errors import ConfigurationError, ValidationError

MAX_CONNECTIONS = 4
DEFAULT_TIMEOUT = 10.0

URI_ENV = "DEVICEDB_URI"
ROOT_CA_ENV = "DEVICEDB_ROOT_CA"
TIMEOUT_ENV = "DEVICEDB_HTTP_TIMEOUT"


def validate_uri(uri: str) -> str:
    """Return ``uri`` if it is an absolute http(s) URI, else raise."""

    if not isinstance(uri, str) or not uri.strip():
        raise ConfigurationError("No uri specified")
    parsed = urlparse(uri.strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigurationError(f"Invalid uri specified: {uri!r}")
    return uri.strip()


@dataclass(frozen=True)
class ClientConfig:
    """Immutable connection settings attached to every outgoing request.

    Parameters
    ----------
    uris:
        One base URI, or several when talking to a cluster. A random entry is
        picked for each call.
    ca_bundle:
        Path to a PEM file holding one or more trusted root certificates.
    verify:
        Certificate verification switch. Verification is on unless explicitly
        disabled.
    timeout:
        Per-request timeout in seconds handed to :mod:`requests`.
    max_connections:
        Size of the keep-alive connection pool per host.
    """

    uris: tuple[str, ...]
    ca_bundle: str | None = None
    verify: bool = True
    timeout: float | None = DEFAULT_TIMEOUT
    max_connections: int = MAX_CONNECTIONS

    def __post_init__(self) -> None:
        if not self.uris:
            raise ConfigurationError("No uri specified")
        for uri in self.uris:
            validate_uri(uri)
        if self.max_connections < 1:
            raise ConfigurationError("max_connections must be at least 1")

    @classmethod
    def from_options(
        cls,
        uri: str | Sequence[str],
        *,
        ca_bundle: str | None = None,
        verify: bool = True,
        timeout: float | None = DEFAULT_TIMEOUT,
        max_connections: int = MAX_CONNECTIONS,
    ) -> "ClientConfig":
        uris = (uri,) if isinstance(uri, str) else tuple(uri)
        return cls(
            uris=tuple(u.strip() for u in uris),
            ca_bundle=ca_bundle,
            verify=verify,
            timeout=timeout,
            max_connections=max_connections,
        )

    @classmethod
    def coerce(cls, config: "ClientConfig | str | Sequence[str]", **options: Any) -> "ClientConfig":
        """Accept a ready-made config, or build one from URIs plus ``options``."""

        if isinstance(config, ClientConfig):
            if options:
                raise ValidationError(
                    "Options cannot be combined with a ClientConfig: " + ", ".join(sorted(options))
                )
            return config
        return cls.from_options(config, **options)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        raw = os.getenv(URI_ENV, "")
        uris = tuple(part.strip() for part in raw.split(",") if part.strip())
        raw_timeout = os.getenv(TIMEOUT_ENV, str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigurationError(f"{TIMEOUT_ENV} must be a number, got {raw_timeout!r}") from exc
        return cls(
            uris=uris,
            ca_bundle=os.getenv(ROOT_CA_ENV) or None,
            timeout=timeout,
        )

    @property
    def is_cluster(self) -> bool:
        return len(self.uris) > 1

    @property
    def tls_verify(self) -> bool | str:
        """Value for :attr:`requests.Session.verify`."""

        if not self.verify:
            return False
        return self.ca_bundle or True

    def select_uri(self) -> str:
        if len(self.uris) == 1:
            return self.uris[0]
        return random.choice(self.uris)

    def resolve(self, path: str) -> str:
        """Resolve ``path`` against a base URI; absolute paths replace the base path."""

        return urljoin(self.select_uri(), path)


__all__ = ["ClientConfig", "DEFAULT_TIMEOUT", "MAX_CONNECTIONS", "validate_uri"]
