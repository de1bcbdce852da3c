"""HTTP API client for a single DeviceDB node."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import Any, Iterable, List, Sequence
from urllib.parse import urlparse

import requests

from .buckets import Bucket
from .config import ClientConfig
from .errors import (
    ConfigurationError,
    DeviceDBError,
    ResponseParseError,
    ServerError,
    UnexpectedResponseError,
    ValidationError,
)
from .history import EVENTS_CATEGORY, AlertLog, History
from .http_models import DBObject, SiblingSet
from .schemas import BatchOperation
from .streams import StreamCallback
from .transport import HttpTransport, path_segment

DEFAULT_PEER_PORT = 443


def encode_key(key: str | bytes) -> str:
    """Base64-encode a key so arbitrary bytes survive transport."""

    raw = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    return base64.b64encode(raw).decode("ascii")


def decode_key_bytes(encoded: str) -> bytes:
    return base64.b64decode(encoded)


def decode_key(encoded: str) -> str:
    return decode_key_bytes(encoded).decode("utf-8")


class DeviceDBClient:
    """Thin wrapper around the DeviceDB REST surface of one node.

    Key/value calls on the client itself go to the ``default`` bucket; the
    other buckets are reachable as attributes (``lww``, ``cloud``, ``local``).
    """

    def __init__(
        self,
        config: ClientConfig | str | Sequence[str],
        *,
        session: requests.Session | None = None,
        **options: Any,
    ) -> None:
        self.config = ClientConfig.coerce(config, **options)
        self._transport = HttpTransport(self.config, session=session)

        self.lww = Bucket("lww", self._transport)
        self.default = Bucket("default", self._transport)
        self.shared = self.default
        self.cloud = Bucket("cloud", self._transport)
        self.local = Bucket("local", self._transport)
        self.history = History(self._transport, EVENTS_CATEGORY)
        self.alerts = AlertLog(self._transport)

    def __repr__(self) -> str:
        return f"DeviceDBClient(uris={list(self.config.uris)!r})"

    def __enter__(self) -> "DeviceDBClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    # ------------------------------------------------------------------
    def requires_auth(self) -> bool:
        return False

    def add_peer(self, peer_id: str, peer_address: str) -> None:
        """Register ``peer_address`` (``scheme://host[:port]``) as ``peer_id``."""

        parsed = urlparse(peer_address or "")
        if not parsed.hostname:
            raise ValidationError(f"Invalid peer address: {peer_address!r}")
        try:
            port = parsed.port or DEFAULT_PEER_PORT
        except ValueError as exc:
            raise ValidationError(f"Invalid peer port in {peer_address!r}") from exc

        self._transport.request(
            "add_peer",
            "PUT",
            f"/peers/{path_segment(peer_id)}",
            json={"id": peer_id, "host": parsed.hostname, "port": port},
        )

    def remove_peer(self, peer_id: str) -> None:
        self._transport.request("remove_peer", "DELETE", f"/peers/{path_segment(peer_id)}")

    def list_peers(self) -> Any:
        return self._transport.request("list_peers", "GET", "/peers", expect_json=True)

    # --- default bucket shortcuts -----------------------------------------
    def get_merkle_root(self) -> Any:
        return self.default.get_merkle_root()

    def put(self, key: str, value: Any, context: str | None = None) -> None:
        self.default.put(key, value, context)

    def delete(self, key: str, context: str | None = None) -> None:
        self.default.delete(key, context)

    def batch(self, ops: Iterable[BatchOperation | Mapping[str, Any]]) -> None:
        self.default.batch(ops)

    def get(self, key: str | Sequence[str]) -> DBObject | None | List[DBObject | None]:
        return self.default.get(key)

    def get_matches(
        self, prefix: str | Sequence[str], callback: StreamCallback[SiblingSet]
    ) -> int:
        return self.default.get_matches(prefix, callback)


def create_client(
    uri: ClientConfig | str | Sequence[str],
    *,
    session: requests.Session | None = None,
    **options: Any,
) -> DeviceDBClient:
    """Build a :class:`DeviceDBClient`; ``options`` feed :class:`ClientConfig`."""

    return DeviceDBClient(uri, session=session, **options)


__all__ = [
    "ConfigurationError",
    "DeviceDBClient",
    "DeviceDBError",
    "ResponseParseError",
    "ServerError",
    "UnexpectedResponseError",
    "ValidationError",
    "create_client",
    "decode_key",
    "decode_key_bytes",
    "encode_key",
]
