"""Client for a DeviceDB cloud cluster: relays, sites and per-site buckets.

Every call picks one of the configured base URIs at random, so any node of
the cluster may serve it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Sequence
from urllib.parse import urlencode

import requests

from .buckets import BatchMixin, normalise_keys, require_callback
from .config import ClientConfig
from .errors import ResponseParseError
from .history import with_query
from .http_models import DBObject, PayloadValidationError, SiblingSet
from .schemas import BatchOperation, build_batch
from .streams import StreamCallback
from .transport import HttpTransport, path_segment


class SiteBucket(BatchMixin):
    """A bucket scoped to one site of the cluster."""

    def __init__(self, name: str, site_id: str, transport: HttpTransport) -> None:
        self.name = name
        self.site_id = site_id
        self._transport = transport

    def __repr__(self) -> str:
        return f"SiteBucket({self.site_id!r}, {self.name!r})"

    def _path(self, suffix: str) -> str:
        return (
            f"/sites/{path_segment(self.site_id)}"
            f"/buckets/{path_segment(self.name)}/{suffix}"
        )

    def batch(self, ops: Iterable[BatchOperation | Mapping[str, Any]]) -> None:
        validated = build_batch(ops)
        self._transport.request(
            "site_batch",
            "POST",
            self._path("batches"),
            json=[op.to_payload() for op in validated],
        )

    def _fetch(self, operation: str, param: str, values: List[str]) -> list:
        query = urlencode([(param, value) for value in values])
        payload = self._transport.request(
            operation, "GET", with_query(self._path("keys"), query), expect_json=True
        )
        if not isinstance(payload, list):
            raise ResponseParseError(f"{operation} response must be an array")
        for entry in payload:
            if entry is not None and not isinstance(entry, Mapping):
                raise ResponseParseError(
                    f"{operation} response payload was malformed",
                    detail=f"expected an object per key, got {entry!r}",
                )
        return payload

    def get(self, key: str | Sequence[str]) -> DBObject | None | List[DBObject | None]:
        keys = normalise_keys(key)
        entries = self._fetch("site_get", "key", keys)

        objects: List[DBObject | None] = []
        for entry in entries:
            # Missing keys come back with null siblings.
            if entry is None or entry.get("siblings") is None:
                objects.append(None)
                continue
            try:
                objects.append(DBObject.from_dict(entry))
            except PayloadValidationError as exc:
                raise ResponseParseError("site_get response payload was malformed", detail=str(exc)) from exc

        if isinstance(key, str):
            return objects[0] if objects else None
        return objects

    def get_matches(
        self, prefix: str | Sequence[str], callback: StreamCallback[SiblingSet]
    ) -> int:
        """Deliver every stored key under ``prefix`` to ``callback(error, record)``.

        Entries with null siblings name keys without a stored value and are
        not delivered.
        """

        require_callback(callback)
        entries = self._fetch("site_matches", "prefix", normalise_keys(prefix))
        try:
            records = [
                SiblingSet.from_dict(entry)
                for entry in entries
                if entry is not None and entry.get("siblings") is not None
            ]
        except PayloadValidationError as exc:
            raise ResponseParseError("site_matches response payload was malformed", detail=str(exc)) from exc

        for record in records:
            callback(None, record)
        return len(records)


class Site:
    """The buckets of one site, with ``default`` bucket shortcuts."""

    def __init__(self, site_id: str, transport: HttpTransport) -> None:
        self.site_id = site_id
        self.lww = SiteBucket("lww", site_id, transport)
        self.default = SiteBucket("default", site_id, transport)
        self.shared = self.default
        self.cloud = SiteBucket("cloud", site_id, transport)
        self.local = SiteBucket("local", site_id, transport)

    def __repr__(self) -> str:
        return f"Site({self.site_id!r})"

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


class ClusterClient:
    """Manage relays and sites of a DeviceDB cluster."""

    def __init__(
        self,
        config: ClientConfig | str | Sequence[str],
        *,
        session: requests.Session | None = None,
        **options: Any,
    ) -> None:
        self.config = ClientConfig.coerce(config, **options)
        self._transport = HttpTransport(self.config, session=session)

    def __repr__(self) -> str:
        return f"ClusterClient(uris={list(self.config.uris)!r})"

    def __enter__(self) -> "ClusterClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    def add_relay(self, relay_id: str) -> None:
        self._transport.request("add_relay", "PUT", f"/relays/{path_segment(relay_id)}")

    def remove_relay(self, relay_id: str) -> None:
        self._transport.request("remove_relay", "DELETE", f"/relays/{path_segment(relay_id)}")

    def move_relay(self, relay_id: str, site_id: str) -> None:
        """Assign ``relay_id`` to ``site_id``."""

        self._transport.request(
            "move_relay",
            "PATCH",
            f"/relays/{path_segment(relay_id)}",
            json={"site": site_id},
        )

    def add_site(self, site_id: str) -> None:
        self._transport.request("add_site", "PUT", f"/sites/{path_segment(site_id)}")

    def remove_site(self, site_id: str) -> None:
        self._transport.request("remove_site", "DELETE", f"/sites/{path_segment(site_id)}")

    def site(self, site_id: str) -> Site:
        return Site(site_id, self._transport)


__all__ = ["ClusterClient", "Site", "SiteBucket"]
