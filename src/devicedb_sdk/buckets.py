"""Bucket-level key/value operations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Sequence

from .errors import ResponseParseError, ValidationError
from .http_models import DBObject, PayloadValidationError, SiblingSet
from .schemas import BatchOperation, build_batch
from .streams import StreamCallback, feed_matches
from .transport import HttpTransport, path_segment

BUCKET_NAMES = ("lww", "default", "cloud", "local")


def normalise_keys(key: str | Sequence[str]) -> List[str]:
    """Accept one key or a list of keys; always return a list of strings."""

    keys = [key] if isinstance(key, str) else list(key)
    for item in keys:
        if not isinstance(item, str):
            raise ValidationError("Keys must be strings")
    return keys


def require_callback(callback: Any) -> None:
    if not callable(callback):
        raise ValidationError("A callback(error, result) is required for streamed results")


def parse_dbobjects(payload: Any, operation: str) -> List[DBObject | None]:
    if not isinstance(payload, list):
        raise ResponseParseError(f"{operation} response must be an array")
    try:
        return [None if entry is None else DBObject.from_dict(entry) for entry in payload]
    except PayloadValidationError as exc:
        raise ResponseParseError(f"{operation} response payload was malformed", detail=str(exc)) from exc


class BatchMixin:
    """``put`` and ``delete`` expressed as one-operation batches."""

    def batch(self, ops: Iterable[BatchOperation | Mapping[str, Any]]) -> None:
        raise NotImplementedError

    def put(self, key: str, value: Any, context: str | None = None) -> None:
        self.batch([{"type": "put", "key": key, "value": value, "context": context or ""}])

    def delete(self, key: str, context: str | None = None) -> None:
        self.batch([{"type": "delete", "key": key, "context": context or ""}])


class Bucket(BatchMixin):
    """One named bucket on a single DeviceDB node."""

    def __init__(self, name: str, transport: HttpTransport) -> None:
        self.name = name
        self._transport = transport

    def __repr__(self) -> str:
        return f"Bucket({self.name!r})"

    def _path(self, suffix: str) -> str:
        return f"/{path_segment(self.name)}/{suffix}"

    def batch(self, ops: Iterable[BatchOperation | Mapping[str, Any]]) -> None:
        validated = build_batch(ops)
        self._transport.request(
            "bucket_batch",
            "POST",
            self._path("batch"),
            json=[op.to_payload() for op in validated],
        )

    def get(self, key: str | Sequence[str]) -> DBObject | None | List[DBObject | None]:
        """Fetch one key (returns an object or ``None``) or a list of keys."""

        keys = normalise_keys(key)
        payload = self._transport.request(
            "bucket_get", "POST", self._path("values"), json=keys, expect_json=True
        )
        objects = parse_dbobjects(payload, "bucket_get")
        if isinstance(key, str):
            return objects[0] if objects else None
        return objects

    def get_matches(
        self, prefix: str | Sequence[str], callback: StreamCallback[SiblingSet]
    ) -> int:
        """Stream every key under ``prefix`` to ``callback(error, record)``."""

        require_callback(callback)
        prefixes = normalise_keys(prefix)
        return self._transport.stream(
            "bucket_matches",
            "POST",
            self._path("matches"),
            feed_matches,
            callback,
            json=prefixes,
        )

    def get_merkle_root(self) -> Any:
        return self._transport.request(
            "bucket_merkle_root", "GET", self._path("merkleRoot"), expect_json=True
        )


__all__ = ["BUCKET_NAMES", "BatchMixin", "Bucket", "normalise_keys"]
