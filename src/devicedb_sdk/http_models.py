"""Typed response models for DeviceDB REST payloads."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Sequence

_EVENT_FIELDS = ("source", "type", "data", "groups")


class PayloadValidationError(ValueError):
    """Raised when a JSON payload cannot be coerced into the expected schema."""


def resolve_siblings(siblings: Sequence[Any]) -> Any | None:
    """Return the single sibling, or ``None`` when replicas disagree.

    A ``None`` result for more than one sibling signals an unresolved conflict:
    the caller reconciles it and writes back using the object's ``context``.
    """

    if len(siblings) == 1:
        return siblings[0]
    return None


def _coerce_siblings(value: Any) -> tuple[Any, ...]:
    if not isinstance(value, list):
        raise PayloadValidationError("Siblings is not an array")
    return tuple(value)


def _coerce_context(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class DBObject:
    """Replica values stored under one key."""

    siblings: tuple[Any, ...]
    value: Any | None
    context: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DBObject":
        if not isinstance(data, Mapping):
            raise PayloadValidationError("DBObject must be an object")
        siblings = _coerce_siblings(data.get("siblings"))
        return cls(
            siblings=siblings,
            value=resolve_siblings(siblings),
            context=_coerce_context(data.get("context")),
        )

    @property
    def has_conflict(self) -> bool:
        return len(self.siblings) > 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "siblings": list(self.siblings),
            "value": self.value,
            "context": self.context,
        }


@dataclass(frozen=True)
class SiblingSet:
    """A key-match result: the matched prefix, the key and its replica values."""

    prefix: str
    key: str
    siblings: tuple[Any, ...]
    value: Any | None
    context: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiblingSet":
        if not isinstance(data, Mapping):
            raise PayloadValidationError("Match entry must be an object")
        dbobject = DBObject.from_dict(data)
        return cls.from_parts(str(data.get("prefix", "")), str(data.get("key", "")), dbobject)

    @classmethod
    def from_parts(cls, prefix: str, key: str, dbobject: DBObject) -> "SiblingSet":
        return cls(
            prefix=prefix,
            key=key,
            siblings=dbobject.siblings,
            value=dbobject.value,
            context=dbobject.context,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "prefix": self.prefix,
            "key": self.key,
            "siblings": list(self.siblings),
            "value": self.value,
            "context": self.context,
        }


@dataclass(frozen=True)
class Event:
    """An immutable history log entry."""

    source: str
    type: str
    data: Any = None
    groups: tuple[str, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        if not isinstance(data, Mapping):
            raise PayloadValidationError("Event must be an object")
        groups = data.get("groups") or []
        if not isinstance(groups, list):
            raise PayloadValidationError("Field 'groups' must be an array")
        return cls(
            source=str(data.get("source", "")),
            type=str(data.get("type", "")),
            data=data.get("data"),
            groups=tuple(str(group) for group in groups),
            extra={k: v for k, v in data.items() if k not in _EVENT_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "source": self.source,
            "type": self.type,
            "data": self.data,
            "groups": list(self.groups),
        }


@dataclass(frozen=True)
class HistoryQuery:
    """Filters for the ``/events`` stream; unset fields are omitted."""

    sources: tuple[str, ...] = ()
    limit: int | None = None
    sort_order: str | None = None
    data: str | None = None
    max_age: int | None = None
    after_time: int | None = None
    before_time: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "HistoryQuery":
        if data is None:
            return cls()
        sources = data.get("sources") or ()
        if isinstance(sources, str):
            sources = (sources,)
        return cls(
            sources=tuple(str(source) for source in sources),
            limit=data.get("limit"),
            sort_order=data.get("sort_order", data.get("sortOrder")),
            data=data.get("data"),
            max_age=data.get("max_age", data.get("maxAge")),
            after_time=data.get("after_time", data.get("afterTime")),
            before_time=data.get("before_time", data.get("beforeTime")),
        )

    def to_params(self) -> list[tuple[str, str]]:
        params = [("source", source) for source in self.sources]
        for name, value in (
            ("limit", self.limit),
            ("sortOrder", self.sort_order),
            ("data", self.data),
            ("maxAge", self.max_age),
            ("afterTime", self.after_time),
            ("beforeTime", self.before_time),
        ):
            if value is not None:
                params.append((name, str(value)))
        return params


@dataclass(frozen=True)
class PurgeQuery:
    """Bounds for deleting history entries."""

    max_age: int | None = None
    after_time: int | None = None
    before_time: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PurgeQuery":
        if data is None:
            return cls()
        return cls(
            max_age=data.get("max_age", data.get("maxAge")),
            after_time=data.get("after_time", data.get("afterTime")),
            before_time=data.get("before_time", data.get("beforeTime")),
        )

    def to_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        for name, value in (
            ("maxAge", self.max_age),
            ("afterTime", self.after_time),
            ("beforeTime", self.before_time),
        ):
            if value is not None:
                params.append((name, str(value)))
        return params


__all__ = [
    "DBObject",
    "Event",
    "HistoryQuery",
    "PayloadValidationError",
    "PurgeQuery",
    "SiblingSet",
    "resolve_siblings",
]
