"""Pydantic schemas validating write payloads before they leave the client."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class BatchOperation(BaseModel):
    """A single ``put`` or ``delete`` inside a bucket batch."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["put", "delete"]
    key: str = Field(min_length=1)
    value: Any = None
    context: str = ""

    @field_validator("context", mode="before")
    @classmethod
    def _empty_context(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def _value_matches_type(self) -> "BatchOperation":
        if self.type == "put" and self.value is None:
            raise ValueError("put operations require a value")
        return self

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, "key": self.key, "context": self.context}
        if self.type == "put":
            payload["value"] = self.value
        return payload


class LogEntry(BaseModel):
    """An event about to be appended to the history log."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    source: str = Field(min_length=1)
    type: str = Field(min_length=1)
    data: Any = None
    groups: List[str] = Field(default_factory=list)

    @field_validator("source", "type", mode="before")
    @classmethod
    def _require_string(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("groups", mode="before")
    @classmethod
    def _groups_are_strings(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            return []
        if not all(isinstance(group, str) for group in value):
            raise ValueError("event.groups is not a valid string array")
        return list(value)


def _describe(exc: PydanticValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return messages


def build_batch(ops: Iterable[BatchOperation | Mapping[str, Any]]) -> List[BatchOperation]:
    """Validate a batch, raising :class:`ValidationError` on the first bad entry."""

    if isinstance(ops, (str, bytes, Mapping)) or not isinstance(ops, Iterable):
        raise ValidationError("Batch operations must be a list")

    validated: List[BatchOperation] = []
    for index, op in enumerate(ops):
        if isinstance(op, BatchOperation):
            validated.append(op)
            continue
        if not isinstance(op, Mapping):
            raise ValidationError(f"Batch operation {index} must be an object")
        try:
            validated.append(BatchOperation.model_validate(dict(op)))
        except PydanticValidationError as exc:
            messages = _describe(exc)
            raise ValidationError(
                f"Invalid batch operation {index}", detail="; ".join(messages)
            ) from exc
    return validated


def build_log_entry(entry: LogEntry | Mapping[str, Any] | None) -> LogEntry:
    if isinstance(entry, LogEntry):
        return entry
    if not isinstance(entry, Mapping):
        raise ValidationError("No event specified")
    try:
        return LogEntry.model_validate(dict(entry))
    except PydanticValidationError as exc:
        messages = _describe(exc)
        raise ValidationError("Invalid event", detail="; ".join(messages)) from exc


__all__ = ["BatchOperation", "LogEntry", "build_batch", "build_log_entry"]
