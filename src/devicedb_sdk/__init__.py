"""DeviceDB Python SDK."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "1.0.0"

__all__ = [
    "AlertLog",
    "BatchOperation",
    "ClientConfig",
    "ClusterClient",
    "ConfigurationError",
    "DBObject",
    "DeviceDBClient",
    "DeviceDBError",
    "Event",
    "History",
    "HistoryQuery",
    "LogEntry",
    "PurgeQuery",
    "ResponseParseError",
    "ServerError",
    "SiblingSet",
    "UnexpectedResponseError",
    "ValidationError",
    "__version__",
    "create_client",
    "decode_key",
    "decode_key_bytes",
    "encode_key",
    "resolve_siblings",
]

_EXPORTS = {
    "AlertLog": ("devicedb_sdk.history", "AlertLog"),
    "BatchOperation": ("devicedb_sdk.schemas", "BatchOperation"),
    "ClientConfig": ("devicedb_sdk.config", "ClientConfig"),
    "ClusterClient": ("devicedb_sdk.cluster_client", "ClusterClient"),
    "ConfigurationError": ("devicedb_sdk.errors", "ConfigurationError"),
    "DBObject": ("devicedb_sdk.http_models", "DBObject"),
    "DeviceDBClient": ("devicedb_sdk.api_client", "DeviceDBClient"),
    "DeviceDBError": ("devicedb_sdk.errors", "DeviceDBError"),
    "Event": ("devicedb_sdk.http_models", "Event"),
    "History": ("devicedb_sdk.history", "History"),
    "HistoryQuery": ("devicedb_sdk.http_models", "HistoryQuery"),
    "LogEntry": ("devicedb_sdk.schemas", "LogEntry"),
    "PurgeQuery": ("devicedb_sdk.http_models", "PurgeQuery"),
    "ResponseParseError": ("devicedb_sdk.errors", "ResponseParseError"),
    "ServerError": ("devicedb_sdk.errors", "ServerError"),
    "SiblingSet": ("devicedb_sdk.http_models", "SiblingSet"),
    "UnexpectedResponseError": ("devicedb_sdk.errors", "UnexpectedResponseError"),
    "ValidationError": ("devicedb_sdk.errors", "ValidationError"),
    "create_client": ("devicedb_sdk.api_client", "create_client"),
    "decode_key": ("devicedb_sdk.api_client", "decode_key"),
    "decode_key_bytes": ("devicedb_sdk.api_client", "decode_key_bytes"),
    "encode_key": ("devicedb_sdk.api_client", "encode_key"),
    "resolve_siblings": ("devicedb_sdk.http_models", "resolve_siblings"),
}


def __getattr__(name: str) -> Any:
    try:
        module_name, attribute = _EXPORTS[name]
    except KeyError as exc:  # pragma: no cover - mirrors default behaviour
        raise AttributeError(f"module 'devicedb_sdk' has no attribute '{name}'") from exc

    module = import_module(module_name)
    value = getattr(module, attribute)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - introspection helper
    return sorted(__all__)
