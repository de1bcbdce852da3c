"""Event history and alert log wrappers around ``/events``."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from .buckets import require_callback
from .errors import ValidationError
from .http_models import Event, HistoryQuery, PurgeQuery
from .schemas import LogEntry, build_log_entry
from .streams import StreamCallback, feed_events
from .transport import HttpTransport, path_segment

EVENTS_CATEGORY = "events"
ALERTS_CATEGORY = "alerts"


def encode_history_query(query: HistoryQuery | Mapping[str, Any] | None) -> str:
    """Build the ``/events`` query string; unset filters are left out entirely."""

    if not isinstance(query, HistoryQuery):
        query = HistoryQuery.from_dict(query if isinstance(query, Mapping) else None)
    return urlencode(query.to_params())


def encode_purge_query(query: PurgeQuery | Mapping[str, Any] | None) -> str:
    if not isinstance(query, PurgeQuery):
        query = PurgeQuery.from_dict(query if isinstance(query, Mapping) else None)
    return urlencode(query.to_params())


def with_query(path: str, query_string: str) -> str:
    return f"{path}?{query_string}" if query_string else path


class History:
    """Append to, stream and purge one category of the event log."""

    def __init__(self, transport: HttpTransport, category: str = EVENTS_CATEGORY) -> None:
        self._transport = transport
        self.category = category

    def __repr__(self) -> str:
        return f"History(category={self.category!r})"

    def log(self, entry: LogEntry | Mapping[str, Any]) -> None:
        validated = build_log_entry(entry)
        params = [("category", self.category)]
        params.extend(("group", group) for group in validated.groups)
        path = f"/events/{path_segment(validated.source)}/{path_segment(validated.type)}"
        self._transport.request(
            "history_log",
            "PUT",
            with_query(path, urlencode(params)),
            data=json.dumps(validated.data),
            headers={"Content-Type": "application/json"},
        )

    def query(
        self,
        query: HistoryQuery | Mapping[str, Any] | None,
        callback: StreamCallback[Event],
    ) -> int:
        """Stream matching events to ``callback(error, event)``; returns the count."""

        require_callback(callback)
        return self._transport.stream(
            "history_query",
            "GET",
            with_query("/events", encode_history_query(query)),
            feed_events,
            callback,
        )

    def purge(self, query: PurgeQuery | Mapping[str, Any] | None = None) -> None:
        self._transport.request(
            "history_purge", "DELETE", with_query("/events", encode_purge_query(query))
        )


class AlertLog:
    """Raise and lower named alerts; each transition is one history entry."""

    def __init__(self, transport: HttpTransport) -> None:
        self.history = History(transport, ALERTS_CATEGORY)

    def _record(self, name: Any, level: str, status: bool, metadata: Any) -> None:
        if not isinstance(name, str) or name.strip() == "":
            raise ValidationError("Invalid alert name (argument 1) specified")
        self.history.log(
            {
                "source": name,
                "type": level,
                "data": {"status": status, "metadata": metadata},
            }
        )

    def raise_alert(self, name: str, level: str, metadata: Any = None) -> None:
        self._record(name, level, True, metadata)

    def lower_alert(self, name: str, level: str, metadata: Any = None) -> None:
        self._record(name, level, False, metadata)


__all__ = [
    "ALERTS_CATEGORY",
    "AlertLog",
    "EVENTS_CATEGORY",
    "History",
    "encode_history_query",
    "encode_purge_query",
    "with_query",
]
