"""Line-delimited stream parsers for history and key-match responses.

Both parsers are driven once per newline-terminated line. The key-match
response repeats a three-line cycle per record::

    <prefix>
    <key>
    {"siblings": [...], "context": "..."}

The history response carries one JSON event per line; blank lines are skipped.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple, TypeVar

from .errors import DeviceDBError, ResponseParseError
from .http_models import DBObject, Event, PayloadValidationError, SiblingSet

logger = logging.getLogger(__name__)

T = TypeVar("T")

StreamCallback = Callable[[Optional[DeviceDBError], Optional[T]], None]


def parse_event_line(line: str) -> Event | None:
    if line.strip() == "":
        return None
    try:
        payload = json.loads(line)
    except ValueError as exc:
        raise ResponseParseError("History line is not valid JSON", detail=line) from exc
    try:
        return Event.from_dict(payload)
    except PayloadValidationError as exc:
        raise ResponseParseError("History line is not a valid event", detail=str(exc)) from exc


class MatchState(enum.Enum):
    PREFIX = "prefix"
    KEY = "key"
    SIBLINGS = "siblings"


@dataclass(frozen=True)
class MatchParserState:
    state: MatchState = MatchState.PREFIX
    prefix: str | None = None
    key: str | None = None


def advance_match(
    current: MatchParserState, line: str
) -> Tuple[MatchParserState, SiblingSet | None]:
    """Consume one line and return the next state plus any completed record."""

    if current.state is MatchState.PREFIX:
        return MatchParserState(MatchState.KEY, prefix=line), None

    if current.state is MatchState.KEY:
        return MatchParserState(MatchState.SIBLINGS, prefix=current.prefix, key=line), None

    try:
        payload: Any = json.loads(line)
    except ValueError as exc:
        raise ResponseParseError("Siblings line is not valid JSON", detail=line) from exc
    try:
        dbobject = DBObject.from_dict(payload)
    except PayloadValidationError as exc:
        raise ResponseParseError(str(exc), detail=line) from exc

    record = SiblingSet.from_parts(current.prefix or "", current.key or "", dbobject)
    return MatchParserState(), record


def feed_events(lines: Iterable[str], callback: StreamCallback[Event]) -> int:
    """Parse ``lines`` and hand each event to ``callback``.

    On the first malformed line the error is passed to ``callback`` and
    parsing stops. Returns the number of events delivered.
    """

    delivered = 0
    for line in lines:
        try:
            event = parse_event_line(line)
        except ResponseParseError as exc:
            logger.warning("History stream parse error", extra={"error": str(exc)})
            callback(exc, None)
            break
        if event is None:
            continue
        callback(None, event)
        delivered += 1
    return delivered


def feed_matches(lines: Iterable[str], callback: StreamCallback[SiblingSet]) -> int:
    """Run the key-match state machine over ``lines``; see :func:`feed_events`."""

    state = MatchParserState()
    delivered = 0
    for line in lines:
        try:
            state, record = advance_match(state, line)
        except ResponseParseError as exc:
            logger.warning("Match stream parse error", extra={"error": str(exc)})
            callback(exc, None)
            break
        if record is not None:
            callback(None, record)
            delivered += 1
    return delivered


__all__ = [
    "MatchParserState",
    "MatchState",
    "StreamCallback",
    "advance_match",
    "feed_events",
    "feed_matches",
    "parse_event_line",
]
