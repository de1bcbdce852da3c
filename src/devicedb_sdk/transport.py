"""HTTP plumbing shared by every DeviceDB resource wrapper."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Iterator, TypeVar
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .errors import ResponseParseError, ServerError, UnexpectedResponseError
from .logging_utils import log_operation

logger = logging.getLogger(__name__)

T = TypeVar("T")


def path_segment(value: object) -> str:
    """Percent-encode one path component (identifiers may contain ``/``)."""

    return quote(str(value), safe="")


def _extract_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text.strip()


def _extract_detail(body: Any, status_code: int) -> str:
    if isinstance(body, Mapping):
        detail = body.get("detail") or body.get("message")
        if detail is not None:
            return str(detail)
        try:
            return json.dumps(body, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(body)
    if body in (None, ""):
        return f"HTTP {status_code}"
    return str(body)


def raise_for_status(response: requests.Response, operation: str) -> None:
    status = response.status_code
    if status == 200:
        return

    body = _extract_body(response)
    detail = _extract_detail(body, status)
    if 500 <= status <= 599:
        raise ServerError(
            f"Server error during {operation}", status_code=status, detail=detail, body=body
        )
    raise UnexpectedResponseError(
        f"Unexpected status code {status} from {operation}",
        status_code=status,
        detail=detail,
        body=body,
    )


def _decode_line(raw: bytes) -> str:
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def iter_body_lines(response: requests.Response) -> Iterator[str]:
    """Yield the lines of a streamed body, split on ``\\n`` only.

    One trailing ``\\r`` is dropped per line and a final unterminated line is
    still yielded. Other Unicode line separators stay part of the line.
    """

    pending = b""
    for chunk in response.iter_content(chunk_size=None):
        pending += chunk
        *complete, pending = pending.split(b"\n")
        for raw in complete:
            yield _decode_line(raw)
    if pending:
        yield _decode_line(pending)


def build_session(config: ClientConfig) -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=config.max_connections,
        pool_maxsize=config.max_connections,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = config.tls_verify
    return session


class HttpTransport:
    """Issues single-shot requests against the configured base URI(s)."""

    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._owns_session = session is None
        self._session = session or build_session(config)

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        return self._session.request(
            method,
            url,
            timeout=self.config.timeout,
            verify=self.config.tls_verify,
            **kwargs,
        )

    def request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        expect_json: bool = False,
        **kwargs: Any,
    ) -> Any:
        """Send one request; return the decoded JSON body when ``expect_json``."""

        url = self.config.resolve(path)
        with log_operation(logger, operation, method=method, path=path, uri=url):
            response = self._send(method, url, **kwargs)
            raise_for_status(response, operation)
            if not expect_json:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise ResponseParseError(
                    f"{operation} response did not contain valid JSON",
                    detail=response.text.strip() or None,
                ) from exc

    def stream(
        self,
        operation: str,
        method: str,
        path: str,
        feed: Callable[[Iterable[str], T], int],
        callback: T,
        **kwargs: Any,
    ) -> int:
        """Send one request and pipe its body, line by line, through ``feed``."""

        url = self.config.resolve(path)
        with log_operation(logger, operation, method=method, path=path, uri=url) as context:
            response = self._send(method, url, stream=True, **kwargs)
            try:
                raise_for_status(response, operation)
                delivered = feed(iter_body_lines(response), callback)
            finally:
                response.close()
            context["records"] = delivered
            return delivered

    def close(self) -> None:
        if self._owns_session:
            self._session.close()


__all__ = ["HttpTransport", "build_session", "iter_body_lines", "path_segment", "raise_for_status"]
