"""Test doubles standing in for ``requests.Session`` and ``requests.Response``."""

import json

import requests


class DummyResponse:
    def __init__(self, status_code=200, json_data=None, text=None, lines=None, json_exc=None):
        self.status_code = status_code
        self._json_data = json_data
        self._json_exc = json_exc
        self._lines = list(lines or [])
        if text is None:
            text = "" if json_data is None else json.dumps(json_data)
        self.text = text
        self.encoding = None
        self.closed = False

    def json(self):
        if self._json_exc is not None:
            raise self._json_exc
        if self._json_data is None:
            return json.loads(self.text)
        return self._json_data

    def iter_content(self, chunk_size=None):
        if self._lines:
            yield ("\n".join(self._lines) + "\n").encode("utf-8")

    def close(self):
        self.closed = True


class DummySession:
    def __init__(self, responses=(), error=None):
        self._responses = list(responses)
        self._error = error
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self._error is not None:
            raise self._error
        try:
            return self._responses.pop(0)
        except IndexError:
            raise AssertionError(f"No response queued for {method} {url}")

    def close(self):
        self.closed = True


class Collector:
    """Stream callback recording ``(error, result)`` pairs."""

    def __init__(self):
        self.errors = []
        self.results = []

    def __call__(self, error, result):
        if error is not None:
            self.errors.append(error)
        else:
            self.results.append(result)


class ChunkedRaw:
    """``raw`` stand-in for :class:`requests.Response` that reads in fixed pieces."""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.closed = False

    def read(self, size=None):
        return self._chunks.pop(0) if self._chunks else b""

    def close(self):
        self.closed = True


def streamed_response(*chunks, status_code=200):
    """A real :class:`requests.Response` whose body arrives as ``chunks``."""

    response = requests.Response()
    response.status_code = status_code
    response.raw = ChunkedRaw(chunks)
    return response
