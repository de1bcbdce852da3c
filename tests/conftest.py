import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
TESTS_ROOT = Path(__file__).resolve().parent
for path in (SRC_ROOT, TESTS_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from devicedb_sdk.api_client import DeviceDBClient  # noqa: E402  (import after sys.path tweak)
from support import DummySession  # noqa: E402

BASE_URI = "https://devicedb.test:9090"


@pytest.fixture(autouse=True)
def _clear_devicedb_env(monkeypatch):
    for name in ("DEVICEDB_URI", "DEVICEDB_ROOT_CA", "DEVICEDB_HTTP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_client():
    """Build a client bound to a :class:`DummySession` replaying ``responses``."""

    def _make(*responses, **options):
        session = DummySession(responses)
        client = DeviceDBClient(BASE_URI, session=session, **options)
        return client, session

    return _make
