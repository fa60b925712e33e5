import inspect
import json
import socket
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from agents.einvoice import build_sample_config, build_sample_invoice
from backend.core.kv import get_store, reset_memory_stores
from backend.core.observability.logging import clear_context
from backend.core.observability.metrics import reset_metrics


VIOLATIONS = []
ARTIFACTS_DIR = Path("artifacts")
ARTIFACTS_DIR.mkdir(parents=True, exist_ok=True)
REPORT = ARTIFACTS_DIR / "egress-violations.json"

FIXED_NOW = datetime(2025, 1, 20, 8, 30, 0, tzinfo=timezone.utc)


def _is_allowed_callstack(allowed_paths: list[str]) -> bool:
    for frame in inspect.stack():
        filename = (frame.filename or "").replace("\\", "/")
        for ap in allowed_paths:
            if ap in filename:
                return True
    return False


@pytest.fixture(autouse=True, scope="session")
def egress_guard():
    # TestClient builds an httpx client from the test modules; nothing else may.
    allowed_client_paths = ["/tests/"]

    real_getaddrinfo = socket.getaddrinfo
    real_create_connection = socket.create_connection
    real_httpx_init = httpx.Client.__init__

    def guard_getaddrinfo(host, *args, **kwargs):
        if _is_allowed_callstack(allowed_client_paths):
            return real_getaddrinfo(host, *args, **kwargs)
        VIOLATIONS.append({"fn": "getaddrinfo", "host": str(host)})
        raise RuntimeError("Egress blocked: getaddrinfo disallowed")

    def guard_create_connection(address, *args, **kwargs):
        if _is_allowed_callstack(allowed_client_paths):
            return real_create_connection(address, *args, **kwargs)
        VIOLATIONS.append({"fn": "create_connection", "address": str(address)})
        raise RuntimeError("Egress blocked: create_connection disallowed")

    def guard_httpx_init(self, *args, **kwargs):
        if not _is_allowed_callstack(allowed_client_paths):
            VIOLATIONS.append({"fn": "httpx.Client.__init__"})
            raise RuntimeError("Egress blocked: httpx.Client not allowed from this callsite")
        return real_httpx_init(self, *args, **kwargs)

    socket.getaddrinfo = guard_getaddrinfo  # type: ignore[assignment]
    socket.create_connection = guard_create_connection  # type: ignore[assignment]
    httpx.Client.__init__ = guard_httpx_init  # type: ignore[assignment]

    yield

    # Restore
    socket.getaddrinfo = real_getaddrinfo  # type: ignore[assignment]
    socket.create_connection = real_create_connection  # type: ignore[assignment]
    httpx.Client.__init__ = real_httpx_init  # type: ignore[assignment]

    REPORT.write_text(json.dumps(VIOLATIONS, indent=2))


@pytest.fixture(autouse=True)
def _isolated_state():
    reset_memory_stores()
    reset_metrics()
    yield
    reset_memory_stores()
    reset_metrics()
    clear_context()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sample_invoice() -> dict:
    return build_sample_invoice("01")


@pytest.fixture
def sample_config() -> dict:
    return build_sample_config()


@pytest.fixture
def default_store():
    from backend.core.config import settings

    return get_store(settings.KV_DEFAULT_NAMESPACE)


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from backend.app import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
