"""Key-value store used by the e-invoice endpoints.

Each company has its own namespace (``e-company-<id>``). The memory backend
serves development and tests; the file backend keeps one JSON document per
namespace under ``KV_DATA_DIR``.
"""

from __future__ import annotations

import copy
import json
import os
import threading
import uuid
from typing import Any, Dict, Optional, Protocol

from backend.core.config import settings

COMPANY_NAMESPACE_PREFIX = "e-company-"


class StoreError(Exception):
    pass


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


def company_namespace(company_id: str | None) -> str:
    if not company_id:
        return settings.KV_DEFAULT_NAMESPACE
    return f"{COMPANY_NAMESPACE_PREFIX}{company_id}"


class InMemoryKeyValueStore:
    """Dict-backed store; values are deep-copied on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)


class JsonFileKeyValueStore:
    """One JSON object per namespace: ``{KV_DATA_DIR}/{namespace}.json``."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Store file unreadable: {self.path}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Store file must contain a JSON object: {self.path}")
        return data

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            dir_path = os.path.dirname(self.path) or "."
            os.makedirs(dir_path, exist_ok=True)

            # Atomic write: temp → fsync → move
            tmp_path = os.path.join(dir_path, f".{uuid.uuid4().hex}.tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)


_memory_stores: Dict[str, InMemoryKeyValueStore] = {}
_memory_lock = threading.Lock()


def get_store(namespace: str) -> KeyValueStore:
    """Return the store for ``namespace`` according to ``KV_BACKEND``."""
    backend = settings.KV_BACKEND

    if backend == "memory":
        with _memory_lock:
            store = _memory_stores.get(namespace)
            if store is None:
                store = _memory_stores[namespace] = InMemoryKeyValueStore()
            return store

    elif backend == "file":
        return JsonFileKeyValueStore(os.path.join(settings.KV_DATA_DIR, f"{namespace}.json"))

    else:
        raise StoreError("Unsupported KV_BACKEND; expected 'memory' or 'file'")


def reset_memory_stores() -> None:
    """Drop all in-memory namespaces (useful for testing)."""
    with _memory_lock:
        _memory_stores.clear()


def check_store() -> str:
    """Light readiness probe for the configured backend."""
    try:
        get_store(settings.KV_DEFAULT_NAMESPACE).get(settings.CONFIG_KEY)
    except StoreError:
        return "FAIL"
    return "OK"
