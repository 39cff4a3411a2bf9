# beacon_sdk/storage.py
# SPDX-License-Identifier: Apache-2.0
"""
Key/value persistence used by the client.

Only a handful of keys are written (see :class:`StorageKey`). Values are
JSON-serializable. Implementations:

- InMemoryStorage: per-process dict; default for tests and short-lived apps.
- FileStorage:     one JSON document on disk; blocking I/O runs in a worker
                   thread so the event loop never stalls on the filesystem.
"""

from __future__ import annotations

import asyncio
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable


class StorageKey(str, Enum):
    ACTIVE_ACCOUNT = "beacon:active-account"
    ACCOUNTS = "beacon:accounts"
    BEACON_SDK_SECRET_SEED = "beacon:sdk-secret-seed"


@runtime_checkable
class Storage(Protocol):
    """Async key/value store interface."""
    async def get(self, key: StorageKey) -> Optional[Any]: ...
    async def set(self, key: StorageKey, value: Any) -> None: ...
    async def delete(self, key: StorageKey) -> None: ...


def _key(key: Union[StorageKey, str]) -> str:
    return key.value if isinstance(key, StorageKey) else str(key)


class InMemoryStorage:
    """Dict-backed storage. Values are deep-copied through JSON on write."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    async def get(self, key: StorageKey) -> Optional[Any]:
        return self._data.get(_key(key))

    async def set(self, key: StorageKey, value: Any) -> None:
        self._data[_key(key)] = json.loads(json.dumps(value))

    async def delete(self, key: StorageKey) -> None:
        self._data.pop(_key(key), None)


class FileStorage:
    """
    JSON file storage.

    The whole document is rewritten on every ``set``/``delete`` via a temp file
    and ``os.replace`` so a crash never leaves a half-written file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"storage file is not a JSON object: {self._path}")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
        os.replace(tmp, self._path)

    async def get(self, key: StorageKey) -> Optional[Any]:
        data = await asyncio.to_thread(self._read)
        return data.get(_key(key))

    async def set(self, key: StorageKey, value: Any) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[_key(key)] = value
            await asyncio.to_thread(self._write, data)

    async def delete(self, key: StorageKey) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if data.pop(_key(key), None) is not None:
                await asyncio.to_thread(self._write, data)


__all__ = ["StorageKey", "Storage", "InMemoryStorage", "FileStorage"]
