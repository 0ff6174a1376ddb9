"""Durable key-value storage used to persist client state between runs.

Values are plain strings; callers own their serialization. ``JsonFileStorage``
keeps every key in a single JSON object on disk and rewrites it atomically
(temp file + ``os.replace``) after each mutation, off the event loop when one
is running.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from .logging_utils import get_module_logger

logger = get_module_logger("Storage")


class BaseKeyValueStorage(ABC):
    """String key-value store interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    async def flush(self) -> None:
        """Persist pending writes. Backends without deferred writes do nothing."""


class MemoryStorage(BaseKeyValueStorage):
    """Process-local storage, mainly for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class JsonFileStorage(BaseKeyValueStorage):
    """Key-value storage persisted to a JSON file.

    The file is read once at construction. Inside a running event loop,
    mutations update memory immediately and the disk write runs in a worker
    thread; writes requested while one is in flight are coalesced into a
    single follow-up write. Outside a loop the write is synchronous. I/O
    failures are logged and never raised: a failed read behaves like an
    empty store, a failed write keeps the in-memory value.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._data: Dict[str, str] = self._read_file()
        self._dirty = False
        self._flush_task: Optional[asyncio.Task] = None

    @property
    def pending_write(self) -> bool:
        return self._dirty or (self._flush_task is not None and not self._flush_task.done())

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._schedule_write()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._schedule_write()

    async def flush(self) -> None:
        """Wait for the in-flight write, then write anything still pending."""
        task = self._flush_task
        if task is not None and not task.done() and task.get_loop() is asyncio.get_running_loop():
            await task
        if self._dirty:
            await self._write_pending()

    def _schedule_write(self) -> None:
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._dirty = False
            self._write_file(dict(self._data))
            return
        task = self._flush_task
        if task is None or task.done() or task.get_loop() is not loop:
            self._flush_task = loop.create_task(self._write_pending())

    async def _write_pending(self) -> None:
        while self._dirty:
            self._dirty = False
            await asyncio.to_thread(self._write_file, dict(self._data))

    def _read_file(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read storage file %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring storage file %s: top-level value is not an object", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _write_file(self, data: Dict[str, str]) -> None:
        tmp_path: Optional[Path] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                dir=str(self.path.parent),
                delete=False,
                encoding="utf-8",
            ) as tmp:
                tmp_path = Path(tmp.name)
                json.dump(data, tmp, indent=2, sort_keys=True)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            logger.error("Failed to write storage file %s: %s", self.path, exc)
        finally:
            if tmp_path is not None:
                try:
                    tmp_path.unlink()
                except FileNotFoundError:
                    pass


__all__ = ["BaseKeyValueStorage", "JsonFileStorage", "MemoryStorage"]
