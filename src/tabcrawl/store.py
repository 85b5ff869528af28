from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

CRAWL_TAB_KEY = "crawl_tab_id"


class SessionStore(Protocol):
    """Async key-value store whose contents outlive the current process."""

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def discard(self, key: str, value: Any) -> bool: ...


class MemoryStore:
    """In-process store; useful for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Any:
        return self._data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def discard(self, key: str, value: Any) -> bool:
        if key not in self._data or self._data[key] != value:
            return False
        del self._data[key]
        return True


class JsonFileStore:
    """Stores a flat JSON object on disk.

    Every write replaces the whole file atomically, so a process killed in the
    middle of a write leaves either the old or the new document behind. File
    access runs in a worker thread to keep the event loop responsive.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)

    async def remove(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key not in data:
                return
            del data[key]
            await asyncio.to_thread(self._write, data)

    async def discard(self, key: str, value: Any) -> bool:
        """Remove ``key`` only while it still holds ``value``."""
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key not in data or data[key] != value:
                return False
            del data[key]
            await asyncio.to_thread(self._write, data)
            return True

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt session file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class CrawlTabState:
    """The persisted identity of the single crawl tab."""

    def __init__(self, store: SessionStore, key: str = CRAWL_TAB_KEY):
        self.store = store
        self.key = key

    async def get(self) -> str | None:
        return await self.store.get(self.key)

    async def set(self, tab_id: str) -> None:
        await self.store.set(self.key, tab_id)
        logger.debug("Persisted crawl tab %s", tab_id)

    async def clear(self) -> None:
        await self.store.remove(self.key)
        logger.debug("Cleared persisted crawl tab")

    async def clear_if(self, tab_id: str) -> bool:
        return await self.store.discard(self.key, tab_id)
