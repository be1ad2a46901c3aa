"""
In-Memory Storage Backend.

Default storage backend that keeps all data in memory.
Suitable for a single-process deployment and for tests; records are lost
when the process ends.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from a402.storage.base import StorageBackend, matches_filters, register_storage_backend


class InMemoryStorage(StorageBackend):
    """
    In-memory storage backend.

    Stores all data in Python dicts. None of the methods await, so each
    call runs to completion on the event loop without interleaving.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = {}

    def _ensure_collection(self, collection: str) -> dict[str, dict[str, Any]]:
        """Ensure collection exists and return it."""
        return self._data.setdefault(collection, {})

    async def save(
        self,
        collection: str,
        key: str,
        data: dict[str, Any],
    ) -> None:
        coll = self._ensure_collection(collection)
        coll[key] = deepcopy(data)

    async def save_if_absent(
        self,
        collection: str,
        key: str,
        data: dict[str, Any],
    ) -> bool:
        coll = self._ensure_collection(collection)
        if key in coll:
            return False
        coll[key] = deepcopy(data)
        return True

    async def get(
        self,
        collection: str,
        key: str,
    ) -> dict[str, Any] | None:
        coll = self._ensure_collection(collection)
        data = coll.get(key)
        return deepcopy(data) if data is not None else None

    async def delete(
        self,
        collection: str,
        key: str,
    ) -> bool:
        coll = self._ensure_collection(collection)
        return coll.pop(key, None) is not None

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        coll = self._ensure_collection(collection)
        results = []
        for key, data in coll.items():
            if not matches_filters(data, filters):
                continue
            result = deepcopy(data)
            result["_key"] = key
            results.append(result)

        results = results[offset:]
        if limit is not None:
            results = results[:limit]
        return results

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        if filters:
            return len(await self.query(collection, filters))
        return len(self._ensure_collection(collection))

    async def clear(self, collection: str) -> int:
        coll = self._ensure_collection(collection)
        count = len(coll)
        coll.clear()
        return count


# Register as default backend
register_storage_backend("memory", InMemoryStorage)
