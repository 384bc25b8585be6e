"""
Keyed entity cache holding last-known server attributes.

Records are plain dicts keyed by ``(namespace, entity_id)``. Readers get
copies; only the mutation engine edits live records.
"""

import copy
from typing import Any, Awaitable, Callable, Iterator, Optional

from vlogsphere.logger import get_logger

logger = get_logger(__name__)

CacheKey = tuple[str, str]


class EntityCache:
    """In-memory record store with a generation counter bumped on clear."""

    def __init__(self):
        self._records: dict[CacheKey, dict[str, Any]] = {}
        self.generation = 0

    def get(self, namespace: str, entity_id: str) -> Optional[dict[str, Any]]:
        """Return a copy of a record, or None when not cached."""
        record = self._records.get((namespace, entity_id))
        return copy.deepcopy(record) if record is not None else None

    def live(self, namespace: str, entity_id: str) -> Optional[dict[str, Any]]:
        """Return the live record for in-place edits by the owner."""
        return self._records.get((namespace, entity_id))

    def put(self, namespace: str, entity_id: str, data: dict[str, Any]) -> None:
        """Overwrite a record with authoritative data."""
        self._records[(namespace, entity_id)] = copy.deepcopy(data)

    def merge(self, namespace: str, entity_id: str, fields: dict[str, Any]) -> None:
        """Patch fields of an existing record; ignored when not cached."""
        record = self._records.get((namespace, entity_id))
        if record is not None:
            record.update(copy.deepcopy(fields))

    def live_records(self, namespace: str) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield (entity_id, live record) for every record in a namespace."""
        for (ns, entity_id), record in list(self._records.items()):
            if ns == namespace:
                yield entity_id, record

    def evict(self, namespace: str, entity_id: str) -> bool:
        return self._records.pop((namespace, entity_id), None) is not None

    def clear(self) -> None:
        self._records.clear()
        self.generation += 1
        logger.debug(f"Entity cache cleared (generation {self.generation})")

    async def get_or_load(
        self,
        namespace: str,
        entity_id: str,
        loader: Callable[[str], Awaitable[dict[str, Any]]],
    ) -> dict[str, Any]:
        """Return the cached record, fetching it on first read."""
        cached = self.get(namespace, entity_id)
        if cached is not None:
            return cached
        return await self.refresh(namespace, entity_id, loader)

    async def refresh(
        self,
        namespace: str,
        entity_id: str,
        loader: Callable[[str], Awaitable[dict[str, Any]]],
    ) -> dict[str, Any]:
        """Fetch a record and overwrite the cached copy with it."""
        generation = self.generation
        data = await loader(entity_id)
        if generation != self.generation:
            logger.debug(f"Dropping {namespace}/{entity_id} fetched before cache clear")
            return copy.deepcopy(data)
        self.put(namespace, entity_id, data)
        return copy.deepcopy(data)

    def snapshot(self) -> dict[CacheKey, dict[str, Any]]:
        """Deep copy of every record."""
        return copy.deepcopy(self._records)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
