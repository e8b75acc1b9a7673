"""Asyncio facade over ``AstraVectorStore``.

Each call runs the synchronous operation in a worker thread via
``asyncio.to_thread`` so event-loop callers are never blocked.
"""

from __future__ import annotations

import asyncio

from contracts.vector_db import DeleteResult, SearchRequest, StoredDocument

from astra_store.vector_store import AstraVectorStore


class AsyncAstraVectorStore:
    """Awaitable wrapper around a synchronous ``AstraVectorStore``."""

    def __init__(self, store: AstraVectorStore) -> None:
        self._store = store

    @property
    def store(self) -> AstraVectorStore:
        return self._store

    async def add(self, documents: list[StoredDocument]) -> None:
        await asyncio.to_thread(self._store.add, documents)

    async def delete(self, ids: list[str]) -> DeleteResult:
        return await asyncio.to_thread(self._store.delete, ids)

    async def similarity_search(self, request: SearchRequest) -> list[StoredDocument]:
        return await asyncio.to_thread(self._store.similarity_search, request)

    async def clear(self) -> None:
        await asyncio.to_thread(self._store.clear)

    async def close(self) -> None:
        await asyncio.to_thread(self._store.close)
