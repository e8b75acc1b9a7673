"""Astra DB vector store.

Composes the filter mapper, the document mapper and the bulk executor on top
of a single Data API collection handle.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import httpx

from contracts.audit import AuditEntry, AuditEvent, AuditLogger
from contracts.config import AstraStoreConfig, EmbeddingConfig
from contracts.embedding import EmbeddingModel
from contracts.errors import SchemaMissing, VectorStoreError
from contracts.vector_db import DeleteResult, SearchRequest, StoredDocument, VectorStore

from astra_store.audit.logger import JsonlAuditLogger
from astra_store.bulk import BulkExecutor, chunked
from astra_store.data_api import DataAPIClient, DataAPICollection
from astra_store.document_mapper import (
    ID_FIELD,
    SIMILARITY_FIELD,
    VECTOR_FIELD,
    VECTORIZE_FIELD,
    from_backend,
    to_backend,
)
from astra_store.filter_mapper import map_filter

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_ATTRIBUTE = "embed"
DEFAULT_INSERT_CHUNK_SIZE = 20


class AstraVectorStore(VectorStore):
    """Vector store backed by one Astra DB collection."""

    def __init__(
        self,
        collection: DataAPICollection,
        *,
        content_attribute: str = DEFAULT_CONTENT_ATTRIBUTE,
        embedding_model: EmbeddingModel | None = None,
        bulk: BulkExecutor | None = None,
        insert_chunk_size: int = DEFAULT_INSERT_CHUNK_SIZE,
        include_vectors: bool = True,
        audit_logger: AuditLogger | None = None,
        client: DataAPIClient | None = None,
    ) -> None:
        self._collection = collection
        self._content_attribute = content_attribute
        self._embedding_model = embedding_model
        self._bulk = bulk or BulkExecutor()
        self._insert_chunk_size = insert_chunk_size
        self._include_vectors = include_vectors
        self._audit_logger = audit_logger
        self._client = client

    @classmethod
    def from_config(
        cls,
        config: AstraStoreConfig,
        *,
        embedding_model: EmbeddingModel | None = None,
        audit_logger: AuditLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> AstraVectorStore:
        """Connect, make sure the collection exists, and build the store.

        Raises ``SchemaMissing`` when the collection is absent and
        ``initialize_schema`` is disabled.
        """
        client = DataAPIClient.from_config(config, transport=transport)
        try:
            collection = _open_collection(client, config)
        except Exception:
            client.close()
            raise

        if embedding_model is None and config.embedding is not None:
            embedding_model = _create_embedding_model(config.embedding)
        if audit_logger is None and config.audit is not None:
            audit_logger = JsonlAuditLogger(config.audit.path)

        return cls(
            collection,
            content_attribute=config.content_attribute,
            embedding_model=embedding_model,
            bulk=BulkExecutor(config.bulk.concurrency, config.bulk.timeout_seconds),
            insert_chunk_size=config.bulk.insert_chunk_size,
            audit_logger=audit_logger,
            client=client,
        )

    @property
    def collection_name(self) -> str:
        return self._collection.name

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> AstraVectorStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ── add ───────────────────────────────────────────────────────────

    def add(self, documents: list[StoredDocument]) -> None:
        if not documents:
            return

        with self._audited(AuditEvent.STORE_ADD, count=len(documents)):
            vectorized = self._collection.is_vectorized()
            records = [
                to_backend(
                    doc,
                    embedding_model=self._embedding_model,
                    collection_is_vectorized=vectorized,
                    content_attribute=self._content_attribute,
                )
                for doc in documents
            ]
            self._bulk.run(
                "insert",
                chunked(records, self._insert_chunk_size),
                lambda chunk: self._collection.insert_many(chunk, ordered=False),
                requested=len(records),
            )

    # ── delete ────────────────────────────────────────────────────────

    def delete(self, ids: list[str]) -> DeleteResult:
        if not ids:
            return DeleteResult(requested=0)

        with self._audited(AuditEvent.STORE_DELETE, count=len(ids)) as detail:
            start = time.monotonic()
            counts = self._bulk.run(
                "delete",
                list(ids),
                lambda doc_id: self._collection.delete_one({ID_FIELD: doc_id}),
            )
            result = DeleteResult(
                requested=len(ids),
                deleted=sum(counts),
                elapsed_ms=round((time.monotonic() - start) * 1000, 3),
            )
            detail["deleted"] = result.deleted
        return result

    def clear(self) -> None:
        """Delete every record of the collection in one command."""
        with self._audited(AuditEvent.STORE_CLEAR):
            self._collection.delete_all()

    # ── search ────────────────────────────────────────────────────────

    def similarity_search(self, request: SearchRequest) -> list[StoredDocument]:
        with self._audited(
            AuditEvent.STORE_SEARCH,
            top_k=request.top_k,
            threshold=request.similarity_threshold,
        ) as detail:
            # Translate first so a bad filter never reaches the network.
            backend_filter = map_filter(request.filter_expression)

            sort: dict[str, Any] | None = None
            if request.query:
                if self._embedding_model is not None:
                    sort = {VECTOR_FIELD: self._embedding_model.embed(request.query)}
                elif self._collection.is_vectorized():
                    sort = {VECTORIZE_FIELD: request.query}

            records = self._collection.find(
                backend_filter,
                limit=request.top_k,
                include_similarity=True,
                sort=sort,
                projection={"*": 1} if self._include_vectors else None,
            )

            # topK applies before the threshold: fewer results may come back.
            kept = [
                r for r in records
                if r.get(SIMILARITY_FIELD) is not None
                and r[SIMILARITY_FIELD] >= request.similarity_threshold
            ]
            detail["returned"] = len(records)
            detail["kept"] = len(kept)
            return [from_backend(r, self._content_attribute) for r in kept]

    # ── audit ─────────────────────────────────────────────────────────

    @contextmanager
    def _audited(self, event: AuditEvent, **detail: Any) -> Iterator[dict[str, Any]]:
        request_id = str(uuid.uuid4())
        try:
            yield detail
        except VectorStoreError as exc:
            self._audit(
                request_id,
                AuditEvent.STORE_ERROR,
                {"operation": event.value, **exc.asdict()},
            )
            raise
        self._audit(request_id, event, detail)

    def _audit(self, request_id: str, event: AuditEvent, detail: dict[str, Any]) -> None:
        if self._audit_logger is None:
            return
        self._audit_logger.log(
            AuditEntry(
                request_id=request_id,
                event=event,
                collection=self._collection.name,
                detail=detail,
            )
        )


# ── construction helpers ─────────────────────────────────────────────


def _open_collection(client: DataAPIClient, config: AstraStoreConfig) -> DataAPICollection:
    name = config.collection.name
    descriptors = {d["name"]: d.get("options") or {} for d in client.list_collections()}
    logger.info("Connected to AstraDB. Available collections are %s", sorted(descriptors))

    if name in descriptors:
        collection = DataAPICollection(client, name, descriptors[name])
    elif config.initialize_schema:
        logger.info(
            "Collection %s does not exist and initialize_schema is set, creating it.", name
        )
        collection = client.create_collection(
            name, config.collection.to_options(config.content_attribute)
        )
    else:
        raise SchemaMissing(
            f"Collection {name} does not exist and flag 'initialize_schema' is false.",
            details={"collection": name, "namespace": config.namespace},
        )

    logger.info("Connected to AstraDB. Collection initialized %s", name)
    return collection


def _create_embedding_model(config: EmbeddingConfig) -> EmbeddingModel:
    """Create an embedding model from config."""
    if config.backend == "ollama":
        from astra_store.embedding_adapters.ollama import OllamaEmbeddingModel
        return OllamaEmbeddingModel(base_url=config.base_url, model=config.model)
    raise ValueError(f"Unknown embedding backend: {config.backend}")
