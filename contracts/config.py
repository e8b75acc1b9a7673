"""Store configuration (astrastore.yaml) schema as Pydantic models.

All models are frozen: a configuration is validated once when it is built
and never changes afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Collection ───────────────────────────────────────────────────────


class SimilarityMetric(str, Enum):
    COSINE = "cosine"
    DOT_PRODUCT = "dot_product"
    EUCLIDEAN = "euclidean"


class DefaultIdType(str, Enum):
    UUID = "uuid"
    UUIDV6 = "uuidv6"
    UUIDV7 = "uuidv7"
    OBJECT_ID = "objectId"


class VectorizeConfig(_Frozen):
    """Server-side embedding service attached to the collection."""

    provider: str
    model_name: str
    parameters: dict[str, Any] = {}


class CollectionConfig(_Frozen):
    name: str = Field(default="vector_store", min_length=1)
    dimension: int | None = Field(default=1536, gt=0)
    metric: SimilarityMetric = SimilarityMetric.COSINE
    indexing_deny: list[str] | None = None  # None: deny the content attribute
    default_id: DefaultIdType | None = None
    vectorize: VectorizeConfig | None = None

    def to_options(self, content_attribute: str) -> dict[str, Any]:
        """Render the ``createCollection`` options for the Data API."""
        vector: dict[str, Any] = {"metric": self.metric.value}
        if self.dimension is not None:
            vector["dimension"] = self.dimension
        if self.vectorize is not None:
            service: dict[str, Any] = {
                "provider": self.vectorize.provider,
                "modelName": self.vectorize.model_name,
            }
            if self.vectorize.parameters:
                service["parameters"] = dict(self.vectorize.parameters)
            vector["service"] = service

        deny = self.indexing_deny if self.indexing_deny is not None else [content_attribute]
        options: dict[str, Any] = {"vector": vector}
        if deny:
            options["indexing"] = {"deny": list(deny)}
        if self.default_id is not None:
            options["defaultId"] = {"type": self.default_id.value}
        return options


# ── HTTP client ──────────────────────────────────────────────────────


class HttpClientConfig(_Frozen):
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    read_timeout_seconds: float = Field(default=30.0, gt=0)
    proxy: str | None = None  # e.g. "http://localhost:8080"


# ── Bulk operations ──────────────────────────────────────────────────


class BulkConfig(_Frozen):
    concurrency: int = Field(default=8, gt=0)
    timeout_seconds: float = Field(default=30.0, gt=0)
    insert_chunk_size: int = Field(default=20, gt=0, le=100)


# ── Embedding + audit ────────────────────────────────────────────────


class EmbeddingConfig(_Frozen):
    backend: str = "ollama"
    model: str = "nomic-embed-text"
    base_url: str = "http://localhost:11434"


class AuditConfig(_Frozen):
    path: str = "audit.jsonl"


# ── Root config ──────────────────────────────────────────────────────


class AstraStoreConfig(_Frozen):
    """Everything needed to build an ``AstraVectorStore``.

    ``token`` and ``api_endpoint`` are required; building the model without
    them raises ``pydantic.ValidationError``.
    """

    token: str = Field(min_length=1, repr=False)
    api_endpoint: str = Field(min_length=1)
    namespace: str = Field(default="default_keyspace", min_length=1)
    content_attribute: str = Field(default="embed", min_length=1)
    initialize_schema: bool = True
    enable_logging: bool = False
    collection: CollectionConfig = CollectionConfig()
    http_client: HttpClientConfig = HttpClientConfig()
    bulk: BulkConfig = BulkConfig()
    embedding: EmbeddingConfig | None = None  # None: rely on vectorize or explicit vectors
    audit: AuditConfig | None = None
