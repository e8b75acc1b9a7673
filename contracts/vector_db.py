"""Vector store contracts.

Defines the abstract interface for vector store backends and the shared
data models for documents, search requests, and delete results.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from contracts.codec import normalize_temporal
from contracts.filter import Expression


# ── Data models ──────────────────────────────────────────────────────


class StoredDocument(BaseModel):
    """A document stored in (or read back from) a vector collection."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str | None = None
    metadata: dict[str, Any] = {}
    embedding: list[float] | None = None
    score: float | None = None  # similarity, only set on search results

    @field_validator("metadata")
    @classmethod
    def normalize_dates(cls, v: dict[str, Any]) -> dict[str, Any]:
        # Temporal values are held as aware UTC datetimes at millisecond precision.
        return {k: normalize_temporal(value) for k, value in v.items()}


class SearchRequest(BaseModel):
    """Parameters of a similarity search."""

    query: str | None = None
    top_k: int = Field(default=4, gt=0)
    similarity_threshold: float = Field(default=0.0, ge=0.0, le=1.0)
    filter_expression: Expression | None = None


class DeleteResult(BaseModel):
    """Outcome of a completed bulk delete."""

    requested: int
    deleted: int = 0
    elapsed_ms: float = 0.0


# ── Abstract store ───────────────────────────────────────────────────


class VectorStore(ABC):
    """Abstract base class for vector store backends."""

    @abstractmethod
    def add(self, documents: list[StoredDocument]) -> None:
        """Store documents, computing embeddings where required."""
        ...

    @abstractmethod
    def delete(self, ids: list[str]) -> DeleteResult:
        """Delete documents by ID."""
        ...

    @abstractmethod
    def similarity_search(self, request: SearchRequest) -> list[StoredDocument]:
        """Return documents most similar to the request query."""
        ...

    def similarity_search_by_text(
        self, query: str, top_k: int = 4
    ) -> list[StoredDocument]:
        """Shortcut for a plain text query without threshold or filter."""
        return self.similarity_search(SearchRequest(query=query, top_k=top_k))
