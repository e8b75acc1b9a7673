"""Mapping between ``StoredDocument`` and Data API records.

Write side resolves an ``EmbeddingStrategy`` per document before the record
is built, so the precedence rule stays a pure function:

1. an explicit embedding is stored as-is;
2. otherwise a configured embedding model computes one from the content;
3. otherwise a vectorized collection receives the content as ``$vectorize``
   and computes the vector server-side;
4. otherwise the record carries no vector at all.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from contracts.codec import decode_value, encode_value
from contracts.embedding import EmbeddingModel
from contracts.errors import InvalidDocument
from contracts.vector_db import StoredDocument

ID_FIELD = "_id"
VECTOR_FIELD = "$vector"
VECTORIZE_FIELD = "$vectorize"
SIMILARITY_FIELD = "$similarity"

RESERVED_FIELDS = frozenset({ID_FIELD, VECTOR_FIELD, VECTORIZE_FIELD, SIMILARITY_FIELD})


class EmbeddingStrategy(str, Enum):
    EXPLICIT = "explicit"
    CLIENT_COMPUTED = "client_computed"
    SERVER_VECTORIZE = "server_vectorize"
    NONE = "none"


def resolve_embedding_strategy(
    doc: StoredDocument,
    *,
    has_embedding_model: bool,
    collection_is_vectorized: bool,
) -> EmbeddingStrategy:
    """Pick how *doc* gets its vector."""
    if doc.embedding is not None:
        return EmbeddingStrategy.EXPLICIT
    if doc.content is None:
        return EmbeddingStrategy.NONE
    if has_embedding_model:
        return EmbeddingStrategy.CLIENT_COMPUTED
    if collection_is_vectorized:
        return EmbeddingStrategy.SERVER_VECTORIZE
    return EmbeddingStrategy.NONE


def to_backend(
    doc: StoredDocument,
    *,
    embedding_model: EmbeddingModel | None,
    collection_is_vectorized: bool,
    content_attribute: str,
) -> dict[str, Any]:
    """Build the Data API record for *doc*.

    Raises ``InvalidDocument`` when a metadata key collides with the
    content attribute.
    """
    if content_attribute in doc.metadata:
        raise InvalidDocument(
            f"Metadata key '{content_attribute}' is reserved for document content",
            details={"id": doc.id, "key": content_attribute},
        )

    record: dict[str, Any] = {k: encode_value(v) for k, v in doc.metadata.items()}
    record[ID_FIELD] = doc.id

    if doc.content is not None:
        record[content_attribute] = doc.content

    strategy = resolve_embedding_strategy(
        doc,
        has_embedding_model=embedding_model is not None,
        collection_is_vectorized=collection_is_vectorized,
    )
    if strategy == EmbeddingStrategy.EXPLICIT:
        record[VECTOR_FIELD] = [float(x) for x in doc.embedding]
    elif strategy == EmbeddingStrategy.CLIENT_COMPUTED:
        record[VECTOR_FIELD] = [float(x) for x in embedding_model.embed(doc.content)]
    elif strategy == EmbeddingStrategy.SERVER_VECTORIZE:
        record[VECTORIZE_FIELD] = doc.content

    return record


def from_backend(record: dict[str, Any], content_attribute: str) -> StoredDocument:
    """Rebuild a ``StoredDocument`` from a Data API record."""
    metadata = {
        k: decode_value(v) for k, v in record.items()
        if k not in RESERVED_FIELDS and k != content_attribute
    }
    vector = record.get(VECTOR_FIELD)
    similarity = record.get(SIMILARITY_FIELD)
    return StoredDocument(
        id=str(record[ID_FIELD]),
        content=record.get(content_attribute),
        metadata=metadata,
        embedding=[float(x) for x in vector] if vector is not None else None,
        score=float(similarity) if similarity is not None else None,
    )
