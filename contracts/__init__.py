"""Shared contracts: data models and interfaces for the vector store."""

from contracts.audit import AuditEntry, AuditEvent, AuditLogger
from contracts.config import (
    AstraStoreConfig,
    AuditConfig,
    BulkConfig,
    CollectionConfig,
    EmbeddingConfig,
    HttpClientConfig,
    SimilarityMetric,
    VectorizeConfig,
)
from contracts.embedding import EmbeddingModel
from contracts.errors import (
    BackendError,
    BackendReadError,
    BackendWriteError,
    BulkInterrupted,
    BulkOperationError,
    BulkTimeout,
    FilterTranslationError,
    InvalidDocument,
    SchemaMissing,
    UnsupportedFilterShape,
    UnsupportedOperandType,
    UnsupportedValueType,
    VectorStoreError,
)
from contracts.filter import Expression, ExpressionType, Group, Key, Value
from contracts.vector_db import DeleteResult, SearchRequest, StoredDocument, VectorStore

__all__ = [
    # audit
    "AuditEntry",
    "AuditEvent",
    "AuditLogger",
    # config
    "AstraStoreConfig",
    "AuditConfig",
    "BulkConfig",
    "CollectionConfig",
    "EmbeddingConfig",
    "HttpClientConfig",
    "SimilarityMetric",
    "VectorizeConfig",
    # embedding
    "EmbeddingModel",
    # errors
    "BackendError",
    "BackendReadError",
    "BackendWriteError",
    "BulkInterrupted",
    "BulkOperationError",
    "BulkTimeout",
    "FilterTranslationError",
    "InvalidDocument",
    "SchemaMissing",
    "UnsupportedFilterShape",
    "UnsupportedOperandType",
    "UnsupportedValueType",
    "VectorStoreError",
    # filter
    "Expression",
    "ExpressionType",
    "Group",
    "Key",
    "Value",
    # vector store
    "DeleteResult",
    "SearchRequest",
    "StoredDocument",
    "VectorStore",
]
