"""Error taxonomy for the vector store.

Every error carries a machine-readable ``code`` and a JSON-safe ``details``
mapping so callers and the audit trail can record failures uniformly.
"""

from __future__ import annotations

from typing import Any, Mapping


class VectorStoreError(Exception):
    """Base exception for all vector store errors."""

    default_code = "VECTOR_STORE_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        code: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = dict(details or {})

    def asdict(self) -> dict[str, Any]:
        """Convert the error to a dict for serialization and logging."""
        return {
            "message": self.message,
            "code": self.code,
            "details": {k: self.details[k] for k in sorted(self.details)},
        }


# ── Filter translation ───────────────────────────────────────────────


class FilterTranslationError(VectorStoreError):
    """A filter expression cannot be expressed against the backend."""

    default_code = "FILTER_TRANSLATION"


class UnsupportedFilterShape(FilterTranslationError):
    """A Group (parenthesis) operand was found in the expression tree."""

    default_code = "UNSUPPORTED_FILTER_SHAPE"


class UnsupportedValueType(FilterTranslationError):
    """An operator was applied to a value type it is not defined for."""

    default_code = "UNSUPPORTED_VALUE_TYPE"


class UnsupportedOperandType(FilterTranslationError):
    """An operand has the wrong node kind for its position in the tree."""

    default_code = "UNSUPPORTED_OPERAND_TYPE"


# ── Bulk operations ──────────────────────────────────────────────────


class BulkOperationError(VectorStoreError):
    """A bulk operation did not confirm every item."""

    default_code = "BULK_OPERATION"

    def __init__(self, message: str, *, requested: int, **kwargs: Any) -> None:
        details = dict(kwargs.pop("details", None) or {})
        details.setdefault("requested", requested)
        super().__init__(message, details=details, **kwargs)
        self.requested = requested


class BulkTimeout(BulkOperationError):
    """The deadline elapsed before every task of a bulk operation finished."""

    default_code = "BULK_TIMEOUT"


class BulkInterrupted(BulkOperationError):
    """The thread waiting on a bulk operation was interrupted."""

    default_code = "BULK_INTERRUPTED"


# ── Remote backend ───────────────────────────────────────────────────


class BackendError(VectorStoreError):
    """The remote database rejected a command or could not be reached."""

    default_code = "BACKEND_ERROR"


class BackendWriteError(BackendError):
    """A mutation (insert, delete, create) failed remotely."""

    default_code = "BACKEND_WRITE_ERROR"


class BackendReadError(BackendError):
    """A read (find, list) failed remotely."""

    default_code = "BACKEND_READ_ERROR"


class InvalidDocument(VectorStoreError):
    """A document cannot be mapped to a Data API record."""

    default_code = "INVALID_DOCUMENT"


class SchemaMissing(VectorStoreError):
    """The target collection does not exist and may not be created."""

    default_code = "SCHEMA_MISSING"
