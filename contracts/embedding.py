"""Embedding model contracts.

Defines the abstract interface for embedding generation backends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingModel(ABC):
    """Abstract base class for embedding generation backends."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Generate a fixed-length embedding for a single text."""
        ...

    @abstractmethod
    def model_name(self) -> str:
        """Return the name of the embedding model."""
        ...
