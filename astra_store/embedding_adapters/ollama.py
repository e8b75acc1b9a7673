"""Ollama embedding model.

Proxies embedding requests to a local Ollama instance via httpx.
"""

from __future__ import annotations

import httpx

from contracts.embedding import EmbeddingModel


class OllamaEmbeddingModel(EmbeddingModel):
    """Synchronous adapter for the Ollama /api/embed endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout

    def embed(self, text: str) -> list[float]:
        """Generate the embedding of a single text via Ollama."""
        payload = {"model": self._model, "input": [text]}

        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(f"{self._base_url}/api/embed", json=payload)
        except httpx.ConnectError as exc:
            raise RuntimeError(
                f"Cannot connect to Ollama at {self._base_url}: {exc}"
            ) from exc

        if resp.status_code != 200:
            raise RuntimeError(
                f"Ollama embed request failed ({resp.status_code}): {resp.text}"
            )

        data = resp.json()
        return data["embeddings"][0]

    def model_name(self) -> str:
        """Return the name of the embedding model."""
        return self._model
