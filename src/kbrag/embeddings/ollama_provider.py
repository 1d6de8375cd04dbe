"""Embeddings from a local Ollama server.

Chunk texts go out in one ``/api/embed`` request. Servers without that
endpoint get one legacy ``/api/embeddings`` request per text.
"""

from __future__ import annotations

import logging

import httpx

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import EmbeddingError

logger = logging.getLogger(__name__)

OLLAMA_URL = "http://localhost:11434"
OLLAMA_MODEL = "nomic-embed-text"
OLLAMA_DIMENSION = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Vectors from an Ollama embedding model.

    Every returned vector must have ``dimension`` entries, otherwise an
    :class:`EmbeddingError` is raised.
    """

    def __init__(
        self,
        model: str = OLLAMA_MODEL,
        base_url: str = OLLAMA_URL,
        dimension: int = OLLAMA_DIMENSION,
        timeout: float = 60.0,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout)

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        vectors = self._embed_batch(texts)
        if vectors is None:
            vectors = [self._embed_legacy(text) for text in texts]
        return [self._checked(v) for v in vectors]

    def embed_query(self, query: str) -> list[float]:
        return self._checked(self._embed_legacy(query))

    def _embed_batch(self, texts: list[str]) -> list[list[float]] | None:
        """Return ``None`` when the server has no usable ``/api/embed``."""
        try:
            resp = self._client.post("/api/embed", json={"model": self.model, "input": texts})
            resp.raise_for_status()
            return resp.json()["embeddings"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.debug("Ollama /api/embed unavailable for %s (%s)", self.model, exc)
            return None

    def _embed_legacy(self, text: str) -> list[float]:
        try:
            resp = self._client.post("/api/embeddings", json={"model": self.model, "prompt": text})
            resp.raise_for_status()
            return resp.json()["embedding"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Ollama embedding failed (model=%s): %s", self.model, exc)
            raise EmbeddingError(f"Ollama embedding failed: {exc}") from exc

    def _checked(self, vector: list[float]) -> list[float]:
        if len(vector) != self._dimension:
            raise EmbeddingError(
                f"Ollama model {self.model} returned {len(vector)} dimensions, "
                f"expected {self._dimension}"
            )
        return vector
