"""Embedding provider interface used for chunk ingestion and query search."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbrag.errors import EmbeddingError


class EmbeddingProvider(ABC):
    """Turns chunk texts and queries into fixed-length vectors.

    Implementations raise :class:`kbrag.errors.EmbeddingError` when the
    underlying model or service fails.
    """

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed chunk texts, one vector per text in input order."""

    @abstractmethod
    def embed_query(self, query: str) -> list[float]:
        """Embed a search query."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this provider returns."""

    def embed_in_batches(self, texts: list[str], batch_size: int = 32) -> list[list[float]]:
        """Embed ``texts`` with at most ``batch_size`` texts per provider call.

        Raises:
            EmbeddingError: The provider returned a different number of
                vectors than texts for some batch.
        """
        batch_size = max(batch_size, 1)
        vectors: list[list[float]] = []
        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            embedded = self.embed_texts(batch)
            if len(embedded) != len(batch):
                raise EmbeddingError(
                    f"{self.provider_name()} returned {len(embedded)} vectors for {len(batch)} texts"
                )
            vectors.extend(embedded)
        return vectors

    @classmethod
    def provider_name(cls) -> str:
        return cls.__name__
