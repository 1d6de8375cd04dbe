"""Abstract base class for chunk stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbrag.store.schemas import ChunkCandidate, StoredChunk


class ChunkStore(ABC):
    """Interface for chunk storage backends with vector + keyword search."""

    @abstractmethod
    def create_chunk(
        self,
        document_id: int,
        content: str,
        embedding: list[float],
        category: str = "",
        title: str = "",
    ) -> int:
        """Insert one chunk and return its identifier."""

    @abstractmethod
    def bulk_create_chunks(
        self,
        document_id: int,
        contents: list[str],
        embeddings: list[list[float]],
        category: str = "",
        title: str = "",
    ) -> list[int]:
        """Insert chunks for a document in order.

        Returns:
            Identifiers of the created chunks, same order as ``contents``.
        """

    @abstractmethod
    def get(self, chunk_id: int) -> StoredChunk | None:
        """Return a chunk, or ``None`` when it does not exist."""

    @abstractmethod
    def get_by_document(self, document_id: int) -> list[StoredChunk]:
        """Return a document's chunks in creation order."""

    @abstractmethod
    def update_content(self, chunk_id: int, content: str, embedding: list[float]) -> bool:
        """Replace a chunk's content and embedding.

        Returns:
            ``False`` when the chunk does not exist.
        """

    @abstractmethod
    def delete(self, chunk_id: int) -> bool:
        """Delete one chunk. Returns ``False`` when it does not exist."""

    @abstractmethod
    def delete_document(self, document_id: int) -> list[int]:
        """Delete every chunk of a document and return their identifiers."""

    @abstractmethod
    def search_candidates(
        self,
        query_embedding: list[float],
        query_text: str = "",
        categories: str | list[str] | None = None,
        limit: int | None = None,
    ) -> list[ChunkCandidate]:
        """Score stored chunks against a query.

        Args:
            query_embedding: The query vector.
            query_text: Raw query text used for keyword scoring.
            categories: Optional category tokens to pre-filter on.
            limit: Maximum candidates by vector score; ``None`` returns all.

        Returns:
            Candidates with both raw scores, unranked.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of chunks in the store."""

    def save(self, path: str) -> None:
        """Persist the store to disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support save()")

    def load(self, path: str) -> None:
        """Load the store from disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support load()")

    @classmethod
    def store_name(cls) -> str:
        """Return human-readable store name."""
        return cls.__name__
