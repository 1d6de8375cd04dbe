"""Chunk service — create, edit and delete chunks with their embeddings.

Every content write goes through the embedding provider so stored vectors
always match stored text. Statistics rows follow the chunk lifecycle.
"""

from __future__ import annotations

import logging

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import ChunkNotFoundError, StorageError
from kbrag.statistics.base import StatisticsStore
from kbrag.store.base import ChunkStore
from kbrag.store.schemas import StoredChunk

logger = logging.getLogger(__name__)


class ChunkService:
    """Chunk lifecycle on top of a chunk store and an embedding provider."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        chunk_store: ChunkStore,
        stats_store: StatisticsStore | None = None,
        batch_size: int = 32,
    ):
        self.embedding_provider = embedding_provider
        self.chunk_store = chunk_store
        self.stats_store = stats_store
        self.batch_size = batch_size

    def get(self, chunk_id: int) -> StoredChunk:
        chunk = self.chunk_store.get(chunk_id)
        if chunk is None:
            logger.warning("Chunk not found: %d", chunk_id)
            raise ChunkNotFoundError(chunk_id)
        return chunk

    def get_by_document(self, document_id: int) -> list[StoredChunk]:
        return self.chunk_store.get_by_document(document_id)

    def create(
        self,
        document_id: int,
        content: str,
        category: str = "",
        title: str = "",
    ) -> int:
        """Embed and store a single chunk. Returns the new chunk id."""
        embedding = self.embedding_provider.embed_texts([content])[0]
        try:
            chunk_id = self.chunk_store.create_chunk(
                document_id, content, embedding, category=category, title=title,
            )
        except ValueError as exc:
            raise StorageError(f"Chunk creation failed for document {document_id}: {exc}") from exc

        if self.stats_store is not None:
            self.stats_store.ensure(chunk_id)
        return chunk_id

    def bulk_create(
        self,
        document_id: int,
        contents: list[str],
        category: str = "",
        title: str = "",
    ) -> list[int]:
        """Embed contents in batches and store them in order."""
        if not contents:
            return []

        embeddings = self.embedding_provider.embed_in_batches(contents, self.batch_size)

        try:
            ids = self.chunk_store.bulk_create_chunks(
                document_id, contents, embeddings, category=category, title=title,
            )
        except ValueError as exc:
            raise StorageError(
                f"Bulk chunk creation failed for document {document_id}: {exc}"
            ) from exc

        if self.stats_store is not None:
            for chunk_id in ids:
                self.stats_store.ensure(chunk_id)

        logger.info("Created %d chunks for document %d", len(ids), document_id)
        return ids

    def update_content(self, chunk_id: int, content: str) -> StoredChunk:
        """Replace a chunk's content and re-embed it."""
        self.get(chunk_id)
        embedding = self.embedding_provider.embed_texts([content])[0]

        try:
            updated = self.chunk_store.update_content(chunk_id, content, embedding)
        except ValueError as exc:
            raise StorageError(f"Chunk update failed for {chunk_id}: {exc}") from exc
        if not updated:
            raise ChunkNotFoundError(chunk_id)

        if self.stats_store is not None:
            self.stats_store.mark_refreshed(chunk_id)
        return self.get(chunk_id)

    def delete(self, chunk_id: int) -> None:
        if not self.chunk_store.delete(chunk_id):
            raise ChunkNotFoundError(chunk_id)
        if self.stats_store is not None:
            self.stats_store.delete(chunk_id)

    def delete_document(self, document_id: int) -> list[int]:
        """Delete every chunk of a document along with their statistics."""
        ids = self.chunk_store.delete_document(document_id)
        if self.stats_store is not None:
            for chunk_id in ids:
                self.stats_store.delete(chunk_id)
        return ids
