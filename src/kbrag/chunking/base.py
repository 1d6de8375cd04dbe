"""Chunker interface: text in, ordered chunk records out."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from kbrag.chunking.schemas import Chunk, ChunkMetadata, SourceDocument

logger = logging.getLogger(__name__)


class BaseChunker(ABC):
    """Split document text into retrievable pieces.

    Subclasses only decide where the pieces start and end (:meth:`split`);
    numbering and metadata are filled in here.
    """

    @abstractmethod
    def split(self, text: str) -> list[str]:
        """Return chunk texts in document order. Never raises."""

    def chunk(self, text: str, metadata: ChunkMetadata | None = None) -> list[Chunk]:
        meta = metadata or ChunkMetadata()
        texts = self.split(text)

        total = len(texts)
        chunks = [
            Chunk(
                text=t,
                metadata=meta,
                chunk_index=i,
                total_chunks=total,
                char_count=len(t),
            )
            for i, t in enumerate(texts)
        ]

        logger.info(
            "%s produced %d chunks from %d chars (document=%s)",
            self.strategy_name(), total, len(text), meta.document_id,
        )
        return chunks

    def chunk_document(self, document: SourceDocument) -> list[Chunk]:
        """Chunk a document, tagging every chunk with its id, category and title."""
        return self.chunk(document.text, ChunkMetadata.from_document(document))

    @classmethod
    def strategy_name(cls) -> str:
        return cls.__name__
