"""Data models for documents and chunks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SourceDocument:
    """A document as handed over by ingestion. Chunking never mutates it."""

    id: int
    text: str
    category: str = ""
    title: str = ""
    published_at: datetime | None = None


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata carried by each chunk — stored alongside embeddings."""

    document_id: int | None = None
    category: str = ""
    title: str = ""

    @classmethod
    def from_document(cls, document: SourceDocument) -> ChunkMetadata:
        return cls(document_id=document.id, category=document.category, title=document.title)


@dataclass
class Chunk:
    """A single retrievable piece of a document."""

    text: str
    metadata: ChunkMetadata
    chunk_index: int = 0
    total_chunks: int = 0
    char_count: int = 0
