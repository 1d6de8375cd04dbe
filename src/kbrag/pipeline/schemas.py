"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class IngestResult:
    """Result of document ingestion."""

    document_id: int
    chunks_created: int
    chunks_embedded: int
    chunks_stored: int
    chunk_ids: list[int] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
