"""Ingestion workflow — chunking documents into the store, chunk lifecycle."""

from kbrag.pipeline.chunks import ChunkService
from kbrag.pipeline.ingest import IngestPipeline
from kbrag.pipeline.schemas import IngestResult

__all__ = [
    "ChunkService",
    "IngestPipeline",
    "IngestResult",
]
