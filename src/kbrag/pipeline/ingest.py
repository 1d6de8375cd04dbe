"""Ingestion pipeline — document → chunk → embed → store.

This is the main entry point for adding documents to the knowledge base.
"""

from __future__ import annotations

import logging

from kbrag.chunking.schemas import SourceDocument
from kbrag.chunking.text_chunker import TextChunker
from kbrag.pipeline.chunks import ChunkService
from kbrag.pipeline.schemas import IngestResult

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Orchestrates document ingestion: chunk → embed → store."""

    def __init__(
        self,
        chunk_service: ChunkService,
        chunker: TextChunker | None = None,
    ):
        self.chunk_service = chunk_service
        self.chunker = chunker or TextChunker()

    def ingest_document(
        self,
        document: SourceDocument,
        chunk_size: int | None = None,
        overlap: int | None = None,
    ) -> IngestResult:
        """Ingest a single document into the chunk store.

        Args:
            document: The document to chunk. It is not modified.
            chunk_size: Per-call override of the chunker's size.
            overlap: Per-call override of the chunker's overlap.

        Returns:
            An ``IngestResult`` with counts and warnings.
        """
        chunker = self.chunker
        if chunk_size is not None or overlap is not None:
            chunker = TextChunker(
                chunk_size=chunk_size if chunk_size is not None else self.chunker.chunk_size,
                overlap=overlap if overlap is not None else self.chunker.overlap,
            )

        # Step 1: Chunk
        chunks = chunker.chunk_document(document)
        contents = [c.text for c in chunks]
        if not contents:
            logger.warning("Document %d produced no chunks", document.id)
            return IngestResult(
                document_id=document.id,
                chunks_created=0,
                chunks_embedded=0,
                chunks_stored=0,
                warnings=["Document contains no text to chunk"],
            )

        # Step 2-3: Embed in batches and store
        ids = self.chunk_service.bulk_create(
            document.id,
            contents,
            category=document.category,
            title=document.title,
        )

        logger.info(
            "Ingested document %d: %d chunks → %d stored",
            document.id,
            len(contents),
            len(ids),
        )

        return IngestResult(
            document_id=document.id,
            chunks_created=len(contents),
            chunks_embedded=len(contents),
            chunks_stored=len(ids),
            chunk_ids=ids,
        )
