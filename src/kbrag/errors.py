"""Workflow errors raised around the core (embedding, storage, lookups).

Chunking, ranking and metric computation never raise; these exceptions
belong to the collaborators that feed them.
"""

from __future__ import annotations


class KnowledgeBaseError(Exception):
    """Base class for knowledge-base workflow failures."""

    code = "ERR_INTERNAL"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class EmbeddingError(KnowledgeBaseError):
    """The embedding provider failed to produce a vector."""

    code = "ERR_EMBEDDING_GENERATION"


class StorageError(KnowledgeBaseError):
    """The chunk or statistics store rejected an operation."""

    code = "ERR_INTERNAL_DB"


class ChunkNotFoundError(KnowledgeBaseError, KeyError):
    """No chunk exists for the requested identifier."""

    code = "ERR_CHUNK_NOT_FOUND"

    def __init__(self, chunk_id: int):
        super().__init__(f"Chunk not found: {chunk_id}")
        self.chunk_id = chunk_id

    def __str__(self) -> str:
        return self.args[0]
