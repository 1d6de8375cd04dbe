"""Chunk storage — persistence and candidate scoring for retrieval."""

from kbrag.store.base import ChunkStore
from kbrag.store.factory import available_stores, get_chunk_store
from kbrag.store.schemas import CategoryFilter, ChunkCandidate, StoredChunk

__all__ = [
    "CategoryFilter",
    "ChunkCandidate",
    "ChunkStore",
    "StoredChunk",
    "available_stores",
    "get_chunk_store",
]
