"""Sentence-aware text chunking with overlap."""

from kbrag.chunking.base import BaseChunker
from kbrag.chunking.schemas import Chunk, ChunkMetadata, SourceDocument
from kbrag.chunking.text_chunker import TextChunker, chunk_text, split_sentences

__all__ = [
    "BaseChunker",
    "Chunk",
    "ChunkMetadata",
    "SourceDocument",
    "TextChunker",
    "chunk_text",
    "split_sentences",
]
