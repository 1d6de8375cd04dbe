"""Shared fixtures for tests — synthetic documents, no network calls."""

from __future__ import annotations

import hashlib
import textwrap
from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from kbrag.chunking.schemas import ChunkMetadata, SourceDocument
from kbrag.embeddings.base import EmbeddingProvider
from kbrag.pipeline.chunks import ChunkService
from kbrag.statistics.memory_store import MemoryStatisticsStore
from kbrag.store.memory_store import MemoryChunkStore
from kbrag.store.schemas import ChunkCandidate, StoredChunk

DIM = 64

# ---------------------------------------------------------------------------
# Mock embedding provider
# ---------------------------------------------------------------------------


class MockEmbedder(EmbeddingProvider):
    """Deterministic hash embeddings. Identical text gets identical vectors."""

    def __init__(self, dim: int = DIM):
        self._dim = dim
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._hash_embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self._hash_embed(query)

    @property
    def dimension(self) -> int:
        return self._dim

    def _hash_embed(self, text: str) -> list[float]:
        h = hashlib.sha256(text.encode()).digest()
        vec = np.array([h[i % len(h)] / 255.0 for i in range(self._dim)], dtype=np.float32)
        vec /= np.linalg.norm(vec)
        return vec.tolist()


# ---------------------------------------------------------------------------
# Directory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory."""
    return tmp_path


# ---------------------------------------------------------------------------
# Synthetic document content
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_text() -> str:
    return textwrap.dedent("""\
        Password Reset Policy

        Employees can reset their password from the self-service portal. A reset
        link is sent to the registered email address. The link expires after
        thirty minutes. Accounts are locked after five failed attempts!

        Support Hours

        The help desk is open from eight to six on weekdays. Urgent incidents
        outside these hours go to the on-call engineer. Is your issue urgent?
        Call the hotline at extension 4400.
    """)


@pytest.fixture
def sample_document(sample_text: str) -> SourceDocument:
    return SourceDocument(
        id=1,
        text=sample_text,
        category="POLICY_IT",
        title="IT Handbook",
    )


@pytest.fixture
def sample_chunk_metadata() -> ChunkMetadata:
    return ChunkMetadata(document_id=1, category="POLICY_IT", title="IT Handbook")


# ---------------------------------------------------------------------------
# Stores and services
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder() -> MockEmbedder:
    return MockEmbedder(dim=DIM)


@pytest.fixture
def chunk_store() -> MemoryChunkStore:
    return MemoryChunkStore(dimension=DIM)


@pytest.fixture
def stats_store(chunk_store: MemoryChunkStore) -> MemoryStatisticsStore:
    return MemoryStatisticsStore(chunk_store=chunk_store)


@pytest.fixture
def chunk_service(
    embedder: MockEmbedder,
    chunk_store: MemoryChunkStore,
    stats_store: MemoryStatisticsStore,
) -> ChunkService:
    return ChunkService(embedder, chunk_store, stats_store, batch_size=2)


KB_CHUNKS = {
    (1, "EVENT_INDTEC", "Tech Expo"): [
        "The tech expo opens on Monday in hall three",
        "Registration for the tech expo closes on Friday",
    ],
    (2, "POLICY_HR", "Leave Policy"): [
        "Annual leave must be requested two weeks in advance",
        "Sick leave requires a doctor's note after three days",
        "Parental leave is sixteen weeks at full pay",
    ],
}


@pytest.fixture
def populated_store(embedder: MockEmbedder, chunk_store: MemoryChunkStore) -> MemoryChunkStore:
    """A store with two documents: chunk ids 1-2 (tech expo) and 3-5 (leave)."""
    for (doc_id, category, title), contents in KB_CHUNKS.items():
        chunk_store.bulk_create_chunks(
            doc_id, contents, embedder.embed_texts(contents), category=category, title=title,
        )
    return chunk_store


# ---------------------------------------------------------------------------
# Candidate factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_candidate() -> Callable[..., ChunkCandidate]:
    def _make(
        chunk_id: int,
        vector: float,
        keyword: float = 0.0,
        category: str = "",
    ) -> ChunkCandidate:
        chunk = StoredChunk(
            id=chunk_id,
            document_id=100 + chunk_id,
            content=f"chunk {chunk_id}",
            category=category,
        )
        return ChunkCandidate(chunk=chunk, vector_score=vector, keyword_score=keyword)

    return _make
