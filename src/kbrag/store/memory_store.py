"""In-memory chunk store — local, zero infrastructure.

Keeps chunks and their embeddings in a dict. Vector scores are cosine
similarities computed with numpy; keyword scores are BM25 (``rank_bm25``)
over the candidate set for the query. Supports JSON persistence.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from datetime import datetime
from pathlib import Path

import numpy as np
from rank_bm25 import BM25Okapi

from kbrag.store.base import ChunkStore
from kbrag.store.schemas import CategoryFilter, ChunkCandidate, StoredChunk, utcnow

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens used for keyword scoring."""
    return _TOKEN_RE.findall(text.lower())


class MemoryChunkStore(ChunkStore):
    """Dict-backed chunk store with cosine + BM25 candidate scoring."""

    def __init__(self, dimension: int | None = None):
        self._dimension = dimension
        self._chunks: dict[int, StoredChunk] = {}
        self._embeddings: dict[int, np.ndarray] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_chunk(
        self,
        document_id: int,
        content: str,
        embedding: list[float],
        category: str = "",
        title: str = "",
    ) -> int:
        return self.bulk_create_chunks(document_id, [content], [embedding], category, title)[0]

    def bulk_create_chunks(
        self,
        document_id: int,
        contents: list[str],
        embeddings: list[list[float]],
        category: str = "",
        title: str = "",
    ) -> list[int]:
        if len(contents) != len(embeddings):
            raise ValueError(
                f"Got {len(contents)} contents but {len(embeddings)} embeddings"
            )
        if not contents:
            return []

        vectors = [self._to_vector(e) for e in embeddings]
        ids: list[int] = []

        with self._lock:
            for content, vector in zip(contents, vectors, strict=True):
                chunk_id = self._next_id
                self._next_id += 1
                self._chunks[chunk_id] = StoredChunk(
                    id=chunk_id,
                    document_id=document_id,
                    content=content,
                    category=category,
                    title=title,
                )
                self._embeddings[chunk_id] = vector
                ids.append(chunk_id)

        logger.info(
            "MemoryChunkStore added %d chunks for document %s (total: %d)",
            len(ids), document_id, self.count(),
        )
        return ids

    def get(self, chunk_id: int) -> StoredChunk | None:
        return self._chunks.get(chunk_id)

    def get_by_document(self, document_id: int) -> list[StoredChunk]:
        with self._lock:
            chunks = [c for c in self._chunks.values() if c.document_id == document_id]
        return sorted(chunks, key=lambda c: c.id)

    def update_content(self, chunk_id: int, content: str, embedding: list[float]) -> bool:
        vector = self._to_vector(embedding)
        with self._lock:
            chunk = self._chunks.get(chunk_id)
            if chunk is None:
                return False
            chunk.content = content
            chunk.updated_at = utcnow()
            self._embeddings[chunk_id] = vector
        return True

    def delete(self, chunk_id: int) -> bool:
        with self._lock:
            if chunk_id not in self._chunks:
                return False
            del self._chunks[chunk_id]
            del self._embeddings[chunk_id]
        return True

    def delete_document(self, document_id: int) -> list[int]:
        with self._lock:
            ids = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
            for cid in ids:
                del self._chunks[cid]
                del self._embeddings[cid]
        logger.info("MemoryChunkStore deleted %d chunks of document %s", len(ids), document_id)
        return ids

    def search_candidates(
        self,
        query_embedding: list[float],
        query_text: str = "",
        categories: str | list[str] | None = None,
        limit: int | None = None,
    ) -> list[ChunkCandidate]:
        category_filter = CategoryFilter.of(categories)

        with self._lock:
            chunks = [
                c for c in self._chunks.values()
                if category_filter is None or category_filter.matches(c.category)
            ]
            if not chunks:
                return []
            matrix = np.vstack([self._embeddings[c.id] for c in chunks])

        vector_scores = self._cosine(matrix, self._to_vector(query_embedding))
        keyword_scores = self._keyword_scores([c.content for c in chunks], query_text)

        candidates = [
            ChunkCandidate(
                chunk=chunk,
                vector_score=float(v),
                keyword_score=float(k),
            )
            for chunk, v, k in zip(chunks, vector_scores, keyword_scores, strict=True)
        ]

        if limit is not None and limit > 0:
            candidates.sort(key=lambda c: (-c.vector_score, c.chunk_id))
            candidates = candidates[:limit]

        logger.debug(
            "MemoryChunkStore scored %d candidates (categories=%s)",
            len(candidates), categories,
        )
        return candidates

    def count(self) -> int:
        return len(self._chunks)

    def save(self, path: str) -> None:
        """Save chunks and embeddings to ``<path>/chunks.json``."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        with self._lock:
            records = [
                {
                    "id": c.id,
                    "document_id": c.document_id,
                    "content": c.content,
                    "category": c.category,
                    "title": c.title,
                    "created_at": c.created_at.isoformat(),
                    "updated_at": c.updated_at.isoformat(),
                    "embedding": self._embeddings[c.id].tolist(),
                }
                for c in self._chunks.values()
            ]
            payload = {
                "dimension": self._dimension,
                "next_id": self._next_id,
                "records": records,
            }

        with open(p / "chunks.json", "w", encoding="utf-8") as f:
            json.dump(payload, f)

        logger.info("MemoryChunkStore saved to %s (%d chunks)", path, len(records))

    def load(self, path: str) -> None:
        """Load chunks and embeddings saved by :meth:`save`."""
        with open(Path(path) / "chunks.json", encoding="utf-8") as f:
            data = json.load(f)

        chunks: dict[int, StoredChunk] = {}
        embeddings: dict[int, np.ndarray] = {}
        for record in data["records"]:
            chunk_id = int(record["id"])
            chunks[chunk_id] = StoredChunk(
                id=chunk_id,
                document_id=int(record["document_id"]),
                content=record["content"],
                category=record.get("category", ""),
                title=record.get("title", ""),
                created_at=datetime.fromisoformat(record["created_at"]),
                updated_at=datetime.fromisoformat(record["updated_at"]),
            )
            embeddings[chunk_id] = np.asarray(record["embedding"], dtype=np.float32)

        with self._lock:
            self._dimension = data.get("dimension", self._dimension)
            self._chunks = chunks
            self._embeddings = embeddings
            self._next_id = data.get("next_id", max(chunks, default=0) + 1)

        logger.info("MemoryChunkStore loaded from %s (%d chunks)", path, self.count())

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _to_vector(self, embedding: list[float]) -> np.ndarray:
        vector = np.asarray(embedding, dtype=np.float32)
        if self._dimension is not None and vector.shape != (self._dimension,):
            raise ValueError(
                f"Embedding has shape {vector.shape}, expected ({self._dimension},)"
            )
        return vector

    @staticmethod
    def _cosine(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        # Zero-length vectors score 0 instead of NaN
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

    @staticmethod
    def _keyword_scores(contents: list[str], query_text: str) -> np.ndarray:
        query_tokens = tokenize(query_text)
        if not query_tokens:
            return np.zeros(len(contents))

        corpus = [tokenize(c) for c in contents]
        if not any(corpus):
            return np.zeros(len(contents))

        scores = np.asarray(BM25Okapi(corpus).get_scores(query_tokens), dtype=np.float64)
        # Okapi IDF goes negative for terms present in most documents
        return np.clip(scores, 0.0, None)
