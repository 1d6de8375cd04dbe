"""Data models for chunk store operations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoredChunk:
    """A persisted chunk. ``category`` and ``title`` come from its document."""

    id: int
    document_id: int
    content: str
    category: str = ""
    title: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ChunkCandidate:
    """A chunk with its raw scores for one query.

    ``vector_score`` is a cosine similarity in [-1, 1]; ``keyword_score`` is
    a non-negative lexical relevance score, comparable only within the same
    query.
    """

    chunk: StoredChunk
    vector_score: float
    keyword_score: float = 0.0

    @property
    def chunk_id(self) -> int:
        return self.chunk.id

    @property
    def category(self) -> str:
        return self.chunk.category


@dataclass
class CategoryFilter:
    """Filter chunks by document category.

    A category matches when it contains any token, case-insensitively, so a
    broad tag like ``INDTEC`` also matches ``EVENT_INDTEC``. An empty filter
    matches everything.
    """

    tokens: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.tokens = [t.strip().lower() for t in self.tokens if t and t.strip()]

    @classmethod
    def of(cls, tokens: str | Iterable[str] | None) -> CategoryFilter | None:
        """Build a filter, or ``None`` when there is nothing to filter on.

        A plain string is a single token.
        """
        if not tokens:
            return None
        if isinstance(tokens, str):
            tokens = [tokens]
        flt = cls(tokens=sorted(tokens))
        return flt if flt.tokens else None

    def matches(self, category: str | None) -> bool:
        if not self.tokens:
            return True
        lowered = (category or "").lower()
        return any(token in lowered for token in self.tokens)
