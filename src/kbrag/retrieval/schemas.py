"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from kbrag.config import RetrievalSettings
from kbrag.store.schemas import ChunkCandidate, StoredChunk


class SearchType(StrEnum):
    """Which score drives the ranking."""

    VECTOR = "vector"
    HYBRID = "hybrid"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class RankedChunk:
    """A candidate with its blended score and 1-based rank."""

    candidate: ChunkCandidate
    combined_score: float
    rank: int

    @property
    def chunk(self) -> StoredChunk:
        return self.candidate.chunk

    @property
    def chunk_id(self) -> int:
        return self.candidate.chunk.id

    @property
    def vector_score(self) -> float:
        return self.candidate.vector_score

    @property
    def keyword_score(self) -> float:
        return self.candidate.keyword_score


@dataclass
class RetrievalConfig:
    """Configuration for a retrieval operation."""

    limit: int = 10
    min_similarity: float = 0.0
    keyword_weight: float = 0.3
    search_type: SearchType = SearchType.HYBRID
    category_filter: list[str] | None = None
    candidate_limit: int | None = None

    @classmethod
    def from_settings(cls, settings: RetrievalSettings, **overrides) -> RetrievalConfig:
        values = {
            "limit": settings.limit,
            "min_similarity": settings.min_similarity,
            "keyword_weight": settings.keyword_weight,
            "search_type": SearchType(settings.search_type),
        }
        values.update(overrides)
        return cls(**values)

    @property
    def effective_keyword_weight(self) -> float:
        if self.search_type is SearchType.VECTOR:
            return 0.0
        if self.search_type is SearchType.KEYWORD:
            return 1.0
        return self.keyword_weight


@dataclass
class RetrievalResult:
    """Result of a retrieval operation."""

    query: str
    results: list[RankedChunk] = field(default_factory=list)
    total_candidates: int = 0
    search_type: SearchType = SearchType.HYBRID
