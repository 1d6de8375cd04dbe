"""Data models for retrieval quality evaluation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class RetrievedChunk:
    """One ranked result annotated with a relevance judgment."""

    chunk_id: int
    similarity_score: float
    position: int  # 1-based
    is_relevant: bool


@dataclass(frozen=True)
class MetricsResult:
    """The six retrieval quality metrics for one evaluation."""

    precision_at_k: float = 0.0
    recall_at_k: float = 0.0
    f1_at_k: float = 0.0
    mrr: float = 0.0
    map: float = 0.0
    ndcg: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass
class EvalScenario:
    """A query with ground-truth relevant chunks."""

    id: str
    query: str
    relevant_chunk_ids: list[int] = field(default_factory=list)
    category_filter: list[str] = field(default_factory=list)
    total_relevant: int | None = None
    tags: list[str] = field(default_factory=list)

    @property
    def expected_relevant(self) -> int:
        if self.total_relevant is not None:
            return self.total_relevant
        return len(set(self.relevant_chunk_ids))


@dataclass
class EvalResult:
    """Result of evaluating a single scenario."""

    scenario_id: str
    query: str
    retrieved_chunk_ids: list[int] = field(default_factory=list)
    metrics: MetricsResult = field(default_factory=MetricsResult)
