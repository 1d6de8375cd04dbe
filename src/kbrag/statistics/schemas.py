"""Data models for per-chunk usage and quality statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from kbrag.evaluation.schemas import MetricsResult
from kbrag.store.schemas import utcnow


@dataclass
class ChunkStatistics:
    """Usage counter, last quality snapshot and freshness for one chunk.

    Metric fields stay ``None`` until the chunk is first evaluated.
    """

    chunk_id: int
    usage_count: int = 0
    last_used_at: datetime | None = None
    precision_at_k: float | None = None
    recall_at_k: float | None = None
    f1_at_k: float | None = None
    mrr: float | None = None
    map: float | None = None
    ndcg: float | None = None
    staleness_days: int | None = None
    last_refresh_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def has_metrics(self) -> bool:
        return self.f1_at_k is not None

    def apply_metrics(self, metrics: MetricsResult) -> None:
        """Overwrite all six metrics with a new snapshot."""
        self.precision_at_k = metrics.precision_at_k
        self.recall_at_k = metrics.recall_at_k
        self.f1_at_k = metrics.f1_at_k
        self.mrr = metrics.mrr
        self.map = metrics.map
        self.ndcg = metrics.ndcg


@dataclass(frozen=True)
class TopChunkByUsage:
    """A row of the most-used-chunks report."""

    chunk_id: int
    content: str
    document_title: str
    usage_count: int
    last_used_at: datetime | None = None
    f1_score: float | None = None
