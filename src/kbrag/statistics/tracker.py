"""Statistics tracker — turns retrievals into usage counts and quality snapshots.

After each retrieval the ranked list is judged against a similarity
threshold, the six quality metrics are computed once for the whole list,
every returned chunk gets a usage increment, and relevant chunks in the top
positions receive the metrics snapshot. Failures are logged, never raised:
a statistics write must not break the retrieval that triggered it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from kbrag.config import EvaluationSettings
from kbrag.errors import KnowledgeBaseError
from kbrag.evaluation.retrieval_metrics import (
    RAGQualityMetrics,
    calculate_staleness,
    judge_by_threshold,
)
from kbrag.evaluation.schemas import MetricsResult
from kbrag.retrieval.schemas import RankedChunk
from kbrag.statistics.base import StatisticsStore
from kbrag.store.schemas import StoredChunk

logger = logging.getLogger(__name__)

DEFAULT_RELEVANCE_THRESHOLD = 0.75
DEFAULT_UPDATE_TOP_N = 3


class StatisticsTracker:
    """Persist usage and quality statistics for retrieved chunks."""

    def __init__(
        self,
        store: StatisticsStore,
        relevance_threshold: float = DEFAULT_RELEVANCE_THRESHOLD,
        update_top_n: int = DEFAULT_UPDATE_TOP_N,
        metrics: RAGQualityMetrics | None = None,
    ):
        self.store = store
        self.relevance_threshold = relevance_threshold
        self.update_top_n = update_top_n
        self.metrics = metrics or RAGQualityMetrics()

    @classmethod
    def from_settings(cls, store: StatisticsStore, settings: EvaluationSettings) -> StatisticsTracker:
        return cls(
            store,
            relevance_threshold=settings.relevance_threshold,
            update_top_n=settings.update_top_n,
        )

    def record_retrieval(self, ranked: Sequence[RankedChunk]) -> MetricsResult:
        """Update statistics for one retrieval and return its metrics."""
        judged = judge_by_threshold(ranked, self.relevance_threshold)
        # Without ground truth the relevant items seen here are all we know of
        total_relevant = sum(1 for j in judged if j.is_relevant)
        result = self.metrics.calculate_all_metrics(judged, total_relevant)

        updated = 0
        for item in judged:
            try:
                self.store.increment_usage(item.chunk_id)
                if item.position <= self.update_top_n and item.is_relevant:
                    self.store.update_quality_metrics(item.chunk_id, result)
                    updated += 1
            except KnowledgeBaseError as exc:
                logger.warning(
                    "Statistics update failed for chunk %d (%s): %s",
                    item.chunk_id, exc.code, exc,
                )

        logger.debug(
            "Recorded retrieval of %d chunks (relevant=%d, metrics updated=%d, f1=%.3f)",
            len(judged), total_relevant, updated, result.f1_at_k,
        )
        return result

    def refresh_staleness(
        self,
        chunks: Iterable[StoredChunk],
        published_at: Mapping[int, datetime | None] | None = None,
        now: datetime | None = None,
    ) -> dict[int, int]:
        """Recompute staleness for chunks.

        Args:
            chunks: Chunks to refresh.
            published_at: Publish date per document id.
            now: Reference time (defaults to the current UTC time).

        Returns:
            Map of chunk id to staleness in days.
        """
        published_at = published_at or {}
        staleness: dict[int, int] = {}

        for chunk in chunks:
            stats = self.store.get_by_chunk(chunk.id)
            last_refresh = stats.last_refresh_at if stats and stats.last_refresh_at else chunk.updated_at
            days = calculate_staleness(last_refresh, published_at.get(chunk.document_id), now)
            try:
                self.store.update_staleness(chunk.id, days)
            except KnowledgeBaseError as exc:
                logger.warning("Staleness update failed for chunk %d: %s", chunk.id, exc)
                continue
            staleness[chunk.id] = days

        logger.info("Refreshed staleness for %d chunks", len(staleness))
        return staleness
