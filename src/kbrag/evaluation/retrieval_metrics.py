"""Retrieval quality metrics — precision@k, recall@k, F1@k, MRR, MAP, nDCG.

Every metric is total: empty input, no relevant items and zero
denominators all yield 0.0. "Nothing relevant retrieved" is a valid
measurement, not an error.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from kbrag.evaluation.schemas import MetricsResult, RetrievedChunk
from kbrag.retrieval.schemas import RankedChunk

_SECONDS_PER_DAY = 24 * 3600


def _position(chunk: RetrievedChunk, index: int) -> int:
    """The chunk's own 1-based position, or its list index if unset."""
    return chunk.position if chunk.position > 0 else index


def _gain(chunk: RetrievedChunk) -> float:
    return chunk.similarity_score if chunk.is_relevant else 0.0


class RAGQualityMetrics:
    """Compute IR metrics over a ranked, relevance-annotated result list.

    The list is treated as the top-K, so K is its length.
    """

    def calculate_precision_at_k(self, chunks: Sequence[RetrievedChunk]) -> float:
        """Relevant items in the list / list length."""
        if not chunks:
            return 0.0
        relevant = sum(1 for c in chunks if c.is_relevant)
        return relevant / len(chunks)

    def calculate_recall_at_k(self, chunks: Sequence[RetrievedChunk], total_relevant: int) -> float:
        """Relevant items in the list / relevant items in the collection."""
        if total_relevant <= 0:
            return 0.0
        relevant = sum(1 for c in chunks if c.is_relevant)
        return relevant / total_relevant

    def calculate_f1_at_k(self, precision: float, recall: float) -> float:
        if precision + recall == 0:
            return 0.0
        return 2 * precision * recall / (precision + recall)

    def calculate_mrr(self, chunks: Sequence[RetrievedChunk]) -> float:
        """Reciprocal of the first relevant item's position."""
        for index, chunk in enumerate(chunks, start=1):
            if chunk.is_relevant:
                return 1.0 / _position(chunk, index)
        return 0.0

    def calculate_map(self, chunks: Sequence[RetrievedChunk]) -> float:
        """Sum of precision at each relevant position, divided by list length."""
        if not chunks:
            return 0.0

        relevant_so_far = 0
        precision_sum = 0.0
        for i, chunk in enumerate(chunks, start=1):
            if chunk.is_relevant:
                relevant_so_far += 1
                precision_sum += relevant_so_far / i

        if relevant_so_far == 0:
            return 0.0
        return precision_sum / len(chunks)

    def calculate_ndcg(self, chunks: Sequence[RetrievedChunk]) -> float:
        """DCG over the list divided by DCG of the ideal ordering.

        Gain is the similarity score of relevant items and 0 otherwise.
        """
        if not chunks:
            return 0.0

        dcg = sum(
            _gain(c) / math.log2(_position(c, i) + 1)
            for i, c in enumerate(chunks, start=1)
        )

        # sorted() is stable, so equal gains keep their relative order
        ideal = sorted((_gain(c) for c in chunks), reverse=True)
        idcg = sum(g / math.log2(i + 1) for i, g in enumerate(ideal, start=1))

        if idcg == 0:
            return 0.0
        return dcg / idcg

    def calculate_all_metrics(
        self,
        chunks: Sequence[RetrievedChunk],
        total_relevant: int,
    ) -> MetricsResult:
        precision = self.calculate_precision_at_k(chunks)
        recall = self.calculate_recall_at_k(chunks, total_relevant)

        return MetricsResult(
            precision_at_k=precision,
            recall_at_k=recall,
            f1_at_k=self.calculate_f1_at_k(precision, recall),
            mrr=self.calculate_mrr(chunks),
            map=self.calculate_map(chunks),
            ndcg=self.calculate_ndcg(chunks),
        )


# ---------------------------------------------------------------------------
# Relevance judgments
# ---------------------------------------------------------------------------


def estimate_relevance(similarity_score: float, threshold: float) -> bool:
    """Heuristic judgment when no feedback exists: score at or above threshold."""
    return similarity_score >= threshold


def judge_by_threshold(ranked: Iterable[RankedChunk], threshold: float) -> list[RetrievedChunk]:
    """Annotate ranked results using :func:`estimate_relevance` on vector scores."""
    return [
        RetrievedChunk(
            chunk_id=r.chunk_id,
            similarity_score=r.vector_score,
            position=r.rank,
            is_relevant=estimate_relevance(r.vector_score, threshold),
        )
        for r in ranked
    ]


def judge_by_ground_truth(
    ranked: Iterable[RankedChunk],
    relevant_ids: Iterable[int],
) -> list[RetrievedChunk]:
    """Annotate ranked results from a known set of relevant chunk ids."""
    relevant = set(relevant_ids)
    return [
        RetrievedChunk(
            chunk_id=r.chunk_id,
            similarity_score=r.vector_score,
            position=r.rank,
            is_relevant=r.chunk_id in relevant,
        )
        for r in ranked
    ]


# ---------------------------------------------------------------------------
# Freshness
# ---------------------------------------------------------------------------


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_staleness(
    last_refresh_at: datetime | None,
    document_published_at: datetime | None,
    now: datetime | None = None,
) -> int:
    """Whole days since the more recent of last refresh and document publish.

    Naive datetimes are read as UTC. Returns 0 when neither timestamp is
    known, and never a negative value for timestamps in the future.
    """
    known = [_as_utc(t) for t in (last_refresh_at, document_published_at) if t is not None]
    if not known:
        return 0

    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    elapsed = (now - max(known)).total_seconds()
    return max(0, int(elapsed // _SECONDS_PER_DAY))
