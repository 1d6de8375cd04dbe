"""Hybrid ranking — blend vector similarity with keyword relevance.

The ranker works on candidates that already carry both raw scores, so it
has no storage or embedding dependency. Filtering, blending and ordering
are deterministic for identical inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from kbrag.retrieval.schemas import RankedChunk
from kbrag.store.schemas import CategoryFilter, ChunkCandidate

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_KEYWORD_WEIGHT = 0.3

# (vector_score, keyword_score, keyword_weight) -> combined score
BlendFunction = Callable[[float, float, float], float]


def linear_blend(vector_score: float, keyword_score: float, keyword_weight: float) -> float:
    """``(1 - w) * vector + w * keyword``."""
    return (1.0 - keyword_weight) * vector_score + keyword_weight * keyword_score


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def normalize_scores(scores: Sequence[float]) -> list[float]:
    """Min-max scale scores into [0, 1]; order is preserved.

    When every score is equal the result is all 1.0 (or all 0.0 if the
    shared score is not positive).
    """
    if not scores:
        return []
    low, high = min(scores), max(scores)
    if high == low:
        fill = 1.0 if high > 0 else 0.0
        return [fill] * len(scores)
    span = high - low
    return [(s - low) / span for s in scores]


class HybridRetriever:
    """Rank scored candidates by a blended vector/keyword score.

    Args:
        blend: Function combining the two raw scores with the keyword
            weight. Defaults to :func:`linear_blend`.
        normalize_keyword_scores: Min-max scale keyword scores of the
            surviving candidates into [0, 1] before blending, so unbounded
            full-text ranks sit on the same scale as cosine similarity.
    """

    def __init__(
        self,
        blend: BlendFunction = linear_blend,
        normalize_keyword_scores: bool = False,
    ):
        self.blend = blend
        self.normalize_keyword_scores = normalize_keyword_scores

    def rank(
        self,
        candidates: Iterable[ChunkCandidate],
        min_similarity: float | None = 0.0,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        limit: int = DEFAULT_LIMIT,
        category_filter: str | Iterable[str] | None = None,
    ) -> list[RankedChunk]:
        """Filter, blend, sort and truncate candidates.

        Args:
            candidates: Chunks with raw ``vector_score``/``keyword_score``.
            min_similarity: Minimum vector score, clamped to [0, 1].
            keyword_weight: Keyword share of the blend, clamped to [0, 1].
            limit: Maximum results; ``<= 0`` means the default of 10.
            category_filter: Category tokens, any of which must appear
                (case-insensitively) in the chunk's category.

        Returns:
            Ranked chunks, best first, ranks starting at 1. Empty when no
            candidate survives.
        """
        weight = _clamp(keyword_weight, 0.0, 1.0)
        threshold = 0.0 if min_similarity is None else _clamp(min_similarity, 0.0, 1.0)
        if limit <= 0:
            limit = DEFAULT_LIMIT
        flt = CategoryFilter.of(category_filter)

        candidates = list(candidates)
        kept = [
            c for c in candidates
            if c.vector_score >= threshold and (flt is None or flt.matches(c.category))
        ]
        if not kept:
            logger.debug("No candidates left after filtering %d", len(candidates))
            return []

        keyword_scores = [c.keyword_score for c in kept]
        if self.normalize_keyword_scores:
            keyword_scores = normalize_scores(keyword_scores)

        scored = [
            (self.blend(c.vector_score, k, weight), c)
            for c, k in zip(kept, keyword_scores, strict=True)
        ]
        scored.sort(key=lambda item: (-item[0], -item[1].vector_score, item[1].chunk_id))

        ranked = [
            RankedChunk(candidate=c, combined_score=score, rank=i)
            for i, (score, c) in enumerate(scored[:limit], start=1)
        ]

        logger.info(
            "Ranked %d of %d candidates (kept=%d, weight=%.2f, min_similarity=%.2f)",
            len(ranked), len(candidates), len(kept), weight, threshold,
        )
        return ranked
