"""Retriever — embed query, fetch scored candidates, rank, record usage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kbrag.embeddings.base import EmbeddingProvider
from kbrag.errors import StorageError
from kbrag.retrieval.hybrid import HybridRetriever
from kbrag.retrieval.schemas import RetrievalConfig, RetrievalResult
from kbrag.store.base import ChunkStore

if TYPE_CHECKING:
    from kbrag.statistics.tracker import StatisticsTracker

logger = logging.getLogger(__name__)


class Retriever:
    """Orchestrates embedding → candidate search → hybrid ranking → statistics."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        chunk_store: ChunkStore,
        ranker: HybridRetriever | None = None,
        tracker: StatisticsTracker | None = None,
    ):
        self.embedding_provider = embedding_provider
        self.chunk_store = chunk_store
        self.ranker = ranker or HybridRetriever()
        self.tracker = tracker

    def retrieve(
        self,
        query: str,
        config: RetrievalConfig | None = None,
    ) -> RetrievalResult:
        """Run a full retrieval: embed → search → rank → track.

        Args:
            query: The search query.
            config: Retrieval settings (limit, thresholds, filters).

        Returns:
            A ``RetrievalResult`` with ranked chunks.

        Raises:
            EmbeddingError: The query could not be embedded.
            StorageError: The chunk store could not be searched.
        """
        cfg = config or RetrievalConfig()

        # Step 1: Embed the query
        query_embedding = self.embedding_provider.embed_query(query)

        # Step 2: Fetch candidates with raw vector + keyword scores
        try:
            candidates = self.chunk_store.search_candidates(
                query_embedding=query_embedding,
                query_text=query,
                categories=cfg.category_filter,
                limit=cfg.candidate_limit,
            )
        except ValueError as exc:
            raise StorageError(f"Candidate search failed: {exc}") from exc

        # Step 3: Filter, blend and order
        ranked = self.ranker.rank(
            candidates,
            min_similarity=cfg.min_similarity,
            keyword_weight=cfg.effective_keyword_weight,
            limit=cfg.limit,
            category_filter=cfg.category_filter,
        )

        # Step 4: Usage counters and quality metrics
        if self.tracker is not None and ranked:
            self.tracker.record_retrieval(ranked)

        logger.info(
            "Retrieved %d results for query (candidates=%d, search_type=%s)",
            len(ranked),
            len(candidates),
            cfg.search_type.value,
        )

        return RetrievalResult(
            query=query,
            results=ranked,
            total_candidates=len(candidates),
            search_type=cfg.search_type,
        )
