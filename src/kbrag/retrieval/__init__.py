"""Retrieval — hybrid vector/keyword ranking over stored chunks."""

from kbrag.retrieval.hybrid import HybridRetriever, linear_blend
from kbrag.retrieval.retriever import Retriever
from kbrag.retrieval.schemas import RankedChunk, RetrievalConfig, RetrievalResult, SearchType

__all__ = [
    "HybridRetriever",
    "RankedChunk",
    "RetrievalConfig",
    "RetrievalResult",
    "Retriever",
    "SearchType",
    "linear_blend",
]
