"""Evaluation — retrieval quality metrics, relevance judgments, eval harness."""

from kbrag.evaluation.retrieval_metrics import (
    RAGQualityMetrics,
    calculate_staleness,
    estimate_relevance,
    judge_by_ground_truth,
    judge_by_threshold,
)
from kbrag.evaluation.runner import EvalRunner
from kbrag.evaluation.schemas import EvalResult, EvalScenario, MetricsResult, RetrievedChunk

__all__ = [
    "EvalResult",
    "EvalRunner",
    "EvalScenario",
    "MetricsResult",
    "RAGQualityMetrics",
    "RetrievedChunk",
    "calculate_staleness",
    "estimate_relevance",
    "judge_by_ground_truth",
    "judge_by_threshold",
]
