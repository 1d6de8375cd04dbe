"""Evaluation harness — run retrieval scenarios, collect metrics, report results."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from kbrag.evaluation.retrieval_metrics import RAGQualityMetrics, judge_by_ground_truth
from kbrag.evaluation.schemas import EvalResult, EvalScenario, MetricsResult
from kbrag.retrieval.retriever import Retriever
from kbrag.retrieval.schemas import RetrievalConfig

logger = logging.getLogger(__name__)

_METRIC_NAMES = ("precision_at_k", "recall_at_k", "f1_at_k", "mrr", "map", "ndcg")


class EvalRunner:
    """Run retrieval scenarios against ground truth and aggregate metrics."""

    def __init__(
        self,
        retriever: Retriever,
        metrics: RAGQualityMetrics | None = None,
        config: RetrievalConfig | None = None,
    ):
        self.retriever = retriever
        self.metrics = metrics or RAGQualityMetrics()
        self.config = config or RetrievalConfig()

    @staticmethod
    def load_scenarios(path: str | Path) -> list[EvalScenario]:
        """Load scenarios from a YAML file or directory.

        Supports both single YAML files and directories of YAML files.
        """
        p = Path(path)
        scenarios: list[EvalScenario] = []

        if p.is_file():
            scenarios.extend(EvalRunner._parse_yaml(p))
        elif p.is_dir():
            for yaml_file in sorted(p.glob("*.yaml")) + sorted(p.glob("*.yml")):
                scenarios.extend(EvalRunner._parse_yaml(yaml_file))
        else:
            raise FileNotFoundError(f"Scenario path not found: {path}")

        logger.info("Loaded %d evaluation scenarios from %s", len(scenarios), path)
        return scenarios

    @staticmethod
    def _parse_yaml(path: Path) -> list[EvalScenario]:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return []

        raw_scenarios = data if isinstance(data, list) else data.get("scenarios", [data])

        scenarios = []
        for i, item in enumerate(raw_scenarios):
            categories = item.get("category_filter") or []
            if isinstance(categories, str):
                categories = [categories]
            scenarios.append(EvalScenario(
                id=str(item.get("id", f"{path.stem}_{i}")),
                query=item["query"],
                relevant_chunk_ids=[int(c) for c in item.get("relevant_chunk_ids", [])],
                category_filter=list(categories),
                total_relevant=item.get("total_relevant"),
                tags=item.get("tags", []),
            ))

        return scenarios

    def evaluate(self, scenario: EvalScenario) -> EvalResult:
        """Retrieve for one scenario and score the ranking against its ground truth."""
        config = RetrievalConfig(
            limit=self.config.limit,
            min_similarity=self.config.min_similarity,
            keyword_weight=self.config.keyword_weight,
            search_type=self.config.search_type,
            category_filter=scenario.category_filter or self.config.category_filter,
            candidate_limit=self.config.candidate_limit,
        )
        retrieval = self.retriever.retrieve(scenario.query, config=config)
        judged = judge_by_ground_truth(retrieval.results, scenario.relevant_chunk_ids)
        metrics = self.metrics.calculate_all_metrics(judged, scenario.expected_relevant)

        logger.debug("Scenario %s: %s", scenario.id, metrics)
        return EvalResult(
            scenario_id=scenario.id,
            query=scenario.query,
            retrieved_chunk_ids=[r.chunk_id for r in retrieval.results],
            metrics=metrics,
        )

    def run(self, scenarios: list[EvalScenario]) -> list[EvalResult]:
        """Evaluate every scenario in order."""
        results = [self.evaluate(s) for s in scenarios]
        logger.info("Evaluated %d scenarios", len(results))
        return results

    @staticmethod
    def summary(results: list[EvalResult]) -> dict[str, float]:
        """Compute mean metrics across results.

        Returns:
            Dict with ``avg_<metric>`` for each metric and ``total_scenarios``.
        """
        if not results:
            return {}

        means = mean_metrics([r.metrics for r in results])
        summary = {f"avg_{name}": value for name, value in means.to_dict().items()}
        summary["total_scenarios"] = len(results)
        return summary


def mean_metrics(results: list[MetricsResult]) -> MetricsResult:
    """Average several metric snapshots field by field."""
    if not results:
        return MetricsResult()
    n = len(results)
    return MetricsResult(**{
        name: sum(getattr(r, name) for r in results) / n for name in _METRIC_NAMES
    })
