"""
Evaluation utilities for the fuzzy response-cache matcher.

This module sweeps the keyword-overlap threshold over labeled query pairs
and measures how often paraphrases hit the cache (recall) and how often
unrelated questions are wrongly served a cached answer (precision).
"""

import time
from dataclasses import dataclass

import numpy as np
import structlog

from regulation_rag.services import CacheService, KeyMatcher, TTLCache

logger = structlog.get_logger(__name__)


@dataclass
class EvalResult:
    """Result of one threshold evaluation run."""

    threshold: float
    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    true_positives: int = 0
    false_positives: int = 0
    true_negatives: int = 0
    false_negatives: int = 0
    avg_lookup_time_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    @property
    def precision(self) -> float:
        """Calculate precision (TP / (TP + FP))."""
        denominator = self.true_positives + self.false_positives
        if denominator == 0:
            return 0.0
        return self.true_positives / denominator

    @property
    def recall(self) -> float:
        """Calculate recall (TP / (TP + FN))."""
        denominator = self.true_positives + self.false_negatives
        if denominator == 0:
            return 0.0
        return self.true_positives / denominator

    @property
    def f1_score(self) -> float:
        p = self.precision
        r = self.recall
        if p + r == 0:
            return 0.0
        return 2 * p * r / (p + r)

    def record(self, is_hit: bool, should_match: bool) -> None:
        self.total_queries += 1
        if is_hit:
            self.cache_hits += 1
            if should_match:
                self.true_positives += 1
            else:
                self.false_positives += 1
        else:
            self.cache_misses += 1
            if should_match:
                self.false_negatives += 1
            else:
                self.true_negatives += 1

    def to_dict(self) -> dict[str, float]:
        return {
            "threshold": self.threshold,
            "hit_rate": self.hit_rate,
            "precision": self.precision,
            "recall": self.recall,
            "f1_score": self.f1_score,
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "avg_lookup_time_ms": self.avg_lookup_time_ms,
        }


@dataclass
class QueryPair:
    """A pair of questions with their expected match relationship."""

    query: str
    cached_query: str
    should_match: bool  # True if the cached answer also answers query


class FuzzyMatchEvaluator:
    """Evaluator for fuzzy response-cache matching.

    Each pair is evaluated in isolation: a fresh cache holds only
    ``cached_query`` so that earlier pairs cannot produce hits.

    Example:
        ```python
        evaluator = FuzzyMatchEvaluator()
        evaluator.sweep_thresholds(pairs)
        threshold, result = evaluator.find_optimal_threshold("f1_score")
        ```
    """

    def __init__(self, rag_enabled: bool = True) -> None:
        self.rag_enabled = rag_enabled
        self.results: list[EvalResult] = []

    def _cache_for(self, threshold: float) -> CacheService:
        return CacheService(
            response_cache=TTLCache(name="eval-response", max_size=10, default_ttl=3600),
            embedding_cache=TTLCache(name="eval-embedding", max_size=1, default_ttl=3600),
            matcher=KeyMatcher(threshold=threshold),
        )

    def evaluate_threshold(self, threshold: float, test_queries: list[QueryPair]) -> EvalResult:
        """
        Evaluate matching at a specific threshold.

        Args:
            threshold: Keyword-overlap threshold in (0, 1].
            test_queries: Labeled pairs.

        Returns:
            EvalResult with metrics for this threshold.
        """
        result = EvalResult(threshold=threshold)
        total_lookup_time = 0.0

        for pair in test_queries:
            cache = self._cache_for(threshold)
            cache.store_response(pair.cached_query, self.rag_enabled, f"Answer for: {pair.cached_query}")

            start_time = time.perf_counter()
            hit = cache.lookup_response(pair.query, self.rag_enabled)
            total_lookup_time += (time.perf_counter() - start_time) * 1000

            result.record(hit is not None, pair.should_match)

        if result.total_queries > 0:
            result.avg_lookup_time_ms = total_lookup_time / result.total_queries

        self.results.append(result)
        return result

    def sweep_thresholds(
        self,
        test_queries: list[QueryPair],
        min_threshold: float = 0.1,
        max_threshold: float = 1.0,
        steps: int = 10,
    ) -> list[EvalResult]:
        """
        Sweep across threshold values.

        Args:
            test_queries: Labeled pairs.
            min_threshold: Smallest threshold to test (must be > 0).
            max_threshold: Largest threshold to test (at most 1).
            steps: Number of thresholds.

        Returns:
            List of EvalResult for each threshold tested.
        """
        self.results = []
        for threshold in np.linspace(min_threshold, max_threshold, steps):
            result = self.evaluate_threshold(round(float(threshold), 4), test_queries)
            logger.info(
                "threshold evaluated",
                threshold=result.threshold,
                hit_rate=round(result.hit_rate, 4),
                precision=round(result.precision, 4),
                f1=round(result.f1_score, 4),
            )
        return self.results

    def find_optimal_threshold(self, metric: str = "f1_score") -> tuple[float, EvalResult]:
        """
        Find the best threshold by a metric.

        Args:
            metric: 'f1_score', 'precision', 'recall' or 'hit_rate'.

        Returns:
            Tuple of (threshold, result). Ties go to the lowest threshold.
        """
        if not self.results:
            raise ValueError("No evaluation results available. Run sweep_thresholds first.")

        best_result = max(self.results, key=lambda r: getattr(r, metric))
        return best_result.threshold, best_result

    def summary(self) -> str:
        """Get a formatted table of all results."""
        if not self.results:
            return "No evaluation results available."

        lines = [
            f"{'Threshold':<12} {'Hit Rate':<12} {'Precision':<12} {'Recall':<12} {'F1 Score':<12}",
            "-" * 60,
        ]
        for result in self.results:
            lines.append(
                f"{result.threshold:<12.3f} "
                f"{result.hit_rate:<12.2%} "
                f"{result.precision:<12.2%} "
                f"{result.recall:<12.2%} "
                f"{result.f1_score:<12.2%}"
            )
        return "\n".join(lines)
