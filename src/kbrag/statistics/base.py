"""Abstract base class for chunk statistics stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbrag.evaluation.schemas import MetricsResult
from kbrag.statistics.schemas import ChunkStatistics, TopChunkByUsage


class StatisticsStore(ABC):
    """Interface for persisting per-chunk statistics.

    ``increment_usage`` must be atomic under concurrent retrievals;
    ``update_quality_metrics`` is a last-write-wins overwrite.
    """

    @abstractmethod
    def get_by_chunk(self, chunk_id: int) -> ChunkStatistics | None:
        """Return a copy of a chunk's statistics, or ``None`` if never recorded."""

    @abstractmethod
    def get_top_by_usage(self, limit: int = 10) -> list[TopChunkByUsage]:
        """Return the most used chunks, highest usage first."""

    @abstractmethod
    def ensure(self, chunk_id: int) -> ChunkStatistics:
        """Create an empty statistics row for a chunk if missing."""

    @abstractmethod
    def increment_usage(self, chunk_id: int) -> int:
        """Add one use and stamp ``last_used_at``. Returns the new count."""

    @abstractmethod
    def update_quality_metrics(self, chunk_id: int, metrics: MetricsResult) -> None:
        """Replace the six quality metrics of a chunk."""

    @abstractmethod
    def update_staleness(self, chunk_id: int, staleness_days: int) -> None:
        """Record the latest staleness value in days."""

    @abstractmethod
    def mark_refreshed(self, chunk_id: int) -> None:
        """Stamp ``last_refresh_at`` after the chunk content changed."""

    @abstractmethod
    def delete(self, chunk_id: int) -> bool:
        """Drop a chunk's statistics (cascade of chunk deletion)."""

    def save(self, path: str) -> None:
        """Persist statistics to disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support save()")

    def load(self, path: str) -> None:
        """Load statistics from disk (optional)."""
        raise NotImplementedError(f"{self.__class__.__name__} does not support load()")
