"""Per-chunk usage counters, quality snapshots and staleness."""

from kbrag.statistics.base import StatisticsStore
from kbrag.statistics.memory_store import MemoryStatisticsStore
from kbrag.statistics.schemas import ChunkStatistics, TopChunkByUsage
from kbrag.statistics.tracker import StatisticsTracker

__all__ = [
    "ChunkStatistics",
    "MemoryStatisticsStore",
    "StatisticsStore",
    "StatisticsTracker",
    "TopChunkByUsage",
]
