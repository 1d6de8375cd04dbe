"""In-memory statistics store guarded by a lock."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, replace
from datetime import datetime
from pathlib import Path

from kbrag.evaluation.schemas import MetricsResult
from kbrag.statistics.base import StatisticsStore
from kbrag.statistics.schemas import ChunkStatistics, TopChunkByUsage
from kbrag.store.base import ChunkStore
from kbrag.store.schemas import utcnow

logger = logging.getLogger(__name__)


class MemoryStatisticsStore(StatisticsStore):
    """Dict-backed statistics keyed by chunk id.

    Args:
        chunk_store: Optional store used to fill content and title in
            :meth:`get_top_by_usage`.
    """

    def __init__(self, chunk_store: ChunkStore | None = None):
        self.chunk_store = chunk_store
        self._rows: dict[int, ChunkStatistics] = {}
        self._lock = threading.Lock()

    def get_by_chunk(self, chunk_id: int) -> ChunkStatistics | None:
        """Return a snapshot of the row, or ``None``."""
        with self._lock:
            row = self._rows.get(chunk_id)
            return replace(row) if row is not None else None

    def get_top_by_usage(self, limit: int = 10) -> list[TopChunkByUsage]:
        with self._lock:
            rows = sorted(
                (replace(r) for r in self._rows.values() if r.usage_count > 0),
                key=lambda r: (-r.usage_count, r.chunk_id),
            )

        top: list[TopChunkByUsage] = []
        for row in rows[: max(limit, 0)]:
            chunk = self.chunk_store.get(row.chunk_id) if self.chunk_store else None
            top.append(TopChunkByUsage(
                chunk_id=row.chunk_id,
                content=chunk.content if chunk else "",
                document_title=chunk.title if chunk else "",
                usage_count=row.usage_count,
                last_used_at=row.last_used_at,
                f1_score=row.f1_at_k,
            ))
        return top

    def ensure(self, chunk_id: int) -> ChunkStatistics:
        with self._lock:
            return replace(self._row(chunk_id))

    def increment_usage(self, chunk_id: int) -> int:
        with self._lock:
            row = self._row(chunk_id)
            row.usage_count += 1
            row.last_used_at = row.updated_at = utcnow()
            return row.usage_count

    def update_quality_metrics(self, chunk_id: int, metrics: MetricsResult) -> None:
        with self._lock:
            row = self._row(chunk_id)
            row.apply_metrics(metrics)
            row.updated_at = utcnow()

    def update_staleness(self, chunk_id: int, staleness_days: int) -> None:
        with self._lock:
            row = self._row(chunk_id)
            row.staleness_days = staleness_days
            row.updated_at = utcnow()

    def mark_refreshed(self, chunk_id: int) -> None:
        with self._lock:
            row = self._row(chunk_id)
            row.last_refresh_at = row.updated_at = utcnow()

    def delete(self, chunk_id: int) -> bool:
        with self._lock:
            return self._rows.pop(chunk_id, None) is not None

    def save(self, path: str) -> None:
        """Save statistics rows to ``<path>/statistics.json``."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        with self._lock:
            records = [_row_to_record(r) for r in self._rows.values()]

        with open(p / "statistics.json", "w", encoding="utf-8") as f:
            json.dump({"records": records}, f)

        logger.info("MemoryStatisticsStore saved to %s (%d rows)", path, len(records))

    def load(self, path: str) -> None:
        """Load statistics saved by :meth:`save`."""
        with open(Path(path) / "statistics.json", encoding="utf-8") as f:
            data = json.load(f)

        rows = {int(r["chunk_id"]): _record_to_row(r) for r in data["records"]}
        with self._lock:
            self._rows = rows

        logger.info("MemoryStatisticsStore loaded from %s (%d rows)", path, len(rows))

    def _row(self, chunk_id: int) -> ChunkStatistics:
        # Caller holds the lock
        row = self._rows.get(chunk_id)
        if row is None:
            row = self._rows[chunk_id] = ChunkStatistics(chunk_id=chunk_id)
            logger.debug("Created statistics row for chunk %d", chunk_id)
        return row


_DATETIME_FIELDS = ("last_used_at", "last_refresh_at", "created_at", "updated_at")


def _row_to_record(row: ChunkStatistics) -> dict:
    record = asdict(row)
    for name in _DATETIME_FIELDS:
        value = record[name]
        record[name] = value.isoformat() if value is not None else None
    return record


def _record_to_row(record: dict) -> ChunkStatistics:
    values = dict(record)
    for name in _DATETIME_FIELDS:
        if values.get(name) is not None:
            values[name] = datetime.fromisoformat(values[name])
    return ChunkStatistics(**values)
