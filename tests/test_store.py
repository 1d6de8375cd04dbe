"""Tests for chunk stores — memory store CRUD, candidate scoring, factory."""

from __future__ import annotations

from pathlib import Path

import pytest

from kbrag.store.base import ChunkStore
from kbrag.store.factory import available_stores, get_chunk_store
from kbrag.store.memory_store import MemoryChunkStore, tokenize
from kbrag.store.schemas import CategoryFilter

DIM = 4


@pytest.fixture
def store() -> MemoryChunkStore:
    return MemoryChunkStore(dimension=DIM)


# ---------------------------------------------------------------------------
# CategoryFilter
# ---------------------------------------------------------------------------


class TestCategoryFilter:
    def test_of_empty(self):
        assert CategoryFilter.of(None) is None
        assert CategoryFilter.of([]) is None
        assert CategoryFilter.of(["", "  "]) is None

    def test_substring_case_insensitive(self):
        flt = CategoryFilter.of(["INDTEC"])
        assert flt.matches("event_indtec")
        assert not flt.matches("EVENT_FIN")
        assert not flt.matches(None)

    def test_any_token(self):
        flt = CategoryFilter(tokens=[" hr ", "fin"])
        assert flt.tokens == ["hr", "fin"]
        assert flt.matches("POLICY_HR")
        assert flt.matches("FINANCE")

    def test_plain_string_is_one_token(self):
        flt = CategoryFilter.of("INDTEC")
        assert flt.tokens == ["indtec"]
        assert flt.matches("EVENT_INDTEC")
        assert not flt.matches("POLICY_HR")

    def test_string_filter_in_candidate_search(self, store):
        store.create_chunk(1, "expo", [1, 0, 0, 0], category="EVENT_INDTEC")
        store.create_chunk(2, "leave", [1, 0, 0, 0], category="POLICY_HR")
        candidates = store.search_candidates([1, 0, 0, 0], "expo", categories="INDTEC")
        assert [c.category for c in candidates] == ["EVENT_INDTEC"]


# ---------------------------------------------------------------------------
# MemoryChunkStore
# ---------------------------------------------------------------------------


class TestMemoryChunkStore:
    def test_is_chunk_store(self, store):
        assert isinstance(store, ChunkStore)
        assert MemoryChunkStore.store_name() == "MemoryChunkStore"

    def test_create_and_get(self, store):
        chunk_id = store.create_chunk(7, "hello world", [1, 0, 0, 0], category="NEWS", title="T")
        chunk = store.get(chunk_id)
        assert chunk.id == chunk_id == 1
        assert chunk.document_id == 7
        assert chunk.content == "hello world"
        assert chunk.category == "NEWS"
        assert chunk.title == "T"
        assert store.count() == 1

    def test_bulk_create_order(self, store):
        ids = store.bulk_create_chunks(3, ["a", "b", "c"], [[1, 0, 0, 0]] * 3)
        assert ids == [1, 2, 3]
        assert [c.content for c in store.get_by_document(3)] == ["a", "b", "c"]

    def test_bulk_create_empty(self, store):
        assert store.bulk_create_chunks(3, [], []) == []

    def test_bulk_create_length_mismatch(self, store):
        with pytest.raises(ValueError, match="embeddings"):
            store.bulk_create_chunks(3, ["a", "b"], [[1, 0, 0, 0]])

    def test_dimension_mismatch(self, store):
        with pytest.raises(ValueError, match="shape"):
            store.create_chunk(1, "a", [1, 0])

    def test_get_missing(self, store):
        assert store.get(99) is None

    def test_update_content(self, store):
        chunk_id = store.create_chunk(1, "old", [1, 0, 0, 0])
        before = store.get(chunk_id).updated_at
        assert store.update_content(chunk_id, "new", [0, 1, 0, 0])
        chunk = store.get(chunk_id)
        assert chunk.content == "new"
        assert chunk.updated_at >= before

        candidates = store.search_candidates([0, 1, 0, 0])
        assert candidates[0].vector_score == pytest.approx(1.0)

    def test_update_missing(self, store):
        assert store.update_content(5, "x", [1, 0, 0, 0]) is False

    def test_delete(self, store):
        chunk_id = store.create_chunk(1, "a", [1, 0, 0, 0])
        assert store.delete(chunk_id)
        assert not store.delete(chunk_id)
        assert store.count() == 0

    def test_delete_document(self, store):
        store.bulk_create_chunks(1, ["a", "b"], [[1, 0, 0, 0]] * 2)
        store.create_chunk(2, "c", [1, 0, 0, 0])
        assert store.delete_document(1) == [1, 2]
        assert store.count() == 1
        assert store.get_by_document(1) == []

    def test_ids_not_reused(self, store):
        first = store.create_chunk(1, "a", [1, 0, 0, 0])
        store.delete(first)
        assert store.create_chunk(1, "b", [1, 0, 0, 0]) == first + 1

    # -- candidate search ---------------------------------------------------

    def test_vector_scores(self, store):
        store.create_chunk(1, "x", [1, 0, 0, 0])
        store.create_chunk(1, "y", [0, 1, 0, 0])
        store.create_chunk(1, "z", [0, 0, 0, 0])

        scores = {c.chunk_id: c.vector_score for c in store.search_candidates([1, 0, 0, 0])}
        assert scores[1] == pytest.approx(1.0)
        assert scores[2] == pytest.approx(0.0)
        assert scores[3] == 0.0

    def test_keyword_scores(self, store):
        store.create_chunk(1, "Password reset requires email", [1, 0, 0, 0])
        store.create_chunk(1, "Holiday calendar for staff", [1, 0, 0, 0])
        store.create_chunk(1, "Parking permits renew yearly", [1, 0, 0, 0])

        candidates = store.search_candidates([1, 0, 0, 0], query_text="password RESET")
        scores = {c.chunk_id: c.keyword_score for c in candidates}
        assert scores[1] > 0
        assert scores[2] == 0.0
        assert scores[3] == 0.0

    def test_no_query_text_gives_zero_keyword(self, store):
        store.create_chunk(1, "anything", [1, 0, 0, 0])
        assert store.search_candidates([1, 0, 0, 0])[0].keyword_score == 0.0

    def test_keyword_scores_never_negative(self, store):
        for text in ["leave policy", "leave request", "leave balance"]:
            store.create_chunk(1, text, [1, 0, 0, 0])
        candidates = store.search_candidates([1, 0, 0, 0], query_text="leave")
        assert all(c.keyword_score >= 0 for c in candidates)

    def test_category_prefilter(self, store):
        store.create_chunk(1, "a", [1, 0, 0, 0], category="EVENT_INDTEC")
        store.create_chunk(2, "b", [1, 0, 0, 0], category="POLICY_HR")
        candidates = store.search_candidates([1, 0, 0, 0], categories=["indtec"])
        assert [c.chunk_id for c in candidates] == [1]
        assert candidates[0].category == "EVENT_INDTEC"

    def test_candidate_limit(self, store):
        store.create_chunk(1, "a", [0, 1, 0, 0])
        store.create_chunk(1, "b", [1, 0, 0, 0])
        store.create_chunk(1, "c", [1, 1, 0, 0])
        candidates = store.search_candidates([1, 0, 0, 0], limit=2)
        assert [c.chunk_id for c in candidates] == [2, 3]

    def test_empty_store(self, store):
        assert store.search_candidates([1, 0, 0, 0], query_text="x") == []

    def test_save_load(self, store, tmp_path: Path):
        store.bulk_create_chunks(4, ["alpha", "beta"], [[1, 0, 0, 0], [0, 1, 0, 0]], "NEWS", "Doc")
        store.save(str(tmp_path))

        loaded = MemoryChunkStore()
        loaded.load(str(tmp_path))
        assert loaded.count() == 2
        chunk = loaded.get(2)
        assert chunk.content == "beta"
        assert chunk.category == "NEWS"
        assert chunk.created_at == store.get(2).created_at
        assert loaded.create_chunk(4, "gamma", [0, 0, 1, 0]) == 3
        assert loaded.search_candidates([0, 1, 0, 0])[1].vector_score == pytest.approx(1.0)


def test_tokenize():
    assert tokenize("Reset-your PASSWORD, now!") == ["reset", "your", "password", "now"]


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestChunkStoreFactory:
    def test_available_stores(self):
        assert available_stores() == ["memory"]

    def test_unknown_store_raises(self):
        with pytest.raises(ValueError, match="Unknown chunk store"):
            get_chunk_store("nonexistent")

    def test_case_insensitive_backend(self):
        assert isinstance(get_chunk_store("MEMORY"), MemoryChunkStore)

    def test_each_call_builds_a_new_store(self):
        s1 = get_chunk_store("memory", dimension=DIM)
        s1.create_chunk(1, "Expo schedule", [1.0, 0.0, 0.0, 0.0])
        s2 = get_chunk_store("memory", dimension=DIM)
        assert s1 is not s2
        assert s2.count() == 0

    def test_kwargs_reach_constructor(self):
        store = get_chunk_store("memory", dimension=8)
        with pytest.raises(ValueError, match="shape"):
            store.create_chunk(1, "Expo schedule", [1.0, 0.0, 0.0, 0.0])
