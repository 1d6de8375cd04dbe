"""Tests for settings loading — YAML files, profiles, defaults."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from kbrag.config import Settings, load_settings


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("KBRAG_PROFILE", raising=False)
        settings = load_settings()
        assert settings == Settings()
        assert settings.chunking.chunk_size == 1000
        assert settings.chunking.chunk_overlap == 200
        assert settings.retrieval.min_similarity == 0.7
        assert settings.retrieval.keyword_weight == 0.3
        assert settings.evaluation.relevance_threshold == 0.75

    def test_explicit_path(self, tmp_path: Path):
        p = tmp_path / "custom.yaml"
        p.write_text("chunking:\n  chunk_size: 400\nretrieval:\n  limit: 3\n")
        settings = load_settings(p)
        assert settings.chunking.chunk_size == 400
        assert settings.chunking.chunk_overlap == 200
        assert settings.retrieval.limit == 3

    def test_found_in_parent_directory(self, tmp_path: Path, monkeypatch):
        (tmp_path / "settings.yaml").write_text("store:\n  path: data/kb\n")
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)
        monkeypatch.delenv("KBRAG_PROFILE", raising=False)
        assert load_settings().store.path == "data/kb"

    def test_profile(self, tmp_path: Path, monkeypatch):
        (tmp_path / "settings.yaml").write_text("embedding:\n  provider: ollama\n")
        (tmp_path / "settings-prod.yaml").write_text("embedding:\n  provider: openai\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("KBRAG_PROFILE", "prod")
        assert load_settings().embedding.provider == "openai"

    def test_empty_file(self, tmp_path: Path):
        p = tmp_path / "settings.yaml"
        p.write_text("")
        assert load_settings(p) == Settings()

    def test_invalid_value(self, tmp_path: Path):
        p = tmp_path / "settings.yaml"
        p.write_text("chunking:\n  chunk_size: lots\n")
        with pytest.raises(ValidationError):
            load_settings(p)
