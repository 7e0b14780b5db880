"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from docingest.config.loader import _deep_merge, load_config
from docingest.config.settings import Settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep a developer's .env and exported variables out of these tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "CHUNK_TOKEN_BUDGET",
        "EMBEDDING_TOKEN_CAP",
        "MAX_HALVINGS",
        "OPENAI_API_KEY",
        "STORAGE_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)


def _write_yaml(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.chunk_token_budget == 2000
        assert settings.embedding_token_cap == 8000
        assert settings.max_halvings == 12
        assert settings.storage_backend == "local"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_TOKEN_BUDGET", "500")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        settings = Settings()

        assert settings.chunk_token_budget == 500
        assert settings.openai_api_key == "sk-env"

    def test_available_providers(self) -> None:
        assert Settings().get_available_providers() == {
            "embedding": False,
            "storage": True,
            "chunk_store": True,
        }
        http = Settings(openai_api_key="sk", storage_backend="http")
        assert http.get_available_providers()["embedding"] is True
        assert http.get_available_providers()["storage"] is False


class TestLoadConfig:
    def test_yaml_values_survive_without_env(self, tmp_path: Path) -> None:
        path = _write_yaml(
            tmp_path / "config.yaml",
            "ingestion:\n  chunk_token_budget: 750\n  max_halvings: 4\n",
        )

        config = load_config(str(path), settings=Settings())

        assert config["ingestion"]["chunk_token_budget"] == 750
        assert config["ingestion"]["max_halvings"] == 4
        # Keys absent from YAML come from Settings defaults.
        assert config["ingestion"]["embedding_token_cap"] == 8000

    def test_explicit_settings_override_yaml(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path / "config.yaml", "ingestion:\n  chunk_token_budget: 750\n")

        config = load_config(str(path), settings=Settings(chunk_token_budget=300))

        assert config["ingestion"]["chunk_token_budget"] == 300

    def test_missing_file(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings())

        assert config["ingestion"]["chunk_token_budget"] == 2000
        assert config["logging"]["level"] == "INFO"


def test_deep_merge_is_recursive() -> None:
    base = {"a": {"x": 1, "y": 2}, "b": 1}
    _deep_merge(base, {"a": {"y": 3}, "c": 4})
    assert base == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
