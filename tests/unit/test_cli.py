"""Unit tests for the ingestion CLI (docingest.cli.ingest)."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docingest.cli.ingest import (
    _build_parser,
    _default_concurrency,
    _handle_init_db,
    _handle_register,
    _handle_run,
    _handle_stats,
    main,
)
from docingest.config.settings import Settings
from docingest.models.rag import IngestionResult, IngestionStatus
from docingest.providers.store.sqlite_chunk_store import SQLiteChunkStore
from docingest.utils.errors import ConfigurationError


def _settings(tmp_path: Path, **overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "sqlite_db_path": str(tmp_path / "cli.db"),
        "storage_root": str(tmp_path / "uploads"),
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _register_args(**overrides) -> Namespace:
    defaults = {
        "path": "reports/q3.pdf",
        "id": "doc-cli",
        "name": None,
        "mime": None,
        "folder": None,
    }
    defaults.update(overrides)
    return Namespace(**defaults)


# ======================================================================
# Parser
# ======================================================================


class TestBuildParser:
    def test_run_subcommand(self) -> None:
        args = _build_parser().parse_args(["run", "a", "b", "--concurrency", "4"])

        assert args.command == "run"
        assert args.document_ids == ["a", "b"]
        assert args.concurrency == 4

    def test_run_default_concurrency(self) -> None:
        args = _build_parser(default_concurrency=3).parse_args(["run", "a"])
        assert args.concurrency == 3

    def test_register_requires_path(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["register"])

    def test_stats_subcommand(self) -> None:
        args = _build_parser().parse_args(["stats", "doc-1"])
        assert args.command == "stats"
        assert args.document_id == "doc-1"

    def test_default_concurrency_comes_from_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("INGEST_CONCURRENCY", raising=False)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text(
            "ingestion:\n  ingest_concurrency: 5\n", encoding="utf-8"
        )

        assert _default_concurrency(Settings()) == 5

    def test_environment_beats_yaml_concurrency(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("INGEST_CONCURRENCY", "3")
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text(
            "ingestion:\n  ingest_concurrency: 5\n", encoding="utf-8"
        )

        assert _default_concurrency(Settings()) == 3

    def test_no_subcommand_exits(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1


# ======================================================================
# Handlers
# ======================================================================


class TestStoreCommands:
    async def test_init_db(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path)

        assert await _handle_init_db(settings) == 0
        assert Path(settings.sqlite_db_path).exists()

    async def test_register_guesses_name_and_type(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings = _settings(tmp_path)

        assert await _handle_register(_register_args(), settings) == 0

        document = await SQLiteChunkStore(settings.sqlite_db_path).get_document("doc-cli")
        assert document is not None
        assert document.name == "q3.pdf"
        assert document.mime_type == "application/pdf"
        assert document.storage_path == "reports/q3.pdf"
        assert "Registered document doc-cli" in capsys.readouterr().out

    async def test_stats(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        settings = _settings(tmp_path)
        await _handle_register(_register_args(name="Quarterly.pdf"), settings)
        capsys.readouterr()

        assert await _handle_stats(Namespace(document_id="doc-cli"), settings) == 0

        out = capsys.readouterr().out
        assert "Quarterly.pdf" in out
        assert "Chunks:    0" in out

    async def test_stats_unknown_document(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path)
        assert await _handle_stats(Namespace(document_id="missing"), settings) == 1


class TestRunCommand:
    async def test_run_builds_requests_from_records(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings = _settings(tmp_path)
        await _handle_register(_register_args(folder="f-1"), settings)

        service = MagicMock()
        service.ingest_many = AsyncMock(
            return_value=[
                IngestionResult(
                    document_id="doc-cli",
                    status=IngestionStatus.EMBEDDED,
                    stored_chunk_count=3,
                )
            ]
        )
        components = {
            "chunk_store": SQLiteChunkStore(settings.sqlite_db_path),
            "ingestion_service": service,
        }

        with patch("docingest.cli.ingest._build_components", return_value=components):
            code = await _handle_run(
                Namespace(document_ids=["doc-cli"], concurrency=2), settings
            )

        assert code == 0
        (requests,) = service.ingest_many.await_args.args
        assert requests[0].document_id == "doc-cli"
        assert requests[0].storage_path == "reports/q3.pdf"
        assert requests[0].file_type == "application/pdf"
        assert requests[0].folder_id == "f-1"
        assert "3 stored" in capsys.readouterr().out

    async def test_run_reports_failures(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings = _settings(tmp_path)
        service = MagicMock()
        service.ingest_many = AsyncMock(
            return_value=[
                IngestionResult(
                    document_id="missing",
                    status=IngestionStatus.FAILED,
                    error_type="DocumentNotFoundError",
                    detail="File not found: missing",
                )
            ]
        )
        components = {
            "chunk_store": SQLiteChunkStore(settings.sqlite_db_path),
            "ingestion_service": service,
        }

        with patch("docingest.cli.ingest._build_components", return_value=components):
            code = await _handle_run(
                Namespace(document_ids=["missing"], concurrency=1), settings
            )

        assert code == 1
        assert "DocumentNotFoundError" in capsys.readouterr().err

    async def test_run_configuration_error(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path)

        with patch(
            "docingest.cli.ingest._build_components",
            side_effect=ConfigurationError("Unknown STORAGE_BACKEND: ftp"),
        ):
            code = await _handle_run(Namespace(document_ids=["x"], concurrency=1), settings)

        assert code == 1
