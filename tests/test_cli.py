"""Tests for ragctx.cli module."""

from __future__ import annotations

from typing import TYPE_CHECKING

from typer.testing import CliRunner

from ragctx import __version__
from ragctx.cli import app
from ragctx.config import load_config
from ragctx.project import CONFIG_FILE, RAG_DIR

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

runner = CliRunner()


def _write_doc(directory: Path, name: str, content: str) -> Path:
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return path


class TestVersion:
    def test_prints_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInit:
    def test_init_creates_rag_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / RAG_DIR).is_dir()
        assert "Initialized" in result.output

    def test_init_with_provider(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["init", "--provider", "fallback", "--name", "payments"])
        assert result.exit_code == 0
        config = load_config(tmp_path / RAG_DIR / CONFIG_FILE)
        assert config.embedding.provider == "fallback"
        assert config.project.name == "payments"

    def test_init_error_shows_friendly_message(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        def _fail_init(*_a: object, **_kw: object) -> None:
            raise OSError("Permission denied")

        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("ragctx.cli.ProjectManager.init", _fail_init)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1
        assert "Permission denied" in result.output


class TestStatus:
    def test_no_project(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "No ragctx project" in result.output

    def test_empty_project(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "fallback" in result.output
        assert "No documents indexed yet" in result.output


class TestAdd:
    def test_requires_project(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        _write_doc(tmp_path, "notes.md", "# Alpha\ntext")
        result = runner.invoke(app, ["add", "notes.md"])
        assert result.exit_code == 1

    def test_no_paths(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        result = runner.invoke(app, ["add"])
        assert result.exit_code == 1
        assert "No file paths provided" in result.output

    def test_adds_document(
        self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch, sample_analysis: str
    ):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "payments.md", sample_analysis)

        result = runner.invoke(app, ["add", "payments.md"])
        assert result.exit_code == 0
        assert "Added payments.md" in result.output
        assert (initialized_project / RAG_DIR / "documents.json").exists()

    def test_missing_file_skipped(
        self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "notes.md", "# Alpha\ntext")

        result = runner.invoke(app, ["add", "missing.md", "notes.md"])
        assert result.exit_code == 0
        assert "File not found" in result.output
        assert "Added 1 document(s)" in result.output


class TestListAndRemove:
    def test_list_empty(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No documents indexed" in result.output

    def test_list_and_remove(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "notes.md", "# Ledger\nledger posting rules")
        runner.invoke(app, ["add", "notes.md"])

        listed = runner.invoke(app, ["list"])
        assert listed.exit_code == 0
        assert "notes_md" in listed.output

        removed = runner.invoke(app, ["remove", "notes_md"])
        assert removed.exit_code == 0
        assert "Removed notes_md" in removed.output

        again = runner.invoke(app, ["remove", "notes_md"])
        assert again.exit_code == 1


class TestSearch:
    def test_prints_context_block(
        self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "notes.md", "# Ledger\nledger posting rules")
        runner.invoke(app, ["add", "notes.md"])

        result = runner.invoke(app, ["search", "ledger"])
        assert result.exit_code == 0
        assert "Repository Analysis Context" in result.output
        assert "ledger posting rules" in result.output

    def test_exclude(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "notes.md", "# Ledger\nledger posting rules")
        runner.invoke(app, ["add", "notes.md"])

        result = runner.invoke(app, ["search", "ledger", "--exclude", "notes.md"])
        assert result.exit_code == 0
        assert "No relevant context found" in result.output


class TestStatsAndClear:
    def test_stats(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "notes.md", "# Ledger\nledger posting rules")
        runner.invoke(app, ["add", "notes.md"])

        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Documents" in result.output
        assert "Average chunk" in result.output

    def test_clear_with_yes(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "notes.md", "# Ledger\nledger posting rules")
        runner.invoke(app, ["add", "notes.md"])

        result = runner.invoke(app, ["clear", "--yes"])
        assert result.exit_code == 0
        assert "Removed 1 document(s)" in result.output

    def test_clear_declined(self, initialized_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(initialized_project)
        _write_doc(initialized_project, "notes.md", "# Ledger\nledger posting rules")
        runner.invoke(app, ["add", "notes.md"])

        result = runner.invoke(app, ["clear"], input="n\n")
        assert result.exit_code == 0

        listed = runner.invoke(app, ["list"])
        assert "notes_md" in listed.output
