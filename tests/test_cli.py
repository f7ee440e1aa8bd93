# tests/test_cli.py
"""
Tests for the typer CLI.

Key tests:
- test_config_json_masks_secrets: Secret values never reach the output
- test_sync_local_directory: `codesync sync <dir>` indexes and reports
- test_status_unknown_codebase: Missing records exit non-zero
"""

from __future__ import annotations

import asyncio

import pytest
from typer.testing import CliRunner

from codesync.cli.cli import app
from codesync.cli.context import CLIContext
from codesync.core.paths import CodesyncPaths
from codesync.repository.local import LocalRepository
from codesync.service import SyncService
from codesync.state.store import InMemorySyncStateStore
from tests.conftest import MockEmbeddingProvider

pytestmark = pytest.mark.tier2

runner = CliRunner()


def flat(text: str) -> str:
    """Output without whitespace, immune to rich's line wrapping."""
    return "".join(text.split())


def write_user_config(text: str) -> None:
    path = CodesyncPaths.config()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


@pytest.fixture
def service(memory_config, monkeypatch):
    svc = SyncService.from_config(
        memory_config,
        provider=MockEmbeddingProvider(),
        state_store=InMemorySyncStateStore(),
    )
    monkeypatch.setattr(CLIContext, "build_service", lambda self: svc)
    return svc


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.py").write_text(
        "def main():\n    print('hello from the project entry point')\n"
    )
    (root / "README.md").write_text("# Project\n\nA small project used by the CLI tests.\n")
    return root


class TestHelp:
    def test_lists_commands(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for name in ("sync", "status", "serve", "config"):
            assert name in result.output


class TestConfigCommand:
    """Tests for `codesync config`."""

    def test_path(self):
        result = runner.invoke(app, ["config", "--path"])

        assert result.exit_code == 0
        assert flat(result.output) == str(CodesyncPaths.config())

    def test_workspace_option(self, tmp_path):
        result = runner.invoke(app, ["--workspace", str(tmp_path / "ws"), "config", "--path"])
        assert flat(result.output) == str(tmp_path / "ws" / "config.yaml")

    def test_config_json_masks_secrets(self, monkeypatch):
        monkeypatch.setenv("CODESYNC_WEBHOOK_SECRET", "super-secret-value")
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)

        result = runner.invoke(app, ["config", "--json"])

        assert result.exit_code == 0
        output = flat(result.output)
        assert "super-secret-value" not in output
        assert '"CODESYNC_WEBHOOK_SECRET":"***"' in output
        assert '"GITHUB_TOKEN":"(unset)"' in output
        assert '"plugin":"qdrant"' in output

    def test_user_config_shown(self):
        write_user_config("vector_index:\n  plugin: memory\n")

        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "plugin: memory" in result.output

    def test_invalid_config(self):
        write_user_config("embedding:\n  dimension: -1\n")

        result = runner.invoke(app, ["config"])
        assert result.exit_code == 1


class TestSyncCommand:
    """Tests for `codesync sync`."""

    def test_sync_local_directory(self, service, project):
        result = runner.invoke(app, ["sync", str(project)])

        assert result.exit_code == 0, result.output
        assert "Sync complete" in result.output

        codebase_id = LocalRepository(project).codebase_id
        assert asyncio.run(service.state_store.get_sync_record(codebase_id)) is not None
        assert len(service.vector_index.store) >= 2

    def test_second_run_up_to_date(self, service, project):
        runner.invoke(app, ["sync", str(project)])
        result = runner.invoke(app, ["sync", str(project)])

        assert result.exit_code == 0
        assert "Already up to date" in result.output

    def test_invalid_target(self, service):
        result = runner.invoke(app, ["sync", "not-a-repo"])

        assert result.exit_code == 1
        assert "owner/name" in result.output


class TestStatusCommand:
    def test_status_unknown_codebase(self, tmp_path):
        write_user_config(f"vector_index:\n  plugin: memory\nstate:\n  directory: {tmp_path / 'state'}\n")

        result = runner.invoke(app, ["status", "github_nobody_nothing"])

        assert result.exit_code == 1
        assert "No sync record" in result.output

    def test_status_after_sync(self, service, project):
        runner.invoke(app, ["sync", str(project)])
        codebase_id = LocalRepository(project).codebase_id

        result = runner.invoke(app, ["status", codebase_id])

        assert result.exit_code == 0, result.output
        assert "Last sync" in result.output
        assert "Vectors in index" in result.output


class TestServeCommand:
    def test_runs_uvicorn(self, monkeypatch):
        calls = []
        monkeypatch.setattr("codesync.cli.commands.serve.uvicorn.run", lambda *a, **kw: calls.append((a, kw)))

        result = runner.invoke(app, ["serve", "--port", "9001"])

        assert result.exit_code == 0
        args, kwargs = calls[0]
        assert args == ("codesync.api.app:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == 9001
