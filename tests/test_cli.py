"""Tests for the command line interface."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from docs_mirror import cli
from docs_mirror.errors import TransportError
from docs_mirror.sync.models import JobResult, ResourceOutcome, SyncReport, SyncStatus

CONFIG = textwrap.dedent(
    """\
    output_root: {root}
    jobs:
      claude-code:
        base_url: https://code.claude.com/docs/en
        resources:
          - slug: overview
          - slug: setup
      gemini-cli:
        strategy: repository
        repo_url: https://github.com/google-gemini/gemini-cli.git
        resources:
          - path: index.md
    """
)


@pytest.fixture(autouse=True)
def quiet(monkeypatch):
    """Keep the CLI away from global logging and .env files."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(cli, "load_dotenv", lambda: False)
    for name in (
        "DOCS_MIRROR_CONFIG",
        "DOCS_MIRROR_OUTPUT_ROOT",
        "DOCS_MIRROR_DRY_RUN",
        "DOCS_MIRROR_JOBS",
        "DOCS_MIRROR_USER_AGENT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "docs-mirror.yml"
    path.write_text(CONFIG.format(root=tmp_path / "mirror"), encoding="utf-8")
    return path


def _report(name: str, dry_run: bool = False) -> SyncReport:
    return SyncReport(
        job_name=name,
        dry_run=dry_run,
        outcomes=[
            ResourceOutcome(key="overview.md", label="overview", status=SyncStatus.NEW)
        ],
        configured_total=1,
        started_at="2026-01-01T00:00:00+00:00",
    )


class TestParser:
    def test_sync_is_default(self):
        args = cli.build_parser().parse_args(["--dry-run"])
        assert args.command is None
        assert args.dry_run is True

    def test_options_after_subcommand(self):
        args = cli.build_parser().parse_args(
            ["--debug", "sync", "--preview", "--jobs", "a,b", "--json"]
        )
        assert args.command == "sync"
        assert args.dry_run is True
        assert args.jobs == "a,b"
        assert args.json is True
        assert args.debug is True

    def test_options_before_subcommand_survive(self):
        args = cli.build_parser().parse_args(["--dry-run", "sync"])
        assert args.dry_run is True

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.build_parser().parse_args(["--version"])
        assert exc.value.code == 0
        assert "docs-mirror version" in capsys.readouterr().out


class TestSyncCommand:
    def test_passes_settings_to_runner(self, config_file, tmp_path):
        with patch.object(cli, "run_jobs", return_value=[]) as run_jobs:
            code = cli.main(
                ["--config", str(config_file), "sync", "--dry-run", "--jobs", "gemini-cli"]
            )

        assert code == cli.EXIT_OK
        config, settings = run_jobs.call_args[0]
        assert list(config.jobs) == ["claude-code", "gemini-cli"]
        assert settings.dry_run is True
        assert settings.jobs == ["gemini-cli"]
        assert settings.output_root == tmp_path / "mirror"

    def test_output_root_flag_wins(self, config_file, tmp_path):
        with patch.object(cli, "run_jobs", return_value=[]) as run_jobs:
            cli.main(
                ["--config", str(config_file), "--output-root", str(tmp_path / "cli")]
            )
        assert run_jobs.call_args[0][1].output_root == tmp_path / "cli"

    def test_prints_summary(self, config_file, capsys):
        results = [
            JobResult(
                job_name="claude-code",
                success=True,
                duration=0.1,
                report=_report("claude-code"),
            )
        ]
        with patch.object(cli, "run_jobs", return_value=results):
            code = cli.main(["--config", str(config_file)])

        out = capsys.readouterr().out
        assert code == cli.EXIT_OK
        assert "Fetched/Updated: 1" in out
        assert "Total: 1" in out

    def test_failed_job_exit_code(self, config_file, capsys):
        results = [
            JobResult(job_name="gemini-cli", success=False, error="clone failed")
        ]
        with patch.object(cli, "run_jobs", return_value=results):
            code = cli.main(["--config", str(config_file)])

        assert code == cli.EXIT_JOB_FAILED
        assert "ERR gemini-cli: clone failed" in capsys.readouterr().out

    def test_json_output(self, config_file, capsys):
        results = [
            JobResult(
                job_name="claude-code",
                success=True,
                duration=0.1,
                report=_report("claude-code"),
            )
        ]
        with patch.object(cli, "run_jobs", return_value=results):
            cli.main(["--config", str(config_file), "sync", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["success"] is True
        job = data["jobs"][0]
        assert job["job_name"] == "claude-code"
        assert job["report"]["counts"]["fetched"] == 1

    def test_unknown_job_end_to_end(self, config_file):
        code = cli.main(["--config", str(config_file), "--jobs", "missing"])
        assert code == cli.EXIT_JOB_FAILED

    def test_transport_error_end_to_end(self, config_file, capsys):
        """A git failure fails the job without crashing the CLI."""
        with patch(
            "docs_mirror.sync.fetchers.RepositoryFetcher.prepare",
            side_effect=TransportError("git clone failed"),
        ):
            code = cli.main(["--config", str(config_file), "--jobs", "gemini-cli"])

        assert code == cli.EXIT_JOB_FAILED
        assert "git clone failed" in capsys.readouterr().out


class TestConfigErrors:
    def test_missing_config_file(self, tmp_path, capsys):
        code = cli.main(["--config", str(tmp_path / "absent.yml")])
        assert code == cli.EXIT_CONFIG_ERROR
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_job(self, tmp_path, capsys):
        path = tmp_path / "bad.yml"
        path.write_text("jobs:\n  x:\n    strategy: repository\n")
        code = cli.main(["--config", str(path), "list"])
        assert code == cli.EXIT_CONFIG_ERROR
        assert "repo_url" in capsys.readouterr().err

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("jobs: [unclosed\n")
        assert cli.main(["--config", str(path)]) == cli.EXIT_CONFIG_ERROR


class TestOtherCommands:
    def test_list(self, config_file, capsys):
        code = cli.main(["--config", str(config_file), "list"])
        out = capsys.readouterr().out
        assert code == cli.EXIT_OK
        assert "claude-code: 2 resources (url, markdown)" in out
        assert "gemini-cli: 1 resources (repository, markdown)" in out

    def test_status_never_synced(self, config_file, capsys):
        code = cli.main(["--config", str(config_file), "status"])
        out = capsys.readouterr().out
        assert code == cli.EXIT_OK
        assert "Sync status for 'claude-code'" in out
        assert "Last sync:     never" in out

    def test_status_json(self, config_file, tmp_path, capsys):
        manifest_dir = tmp_path / "mirror" / "claude-code"
        manifest_dir.mkdir(parents=True)
        (manifest_dir / "manifest.json").write_text(
            json.dumps(
                {
                    "lastSync": "2026-01-01T00:00:00+00:00",
                    "baseUrl": "https://code.claude.com/docs/en",
                    "files": {},
                }
            )
        )

        cli.main(
            ["--config", str(config_file), "status", "--jobs", "claude-code", "--json"]
        )

        data = json.loads(capsys.readouterr().out)
        assert data[0]["job_name"] == "claude-code"
        assert data[0]["manifest"]["lastSync"] == "2026-01-01T00:00:00+00:00"

    def test_init_writes_starter_config(self, tmp_path, capsys):
        target = tmp_path / "new.yml"
        code = cli.main(["--config", str(target), "init"])
        assert code == cli.EXIT_OK
        assert target.exists()
        assert "Created" in capsys.readouterr().out

    def test_init_keeps_existing(self, config_file, capsys):
        before = config_file.read_text()
        cli.main(["--config", str(config_file), "init"])
        assert config_file.read_text() == before
        assert "already exists" in capsys.readouterr().out
