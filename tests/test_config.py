"""Tests for run settings resolution.

Precedence: CLI args > environment > YAML > built-in defaults.
"""

from pathlib import Path

import pytest

from docs_mirror.config import (
    DEFAULT_OUTPUT_ROOT,
    load_settings,
    parse_job_list,
)
from docs_mirror.config_schema import DEFAULT_USER_AGENT
from docs_mirror.errors import ConfigError

_ENV_VARS = (
    "DOCS_MIRROR_OUTPUT_ROOT",
    "DOCS_MIRROR_DRY_RUN",
    "DOCS_MIRROR_JOBS",
    "DOCS_MIRROR_USER_AGENT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestParseJobList:
    def test_splits_and_strips(self):
        assert parse_job_list(" a , b,,c ") == ["a", "b", "c"]

    def test_empty(self):
        assert parse_job_list(None) == []
        assert parse_job_list("") == []


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults(self):
        settings = load_settings()
        assert settings.output_root == Path(DEFAULT_OUTPUT_ROOT)
        assert settings.dry_run is False
        assert settings.jobs == []
        assert settings.user_agent == DEFAULT_USER_AGENT

    def test_yaml_fallbacks(self):
        settings = load_settings(
            yaml_fallbacks={"output_root": "/yaml/docs", "user_agent": "yaml-ua"}
        )
        assert settings.output_root == Path("/yaml/docs")
        assert settings.user_agent == "yaml-ua"

    def test_none_yaml_values_ignored(self):
        settings = load_settings(
            yaml_fallbacks={"output_root": None, "user_agent": None}
        )
        assert settings.output_root == Path(DEFAULT_OUTPUT_ROOT)

    def test_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("DOCS_MIRROR_OUTPUT_ROOT", "/env/docs")
        monkeypatch.setenv("DOCS_MIRROR_USER_AGENT", "env-ua")
        settings = load_settings(
            yaml_fallbacks={"output_root": "/yaml/docs", "user_agent": "yaml-ua"}
        )
        assert settings.output_root == Path("/env/docs")
        assert settings.user_agent == "env-ua"

    def test_cli_beats_env(self, monkeypatch):
        monkeypatch.setenv("DOCS_MIRROR_OUTPUT_ROOT", "/env/docs")
        monkeypatch.setenv("DOCS_MIRROR_JOBS", "a,b")
        settings = load_settings(output_root="/cli/docs", jobs=["c"])
        assert settings.output_root == Path("/cli/docs")
        assert settings.jobs == ["c"]

    def test_jobs_from_env(self, monkeypatch):
        monkeypatch.setenv("DOCS_MIRROR_JOBS", "claude-code, gemini-cli")
        assert load_settings().jobs == ["claude-code", "gemini-cli"]

    @pytest.mark.parametrize(
        "value, expected",
        [("true", True), ("1", True), ("yes", True), ("false", False), ("0", False)],
    )
    def test_dry_run_from_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("DOCS_MIRROR_DRY_RUN", value)
        assert load_settings().dry_run is expected

    def test_dry_run_flag_wins(self, monkeypatch):
        monkeypatch.setenv("DOCS_MIRROR_DRY_RUN", "false")
        assert load_settings(dry_run=True).dry_run is True

    def test_output_root_that_is_a_file_rejected(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(ConfigError, match="not a directory"):
            load_settings(output_root=str(target))

    def test_blank_user_agent_rejected(self, monkeypatch):
        monkeypatch.setenv("DOCS_MIRROR_USER_AGENT", "   ")
        with pytest.raises(ConfigError, match="User agent"):
            load_settings()
