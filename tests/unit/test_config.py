"""
Unit tests for configuration loading.
"""

import json
from pathlib import Path

import pytest

from meeting_reporter.utils.config import (
    SystemConfig, get_config, load_config, load_config_from_env, load_config_from_file, set_config
)

ENV_VARS = [
    "DEBUG", "LOG_LEVEL", "JSON_LOGGING", "LLM_BASE_URL", "LLM_API_KEY", "LLM_MODEL", "LLM_TIMEOUT",
    "GRAPH_BASE_URL", "GRAPH_ACCESS_TOKEN", "USER_DOMAIN", "REPORT_OUTPUT_DIR",
    "REPORT_DOWNLOAD_BASE_URL", "ANALYSIS_DELAY_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSystemConfig:
    def test_defaults(self):
        config = SystemConfig()

        assert config.llm.base_url == "https://api.openai.com/v1"
        assert config.llm.model == "gpt-4o-mini"
        assert config.llm.api_key is None
        assert config.graph.page_size == 50
        assert config.reports.output_dir == Path("reports")
        assert config.agents.analysis_max_iterations == 10
        assert config.analysis_enabled is True

    def test_analysis_disabled_without_model(self):
        config = SystemConfig(llm={"model": ""})

        assert config.analysis_enabled is False


class TestLoading:
    """Test cases for environment and file loading."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LLM_BASE_URL", "http://localhost:11434/v1")
        monkeypatch.setenv("LLM_MODEL", "llama3")
        monkeypatch.setenv("GRAPH_ACCESS_TOKEN", "token")
        monkeypatch.setenv("USER_DOMAIN", "contoso.com")
        monkeypatch.setenv("REPORT_OUTPUT_DIR", "/tmp/reports")
        monkeypatch.setenv("ANALYSIS_DELAY_SECONDS", "0")
        monkeypatch.setenv("DEBUG", "true")

        config = load_config_from_env()

        assert config.debug is True
        assert config.llm.base_url == "http://localhost:11434/v1"
        assert config.llm.model == "llama3"
        assert config.graph.access_token == "token"
        assert config.graph.user_domain == "contoso.com"
        assert config.reports.output_dir == Path("/tmp/reports")
        assert config.reports.analysis_delay_seconds == 0

    def test_empty_model_variable_disables_analysis(self, monkeypatch):
        monkeypatch.setenv("LLM_MODEL", "")

        assert load_config_from_env().analysis_enabled is False

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config_from_file(tmp_path / "absent.json") == SystemConfig()

    def test_invalid_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        assert load_config_from_file(path) == SystemConfig()

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "log_level": "WARNING",
            "llm": {"model": "file-model", "temperature": 0.1},
            "graph": {"user_domain": "file.example"},
        }))
        monkeypatch.setenv("LLM_MODEL", "env-model")

        config = load_config(path)

        assert config.log_level == "WARNING"
        assert config.llm.model == "env-model"
        assert config.llm.temperature == 0.1
        assert config.graph.user_domain == "file.example"


class TestGlobalConfig:
    def test_get_config_is_cached(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert get_config() is get_config()

    def test_set_config(self):
        custom = SystemConfig(log_level="DEBUG")

        set_config(custom)

        assert get_config() is custom
