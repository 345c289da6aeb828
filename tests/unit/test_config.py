"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from trace_agent.config import _DEFAULT_GREETING, _DEFAULT_SYSTEM_PROMPT, AppConfig, load_config

_ENV_VARS = (
    "PROVIDER_API_KEY",
    "PROVIDER_AUTH_TOKEN",
    "PROVIDER_MODEL",
    "PROVIDER_BASE_URL",
    "PROVIDER_VERIFY_SSL",
    "PROVIDER_SYSTEM_PROMPT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def _write_config(path: Path, data: dict) -> Path:
    config_file = path / "config.yaml"
    config_file.write_text(yaml.dump(data))
    return config_file


class TestLoadConfig:
    def test_load_valid_config(self, tmp_path: Path) -> None:
        cfg_file = _write_config(
            tmp_path,
            {
                "ai": {
                    "base_url": "https://api.example.com/v1",
                    "api_key": "sk-test-key",
                    "model": "gpt-4o",
                    "request_timeout": 30,
                },
                "cli": {
                    "max_tool_iterations": 5,
                    "greeting": "",
                    "log_file": "debug.log",
                },
                "data_dir": str(tmp_path / "data"),
            },
        )
        config = load_config(cfg_file, working_dir=tmp_path)
        assert isinstance(config, AppConfig)
        assert config.ai.base_url == "https://api.example.com/v1"
        assert config.ai.api_key == "sk-test-key"
        assert config.ai.model == "gpt-4o"
        assert config.ai.request_timeout == 30
        assert config.ai.verify_ssl is True
        assert config.cli.max_tool_iterations == 5
        assert config.cli.greeting == ""
        assert config.cli.log_file == "debug.log"
        assert config.data_dir == tmp_path / "data"
        assert config.data_dir.is_dir()

    def test_defaults(self, tmp_path: Path) -> None:
        cfg_file = _write_config(tmp_path, {"ai": {"api_key": "k", "model": "m"}, "data_dir": str(tmp_path / "d")})
        config = load_config(cfg_file, working_dir=tmp_path)
        assert config.ai.base_url is None
        assert config.ai.system_prompt == _DEFAULT_SYSTEM_PROMPT
        assert config.cli.max_tool_iterations == 10
        assert config.cli.greeting == _DEFAULT_GREETING
        assert config.cli.autocomplete_limit == 10
        assert config.cli.transcript_dir is None

    def test_env_fallbacks(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_API_KEY", "env-key")
        monkeypatch.setenv("PROVIDER_MODEL", "env-model")
        monkeypatch.setenv("PROVIDER_BASE_URL", "http://localhost:8080/v1")
        monkeypatch.setenv("PROVIDER_VERIFY_SSL", "false")
        config = load_config(tmp_path / "missing.yaml", working_dir=tmp_path)
        assert config.ai.api_key == "env-key"
        assert config.ai.model == "env-model"
        assert config.ai.base_url == "http://localhost:8080/v1"
        assert config.ai.verify_ssl is False

    def test_auth_token_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_AUTH_TOKEN", "token")
        monkeypatch.setenv("PROVIDER_MODEL", "m")
        config = load_config(tmp_path / "missing.yaml", working_dir=tmp_path)
        assert config.ai.api_key == "token"

    def test_config_file_wins_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_MODEL", "env-model")
        cfg_file = _write_config(tmp_path, {"ai": {"api_key": "k", "model": "file-model"}})
        config = load_config(cfg_file, working_dir=tmp_path)
        assert config.ai.model == "file-model"

    def test_raises_when_api_key_missing(self, tmp_path: Path) -> None:
        cfg_file = _write_config(tmp_path, {"ai": {"model": "m"}})
        with pytest.raises(ValueError, match="api_key is required"):
            load_config(cfg_file, working_dir=tmp_path)

    def test_raises_when_model_missing(self, tmp_path: Path) -> None:
        cfg_file = _write_config(tmp_path, {"ai": {"api_key": "k"}})
        with pytest.raises(ValueError, match="model is required"):
            load_config(cfg_file, working_dir=tmp_path)


class TestSystemPrompt:
    def test_project_file_wins(self, tmp_path: Path) -> None:
        (tmp_path / "system_prompt.md").write_text("Project prompt")
        cfg_file = _write_config(tmp_path, {"ai": {"api_key": "k", "model": "m", "system_prompt": "Config prompt"}})
        config = load_config(cfg_file, working_dir=tmp_path)
        assert config.ai.system_prompt == "Project prompt"

    def test_config_value_used(self, tmp_path: Path) -> None:
        cfg_file = _write_config(tmp_path, {"ai": {"api_key": "k", "model": "m", "system_prompt": "Config prompt"}})
        config = load_config(cfg_file, working_dir=tmp_path)
        assert config.ai.system_prompt == "Config prompt"

    def test_env_value_used(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_SYSTEM_PROMPT", "Env prompt")
        cfg_file = _write_config(tmp_path, {"ai": {"api_key": "k", "model": "m"}})
        config = load_config(cfg_file, working_dir=tmp_path)
        assert config.ai.system_prompt == "Env prompt"
