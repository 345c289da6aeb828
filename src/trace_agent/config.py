"""Configuration loader: YAML file with environment variable fallbacks."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_DEFAULT_SYSTEM_PROMPT = """\
You are Trace, a helpful AI coding assistant working inside the user's project directory.

<tool_use>
- Read files before modifying them. Never assume you know a file's current contents.
- Prefer edit_file for targeted changes and write_file only for new files or full rewrites.
- Use list_files to discover the project layout instead of guessing paths.
- Use run_command for builds, tests and git commands (git status, git diff, git log). Its output \
streams to the user while it runs and is returned to you when it finishes.
- Use manage_window to open the terminal sidebar before long-running commands, and close it when \
the output is no longer needed.
- If a tool call fails, read the error and try a different approach rather than repeating the call.
</tool_use>

<communication>
- Be direct and concise. Lead with the answer or the action.
- Use markdown naturally: fenced code blocks with language tags, short lists.
- When the user references files with @path, read them before answering.
</communication>"""

_DEFAULT_GREETING = "Hello! Please introduce yourself and your tools briefly."


@dataclass
class AIConfig:
    api_key: str
    model: str
    base_url: str | None = None
    system_prompt: str = _DEFAULT_SYSTEM_PROMPT
    verify_ssl: bool = True
    request_timeout: int = 120  # seconds; whole completion request
    connect_timeout: int = 10


@dataclass
class CliConfig:
    max_tool_iterations: int = 10
    greeting: str = _DEFAULT_GREETING
    transcript_dir: Path | None = None  # None: project directory
    log_file: str = "trace.log"
    autocomplete_limit: int = 10


@dataclass
class AppConfig:
    ai: AIConfig
    cli: CliConfig = field(default_factory=CliConfig)
    data_dir: Path = field(default_factory=lambda: Path.home() / ".trace")


def _get_config_path(data_dir: Path | None = None) -> Path:
    if data_dir:
        return data_dir / "config.yaml"
    return Path.home() / ".trace" / "config.yaml"


def _load_system_prompt(ai_raw: dict[str, Any], working_dir: Path) -> str:
    """Project ``system_prompt.md`` wins over the config file, which wins over the default."""
    prompt_file = working_dir / "system_prompt.md"
    if prompt_file.is_file():
        try:
            return prompt_file.read_text(encoding="utf-8")
        except OSError:
            pass
    return ai_raw.get("system_prompt") or os.environ.get("PROVIDER_SYSTEM_PROMPT", "") or _DEFAULT_SYSTEM_PROMPT


def load_config(config_path: Path | None = None, working_dir: Path | None = None) -> AppConfig:
    raw: dict[str, Any] = {}
    path = config_path or _get_config_path()
    working_dir = working_dir or Path.cwd()

    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    ai_raw = raw.get("ai", {}) or {}
    base_url = ai_raw.get("base_url") or os.environ.get("PROVIDER_BASE_URL") or None
    api_key = ai_raw.get("api_key") or os.environ.get("PROVIDER_API_KEY", "")
    if not api_key:
        api_key = os.environ.get("PROVIDER_AUTH_TOKEN", "")
    model = ai_raw.get("model") or os.environ.get("PROVIDER_MODEL", "")

    if not api_key:
        raise ValueError(
            f"AI api_key is required. Set 'ai.api_key' in config.yaml ({path}) "
            "or the PROVIDER_API_KEY / PROVIDER_AUTH_TOKEN environment variable."
        )
    if not model:
        raise ValueError(
            f"AI model is required. Set 'ai.model' in config.yaml ({path}) or the PROVIDER_MODEL environment variable."
        )

    verify_ssl_raw = ai_raw.get("verify_ssl", os.environ.get("PROVIDER_VERIFY_SSL", "true"))
    verify_ssl = str(verify_ssl_raw).lower() not in ("false", "0", "no")

    ai = AIConfig(
        api_key=api_key,
        model=model,
        base_url=base_url,
        system_prompt=_load_system_prompt(ai_raw, working_dir),
        verify_ssl=verify_ssl,
        request_timeout=int(ai_raw.get("request_timeout", 120)),
        connect_timeout=int(ai_raw.get("connect_timeout", 10)),
    )

    cli_raw = raw.get("cli", {}) or {}
    transcript_raw = cli_raw.get("transcript_dir")
    cli_config = CliConfig(
        max_tool_iterations=max(1, int(cli_raw.get("max_tool_iterations", 10))),
        greeting=str(cli_raw.get("greeting", _DEFAULT_GREETING) or ""),
        transcript_dir=Path(os.path.expanduser(transcript_raw)) if transcript_raw else None,
        log_file=str(cli_raw.get("log_file", "trace.log")),
        autocomplete_limit=max(1, int(cli_raw.get("autocomplete_limit", 10))),
    )

    data_dir = Path(os.path.expanduser(raw.get("data_dir", "~/.trace")))
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        data_dir.chmod(stat.S_IRWXU)  # 0700
        if path.exists():
            path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0600
    except OSError:
        pass  # May fail on Windows or non-owned files

    return AppConfig(ai=ai, cli=cli_config, data_dir=data_dir)
