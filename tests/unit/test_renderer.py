"""Tests for chat pane rendering."""

from __future__ import annotations

import re

from trace_agent.cli.renderer import queue_preview, render_chat, render_sidebar
from trace_agent.cli.tagging import resolve_file_tags
from trace_agent.models import ToolCall

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _plain(text: str) -> str:
    return _ANSI_RE.sub("", text)


def _history() -> list[dict]:
    return [
        {"role": "system", "content": "SYSTEM PROMPT"},
        {"role": "user", "content": "Hello! Please introduce yourself."},
        {"role": "assistant", "content": "I am Trace."},
        {"role": "user", "content": resolve_file_tags("open @app.py", ["app.py"])},
        {"role": "assistant", "content": "", "tool_calls": [ToolCall("c1", "read_file", "{}").to_openai()]},
        {"role": "tool", "tool_call_id": "c1", "content": "TOOL RESULT"},
        {"role": "assistant", "content": "Here it is."},
    ]


class TestRenderChat:
    def test_visible_messages(self) -> None:
        out = _plain(render_chat(_history(), 80))
        assert "You" in out
        assert "Trace" in out
        assert "I am Trace." in out
        assert "@app.py" in out
        assert "Calling tool: read_file" in out
        assert "Here it is." in out

    def test_hidden_messages(self) -> None:
        out = _plain(render_chat(_history(), 80, hidden_prompt="Hello! Please introduce yourself."))
        assert "SYSTEM PROMPT" not in out
        assert "TOOL RESULT" not in out
        assert "introduce yourself" not in out
        assert "User has referenced" not in out

    def test_queued_messages(self) -> None:
        out = _plain(render_chat(_history(), 80, pending=["first", "second"]))
        assert "(Queued #1): first" in out
        assert "(Queued #2): second" in out

    def test_process_output_inline_only_without_sidebar(self) -> None:
        inline = _plain(render_chat(_history(), 80, process_output="compiling\n"))
        assert "Process Output:" in inline
        assert "compiling" in inline

        hidden = _plain(render_chat(_history(), 80, process_output="compiling\n", show_sidebar=True))
        assert "compiling" not in hidden

    def test_empty_history(self) -> None:
        assert render_chat([{"role": "system", "content": "x"}], 80) == ""

    def test_error_message_rendered(self) -> None:
        history = [{"role": "assistant", "content": "**Error:** API error: boom"}]
        assert "API error: boom" in _plain(render_chat(history, 80))

    def test_assistant_code_is_not_tag_bolded(self) -> None:
        content = "```python\n@dataclass\nclass Point:\n    x: int\n```\nWrite to dev@example.com"
        out = _plain(render_chat([{"role": "assistant", "content": content}], 80))
        assert "@dataclass" in out
        assert "**@dataclass**" not in out
        assert "dev@example.com" in out
        assert "**" not in out


class TestHelpers:
    def test_queue_preview_truncates(self) -> None:
        preview = queue_preview("x" * 80)
        assert len(preview) == 50
        assert preview.endswith("...")

    def test_queue_preview_strips_hint(self) -> None:
        assert queue_preview(resolve_file_tags("see @a.py", ["a.py"])) == "see @a.py"

    def test_sidebar(self) -> None:
        assert "line 1" in _plain(render_sidebar("line 1\nline 2\n", 40))
        assert "(no output)" in _plain(render_sidebar("", 40))
