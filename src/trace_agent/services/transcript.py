"""Markdown transcript export for a chat session."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from ..cli.tagging import TAG_PREFIX, strip_file_hints

logger = logging.getLogger(__name__)


def _link_tags(content: str) -> str:
    words = content.split()
    for i, word in enumerate(words):
        if word.startswith(TAG_PREFIX) and len(word) > len(TAG_PREFIX):
            filename = word[len(TAG_PREFIX) :]
            words[i] = f"[{word}](./{filename})"
    return " ".join(words)


def export_transcript_markdown(history: list[dict[str, Any]], assistant_label: str = "Trace") -> str:
    """Render the user-visible part of ``history`` as markdown.

    System and tool messages are skipped, as are assistant messages that only
    carry tool calls. File-reference hints are removed from user messages and
    ``@path`` tags become relative links.
    """
    lines: list[str] = []
    for msg in history:
        role = msg.get("role")
        content = msg.get("content") or ""
        if role not in ("user", "assistant"):
            continue
        if role == "assistant" and not content and msg.get("tool_calls"):
            continue

        if role == "user":
            label = "User"
            content = _link_tags(strip_file_hints(content).strip())
        else:
            label = assistant_label

        lines.append(f"## {label}")
        lines.append("")
        lines.append(content)
        lines.append("")
        lines.append("---")
        lines.append("")

    return "\n".join(lines)


def save_transcript(history: list[dict[str, Any]], directory: Path) -> Path | None:
    """Write ``trace_session_<unix time>.md`` into ``directory``.

    Returns the written path, or None when there is nothing to save or the
    file cannot be written.
    """
    if not any(msg.get("role") in ("user", "assistant") for msg in history):
        return None

    path = directory / f"trace_session_{int(time.time())}.md"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(export_transcript_markdown(history), encoding="utf-8")
    except OSError:
        logger.exception("Failed to write transcript to %s", path)
        return None
    logger.info("Saved transcript to %s", path)
    return path
