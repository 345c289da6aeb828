"""Rich-based rendering of the chat pane and the terminal sidebar.

Everything here returns ANSI strings; the full-screen app wraps them in
prompt_toolkit ``ANSI`` formatted text.
"""

from __future__ import annotations

import re
from io import StringIO
from typing import Any, Iterable

from rich.console import Console, Group, RenderableType
from rich.markdown import Markdown
from rich.padding import Padding
from rich.rule import Rule
from rich.text import Text

from .tagging import strip_file_hints

# ---------------------------------------------------------------------------
# Color palette, explicit values for readability on dark terminals.
# ---------------------------------------------------------------------------

GOLD = "#C5A059"  # accents, "Thinking..." text
SLATE = "#94A3B8"  # "You" label
FROST = "#88C0D0"  # "Trace" label
MUTED = "#8b8b8b"  # queued messages, tool calls
ERROR_RED = "#CD6B6B"

_TAG_RE = re.compile(r"@[\w.\-/]+")
_QUEUE_PREVIEW = 50


def _render_to_ansi(renderable: RenderableType, width: int) -> str:
    buf = StringIO()
    console = Console(
        file=buf,
        force_terminal=True,
        color_system="truecolor",
        width=max(width, 20),
        legacy_windows=False,
    )
    console.print(renderable)
    return buf.getvalue().rstrip("\n")


def _bold_tags(content: str) -> str:
    return _TAG_RE.sub(lambda m: f"**{m.group(0)}**", content)


def _message_block(label: str, style: str, content: str) -> RenderableType:
    return Group(
        Text(label, style=f"bold {style}"),
        Padding(Markdown(content), (0, 0, 0, 2)),
    )


def _visible_blocks(history: Iterable[dict[str, Any]], hidden_prompt: str) -> list[RenderableType]:
    blocks: list[RenderableType] = []
    for msg in history:
        role = msg.get("role")
        content = msg.get("content") or ""
        if role == "user":
            if hidden_prompt and content == hidden_prompt:
                continue
            blocks.append(_message_block("You", SLATE, _bold_tags(strip_file_hints(content).strip())))
        elif role == "assistant":
            for tc in msg.get("tool_calls") or []:
                name = tc.get("function", {}).get("name", "?")
                blocks.append(Text.assemble(("Calling tool: ", MUTED), (name, f"bold {MUTED}")))
            if content:
                style = ERROR_RED if content.startswith("**Error:**") else FROST
                blocks.append(_message_block("Trace", style, content))
    return blocks


def queue_preview(content: str) -> str:
    clean = strip_file_hints(content).strip()
    if len(clean) > _QUEUE_PREVIEW:
        clean = clean[: _QUEUE_PREVIEW - 3] + "..."
    return clean


def render_chat(
    history: list[dict[str, Any]],
    width: int,
    pending: Iterable[str] = (),
    process_output: str = "",
    show_sidebar: bool = False,
    hidden_prompt: str = "",
) -> str:
    """Render the conversation, queued inputs and inline process output as ANSI.

    System and tool messages are not shown. Process output is drawn inline
    only while the sidebar is hidden.
    """
    blocks = _visible_blocks(history, hidden_prompt)
    for i, content in enumerate(pending, start=1):
        blocks.append(Text(f"(Queued #{i}): {queue_preview(content)}", style=f"italic {MUTED}"))
    if process_output and not show_sidebar:
        blocks.append(Group(Text("Process Output:", style=f"bold {GOLD}"), Text(process_output.rstrip("\n"))))

    if not blocks:
        return ""

    separated: list[RenderableType] = []
    for i, block in enumerate(blocks):
        if i:
            separated.append(Rule(style=MUTED))
        separated.append(block)
    return _render_to_ansi(Group(*separated), width)


def render_sidebar(process_output: str, width: int) -> str:
    title = Text("Terminal", style=f"bold {GOLD}")
    body = Text(process_output.rstrip("\n")) if process_output else Text("(no output)", style=f"italic {MUTED}")
    return _render_to_ansi(Group(title, body), width)
