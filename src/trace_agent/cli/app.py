"""Full-screen prompt_toolkit application for a Trace chat session.

Layout (top to bottom): chat pane with an optional terminal sidebar, a
"Thinking..." line, the file autocomplete panel, the input line and a status
bar. Key presses and resizes are translated into events for the dispatcher;
the app itself only reads state to draw it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import TYPE_CHECKING

from prompt_toolkit import Application
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.data_structures import Point
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import ConditionalContainer, HSplit, Layout, VSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import TextArea

from .events import (
    AutocompleteConfirm,
    AutocompleteMove,
    InputEdited,
    Quit,
    Resize,
    Start,
    Submit,
)
from .renderer import render_chat, render_sidebar

if TYPE_CHECKING:
    from prompt_toolkit.key_binding import KeyPressEvent

    from .dispatcher import EventDispatcher
    from .state import ChatStateMachine

logger = logging.getLogger(__name__)

_SPINNER_FRAMES = "⣾⣽⣻⢿⡿⣟⣯⣷"
_MIN_SIDEBAR_WIDTH = 40
_SCROLL_STEP = 10


class TraceApp:
    """View for one chat session; implements the dispatcher's ``ChatView``."""

    def __init__(
        self,
        machine: ChatStateMachine,
        dispatcher: EventDispatcher,
        model: str,
        tool_count: int,
    ) -> None:
        self.machine = machine
        self.dispatcher = dispatcher
        self.model = model
        self.tool_count = tool_count
        dispatcher.view = self

        self._app: Application[None] | None = None
        self._size: tuple[int, int] = (0, 0)
        self._dirty = True
        self._chat_ansi = ""
        self._chat_lines = 1
        self._sidebar_ansi = ""
        self._sidebar_lines = 1
        self._scroll_offset = 0
        self._message_count = self._count_messages()
        self._thinking_since: float | None = None

        self.input_area = TextArea(
            multiline=False,
            prompt=self._get_prompt,
            style="class:input-area",
            focusable=True,
        )
        self.input_area.buffer.on_text_changed += self._on_text_changed

    # -- ChatView ----------------------------------------------------------------

    def set_input(self, text: str) -> None:
        buf = self.input_area.buffer
        buf.text = text
        buf.cursor_position = len(text)

    def refresh(self, relayout: bool = False) -> None:
        self._dirty = True
        count = self._count_messages()
        if count != self._message_count:
            # new messages snap the chat back to the bottom
            self._message_count = count
            self._scroll_offset = 0
        if self._app is not None:
            self._app.invalidate()

    def _count_messages(self) -> int:
        return len(self.machine.history) + len(self.machine.pending_queue)

    def exit(self) -> None:
        if self._app is not None and self._app.is_running:
            self._app.exit()

    # -- geometry ----------------------------------------------------------------

    def _sidebar_width(self) -> int:
        return max(_MIN_SIDEBAR_WIDTH, self.machine.width // 3)

    def _chat_width(self) -> int:
        width = self.machine.width or 80
        if self.machine.show_sidebar:
            width -= self._sidebar_width() + 1
        return max(width - 1, 20)

    def _rerender(self) -> None:
        m = self.machine
        self._chat_ansi = render_chat(
            m.history,
            self._chat_width(),
            pending=m.pending_queue,
            process_output=m.process_output,
            show_sidebar=m.show_sidebar,
            hidden_prompt=m.greeting,
        )
        self._chat_lines = self._chat_ansi.count("\n") + 1
        if m.show_sidebar:
            self._sidebar_ansi = render_sidebar(m.process_output, self._sidebar_width() - 1)
            self._sidebar_lines = self._sidebar_ansi.count("\n") + 1
        self._dirty = False

    def _before_render(self, app: Application[None]) -> None:
        size = app.output.get_size()
        if (size.columns, size.rows) != self._size:
            self._size = (size.columns, size.rows)
            self.dispatcher.post(Resize(width=size.columns, height=size.rows))

    # -- content -----------------------------------------------------------------

    def _get_chat_text(self) -> ANSI:
        if self._dirty:
            self._rerender()
        return ANSI(self._chat_ansi)

    def _get_chat_cursor(self) -> Point:
        return Point(x=0, y=max(0, self._chat_lines - 1 - self._scroll_offset))

    def _get_sidebar_text(self) -> ANSI:
        if self._dirty:
            self._rerender()
        return ANSI(self._sidebar_ansi)

    def _get_sidebar_cursor(self) -> Point:
        return Point(x=0, y=max(0, self._sidebar_lines - 1))

    def _get_thinking_text(self) -> list[tuple[str, str]]:
        if self._thinking_since is None:
            self._thinking_since = time.monotonic()
        elapsed = time.monotonic() - self._thinking_since
        frame = _SPINNER_FRAMES[int(elapsed * 10) % len(_SPINNER_FRAMES)]
        return [("class:thinking", f" {frame} Thinking... ({elapsed:.0f}s)")]

    def _get_autocomplete_text(self) -> list[tuple[str, str]]:
        ac = self.machine.autocomplete
        fragments: list[tuple[str, str]] = [("class:autocomplete.title", " Files:\n")]
        for i, path in enumerate(ac.candidates):
            if i == ac.selected_index:
                fragments.append(("class:autocomplete.selected", f" > {path}\n"))
            else:
                fragments.append(("class:autocomplete", f"   {path}\n"))
        fragments.append(("class:autocomplete.hint", " Up/Down: Navigate | Tab/Enter: Select | Esc: Cancel"))
        return fragments

    def _get_autocomplete_height(self) -> Dimension:
        return Dimension.exact(len(self.machine.autocomplete.candidates) + 2)

    def _get_status_text(self) -> list[tuple[str, str]]:
        state = "THINKING" if self.machine.is_thinking else "IDLE"
        queued = len(self.machine.pending_queue)
        fragments = [
            ("class:status-bar.state", f" {state} "),
            ("class:status-bar", f" Model: {self.model} | Tools: {self.tool_count} | Messages: {len(self.machine.history)}"),
        ]
        if queued:
            fragments.append(("class:status-bar", f" | Queued: {queued}"))
        fragments.append(("class:status-bar", " | PgUp/PgDn: Scroll | Esc/Ctrl+C: Exit "))
        return fragments

    def _get_prompt(self) -> str:
        return "* " if self.machine.is_thinking else "> "

    # -- input -------------------------------------------------------------------

    def _on_text_changed(self, buf: Buffer) -> None:
        self.dispatcher.post(InputEdited(buf.text))

    def _setup_keybindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("enter")
        def handle_enter(event: KeyPressEvent) -> None:
            """Submit input, or pick the highlighted file while autocomplete is open."""
            self.dispatcher.post(Submit(self.input_area.buffer.text))

        @kb.add("tab")
        def handle_tab(event: KeyPressEvent) -> None:
            self.dispatcher.post(AutocompleteConfirm(self.input_area.buffer.text))

        @kb.add("up")
        def handle_up(event: KeyPressEvent) -> None:
            self.dispatcher.post(AutocompleteMove(-1))

        @kb.add("down")
        def handle_down(event: KeyPressEvent) -> None:
            self.dispatcher.post(AutocompleteMove(1))

        @kb.add("escape", eager=True)
        @kb.add("c-c")
        def handle_quit(event: KeyPressEvent) -> None:
            """Close autocomplete if open, otherwise save the transcript and exit."""
            self.dispatcher.post(Quit())

        @kb.add("pageup")
        def handle_page_up(event: KeyPressEvent) -> None:
            self._scroll_offset = min(self._scroll_offset + _SCROLL_STEP, max(0, self._chat_lines - 1))
            event.app.invalidate()

        @kb.add("pagedown")
        def handle_page_down(event: KeyPressEvent) -> None:
            self._scroll_offset = max(0, self._scroll_offset - _SCROLL_STEP)
            event.app.invalidate()

        return kb

    def _setup_style(self) -> Style:
        return Style.from_dict({
            "status-bar": "bg:#3b4252 fg:#d8dee9",
            "status-bar.state": "bg:#88c0d0 fg:#2e3440 bold",
            "thinking": "fg:#C5A059",
            "autocomplete": "fg:#eceff4",
            "autocomplete.selected": "fg:#88c0d0 bold",
            "autocomplete.title": "fg:#b48ead bold",
            "autocomplete.hint": "fg:#8b8b8b italic",
            "sidebar-border": "fg:#4c566a",
            "input-area": "",
        })

    def _create_layout(self) -> Layout:
        chat_window = Window(
            content=FormattedTextControl(self._get_chat_text, get_cursor_position=self._get_chat_cursor),
            wrap_lines=False,
        )
        sidebar = ConditionalContainer(
            VSplit([
                Window(width=1, char="│", style="class:sidebar-border"),
                Window(
                    content=FormattedTextControl(self._get_sidebar_text, get_cursor_position=self._get_sidebar_cursor),
                    width=lambda: Dimension.exact(self._sidebar_width()),
                    wrap_lines=True,
                ),
            ]),
            filter=Condition(lambda: self.machine.show_sidebar),
        )
        thinking = ConditionalContainer(
            Window(content=FormattedTextControl(self._get_thinking_text), height=1),
            filter=Condition(self._thinking_visible),
        )
        autocomplete = ConditionalContainer(
            Window(content=FormattedTextControl(self._get_autocomplete_text), height=self._get_autocomplete_height),
            filter=Condition(lambda: self.machine.autocomplete.active),
        )
        status_bar = Window(
            content=FormattedTextControl(self._get_status_text),
            height=1,
            style="class:status-bar",
        )
        return Layout(
            HSplit([
                VSplit([chat_window, sidebar]),
                thinking,
                autocomplete,
                Window(height=1, char="─", style="class:sidebar-border"),
                self.input_area,
                status_bar,
            ]),
            focused_element=self.input_area,
        )

    def _thinking_visible(self) -> bool:
        if not self.machine.is_thinking:
            self._thinking_since = None
            return False
        return True

    # -- run ---------------------------------------------------------------------

    async def run(self) -> None:
        """Run the UI and the dispatcher until the session exits."""
        self._app = Application(
            layout=self._create_layout(),
            key_bindings=self._setup_keybindings(),
            style=self._setup_style(),
            full_screen=True,
            refresh_interval=0.1,
        )
        self._app.before_render += self._before_render

        dispatcher_task = asyncio.create_task(self.dispatcher.run(), name="dispatcher")
        dispatcher_task.add_done_callback(lambda _: self.exit())
        self.dispatcher.post(Start())
        try:
            await self._app.run_async()
        finally:
            if not dispatcher_task.done():
                dispatcher_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await dispatcher_task
            elif dispatcher_task.exception() is not None:
                logger.error("Dispatcher stopped with an error", exc_info=dispatcher_task.exception())
