"""Chat session state machine.

``ChatStateMachine`` owns the conversation history, the pending-input queue,
the running process's output buffer and the layout flags. It advances one
event at a time and never performs I/O: every side effect is returned as an
effect object for the dispatcher to execute.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum, auto
from typing import Any, Callable

from ..models import (
    AgentFailure,
    AsyncToolRequest,
    FinalResponse,
    RunCommandRequest,
    ToolCall,
    WindowControlRequest,
)
from .autocomplete import DEFAULT_LIMIT, AutocompleteState
from .events import (
    AgentFinished,
    AutocompleteCancel,
    AutocompleteConfirm,
    AutocompleteMove,
    Effect,
    Event,
    Exit,
    ExportTranscript,
    InputEdited,
    InvokeAgent,
    PostEvent,
    ProcessExited,
    ProcessOutput,
    Quit,
    Redraw,
    Relayout,
    Resize,
    SetInput,
    Start,
    StartProcess,
    Submit,
    TurnComplete,
)
from .tagging import resolve_file_tags

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    """IDLE dispatches new input immediately, THINKING queues it."""

    IDLE = auto()
    THINKING = auto()


def process_result_text(error: str | None) -> str:
    if error is None:
        return "Process finished successfully."
    return f"Process exited with error: {error}"


class ChatStateMachine:
    def __init__(
        self,
        system_prompt: str,
        files: list[str] | None = None,
        greeting: str = "",
        autocomplete_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.history: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        self.phase = SessionPhase.IDLE
        self.pending_queue: deque[str] = deque()
        self.process_output = ""
        self.active_call_id: str | None = None
        self.deferred_calls: list[ToolCall] = []
        self._resumed_calls: list[ToolCall] = []
        self.show_sidebar = False
        self.width = 0
        self.height = 0
        self.files = list(files or [])
        self.greeting = greeting
        self.autocomplete = AutocompleteState()
        self.autocomplete_limit = autocomplete_limit
        self.exiting = False

        self._handlers: dict[type, Callable[[Any], list[Effect]]] = {
            Start: self._on_start,
            InputEdited: self._on_input_edited,
            Submit: self._on_submit,
            AutocompleteMove: self._on_autocomplete_move,
            AutocompleteConfirm: self._on_autocomplete_confirm,
            AutocompleteCancel: self._on_autocomplete_cancel,
            Resize: self._on_resize,
            AgentFinished: self._on_agent_finished,
            TurnComplete: self._on_turn_complete,
            ProcessOutput: self._on_process_output,
            ProcessExited: self._on_process_exited,
            Quit: self._on_quit,
        }

    @property
    def is_thinking(self) -> bool:
        return self.phase == SessionPhase.THINKING

    def handle(self, event: Event) -> list[Effect]:
        """Apply ``event`` and return the effects to execute, in order."""
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning("Unhandled event type: %s", type(event).__name__)
            return []
        return handler(event)

    # -- helpers ---------------------------------------------------------------

    def _invoke(self) -> InvokeAgent:
        deferred, self.deferred_calls = self.deferred_calls, []
        self._resumed_calls = deferred
        return InvokeAgent(history=list(self.history), deferred_calls=deferred)

    def _append_user(self, content: str) -> None:
        self.history.append({"role": "user", "content": content})

    def _append_tool(self, call_id: str, content: str) -> None:
        self.history.append({"role": "tool", "tool_call_id": call_id, "content": content})

    # -- session ---------------------------------------------------------------

    def _on_start(self, event: Start) -> list[Effect]:
        if not self.greeting:
            return [Redraw()]
        self._append_user(self.greeting)
        self.phase = SessionPhase.THINKING
        return [self._invoke(), Redraw()]

    def _on_submit(self, event: Submit) -> list[Effect]:
        if self.autocomplete.active:
            return self._on_autocomplete_confirm(AutocompleteConfirm(event.text))

        text = event.text.strip()
        if not text:
            return []

        content = resolve_file_tags(text, self.files)
        self.autocomplete.cancel()
        if self.phase == SessionPhase.THINKING:
            self.pending_queue.append(content)
            logger.info("Queued user message (queue=%d)", len(self.pending_queue))
            return [SetInput(""), Redraw()]

        self._append_user(content)
        self.phase = SessionPhase.THINKING
        return [SetInput(""), self._invoke(), Redraw()]

    def _on_turn_complete(self, event: TurnComplete) -> list[Effect]:
        if self.pending_queue:
            self._append_user(self.pending_queue.popleft())
            self.phase = SessionPhase.THINKING
            return [self._invoke(), Redraw()]
        self.phase = SessionPhase.IDLE
        return [Redraw()]

    def _on_agent_finished(self, event: AgentFinished) -> list[Effect]:
        outcome = event.outcome
        if self.phase != SessionPhase.THINKING:
            logger.warning("Ignoring agent outcome while idle: %s", type(outcome).__name__)
            return []
        resumed, self._resumed_calls = self._resumed_calls, []

        if isinstance(outcome, FinalResponse):
            self.history = outcome.history
            return [PostEvent(TurnComplete()), Redraw()]

        if isinstance(outcome, AsyncToolRequest):
            return self._on_async_request(outcome)

        if isinstance(outcome, AgentFailure):
            logger.error("Agent failed (%s): %s", outcome.reason.value, outcome.message)
            # calls handed to the failed invocation still need a result
            for tc in resumed:
                self._append_tool(tc.id, f"Error executing tool: not run ({outcome.reason.value})")
            self.history.append({"role": "assistant", "content": f"**Error:** {outcome.message}"})
            self.deferred_calls = []
            self.phase = SessionPhase.IDLE
            return [Redraw()]

        logger.warning("Unknown agent outcome: %r", outcome)
        return []

    def _on_async_request(self, outcome: AsyncToolRequest) -> list[Effect]:
        self.history = outcome.history
        self.deferred_calls = list(outcome.deferred_calls)
        request = outcome.request

        if isinstance(request, RunCommandRequest):
            self.process_output = ""
            self.active_call_id = outcome.call_id
            return [StartProcess(command=request.command, args=list(request.args), call_id=outcome.call_id), Redraw()]

        if isinstance(request, WindowControlRequest):
            self.show_sidebar = request.action == "open"
            self._append_tool(outcome.call_id, f"Window action '{request.action}' triggered.")
            return [Relayout(), self._invoke()]

        logger.warning("Unsupported out-of-band request: %r", request)
        return []

    # -- process ---------------------------------------------------------------

    def _on_process_output(self, event: ProcessOutput) -> list[Effect]:
        if event.call_id != self.active_call_id:
            return []
        self.process_output += event.line + "\n"
        return [Redraw()]

    def _on_process_exited(self, event: ProcessExited) -> list[Effect]:
        if event.call_id != self.active_call_id:
            logger.warning("Ignoring exit of unknown process id=%s", event.call_id)
            return []

        result = process_result_text(event.error)
        if self.show_sidebar:
            content = result
        else:
            content = f"Process Output:\n```\n{self.process_output}```\n{result}"
        self._append_tool(event.call_id, content)

        self.process_output = ""
        self.active_call_id = None
        self.phase = SessionPhase.THINKING
        return [self._invoke(), Redraw()]

    # -- input -----------------------------------------------------------------

    def _on_input_edited(self, event: InputEdited) -> list[Effect]:
        was_active = self.autocomplete.active
        self.autocomplete.recompute(event.text, self.files, self.autocomplete_limit)
        if was_active != self.autocomplete.active:
            return [Relayout()]
        return [Redraw()]

    def _on_autocomplete_move(self, event: AutocompleteMove) -> list[Effect]:
        if not self.autocomplete.active:
            return []
        self.autocomplete.move(event.delta)
        return [Redraw()]

    def _on_autocomplete_confirm(self, event: AutocompleteConfirm) -> list[Effect]:
        new_text = self.autocomplete.confirm(event.text)
        if new_text is None:
            return []
        return [SetInput(new_text), Relayout()]

    def _on_autocomplete_cancel(self, event: AutocompleteCancel) -> list[Effect]:
        if not self.autocomplete.active:
            return []
        self.autocomplete.cancel()
        return [Relayout()]

    def _on_resize(self, event: Resize) -> list[Effect]:
        self.width = event.width
        self.height = event.height
        return [Relayout()]

    def _on_quit(self, event: Quit) -> list[Effect]:
        if self.autocomplete.active:
            return self._on_autocomplete_cancel(AutocompleteCancel())
        self.exiting = True
        return [ExportTranscript(history=list(self.history)), Exit()]
