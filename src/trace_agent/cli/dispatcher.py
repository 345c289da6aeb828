"""Single-consumer event dispatcher.

Every event (key input, resize, agent outcome, process line, process exit)
goes through one ``asyncio.Queue``. ``run()`` is the only reader of that
queue and the only caller of ``ChatStateMachine.handle``, so session state
is mutated strictly in dequeue order. Background tasks only post events.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

from ..models import AgentFailure, FailureReason
from ..services.agent_loop import DEFAULT_MAX_ITERATIONS, run_agent_loop
from ..services.ai_service import AIService
from ..services.process_runner import ProcessRun, ProcessRunner
from ..services.transcript import save_transcript
from ..tools import ToolRegistry
from .events import (
    AgentFinished,
    Effect,
    Event,
    Exit,
    ExportTranscript,
    InvokeAgent,
    PostEvent,
    Redraw,
    Relayout,
    SetInput,
    StartProcess,
)
from .state import ChatStateMachine

logger = logging.getLogger(__name__)


class ChatView(Protocol):
    def set_input(self, text: str) -> None: ...

    def refresh(self, relayout: bool = False) -> None: ...

    def exit(self) -> None: ...


class EventDispatcher:
    def __init__(
        self,
        machine: ChatStateMachine,
        ai_service: AIService,
        registry: ToolRegistry,
        runner: ProcessRunner,
        view: ChatView | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        transcript_dir: Path | None = None,
    ) -> None:
        self.machine = machine
        self.ai_service = ai_service
        self.registry = registry
        self.runner = runner
        self.view = view
        self.max_iterations = max_iterations
        self.transcript_dir = transcript_dir
        self.last_transcript: Path | None = None
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def post(self, event: Event) -> None:
        """Enqueue ``event``. Safe to call from key handlers and background tasks."""
        self._queue.put_nowait(event)

    async def run(self) -> None:
        """Consume events until an ``Exit`` effect is executed."""
        while not self._stopped:
            await self.process_next()

    async def process_next(self) -> Event:
        """Handle exactly one queued event, waiting for it if necessary."""
        event = await self._queue.get()
        try:
            effects = self.machine.handle(event)
            for effect in effects:
                await self._execute(effect)
        finally:
            self._queue.task_done()
        return event

    async def wait_idle(self) -> None:
        """Wait for all background agent and pump tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Any, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute(self, effect: Effect) -> None:
        if isinstance(effect, InvokeAgent):
            self._spawn(self._invoke(effect), name="agent-loop")
        elif isinstance(effect, StartProcess):
            run = self.runner.start(effect.command, effect.args, effect.call_id)
            self._spawn(self._pump(run), name=f"pump-{effect.call_id}")
        elif isinstance(effect, PostEvent):
            self.post(effect.event)
        elif isinstance(effect, SetInput):
            if self.view is not None:
                self.view.set_input(effect.text)
        elif isinstance(effect, Redraw):
            if self.view is not None:
                self.view.refresh()
        elif isinstance(effect, Relayout):
            if self.view is not None:
                self.view.refresh(relayout=True)
        elif isinstance(effect, ExportTranscript):
            if self.transcript_dir is not None:
                self.last_transcript = await asyncio.to_thread(save_transcript, effect.history, self.transcript_dir)
        elif isinstance(effect, Exit):
            self._stopped = True
            if self.view is not None:
                self.view.exit()
        else:
            logger.warning("Unknown effect: %r", effect)

    async def _invoke(self, effect: InvokeAgent) -> None:
        try:
            outcome = await run_agent_loop(
                self.ai_service,
                effect.history,
                self.registry,
                max_iterations=self.max_iterations,
                deferred_calls=effect.deferred_calls,
            )
        except Exception as e:
            logger.exception("Agent loop crashed")
            outcome = AgentFailure(reason=FailureReason.INTERNAL, message=str(e) or type(e).__name__)
        self.post(AgentFinished(outcome))

    async def _pump(self, run: ProcessRun) -> None:
        async for event in run.events():
            self.post(event)
