"""Events consumed by the chat state machine and the effects it returns.

Process events are the ones published by the process runner and are
re-exported here so the dispatcher can route them without a second type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ..models import AgentOutcome, ToolCall
from ..services.process_runner import ProcessExited, ProcessOutput

# -- events -------------------------------------------------------------------


@dataclass(frozen=True)
class Start:
    """First event of a session."""


@dataclass(frozen=True)
class InputEdited:
    text: str


@dataclass(frozen=True)
class Submit:
    text: str


@dataclass(frozen=True)
class AutocompleteMove:
    delta: int


@dataclass(frozen=True)
class AutocompleteConfirm:
    text: str


@dataclass(frozen=True)
class AutocompleteCancel:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class AgentFinished:
    outcome: AgentOutcome


@dataclass(frozen=True)
class TurnComplete:
    pass


@dataclass(frozen=True)
class Quit:
    pass


Event = Union[
    Start,
    InputEdited,
    Submit,
    AutocompleteMove,
    AutocompleteConfirm,
    AutocompleteCancel,
    Resize,
    AgentFinished,
    TurnComplete,
    Quit,
    ProcessOutput,
    ProcessExited,
]

# -- effects ------------------------------------------------------------------


@dataclass(frozen=True)
class InvokeAgent:
    history: list[dict[str, Any]]
    deferred_calls: list[ToolCall] = field(default_factory=list)


@dataclass(frozen=True)
class StartProcess:
    command: str
    args: list[str]
    call_id: str


@dataclass(frozen=True)
class PostEvent:
    event: Event


@dataclass(frozen=True)
class SetInput:
    text: str


@dataclass(frozen=True)
class Redraw:
    pass


@dataclass(frozen=True)
class Relayout:
    pass


@dataclass(frozen=True)
class ExportTranscript:
    history: list[dict[str, Any]]


@dataclass(frozen=True)
class Exit:
    pass


Effect = Union[InvokeAgent, StartProcess, PostEvent, SetInput, Redraw, Relayout, ExportTranscript, Exit]

__all__ = [
    "AgentFinished",
    "AutocompleteCancel",
    "AutocompleteConfirm",
    "AutocompleteMove",
    "Effect",
    "Event",
    "Exit",
    "ExportTranscript",
    "InputEdited",
    "InvokeAgent",
    "PostEvent",
    "ProcessExited",
    "ProcessOutput",
    "Quit",
    "Redraw",
    "Relayout",
    "Resize",
    "SetInput",
    "Start",
    "StartProcess",
    "Submit",
    "TurnComplete",
]
