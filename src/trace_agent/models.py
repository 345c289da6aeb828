"""Agent loop outcome types and out-of-band tool requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: str  # raw JSON text, as sent by the model

    def to_openai(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class RunCommandRequest(BaseModel):
    """Arguments of a ``run_command`` call that streams through the process runner."""

    kind: Literal["run_command"] = "run_command"
    command: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)


class WindowControlRequest(BaseModel):
    """Arguments of a ``manage_window`` call that toggles the terminal sidebar."""

    kind: Literal["manage_window"] = "manage_window"
    action: Literal["open", "close"]
    target: str = "terminal"


OutOfBandRequest = Union[RunCommandRequest, WindowControlRequest]

OUT_OF_BAND_REQUESTS: dict[str, type[BaseModel]] = {
    "run_command": RunCommandRequest,
    "manage_window": WindowControlRequest,
}


class FailureReason(str, Enum):
    API_ERROR = "api_error"
    NO_RESPONSE = "no_response"
    MAX_ITERATIONS = "max_iterations"
    INTERNAL = "internal"


@dataclass
class FinalResponse:
    content: str
    history: list[dict[str, Any]]


@dataclass
class AsyncToolRequest:
    """The loop suspended on an out-of-band call; the caller resolves it and resumes.

    ``deferred_calls`` holds the calls that followed the suspending one in the
    same model reply. They must be handed back to the loop on resume so every
    call id in the assistant message gets its tool result.
    """

    request: OutOfBandRequest
    call_id: str
    history: list[dict[str, Any]]
    deferred_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class AgentFailure:
    reason: FailureReason
    message: str


AgentOutcome = Union[FinalResponse, AsyncToolRequest, AgentFailure]
