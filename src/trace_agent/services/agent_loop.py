"""Bounded agentic tool-call loop.

One invocation takes a copy of the conversation, alternates completion
requests with inline tool executions, and stops with a final answer, a
request for an out-of-band tool that the caller must resolve, or a failure.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Iterable

from pydantic import ValidationError

from ..models import (
    OUT_OF_BAND_REQUESTS,
    AgentFailure,
    AgentOutcome,
    AsyncToolRequest,
    FailureReason,
    FinalResponse,
    ToolCall,
)
from ..tools import ToolRegistry
from .ai_service import AIService, AIServiceError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10


def _tool_message(call_id: str, content: str) -> dict[str, Any]:
    return {"role": "tool", "tool_call_id": call_id, "content": content}


def _parse_tool_calls(raw_calls: Any) -> list[ToolCall]:
    calls: list[ToolCall] = []
    for tc in raw_calls or []:
        func = tc.function
        calls.append(ToolCall(id=tc.id, name=func.name or "", arguments=func.arguments or ""))
    return calls


def _decode_arguments(raw: str) -> dict[str, Any]:
    if not raw.strip():
        return {}
    args = json.loads(raw)
    if not isinstance(args, dict):
        raise ValueError("tool arguments must be a JSON object")
    return args


def _format_result(result: dict[str, Any]) -> str:
    if "error" in result:
        return f"Error executing tool: {result['error']}"
    if "output" in result:
        return str(result["output"])
    return json.dumps(result)


async def _execute_tool(registry: ToolRegistry, tc: ToolCall) -> str:
    """Run a synchronous tool call and return the text for its tool message. Never raises."""
    try:
        arguments = _decode_arguments(tc.arguments)
        result = await registry.call_tool(tc.name, arguments)
    except Exception as e:
        logger.error("Tool execution failed name=%s id=%s: %s", tc.name, tc.id, e)
        return f"Error executing tool: {e}"

    content = _format_result(result)
    if "error" in result:
        logger.warning("Tool returned an error name=%s id=%s: %s", tc.name, tc.id, result["error"])
    else:
        logger.info("Tool executed name=%s id=%s result_len=%d", tc.name, tc.id, len(content))
    return content


def _as_out_of_band(tc: ToolCall) -> Any:
    """Return the validated request for an out-of-band call, or None.

    Malformed arguments are logged and yield None so the call is attempted
    through the registry instead.
    """
    model = OUT_OF_BAND_REQUESTS.get(tc.name)
    if model is None:
        return None
    try:
        return model.model_validate_json(tc.arguments or "{}")
    except ValidationError as e:
        logger.warning("Malformed arguments for %s (id=%s), falling back to inline execution: %s", tc.name, tc.id, e)
        return None


async def _process_calls(
    registry: ToolRegistry,
    messages: list[dict[str, Any]],
    calls: list[ToolCall],
) -> AsyncToolRequest | None:
    """Resolve ``calls`` in order, appending tool messages to ``messages``.

    Stops at the first well-formed out-of-band call and returns the suspend
    request carrying the calls that were not processed yet.
    """
    for index, tc in enumerate(calls):
        logger.info("Processing tool call name=%s id=%s", tc.name, tc.id)
        request = _as_out_of_band(tc)
        if request is not None:
            deferred = list(calls[index + 1 :])
            if deferred:
                logger.info("Deferring %d tool call(s) until %s (id=%s) resolves", len(deferred), tc.name, tc.id)
            return AsyncToolRequest(request=request, call_id=tc.id, history=messages, deferred_calls=deferred)

        content = await _execute_tool(registry, tc)
        messages.append(_tool_message(tc.id, content))
    return None


async def run_agent_loop(
    ai_service: AIService,
    history: list[dict[str, Any]],
    registry: ToolRegistry,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    deferred_calls: Iterable[ToolCall] = (),
) -> AgentOutcome:
    """Run the tool-call loop on a copy of ``history``.

    ``deferred_calls`` are calls left over from a previous suspension; they
    are resolved before the first completion request.
    """
    messages = copy.deepcopy(history)
    tools = registry.get_openai_tools()

    pending = list(deferred_calls)
    if pending:
        suspended = await _process_calls(registry, messages, pending)
        if suspended is not None:
            return suspended

    for iteration in range(max_iterations):
        logger.info("Agent iteration %d/%d messages=%d", iteration + 1, max_iterations, len(messages))
        try:
            response = await ai_service.complete(messages, tools=tools)
        except AIServiceError as e:
            return AgentFailure(reason=FailureReason.API_ERROR, message=str(e))

        if not response.choices:
            logger.warning("No choices in response")
            return AgentFailure(reason=FailureReason.NO_RESPONSE, message="no response from model")

        choice = response.choices[0]
        message = choice.message
        content = message.content or ""
        calls = _parse_tool_calls(message.tool_calls)
        logger.info(
            "AI response finish_reason=%s tool_calls=%d content_len=%d",
            choice.finish_reason,
            len(calls),
            len(content),
        )

        if not calls:
            messages.append({"role": "assistant", "content": content})
            return FinalResponse(content=content, history=messages)

        messages.append(
            {
                "role": "assistant",
                "content": content,
                "tool_calls": [tc.to_openai() for tc in calls],
            }
        )
        suspended = await _process_calls(registry, messages, calls)
        if suspended is not None:
            return suspended

    logger.warning("Max iterations (%d) reached in agent loop", max_iterations)
    return AgentFailure(
        reason=FailureReason.MAX_ITERATIONS,
        message=f"max iterations ({max_iterations}) reached - possible infinite loop",
    )
