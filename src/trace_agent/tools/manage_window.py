"""Window control tool for the terminal sidebar.

Like ``run_command`` this is resolved out of band by the UI; the handler is
the fallback for calls whose arguments fail validation.
"""

from __future__ import annotations

from typing import Any

DEFINITION: dict[str, Any] = {
    "name": "manage_window",
    "description": (
        "Control the interface layout, such as opening or closing the sidebar to show terminal output."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "enum": ["open", "close"],
                "description": "Action to perform: 'open' or 'close'.",
            },
            "target": {"type": "string", "description": "Target view: 'terminal' (default)."},
        },
        "required": ["action"],
        "additionalProperties": False,
    },
}


async def handle(action: Any = "", target: Any = "terminal", **_: Any) -> dict[str, Any]:
    if action not in ("open", "close"):
        return {"error": f"invalid action: {action}"}
    return {"output": f"Window action '{action}' triggered for target '{target}'"}
