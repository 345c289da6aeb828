"""Write/create file tool."""

from __future__ import annotations

import os
from typing import Any

from .security import validate_path

_working_dir: str = os.getcwd()

DEFINITION: dict[str, Any] = {
    "name": "write_file",
    "description": "Write content to a file. Creates the file if it doesn't exist, or overwrites it if it does.",
    "parameters": {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "The relative path of the file to write."},
            "content": {"type": "string", "description": "The content to write to the file."},
        },
        "required": ["path", "content"],
        "additionalProperties": False,
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


async def handle(path: str = "", content: str = "", **_: Any) -> dict[str, Any]:
    resolved, error = validate_path(path, _working_dir)
    if error:
        return {"error": error}
    try:
        os.makedirs(os.path.dirname(resolved), exist_ok=True)
        with open(resolved, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        return {"error": f"failed to write file: {e}"}
    return {"output": f"Successfully wrote to {path} (Length: {len(content)} characters)"}
