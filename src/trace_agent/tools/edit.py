"""Edit file via exact search/replace."""

from __future__ import annotations

import os
from typing import Any

from .security import validate_path

_working_dir: str = os.getcwd()

DEFINITION: dict[str, Any] = {
    "name": "edit_file",
    "description": (
        "Edit a file by replacing a specific block of text with new text. "
        "Uses exact string matching and replaces the first occurrence."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "The relative path of the file to edit"},
            "search_text": {
                "type": "string",
                "description": "The exact block of text to replace. Must match exactly.",
            },
            "replace_text": {
                "type": "string",
                "description": "The new text to insert in place of the search_text.",
            },
        },
        "required": ["path", "search_text", "replace_text"],
        "additionalProperties": False,
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


async def handle(path: str = "", search_text: str = "", replace_text: str = "", **_: Any) -> dict[str, Any]:
    resolved, error = validate_path(path, _working_dir)
    if error:
        return {"error": error}
    if not os.path.isfile(resolved):
        return {"error": f"failed to read file: {path} does not exist"}
    try:
        with open(resolved, encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        return {"error": f"failed to read file: {e}"}

    if not search_text or search_text not in content:
        return {"error": f"search block not found in {path}. Ensure exact match (including whitespace)."}

    new_content = content.replace(search_text, replace_text, 1)
    try:
        with open(resolved, "w", encoding="utf-8") as f:
            f.write(new_content)
    except OSError as e:
        return {"error": f"failed to write file: {e}"}

    return {"output": f"Successfully edited {path}"}
