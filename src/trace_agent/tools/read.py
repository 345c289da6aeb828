"""Read file contents tool."""

from __future__ import annotations

import os
from typing import Any

from .security import validate_path

_MAX_FILE_BYTES = 100 * 1024

_working_dir: str = os.getcwd()

DEFINITION: dict[str, Any] = {
    "name": "read_file",
    "description": "Read the contents of a given relative file path.",
    "parameters": {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "The relative path of a file in the working directory."},
        },
        "required": ["path"],
        "additionalProperties": False,
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


async def handle(path: str = "", **_: Any) -> dict[str, Any]:
    resolved, error = validate_path(path, _working_dir)
    if error:
        return {"error": error}
    if not os.path.isfile(resolved):
        return {"error": f"File not found: {path}"}
    try:
        size = os.path.getsize(resolved)
        if size > _MAX_FILE_BYTES:
            return {"error": "skipped: file too large (>100KB)"}
        with open(resolved, "rb") as f:
            raw = f.read()
    except OSError as e:
        return {"error": str(e)}

    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        return {"error": "skipped: appears to be binary"}

    header = f"File: {path}\nSize: {len(raw)} bytes\nLines: {content.count(chr(10)) + 1}"
    return {"output": f"{header}\n\n{content}"}
