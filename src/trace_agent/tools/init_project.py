"""Initialize a git project with a README and .gitignore."""

from __future__ import annotations

import asyncio
import os
from typing import Any

from .security import validate_path

_working_dir: str = os.getcwd()

_GITIGNORE = ".DS_Store\nnode_modules/\ndist/\nbin/\n.env\n__pycache__/\n.venv/\n"

DEFINITION: dict[str, Any] = {
    "name": "init_project",
    "description": "Initialize a new git project with a README and .gitignore. Can create a new directory.",
    "parameters": {
        "type": "object",
        "properties": {
            "name": {
                "type": "string",
                "description": "Optional name of the project directory. If empty, uses current directory.",
            },
            "description": {"type": "string", "description": "Short description for the README."},
        },
        "additionalProperties": False,
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


def _write_if_missing(path: str, content: str) -> None:
    if os.path.exists(path):
        return
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


async def handle(name: str = "", description: str = "", **_: Any) -> dict[str, Any]:
    target = _working_dir
    if name:
        target, error = validate_path(name, _working_dir)
        if error:
            return {"error": error}
        try:
            os.makedirs(target, exist_ok=True)
        except OSError as e:
            return {"error": f"failed to create directory: {e}"}

    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "init",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=target,
        )
        out, _err = await proc.communicate()
    except OSError as e:
        return {"error": f"git init failed: {e}"}
    if proc.returncode != 0:
        return {"error": f"git init failed: {out.decode('utf-8', errors='replace').strip()}"}

    title = name or "Project"
    readme = f"# {title}\n"
    if description:
        readme += f"\n{description}\n"
    try:
        _write_if_missing(os.path.join(target, "README.md"), readme)
        _write_if_missing(os.path.join(target, ".gitignore"), _GITIGNORE)
    except OSError as e:
        return {"error": f"failed to create project files: {e}"}

    return {"output": f"Initialized project in '{name or '.'}' with git, README.md, and .gitignore."}
