"""Command execution tool.

``run_command`` is normally handled out of band: the agent loop suspends and
the UI streams the process through the process runner. The handler here is
the synchronous fallback used when the call's arguments do not validate; it
runs the command to completion and returns the combined output.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from typing import Any

_MAX_OUTPUT = 100_000
_DEFAULT_TIMEOUT = 120

_working_dir: str = os.getcwd()

# Used only when the requested executable is not on PATH
_BINARY_FALLBACKS: dict[str, str] = {
    "python": "python3",
    "pip": "pip3",
}

DEFINITION: dict[str, Any] = {
    "name": "run_command",
    "description": (
        "Run a shell command. Use this for git commands like 'git diff', 'git status', 'git log'. "
        "Output is streamed to the user while the command runs."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "command": {"type": "string", "description": "The command to run."},
            "args": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Arguments for the command.",
            },
        },
        "required": ["command", "args"],
        "additionalProperties": False,
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


def get_working_dir() -> str:
    return _working_dir


def resolve_binary(name: str) -> str:
    """Return ``name`` if it is on PATH, else a known alternative that is, else ``name``."""
    if shutil.which(name):
        return name
    fallback = _BINARY_FALLBACKS.get(name)
    if fallback and shutil.which(fallback):
        return fallback
    return name


async def handle(command: Any = "", args: Any = None, timeout: int = _DEFAULT_TIMEOUT, **_: Any) -> dict[str, Any]:
    if not isinstance(command, str) or not command:
        return {"error": "command must be a non-empty string"}
    if args is None:
        args = []
    elif isinstance(args, str):
        args = args.split()
    elif not isinstance(args, list):
        return {"error": "args must be a list of strings"}
    argv = [str(a) for a in args]

    try:
        proc = await asyncio.create_subprocess_exec(
            resolve_binary(command),
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=_working_dir,
        )
        try:
            stdout, _stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return {"error": f"Command timed out after {timeout}s"}
    except OSError as e:
        return {"error": str(e)}

    output = stdout.decode("utf-8", errors="replace")
    if len(output) > _MAX_OUTPUT:
        output = output[:_MAX_OUTPUT] + "\n... (truncated)"
    if proc.returncode:
        return {"output": f"Error: exit status {proc.returncode}\nOutput:\n{output}"}
    return {"output": output}
