"""Project file listing tool (respects .gitignore when inside a git repository)."""

from __future__ import annotations

import asyncio
import io
import logging
import os
import subprocess
from typing import Any

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .security import validate_path

logger = logging.getLogger(__name__)

_working_dir: str = os.getcwd()

_SKIPPED_DIRS = {".git", "bin"}
_SKIPPED_FILES = {"agent", "trace", ".env"}

DEFINITION: dict[str, Any] = {
    "name": "list_files",
    "description": "List files in the project. Respects .gitignore.",
    "parameters": {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Optional relative path to list files from. Defaults to current directory.",
            },
        },
        "additionalProperties": False,
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


def _keep(path: str) -> bool:
    if not path:
        return False
    if path.startswith(tuple(f"{d}/" for d in _SKIPPED_DIRS)):
        return False
    return path not in _SKIPPED_FILES


def list_project_files(directory: str) -> list[str]:
    """Return project-relative file paths under ``directory``, sorted.

    Uses ``git ls-files`` (tracked + untracked, honouring ignore rules) and
    falls back to a directory walk outside of git repositories.
    """
    paths: list[str] = []
    try:
        result = subprocess.run(
            ["git", "ls-files", "-c", "-o", "--exclude-standard"],
            cwd=directory,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("git ls-files unavailable in %s: %s", directory, e)
        result = None

    if result is not None and result.returncode == 0:
        paths = [line.strip() for line in result.stdout.splitlines()]
    else:
        for root, dirs, files in os.walk(directory):
            dirs[:] = sorted(d for d in dirs if d not in _SKIPPED_DIRS)
            for name in files:
                rel = os.path.relpath(os.path.join(root, name), directory)
                paths.append(rel.replace(os.sep, "/"))

    return sorted({p for p in paths if _keep(p)})


def _add_children(node: Tree, paths: list[str]) -> None:
    root_files: list[str] = []
    dirs: dict[str, list[str]] = {}
    for path in paths:
        head, sep, rest = path.partition("/")
        if sep:
            dirs.setdefault(head, []).append(rest)
        else:
            root_files.append(path)

    for name in root_files:
        node.add(Text(name))
    for name in sorted(dirs):
        _add_children(node.add(Text(name)), dirs[name])


def render_file_tree(root_label: str, paths: list[str]) -> str:
    """Render ``paths`` as a plain-text tree: files first, then sub-directories."""
    tree = Tree(Text(root_label))
    _add_children(tree, paths)
    buf = io.StringIO()
    Console(file=buf, color_system=None, width=200, legacy_windows=False).print(tree)
    # rich pads tree lines to the console width
    return "\n".join(line.rstrip() for line in buf.getvalue().splitlines()).rstrip()


async def handle(path: str = "", **_: Any) -> dict[str, Any]:
    directory = _working_dir
    if path and path != ".":
        resolved, error = validate_path(path, _working_dir)
        if error:
            return {"error": error}
        if not os.path.isdir(resolved):
            return {"error": f"Not a directory: {path}"}
        directory = resolved

    files = await asyncio.to_thread(list_project_files, directory)
    label = path if path and path != "." else "Project"
    return {"output": render_file_tree(label, files)}
