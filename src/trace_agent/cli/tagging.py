"""``@path`` file tags in chat input.

Tags are not expanded inline. A hint listing the referenced files is appended
so the model reads them with ``read_file`` when it needs them.
"""

from __future__ import annotations

import re
from typing import Iterable

TAG_PREFIX = "@"

_HINT_RE = re.compile(r"\n\n\[User has referenced these files: .*?\]", re.DOTALL)


def file_hint(paths: list[str]) -> str:
    return (
        "\n\n[User has referenced these files: "
        + ", ".join(paths)
        + ". Use the read_file tool to view their contents.]"
    )


def find_file_tags(text: str, known_files: Iterable[str]) -> list[str]:
    """Return the known files referenced by ``@`` tokens in ``text``, in order of appearance."""
    known = set(known_files)
    found: list[str] = []
    for word in text.split():
        if not word.startswith(TAG_PREFIX):
            continue
        path = word[len(TAG_PREFIX) :]
        if path in known:
            found.append(path)
    return found


def resolve_file_tags(text: str, known_files: Iterable[str]) -> str:
    referenced = find_file_tags(text, known_files)
    if not referenced:
        return text
    return text + file_hint(referenced)


def strip_file_hints(text: str) -> str:
    return _HINT_RE.sub("", text)
