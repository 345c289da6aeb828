"""Security utilities for built-in tools.

Path validation for file tools: null bytes, system paths and protected
secret files are rejected before any I/O happens.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

# Paths that should never be accessible via tools
_BLOCKED_PATHS = {
    "/etc/shadow",
    "/etc/passwd",
    "/etc/sudoers",
}

_BLOCKED_PREFIXES = (
    "/proc/",
    "/sys/",
    "/dev/",
)

# Secret-bearing files the model may not read or modify
_PROTECTED_SUFFIXES = (".env",)


def is_protected(path: str) -> bool:
    return path.rstrip("/").endswith(_PROTECTED_SUFFIXES)


def validate_path(path: str, working_dir: str) -> tuple[str, str | None]:
    """Validate and resolve a file path.

    Returns (resolved_path, error_message).
    If error_message is not None, the path is invalid.
    """
    if not path:
        return "", "Path is required"

    # Reject null bytes (path traversal via null byte injection)
    if "\x00" in path:
        return "", "Path contains null bytes"

    if is_protected(path):
        logger.warning("Blocked access to protected file: %s", path)
        return "", "access denied: .env files are protected"

    # Resolve relative to working dir
    if os.path.isabs(path):
        resolved = os.path.realpath(path)
    else:
        resolved = os.path.realpath(os.path.join(working_dir, path))

    # Symlinks pointing at a protected file are rejected as well
    if is_protected(resolved):
        logger.warning("Blocked access to protected file via %s", path)
        return "", "access denied: .env files are protected"

    # Check blocked paths (also check the realpath of blocked entries for symlinks)
    for blocked in _BLOCKED_PATHS:
        blocked_real = os.path.realpath(blocked)
        if resolved == blocked or resolved == blocked_real:
            logger.warning("Blocked access to sensitive path: %s", resolved)
            return "", f"Access denied: {path}"

    for prefix in _BLOCKED_PREFIXES:
        prefix_real = os.path.realpath(prefix)
        if resolved.startswith(prefix) or resolved.startswith(prefix_real):
            logger.warning("Blocked access to system path: %s", resolved)
            return "", f"Access denied: {path}"

    return resolved, None
