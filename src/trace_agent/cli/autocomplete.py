"""File-path autocomplete for ``@`` tags."""

from __future__ import annotations

from dataclasses import dataclass, field

from .tagging import TAG_PREFIX

DEFAULT_LIMIT = 10


@dataclass
class AutocompleteState:
    active: bool = False
    candidates: list[str] = field(default_factory=list)
    selected_index: int = 0

    @property
    def selected(self) -> str | None:
        if not self.active or not self.candidates:
            return None
        return self.candidates[self.selected_index]

    def recompute(self, text: str, files: list[str], limit: int = DEFAULT_LIMIT) -> None:
        """Derive the state from the current input text and the project file list."""
        words = text.split()
        last = words[-1] if words else ""
        if not last.startswith(TAG_PREFIX):
            self.active = False
            return

        partial = last[len(TAG_PREFIX) :]
        if partial in files:
            # file already fully selected
            self.active = False
            return

        candidates: list[str] = []
        for path in files:
            if partial in path:
                candidates.append(path)
                if len(candidates) >= limit:
                    break

        self.candidates = candidates
        self.active = bool(candidates)
        if self.selected_index >= len(candidates):
            self.selected_index = 0

    def move(self, delta: int) -> None:
        if not self.active:
            return
        self.selected_index = max(0, min(len(self.candidates) - 1, self.selected_index + delta))

    def confirm(self, text: str) -> str | None:
        """Replace the last token of ``text`` with the selected tag.

        Returns the new input text (with a trailing space), or None when there
        is nothing to confirm.
        """
        selected = self.selected
        if selected is None:
            return None
        words = text.split()
        self.active = False
        if not words:
            return None
        words[-1] = TAG_PREFIX + selected
        return " ".join(words) + " "

    def cancel(self) -> None:
        self.active = False
