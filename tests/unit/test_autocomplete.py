"""Tests for @file autocomplete."""

from __future__ import annotations

from trace_agent.cli.autocomplete import AutocompleteState

FILES = ["b.txt", "a/notes.md", "a/main.py", "z/main_test.py", "README.md"]


class TestRecompute:
    def test_inactive_without_trigger(self) -> None:
        ac = AutocompleteState()
        ac.recompute("hello world", FILES)
        assert not ac.active

    def test_inactive_on_empty_input(self) -> None:
        ac = AutocompleteState()
        ac.recompute("", FILES)
        assert not ac.active

    def test_substring_match_keeps_master_order(self) -> None:
        ac = AutocompleteState()
        ac.recompute("fix @main", FILES)
        assert ac.active
        assert ac.candidates == ["a/main.py", "z/main_test.py"]

    def test_bare_trigger_lists_all_files(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@", FILES)
        assert ac.candidates == FILES

    def test_capped_at_limit(self) -> None:
        files = [f"f{i}.py" for i in range(25)]
        ac = AutocompleteState()
        ac.recompute("@f", files)
        assert ac.candidates == files[:10]

    def test_exact_match_deactivates(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@a/main.py", FILES)
        assert not ac.active

    def test_no_candidates_inactive(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@nothing-like-this", FILES)
        assert not ac.active

    def test_only_last_token_considered(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@main then more", FILES)
        assert not ac.active

    def test_selection_reset_when_out_of_range(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@", FILES)
        ac.move(4)
        assert ac.selected_index == 4
        ac.recompute("@main", FILES)
        assert ac.selected_index == 0

    def test_selection_kept_when_in_range(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@m", FILES)
        ac.move(1)
        ac.recompute("@ma", FILES)
        assert ac.selected_index == 1


class TestNavigation:
    def test_move_clamped(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@main", FILES)
        ac.move(-1)
        assert ac.selected_index == 0
        ac.move(5)
        assert ac.selected_index == 1

    def test_confirm_replaces_last_token(self) -> None:
        ac = AutocompleteState()
        ac.recompute("please read @note", FILES)
        new_text = ac.confirm("please read @note")
        assert new_text == "please read @a/notes.md "
        assert not ac.active

    def test_confirm_inactive_returns_none(self) -> None:
        ac = AutocompleteState()
        assert ac.confirm("anything") is None

    def test_cancel(self) -> None:
        ac = AutocompleteState()
        ac.recompute("@", FILES)
        ac.cancel()
        assert not ac.active
        assert ac.selected is None
