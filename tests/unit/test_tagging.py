"""Tests for @file tag resolution."""

from __future__ import annotations

from trace_agent.cli.tagging import find_file_tags, resolve_file_tags, strip_file_hints

FILES = ["main.go", "pkg/ui/view.go", "README.md"]


class TestResolveFileTags:
    def test_no_tags_unchanged(self) -> None:
        assert resolve_file_tags("just a question", FILES) == "just a question"

    def test_unknown_tag_unchanged(self) -> None:
        assert resolve_file_tags("see @missing.py", FILES) == "see @missing.py"

    def test_single_tag(self) -> None:
        result = resolve_file_tags("explain @main.go", FILES)
        assert result == (
            "explain @main.go\n\n[User has referenced these files: main.go. "
            "Use the read_file tool to view their contents.]"
        )

    def test_multiple_tags_in_order(self) -> None:
        result = resolve_file_tags("@pkg/ui/view.go and @README.md", FILES)
        assert "[User has referenced these files: pkg/ui/view.go, README.md." in result

    def test_partial_match_not_tagged(self) -> None:
        assert find_file_tags("@view.go", FILES) == []


class TestStripFileHints:
    def test_round_trip(self) -> None:
        tagged = resolve_file_tags("look at @main.go", FILES)
        assert strip_file_hints(tagged) == "look at @main.go"

    def test_plain_text_untouched(self) -> None:
        assert strip_file_hints("nothing [here]") == "nothing [here]"
