"""
Tests for search filtering.

Tests cover:
- LIKE escaping as a pure function
- Predicate construction and term normalization
- Literal, case-insensitive substring matching against the store
"""

import pytest

from msgboard.search import LIKE_ESCAPE_CHAR, build_predicate, escape_like, normalize_term


class TestEscapeLike:
    """Test escaping of LIKE special characters."""

    @pytest.mark.parametrize("raw, escaped", [
        ("plain", "plain"),
        ("50%", "50\\%"),
        ("snake_case", "snake\\_case"),
        ("back\\slash", "back\\\\slash"),
        ("%_\\", "\\%\\_\\\\"),
        ("", ""),
    ])
    def test_escape(self, raw, escaped):
        assert escape_like(raw) == escaped

    def test_escape_char_is_backslash(self):
        assert LIKE_ESCAPE_CHAR == "\\"

    def test_other_punctuation_untouched(self):
        """Test characters without LIKE meaning pass through."""
        assert escape_like("a*b?c[d]'e\"") == "a*b?c[d]'e\""


class TestBuildPredicate:
    """Test predicate construction."""

    @pytest.mark.parametrize("raw", [None, "", "   ", "\n\t"])
    def test_blank_term_matches_all(self, raw):
        """Test blank input yields no predicate and an empty term."""
        predicate, term = build_predicate(raw)

        assert predicate is None
        assert term == ""

    def test_term_is_trimmed(self):
        predicate, term = build_predicate("  hello  ")

        assert predicate is not None
        assert term == "hello"

    def test_normalize_non_string(self):
        assert normalize_term(123) == ""


class TestSearchAgainstStore:
    """Test search predicates against real rows."""

    @pytest.fixture
    def searchable(self, store):
        for content in ["50% done", "Hello world", "hello there", "snake_case name", "path\\to\\file", "Goodbye"]:
            store.insert(content)
        return store

    def _search(self, store, raw):
        predicate, _ = build_predicate(raw)
        return [row.content for row in store.query_page(predicate, limit=100)]

    def test_percent_matched_literally(self, searchable):
        """Test '50%' finds the literal percent sign."""
        assert self._search(searchable, "50%") == ["50% done"]

    def test_percent_does_not_act_as_wildcard(self, searchable):
        """Test '50X' does not match '50% done'."""
        assert self._search(searchable, "50X") == []

    def test_lone_percent_is_not_match_all(self, searchable):
        assert self._search(searchable, "%") == ["50% done"]

    def test_underscore_matched_literally(self, searchable):
        """Test '_' matches only a literal underscore."""
        assert self._search(searchable, "e_c") == ["snake_case name"]
        assert self._search(searchable, "o_w") == []

    def test_backslash_matched_literally(self, searchable):
        assert self._search(searchable, "to\\file") == ["path\\to\\file"]

    def test_case_insensitive(self, searchable):
        """Test matching ignores case."""
        assert self._search(searchable, "HELLO") == ["hello there", "Hello world"]

    def test_count_uses_same_predicate(self, searchable):
        predicate, _ = build_predicate("hello")

        assert searchable.count(predicate) == 2

    def test_no_match(self, searchable):
        predicate, _ = build_predicate("nonexistent")

        assert searchable.count(predicate) == 0
        assert searchable.query_page(predicate, limit=10) == []
