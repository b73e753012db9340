"""
Tests for the query and pagination engine.

Tests cover:
- Total page computation (floor of 1, cap at max pages)
- Page clamping
- get_page metadata and items, with and without search
"""

import pytest

from conftest import seed_messages
from msgboard.config import MAX_MESSAGES, MAX_PAGES, PAGE_SIZE
from msgboard.pagination import clamp_page, compute_total_pages, get_page


class TestComputeTotalPages:
    """Test the page count formula."""

    @pytest.mark.parametrize("total, expected", [
        (0, 1),
        (1, 1),
        (50, 1),
        (51, 2),
        (999, 20),
        (1000, 20),
        (2000, 20),
    ])
    def test_default_sizes(self, total, expected):
        assert compute_total_pages(total) == expected

    def test_custom_sizes(self):
        assert compute_total_pages(3, page_size=2, max_pages=20) == 2
        assert compute_total_pages(100, page_size=2, max_pages=5) == 5

    def test_pagination_ceiling_matches_storage_cap(self):
        """Test a full board fills exactly every page."""
        assert MAX_PAGES * PAGE_SIZE == MAX_MESSAGES


class TestClampPage:
    """Test page clamping."""

    @pytest.mark.parametrize("requested, expected", [
        (None, 1),
        (0, 1),
        (-3, 1),
        (1, 1),
        (4, 4),
        (5, 5),
        (6, 5),
        (999, 5),
    ])
    def test_clamp(self, requested, expected):
        assert clamp_page(requested, total_pages=5) == expected

    def test_non_integer_defaults_to_first(self):
        assert clamp_page("3", total_pages=5) == 1
        assert clamp_page(True, total_pages=5) == 1


class TestGetPage:
    """Test get_page against a real store."""

    def test_empty_board(self, store):
        """Test an empty board is page 1 of 1 for any requested page."""
        for requested in (None, 1, 2, 999, -1):
            result = get_page(store, requested_page=requested)

            assert result.items == []
            assert result.current_page == 1
            assert result.total_pages == 1
            assert result.total_count == 0
            assert result.search_term == ""

    def test_end_to_end_three_messages(self, store):
        """Test A, B, C with page size 2 splits as [C, B] then [A]."""
        store.insert("A")
        store.insert("B")
        store.insert("C")

        first = get_page(store, requested_page=1, page_size=2)
        second = get_page(store, requested_page=2, page_size=2)

        assert [m.content for m in first.items] == ["C", "B"]
        assert first.total_pages == 2
        assert first.total_count == 3
        assert [m.content for m in second.items] == ["A"]
        assert second.current_page == 2

    def test_full_board_has_twenty_pages(self, memory_store):
        """Test a capped board reports 20 pages and clamps page 999 to 20."""
        seed_messages(memory_store, MAX_MESSAGES)

        result = get_page(memory_store, requested_page=999)

        assert result.total_count == MAX_MESSAGES
        assert result.total_pages == 20
        assert result.current_page == 20
        assert len(result.items) == PAGE_SIZE
        # Last page holds the oldest messages
        assert result.items[-1].content == "message 0"

    def test_page_size_bounds_items(self, memory_store):
        seed_messages(memory_store, 120)

        pages = [get_page(memory_store, requested_page=n) for n in (1, 2, 3)]

        assert [len(page.items) for page in pages] == [50, 50, 20]
        assert pages[0].items[0].content == "message 119"

    def test_search_filters_and_counts(self, store):
        store.insert("cat one")
        store.insert("dog")
        store.insert("Cat two")

        result = get_page(store, search_term="  cat ")

        assert [m.content for m in result.items] == ["Cat two", "cat one"]
        assert result.total_count == 2
        assert result.search_term == "cat"

    def test_search_without_matches(self, store):
        """Test a search with no hits still reports page 1 of 1."""
        store.insert("something")

        result = get_page(store, search_term="zzz", requested_page=4)

        assert result.items == []
        assert result.total_count == 0
        assert result.total_pages == 1
        assert result.current_page == 1
        assert result.search_term == "zzz"

    def test_items_carry_id_and_timestamp(self, store):
        message_id = store.insert("hello")

        item = get_page(store).items[0]

        assert item.id == message_id
        assert item.created_at == "2025-01-15T10:00:00.000000Z"

    def test_invalid_page_size_rejected(self, store):
        with pytest.raises(ValueError):
            get_page(store, page_size=0)

    def test_count_and_page_read_in_one_session(self, store, monkeypatch):
        """Test the total and the page items come from a single session."""
        store.insert("A")
        store.insert("B")
        opened = []
        real_session = store.session

        def tracking_session(action, commit=False):
            opened.append(action)
            return real_session(action, commit=commit)

        monkeypatch.setattr(store, "session", tracking_session)

        result = get_page(store, requested_page=1)

        assert opened == ["read page"]
        assert result.total_count == len(result.items) == 2
