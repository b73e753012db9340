"""
Page computation over the canonically ordered message list.
"""
import logging
import math
from typing import Optional

from msgboard.config import MAX_PAGES, PAGE_SIZE
from msgboard.schemas import MessageResponse, PageResult
from msgboard.search import build_predicate
from msgboard.storage import MessageStore

logger = logging.getLogger(__name__)


def compute_total_pages(total_count: int, page_size: int = PAGE_SIZE, max_pages: int = MAX_PAGES) -> int:
    """
    Number of pages for total_count messages.

    Never less than 1, so an empty board still has a page, and never more
    than max_pages.
    """
    return max(1, min(max_pages, math.ceil(max(total_count, 1) / page_size)))


def clamp_page(requested_page: Optional[int], total_pages: int) -> int:
    """Default a missing or non-positive page to 1 and cap it at total_pages."""
    if not isinstance(requested_page, int) or isinstance(requested_page, bool) or requested_page < 1:
        return 1
    return min(requested_page, total_pages)


def get_page(
    store: MessageStore,
    search_term: Optional[str] = None,
    requested_page: Optional[int] = None,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
) -> PageResult:
    """
    Fetch one page of messages, optionally filtered by a search term.

    Args:
        store: Open message store
        search_term: Raw search input; blank means no filter
        requested_page: 1-based page wanted; clamped into range
        page_size: Messages per page
        max_pages: Upper bound on the number of pages

    Returns:
        PageResult with the page items and pagination metadata
    """
    if page_size < 1 or max_pages < 1:
        raise ValueError("page_size and max_pages must be positive")

    predicate, term = build_predicate(search_term)
    # Count and page come from one session so they agree with each other
    with store.session("read page") as db:
        total_count = store.count(predicate, db=db)
        total_pages = compute_total_pages(total_count, page_size, max_pages)
        current_page = clamp_page(requested_page, total_pages)
        offset = (current_page - 1) * page_size

        rows = store.query_page(predicate, limit=page_size, offset=offset, db=db)
    logger.debug(
        f"Page {current_page}/{total_pages}: {len(rows)} of {total_count} messages, q={term!r}"
    )

    return PageResult(
        items=[MessageResponse.model_validate(row) for row in rows],
        current_page=current_page,
        total_pages=total_pages,
        total_count=total_count,
        search_term=term,
    )
