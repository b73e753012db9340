"""
Entry points used by the HTTP layer.

These take raw request values (strings straight from the form or query
string), normalize them and delegate to the store and pagination engine.
"""

import logging
import re
from typing import Optional
from urllib.parse import quote

from msgboard.config import MAX_MESSAGES, MAX_PAGES, PAGE_SIZE
from msgboard.exceptions import ValidationError
from msgboard.pagination import clamp_page, compute_total_pages, get_page
from msgboard.schemas import DeleteResult, PageResult, SubmitResult
from msgboard.search import build_predicate, normalize_term
from msgboard.storage import MessageStore

logger = logging.getLogger(__name__)

# ASCII digits only: int() would also take "1_0" and non-ASCII digits
_INTEGER = re.compile(r"^\s*[+-]?[0-9]+\s*$")


def parse_int(raw: Optional[str]) -> Optional[int]:
    """
    Parse a base-10 integer from request input.

    Surrounding whitespace and a leading sign are accepted. Anything else,
    including None, yields None.
    """
    if raw is None:
        return None
    text = str(raw)
    if not _INTEGER.match(text):
        return None
    return int(text.strip(), 10)


def submit_message(store: MessageStore, raw_content: Optional[str]) -> SubmitResult:
    """
    Store a submitted message and enforce the retention cap.

    Blank content is silently ignored.
    """
    content = raw_content.strip() if isinstance(raw_content, str) else ""
    try:
        message_id, evicted = store.insert_and_enforce(content, MAX_MESSAGES)
    except ValidationError:
        logger.info("Ignoring empty message submission")
        return SubmitResult(created=False)

    return SubmitResult(created=True, id=message_id, evicted=evicted)


def delete_message(store: MessageStore, raw_id: Optional[str]) -> DeleteResult:
    """Delete a message by its raw id. Unparseable or unknown ids are a no-op."""
    message_id = parse_int(raw_id)
    if message_id is None:
        logger.info(f"Ignoring delete with invalid id: {raw_id!r}")
        return DeleteResult(id=None, deleted=False)

    return DeleteResult(id=message_id, deleted=store.delete_by_id(message_id))


def list_messages(
    store: MessageStore,
    raw_search_term: Optional[str] = None,
    raw_page_number: Optional[str] = None,
) -> PageResult:
    """Serve one board page using the fixed page size and page limit."""
    return get_page(
        store,
        search_term=raw_search_term,
        requested_page=parse_int(raw_page_number),
        page_size=PAGE_SIZE,
        max_pages=MAX_PAGES,
    )


def redirect_page_after_delete(
    store: MessageStore,
    raw_page_number: Optional[str],
    raw_search_term: Optional[str] = None,
) -> int:
    """Page to return to after a delete, clamped to what still exists."""
    predicate, _ = build_predicate(raw_search_term)
    total_pages = compute_total_pages(store.count(predicate), PAGE_SIZE, MAX_PAGES)
    return clamp_page(parse_int(raw_page_number), total_pages)


def build_list_path(page: int, search_term: Optional[str] = "") -> str:
    """
    Build the listing URL for a page and search term.

    Examples:
        1, ""      -> /
        1, "cat"   -> /?q=cat
        3, ""      -> /?page=3
        3, "a b"   -> /?page=3&q=a%20b
    """
    term = normalize_term(search_term)
    if page <= 1:
        if not term:
            return "/"
        return f"/?q={quote(term, safe='')}"

    base = f"/?page={page}"
    if not term:
        return base
    return f"{base}&q={quote(term, safe='')}"
