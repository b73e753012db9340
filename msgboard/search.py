"""
Search filter construction.

Search is a case-insensitive substring match over message content. User
input is escaped so LIKE wildcards in it are matched literally.
"""
import re
from typing import Optional, Tuple

from sqlalchemy.sql.elements import ColumnElement

from msgboard.models import Message

LIKE_ESCAPE_CHAR = "\\"

_LIKE_SPECIAL = re.compile(r"([%_\\])")


def escape_like(term: str) -> str:
    """Escape %, _ and backslash so a LIKE pattern matches them literally."""
    return _LIKE_SPECIAL.sub(r"\\\1", term)


def normalize_term(raw_term: Optional[str]) -> str:
    if not isinstance(raw_term, str):
        return ""
    return raw_term.strip()


def build_predicate(raw_term: Optional[str]) -> Tuple[Optional[ColumnElement], str]:
    """
    Build a content filter from a raw search term.

    Returns:
        Tuple of (predicate, normalized term). The predicate is None, which
        matches every message, when the term is empty after trimming.
    """
    term = normalize_term(raw_term)
    if not term:
        return None, ""

    pattern = f"%{escape_like(term)}%"
    return Message.content.ilike(pattern, escape=LIKE_ESCAPE_CHAR), term
