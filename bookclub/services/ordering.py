"""Display order for the book feed.

The feed shows the most recent book first and, right after it, the most
voted of the remaining books. Everything else follows by recency.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

_EPOCH_START = datetime.min.replace(tzinfo=timezone.utc)


def _timestamp(book) -> datetime:
    """Creation time of a book as an aware datetime."""
    value = getattr(book, 'created_at', None)
    if isinstance(value, str):
        if not value:
            return _EPOCH_START
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return _EPOCH_START
    if not isinstance(value, datetime):
        return _EPOCH_START
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _votes(book) -> int:
    return getattr(book, 'votes', 0) or 0


def filter_by_topic(books: Sequence[Any], topic: Optional[str] = None) -> List[Any]:
    """Books whose topic names include ``topic``; all books when unset."""
    if not topic:
        return list(books)
    return [book for book in books if topic in getattr(book, 'topics', [])]


def display_order(books: Sequence[Any], topic: Optional[str] = None) -> List[Any]:
    """Return the feed order as a new list.

    Books are sorted by creation time (newest first), ties broken by vote
    count. When more than two books remain, the most voted book after the
    first is swapped into second place. The input sequence is not modified.
    """
    ordered = sorted(
        filter_by_topic(books, topic),
        key=lambda book: (_timestamp(book), _votes(book)),
        reverse=True,
    )
    if len(ordered) <= 2:
        return ordered

    # max() keeps the first of equal counts, so a tie with position 1 stays put
    best = max(range(1, len(ordered)), key=lambda i: _votes(ordered[i]))
    if best != 1:
        ordered[1], ordered[best] = ordered[best], ordered[1]
    return ordered
