"""Book listing with engagement aggregates.

Vote and status counts are computed from the votes and book_statuses
tables on every call; nothing is cached or stored as a counter.
"""

import logging
from dataclasses import asdict, fields
from typing import Dict, Any, List, Iterable, Optional, Set

from ..models import Book, STATUS_KINDS

logger = logging.getLogger(__name__)

_BOOK_FIELDS = [f.name for f in fields(Book)]

# STATUS_KINDS are constants, never user input
_STATUS_COUNT_COLUMNS = ",\n".join(
    f"(SELECT COUNT(*) FROM book_statuses s WHERE s.book_id = b.id AND s.status = '{kind}') AS {kind}"
    for kind in STATUS_KINDS
)


def _topic_names(db_tables: Dict[str, Any], book_ids: Iterable[int]) -> Dict[int, List[str]]:
    """Map book id to its topic names in link insertion order."""
    book_ids = list(book_ids)
    if not book_ids:
        return {}
    placeholders = ", ".join("?" for _ in book_ids)
    query = f"""
        SELECT bt.book_id, t.name
        FROM book_topics bt
        JOIN topics t ON bt.topic_id = t.id
        WHERE bt.book_id IN ({placeholders})
        ORDER BY bt.id
    """
    names = {}
    for row in db_tables['db'].q(query, book_ids):
        names.setdefault(row['book_id'], []).append(row['name'])
    return names


def _book_from_row(row: Dict[str, Any], topics: Dict[int, List[str]]) -> Book:
    book = Book(**{k: row.get(k) for k in _BOOK_FIELDS})
    for name in ('description', 'link', 'cover', 'recommended_by', 'created_at'):
        if getattr(book, name) is None:
            setattr(book, name, "")

    # Computed attributes
    book.topics = topics.get(book.id, [])
    book.votes = int(row.get('votes') or 0)
    book.status_counts = {kind: int(row.get(kind) or 0) for kind in STATUS_KINDS}
    return book


def _query_books(db_tables: Dict[str, Any], where: str = "", params: Iterable = ()) -> List[Book]:
    query = f"""
        SELECT b.*,
            (SELECT COUNT(*) FROM votes v WHERE v.book_id = b.id) AS votes,
            {_STATUS_COUNT_COLUMNS}
        FROM books b
        {where}
        ORDER BY b.created_at DESC, b.id DESC
    """
    rows = db_tables['db'].q(query, list(params))
    topics = _topic_names(db_tables, [row['id'] for row in rows])
    return [_book_from_row(row, topics) for row in rows]


def list_books(db_tables: Dict[str, Any]) -> List[Book]:
    """Every book with topic names, vote count and per-status counts."""
    return _query_books(db_tables)


def get_book_with_counts(book_id: int, db_tables: Dict[str, Any]) -> Optional[Book]:
    books = _query_books(db_tables, "WHERE b.id = ?", [book_id])
    return books[0] if books else None


def list_books_by_owner(user_id: int, db_tables: Dict[str, Any]) -> List[Book]:
    """Books recommended by ``user_id``; unknown users get an empty list."""
    return _query_books(db_tables, "WHERE b.user_id = ?", [user_id])


def list_books_voted_by(user_id: int, db_tables: Dict[str, Any]) -> List[Book]:
    """Books ``user_id`` voted for; unknown users get an empty list."""
    return _query_books(
        db_tables,
        "WHERE b.id IN (SELECT v.book_id FROM votes v WHERE v.voter_id = ?)",
        [user_id],
    )


def list_statuses_for_user(user_id: int, db_tables: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Raw (book_id, status) pairs the user currently asserts."""
    rows = db_tables['db'].q(
        "SELECT book_id, status FROM book_statuses WHERE user_id = ? ORDER BY id",
        [user_id],
    )
    return [{'book_id': row['book_id'], 'status': row['status']} for row in rows]


def voted_book_ids(user_id: int, db_tables: Dict[str, Any]) -> Set[int]:
    rows = db_tables['db'].q("SELECT book_id FROM votes WHERE voter_id = ?", [user_id])
    return {row['book_id'] for row in rows}


def book_to_dict(book: Book) -> Dict[str, Any]:
    """JSON shape of a listed book: columns, topics, votes and status counts."""
    data = asdict(book)
    data['topics'] = list(getattr(book, 'topics', []))
    data['votes'] = getattr(book, 'votes', 0)
    counts = getattr(book, 'status_counts', {})
    for kind in STATUS_KINDS:
        data[kind] = counts.get(kind, 0)
    return data
