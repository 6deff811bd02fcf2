"""Book submission and lookup."""

import logging
from typing import Dict, Any, Optional, Sequence

from ..errors import InvalidArgument, NotFound
from ..models import Book, BookTopic, utc_now_iso
from .listing import get_book_with_counts
from .permissions import require_registered_user
from .validation import parse_id, require_text, optional_text

logger = logging.getLogger(__name__)


def get_book_by_id(book_id: int, db_tables: Dict[str, Any]) -> Optional[Book]:
    """Get a book by its ID, returning None if not found."""
    rows = db_tables['books'](where="id = ?", where_args=[book_id])
    return rows[0] if rows else None


def require_book(book_id: int, db_tables: Dict[str, Any]) -> Book:
    book = get_book_by_id(book_id, db_tables)
    if book is None:
        raise NotFound("Book not found")
    return book


def get_book(book_id: int, db_tables: Dict[str, Any]) -> Book:
    """A single book with topics and engagement counts."""
    book = get_book_with_counts(book_id, db_tables)
    if book is None:
        raise NotFound("Book not found")
    return book


def _topic_ids(topics: Any, db_tables: Dict[str, Any]) -> list:
    if not isinstance(topics, (list, tuple)) or not topics:
        raise InvalidArgument("At least one topic is required")

    topic_ids = []
    for value in topics:
        topic_id = parse_id(value, "topics")
        if topic_id not in topic_ids:
            topic_ids.append(topic_id)

    placeholders = ", ".join("?" for _ in topic_ids)
    known = {row['id'] for row in db_tables['db'].q(
        f"SELECT id FROM topics WHERE id IN ({placeholders})", topic_ids)}
    unknown = [t for t in topic_ids if t not in known]
    if unknown:
        raise InvalidArgument(f"Unknown topic ids: {unknown}")
    return topic_ids


def create_book(title: str, author: str, user_id: Any, topics: Sequence[Any], db_tables: Dict[str, Any],
                description: str = "", link: str = "", cover: str = "", recommended_by: str = "") -> Book:
    """Store a recommended book and link it to its topics.

    Args:
        title: Book title (required)
        author: Book author (required)
        user_id: Submitting user; becomes the owner
        topics: Non-empty list of existing topic ids
        db_tables: Database tables dictionary
        description, link, cover, recommended_by: Optional details

    Returns:
        The created book with topics and engagement counts attached

    Raises:
        InvalidArgument: a required field is missing or a topic id is unknown
        Forbidden: user_id is not a registered user
    """
    title = require_text(title, "title")
    author = require_text(author, "author")
    user_id = parse_id(user_id, "user_id")
    topic_ids = _topic_ids(topics, db_tables)
    require_registered_user(user_id, db_tables)

    with db_tables['db'].conn:
        book = db_tables['books'].insert(Book(
            title=title,
            author=author,
            user_id=user_id,
            description=optional_text(description),
            link=optional_text(link),
            cover=optional_text(cover),
            recommended_by=optional_text(recommended_by),
            created_at=utc_now_iso(),
        ))
        for topic_id in topic_ids:
            db_tables['book_topics'].insert(BookTopic(book_id=book.id, topic_id=topic_id))

    logger.info(f"User {user_id} recommended book {book.id} '{title}' with topics {topic_ids}")
    return get_book(book.id, db_tables)
