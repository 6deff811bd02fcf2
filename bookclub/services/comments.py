"""Comments on books."""

import re
import html
import logging
from typing import Dict, Any, List

from ..models import Comment, utc_now_iso
from .books import require_book
from .permissions import require_registered_user
from .validation import parse_id, require_text

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(
    r"(https?://[\w\-._~:/?#\[\]@!$&'()*+,;=%]+)|(www\.[\w\-._~:/?#\[\]@!$&'()*+,;=%]+)",
    re.IGNORECASE,
)


def list_comments(book_id: int, db_tables: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Comments for a book, newest first, with the author's name."""
    query = """
        SELECT c.*, u.name AS user_name
        FROM comments c
        JOIN users u ON c.user_id = u.id
        WHERE c.book_id = ?
        ORDER BY c.created_at DESC, c.id DESC
    """
    return db_tables['db'].q(query, [book_id])


def count_comments(book_id: int, db_tables: Dict[str, Any]) -> int:
    rows = db_tables['db'].q("SELECT COUNT(*) AS n FROM comments WHERE book_id = ?", [book_id])
    return rows[0]['n']


def comment_counts(db_tables: Dict[str, Any]) -> Dict[int, int]:
    """Comment count per book id, for books that have comments."""
    rows = db_tables['db'].q("SELECT book_id, COUNT(*) AS n FROM comments GROUP BY book_id")
    return {row['book_id']: row['n'] for row in rows}


def add_comment(book_id: Any, user_id: Any, content: Any, db_tables: Dict[str, Any]) -> Dict[str, Any]:
    """Post a comment and return it with the author's name."""
    book_id = parse_id(book_id, "book_id")
    user_id = parse_id(user_id, "user_id")
    content = require_text(content, "content")
    require_book(book_id, db_tables)
    user = require_registered_user(user_id, db_tables)

    comment = db_tables['comments'].insert(Comment(
        book_id=book_id,
        user_id=user_id,
        content=content,
        created_at=utc_now_iso(),
    ))
    logger.info(f"User {user_id} commented on book {book_id}")
    return {
        'id': comment.id,
        'book_id': comment.book_id,
        'user_id': comment.user_id,
        'content': comment.content,
        'created_at': comment.created_at,
        'user_name': user.name,
    }


def linkify(text: str) -> str:
    """Escape ``text`` for HTML and turn URLs into links."""
    def _anchor(match):
        url = match.group(0)
        href = url if url.lower().startswith('http') else f"http://{url}"
        return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{url}</a>'

    return URL_PATTERN.sub(_anchor, html.escape(text or "", quote=False))
