"""Engagement rules: votes, reading statuses and owner-only deletion.

Votes and statuses are set memberships backed by unique indexes. Inserts
use INSERT OR IGNORE and deletes of absent rows are no-ops, so repeated or
concurrent identical requests converge on the same membership.
"""

import logging
from typing import Dict, Any

from ..errors import InvalidArgument, NotFound, Forbidden
from ..models import STATUS_KINDS, RESERVED_STATUS_KINDS, utc_now_iso
from .books import require_book
from .permissions import require_registered_user, can_delete_book, can_delete_comment
from .validation import parse_id

logger = logging.getLogger(__name__)


def _prepare(book_id: Any, actor_id: Any, actor_field: str, db_tables: Dict[str, Any]):
    book_id = parse_id(book_id, "book_id")
    actor_id = parse_id(actor_id, actor_field)
    require_book(book_id, db_tables)
    require_registered_user(actor_id, db_tables)
    return book_id, actor_id


def validate_status(status: Any) -> str:
    if status in RESERVED_STATUS_KINDS:
        raise InvalidArgument(f"status '{status}' is reserved")
    if status not in STATUS_KINDS:
        raise InvalidArgument(f"status must be one of: {', '.join(STATUS_KINDS)}")
    return status


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------

def has_voted(book_id: int, voter_id: int, db_tables: Dict[str, Any]) -> bool:
    return bool(db_tables['votes'](where="book_id = ? AND voter_id = ?", where_args=[book_id, voter_id]))


def count_votes(book_id: int, db_tables: Dict[str, Any]) -> int:
    rows = db_tables['db'].q("SELECT COUNT(*) AS n FROM votes WHERE book_id = ?", [book_id])
    return rows[0]['n']


def _add_vote(book_id: int, voter_id: int, db_tables: Dict[str, Any]):
    db_tables['db'].execute(
        "INSERT OR IGNORE INTO votes (book_id, voter_id, created_at) VALUES (?, ?, ?)",
        [book_id, voter_id, utc_now_iso()],
    )


def _remove_vote(book_id: int, voter_id: int, db_tables: Dict[str, Any]):
    db_tables['votes'].delete_where("book_id = ? AND voter_id = ?", [book_id, voter_id])


def set_vote(book_id: Any, voter_id: Any, active: bool, db_tables: Dict[str, Any]) -> bool:
    """Add or remove a vote idempotently.

    Returns:
        True if membership changed, False if it already had that state
    """
    book_id, voter_id = _prepare(book_id, voter_id, "voter_id", db_tables)
    existed = has_voted(book_id, voter_id, db_tables)
    if active:
        _add_vote(book_id, voter_id, db_tables)
    else:
        _remove_vote(book_id, voter_id, db_tables)
    changed = existed != active
    if changed:
        logger.info(f"User {voter_id} {'voted for' if active else 'withdrew vote from'} book {book_id}")
    return changed


def toggle_vote(book_id: Any, voter_id: Any, db_tables: Dict[str, Any]) -> bool:
    """Remove the vote if present, add it otherwise.

    Returns:
        Whether the voter supports the book after the toggle
    """
    book_id, voter_id = _prepare(book_id, voter_id, "voter_id", db_tables)
    if has_voted(book_id, voter_id, db_tables):
        _remove_vote(book_id, voter_id, db_tables)
        logger.info(f"User {voter_id} withdrew vote from book {book_id}")
        return False
    _add_vote(book_id, voter_id, db_tables)
    logger.info(f"User {voter_id} voted for book {book_id}")
    return True


# ---------------------------------------------------------------------------
# Reading statuses
# ---------------------------------------------------------------------------

def has_status(book_id: int, user_id: int, status: str, db_tables: Dict[str, Any]) -> bool:
    return bool(db_tables['book_statuses'](
        where="book_id = ? AND user_id = ? AND status = ?", where_args=[book_id, user_id, status]))


def count_status(book_id: int, status: str, db_tables: Dict[str, Any]) -> int:
    rows = db_tables['db'].q(
        "SELECT COUNT(*) AS n FROM book_statuses WHERE book_id = ? AND status = ?", [book_id, status])
    return rows[0]['n']


def _add_status(book_id: int, user_id: int, status: str, db_tables: Dict[str, Any]):
    db_tables['db'].execute(
        "INSERT OR IGNORE INTO book_statuses (book_id, user_id, status, created_at) VALUES (?, ?, ?, ?)",
        [book_id, user_id, status, utc_now_iso()],
    )


def _remove_status(book_id: int, user_id: int, status: str, db_tables: Dict[str, Any]):
    db_tables['book_statuses'].delete_where(
        "book_id = ? AND user_id = ? AND status = ?", [book_id, user_id, status])


def set_status(book_id: Any, user_id: Any, status: Any, active: bool, db_tables: Dict[str, Any]) -> bool:
    """Assert or retract one status kind idempotently.

    Returns:
        True if membership changed
    """
    status = validate_status(status)
    book_id, user_id = _prepare(book_id, user_id, "user_id", db_tables)
    existed = has_status(book_id, user_id, status, db_tables)
    if active:
        _add_status(book_id, user_id, status, db_tables)
    else:
        _remove_status(book_id, user_id, status, db_tables)
    changed = existed != active
    if changed:
        logger.info(f"User {user_id} {'set' if active else 'cleared'} '{status}' on book {book_id}")
    return changed


def toggle_status(book_id: Any, user_id: Any, status: Any, db_tables: Dict[str, Any]) -> bool:
    """Flip one status kind; other kinds for the same user and book are untouched.

    Returns:
        Whether the status is asserted after the toggle
    """
    status = validate_status(status)
    book_id, user_id = _prepare(book_id, user_id, "user_id", db_tables)
    if has_status(book_id, user_id, status, db_tables):
        _remove_status(book_id, user_id, status, db_tables)
        logger.info(f"User {user_id} cleared '{status}' on book {book_id}")
        return False
    _add_status(book_id, user_id, status, db_tables)
    logger.info(f"User {user_id} set '{status}' on book {book_id}")
    return True


# ---------------------------------------------------------------------------
# Owner-only deletion
# ---------------------------------------------------------------------------

def delete_book(book_id: Any, user_id: Any, db_tables: Dict[str, Any]):
    """Delete a book and everything that references it.

    Raises:
        NotFound: no such book
        Forbidden: user_id is not the submitting user
    """
    book_id = parse_id(book_id, "book_id")
    user_id = parse_id(user_id, "user_id")
    book = require_book(book_id, db_tables)
    if not can_delete_book(book, user_id, db_tables):
        raise Forbidden("You can only delete your own recommendations.")

    # One transaction so a failure leaves the book and its references intact
    with db_tables['db'].conn:
        for table in ('book_topics', 'votes', 'book_statuses', 'comments'):
            db_tables[table].delete_where("book_id = ?", [book_id])
        db_tables['books'].delete(book_id)
    logger.info(f"User {user_id} deleted book {book_id} '{book.title}'")


def delete_comment(book_id: Any, comment_id: Any, user_id: Any, db_tables: Dict[str, Any]):
    """Delete a comment posted under ``book_id`` by ``user_id``.

    Raises:
        NotFound: no such comment under that book
        Forbidden: user_id is not the comment's author
    """
    book_id = parse_id(book_id, "book_id")
    comment_id = parse_id(comment_id, "comment_id")
    user_id = parse_id(user_id, "user_id")
    rows = db_tables['comments'](where="id = ? AND book_id = ?", where_args=[comment_id, book_id])
    if not rows:
        raise NotFound("Comment not found")
    if not can_delete_comment(rows[0], user_id, db_tables):
        raise Forbidden("You can only delete your own comments")

    db_tables['comments'].delete(comment_id)
    logger.info(f"User {user_id} deleted comment {comment_id} on book {book_id}")
