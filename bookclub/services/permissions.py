"""Permission checking logic for Book Club.

Every registered user may recommend, vote, mark statuses and comment.
Deletion is reserved to the owning user: the submitter of a book, the
author of a comment.
"""

from typing import Dict, Any

from ..errors import Forbidden
from .users import get_user


def is_registered_user(user_id: int, db_tables: Dict[str, Any]) -> bool:
    """Check if an id belongs to a registered user."""
    if not user_id:
        return False
    return get_user(user_id, db_tables) is not None


def require_registered_user(user_id: int, db_tables: Dict[str, Any]):
    """Return the user for ``user_id`` or raise Forbidden."""
    user = get_user(user_id, db_tables) if user_id else None
    if user is None:
        raise Forbidden("Only registered users can do that. Please log in.")
    return user


def can_delete_book(book, user_id: int, db_tables: Dict[str, Any]) -> bool:
    """Check if user can delete a book (owner only)."""
    if not user_id:
        return False
    return book.user_id == user_id


def can_delete_comment(comment, user_id: int, db_tables: Dict[str, Any]) -> bool:
    """Check if user can delete a comment (own comments only)."""
    if not user_id:
        return False
    return comment.user_id == user_id
