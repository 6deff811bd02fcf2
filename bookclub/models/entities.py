"""Data model classes for Book Club.

This module contains only the dataclass definitions for database models.
Queries and business rules live in ``bookclub.services``.

Note: required fields come first, optional fields after, so the classes
work with FastLite's db.create(). Timestamps are stored as ISO-8601 UTC
strings so they sort correctly inside SQLite.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


# Kinds a user may toggle on a book
STATUS_KINDS = ('already_read', 'skimmed', 'want_to_read', 'reading_now')

# Admitted by storage, never produced by any operation
RESERVED_STATUS_KINDS = ('recommend',)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class User:
    """A registered community member."""
    name: str
    id: Optional[int] = None  # Auto-incrementing primary key


@dataclass
class Topic:
    """A label books are filed under."""
    name: str
    id: Optional[int] = None


@dataclass
class Book:
    """A book recommended by a user."""
    title: str
    author: str
    user_id: int  # Owner - the submitting user
    id: Optional[int] = None
    description: str = ""
    link: str = ""
    cover: str = ""
    recommended_by: str = ""
    created_at: str = ""


@dataclass
class BookTopic:
    """Link between a book and one of its topics."""
    book_id: int
    topic_id: int
    id: Optional[int] = None  # Insertion order of the link


@dataclass
class Vote:
    """A user's support for discussing a book."""
    book_id: int
    voter_id: int
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class BookStatus:
    """A reading status a user asserts for a book."""
    book_id: int
    user_id: int
    status: str  # one of STATUS_KINDS
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class Comment:
    """Comment model for book discussions."""
    book_id: int
    user_id: int
    content: str
    id: Optional[int] = None
    created_at: str = ""
