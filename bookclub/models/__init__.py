"""Models package for Book Club.

This package provides the entity dataclasses and database setup.
"""

from .entities import (
    User,
    Topic,
    Book,
    BookTopic,
    Vote,
    BookStatus,
    Comment,
    STATUS_KINDS,
    RESERVED_STATUS_KINDS,
    utc_now_iso,
)

from .database import (
    TABLES,
    setup_database,
    DatabaseManager,
    db_manager,
)

__all__ = [
    # Entities
    'User',
    'Topic',
    'Book',
    'BookTopic',
    'Vote',
    'BookStatus',
    'Comment',
    'STATUS_KINDS',
    'RESERVED_STATUS_KINDS',
    'utc_now_iso',
    # Database
    'TABLES',
    'setup_database',
    'DatabaseManager',
    'db_manager',
]
