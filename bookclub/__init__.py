"""Book Club - recommend books, vote on what to read next, share where you are.

Package Structure:
- bookclub.models: Entity dataclasses and database setup
- bookclub.services: Engagement rules, listing, ordering and the collaborators
- bookclub.clients: External catalog lookup
- bookclub.components: HTMX UI components
- bookclub.errors: Error taxonomy mapped to HTTP status codes
"""

__version__ = "0.1.0"

from .errors import (
    BookClubError,
    InvalidArgument,
    NotFound,
    Forbidden,
    Conflict,
    Unavailable,
)

from .models import (
    User,
    Topic,
    Book,
    BookTopic,
    Vote,
    BookStatus,
    Comment,
    STATUS_KINDS,
    setup_database,
)

from .services import (
    set_vote,
    toggle_vote,
    set_status,
    toggle_status,
    delete_book,
    delete_comment,
    list_books,
    display_order,
)

__all__ = [
    '__version__',
    # Errors
    'BookClubError',
    'InvalidArgument',
    'NotFound',
    'Forbidden',
    'Conflict',
    'Unavailable',
    # Models
    'User',
    'Topic',
    'Book',
    'BookTopic',
    'Vote',
    'BookStatus',
    'Comment',
    'STATUS_KINDS',
    'setup_database',
    # Engagement
    'set_vote',
    'toggle_vote',
    'set_status',
    'toggle_status',
    'delete_book',
    'delete_comment',
    'list_books',
    'display_order',
]
