"""Services package for Book Club.

This package contains business logic separated from routes and data access.
"""

from .permissions import (
    is_registered_user,
    require_registered_user,
    can_delete_book,
    can_delete_comment,
)

from .users import (
    get_user,
    list_users,
    register_user,
    login_user,
)

from .topics import (
    list_topics,
    search_topics,
    create_topic,
    get_or_create_topic,
    suggest_topic_ids,
    resolve_category_topics,
)

from .books import (
    get_book_by_id,
    get_book,
    create_book,
)

from .listing import (
    list_books,
    list_books_by_owner,
    list_books_voted_by,
    list_statuses_for_user,
    voted_book_ids,
    book_to_dict,
)

from .engagement import (
    set_vote,
    toggle_vote,
    count_votes,
    set_status,
    toggle_status,
    count_status,
    delete_book,
    delete_comment,
)

from .comments import (
    list_comments,
    count_comments,
    comment_counts,
    add_comment,
    linkify,
)

from .ordering import display_order

__all__ = [
    # Permissions
    'is_registered_user',
    'require_registered_user',
    'can_delete_book',
    'can_delete_comment',
    # Users
    'get_user',
    'list_users',
    'register_user',
    'login_user',
    # Topics
    'list_topics',
    'search_topics',
    'create_topic',
    'get_or_create_topic',
    'suggest_topic_ids',
    'resolve_category_topics',
    # Books
    'get_book_by_id',
    'get_book',
    'create_book',
    # Listing
    'list_books',
    'list_books_by_owner',
    'list_books_voted_by',
    'list_statuses_for_user',
    'voted_book_ids',
    'book_to_dict',
    # Engagement
    'set_vote',
    'toggle_vote',
    'count_votes',
    'set_status',
    'toggle_status',
    'count_status',
    'delete_book',
    'delete_comment',
    # Comments
    'list_comments',
    'count_comments',
    'comment_counts',
    'add_comment',
    'linkify',
    # Ordering
    'display_order',
]
