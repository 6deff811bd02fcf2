"""
Book Club UI Components Package.

All components are re-exported here for easy importing:
    from bookclub.components import NavBar, BookCard, BookFeed
"""

# Utility components and helpers
from .utils import (
    format_time_ago,
    truncate_words,
    Alert,
    EmptyState,
)

# Card components
from .cards import (
    STATUS_LABELS,
    VoteButton,
    StatusButtons,
    BookCard,
    BookListItem,
    CommentItem,
    CommentsPanel,
)

# Form components
from .forms import (
    LoginForm,
    RegisterForm,
    TopicChip,
    TopicPicker,
    TopicSuggestions,
    RecommendFields,
    RecommendBookForm,
    CatalogResults,
    CatalogSelection,
    TopicFilter,
)

# Page sections
from .pages import (
    NavBar,
    UserSummary,
    BookFeed,
    HomePage,
)

__all__ = [
    # Utils
    'format_time_ago',
    'truncate_words',
    'Alert',
    'EmptyState',
    # Cards
    'STATUS_LABELS',
    'VoteButton',
    'StatusButtons',
    'BookCard',
    'BookListItem',
    'CommentItem',
    'CommentsPanel',
    # Forms
    'LoginForm',
    'RegisterForm',
    'TopicChip',
    'TopicPicker',
    'TopicSuggestions',
    'RecommendFields',
    'RecommendBookForm',
    'CatalogResults',
    'CatalogSelection',
    'TopicFilter',
    # Pages
    'NavBar',
    'UserSummary',
    'BookFeed',
    'HomePage',
]
