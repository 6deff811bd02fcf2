"""Page section components for Book Club."""

from fasthtml.common import *
from typing import Dict, List, Any, Optional, Sequence, Set

from ..services.ordering import display_order
from .utils import EmptyState
from .cards import BookCard, BookListItem
from .forms import LoginForm, RegisterForm, RecommendBookForm, TopicFilter


def NavBar(user: Optional[Dict] = None):
    """Top bar with the logged-in name and logout link."""
    if user:
        right = Ul(
            Li(Span(f"👤 {user['name']}", cls="nav-user")),
            Li(A("Log out", href="/ui/logout"))
        )
    else:
        right = Ul(Li(Span("Not logged in", cls="nav-user")))
    return Nav(
        Ul(Li(A(Strong("📚 Book Club"), href="/"))),
        right,
        cls="container-fluid"
    )


def UserSummary(own_books: Sequence[Any], voted_books: Sequence[Any], oob: bool = False):
    """The user's own recommendations and the books they voted for."""
    return Div(
        Div(
            H4("Your books"),
            Ul(*[BookListItem(b) for b in own_books]) if own_books
            else EmptyState("You have not recommended anything yet"),
        ),
        Div(
            H4("Books you voted for"),
            Ul(*[BookListItem(b) for b in voted_books]) if voted_books
            else EmptyState("No votes yet"),
        ),
        cls="grid user-summary",
        id="user-summary",
        **({"hx_swap_oob": "true"} if oob else {})
    )


def BookFeed(books: Sequence[Any], user: Optional[Dict] = None, topic: str = "",
             voted_ids: Set[int] = frozenset(), statuses: Sequence[Dict[str, Any]] = (),
             comment_counts: Optional[Dict[int, int]] = None, message=None):
    """The book feed in display order.

    ``statuses`` is the raw list of {book_id, status} pairs for the current
    user; each card derives its active buttons from it.
    """
    comment_counts = comment_counts or {}
    active = {}
    for entry in statuses:
        active.setdefault(entry['book_id'], set()).add(entry['status'])

    ordered = display_order(books, topic or None)
    if ordered:
        cards = [
            BookCard(
                book,
                user=user,
                voted=book.id in voted_ids,
                active_statuses=active.get(book.id, set()),
                comment_count=comment_counts.get(book.id, 0),
                featured=index < 2
            )
            for index, book in enumerate(ordered)
        ]
    else:
        cards = [EmptyState("No books yet", f"Nothing tagged '{topic}' so far." if topic else "Recommend the first one!")]

    return Section(message, *cards, id="book-feed", cls="book-feed")


def HomePage(feed, topics: Sequence[Any], users: Sequence[Any], user: Optional[Dict] = None,
             own_books: Sequence[Any] = (), voted_books: Sequence[Any] = (), topic: str = "", message=None):
    """Full home page body."""
    if user:
        top = (
            H2(f"Welcome, {user['name']}"),
            UserSummary(own_books, voted_books),
            RecommendBookForm(),
        )
    else:
        top = (
            H2("Welcome to the Book Club"),
            P("Pick your name to recommend books, vote on what we read next and share where you are."),
            Div(LoginForm(users), RegisterForm(), cls="grid auth-forms"),
        )

    return Main(
        message,
        *top,
        Div(H3("Books"), TopicFilter(topics, topic), cls="feed-header"),
        feed,
        cls="container"
    )
