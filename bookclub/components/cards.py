"""Card components for Book Club."""

from fasthtml.common import *
from typing import Dict, List, Any, Optional, Set

from ..models import STATUS_KINDS
from ..services.comments import linkify
from .utils import format_time_ago, truncate_words, EmptyState

STATUS_LABELS = {
    'already_read': 'Already Read',
    'skimmed': 'Skimmed',
    'want_to_read': 'Want to Read',
    'reading_now': 'Reading Now',
}


def _feed_action(**kwargs):
    """HTMX attributes shared by every feed mutation: re-render the whole feed."""
    return dict(
        hx_target="#book-feed",
        hx_swap="outerHTML",
        hx_include="#topic-filter",
        **kwargs
    )


def VoteButton(book, user: Optional[Dict], voted: bool):
    label = "Voted (Undo)" if voted else "Vote to discuss"
    return Button(
        f"👍 {label} ({book.votes})",
        disabled=not user,
        cls="vote-btn active" if voted else "vote-btn secondary outline",
        title="Remove your vote" if voted else "Vote for us to discuss this book",
        **_feed_action(hx_post=f"/ui/books/{book.id}/vote")
    )


def StatusButtons(book, user: Optional[Dict], active_statuses: Set[str]):
    """One toggle per status kind; active state comes from the fetched status set."""
    buttons = []
    for kind in STATUS_KINDS:
        active = kind in active_statuses
        label = STATUS_LABELS[kind] + (" (Undo)" if active else "")
        buttons.append(Button(
            f"{label} ({book.status_counts.get(kind, 0)})",
            disabled=not user,
            cls="status-btn active" if active else "status-btn secondary outline",
            **_feed_action(hx_post=f"/ui/books/{book.id}/status", hx_vals=f'{{"status": "{kind}"}}')
        ))
    return Div(*buttons, cls="status-buttons")


def BookCard(book, user: Optional[Dict] = None, voted: bool = False,
             active_statuses: Set[str] = frozenset(), comment_count: int = 0, featured: bool = False):
    """Render a book in the feed with its engagement controls."""
    is_owner = bool(user) and user.get('id') == book.user_id

    cover = Div(
        Img(src=book.cover, alt=f"Cover of {book.title}", cls="book-cover", loading="lazy") if book.cover
        else Div("📖", cls="cover-placeholder"),
        cls="book-cover-container"
    )

    details = Div(
        H4(book.title, Small(f" by {book.author}")),
        P(I(truncate_words(book.description)), cls="book-description") if book.description else None,
        P(A("More info", href=book.link, target="_blank", rel="noopener noreferrer")) if book.link else None,
        P(Small(f"Topics: {', '.join(book.topics)}")),
        P(Small(f"Recommended by {book.recommended_by}")) if book.recommended_by else None,
        P(Small(format_time_ago(book.created_at)), cls="book-meta"),
        Div(
            VoteButton(book, user, voted),
            StatusButtons(book, user, active_statuses),
            cls="book-actions"
        ),
        Div(
            Button(
                f"💬 Comments ({comment_count})",
                hx_get=f"/ui/books/{book.id}/comments",
                hx_target=f"#comments-{book.id}",
                hx_swap="innerHTML",
                cls="secondary outline small"
            ),
            Button(
                "🗑 Delete",
                hx_confirm=f"Delete '{book.title}'? Votes, statuses and comments go with it.",
                cls="delete-btn secondary small",
                **_feed_action(hx_post=f"/ui/books/{book.id}/delete")
            ) if is_owner else None,
            cls="book-secondary-actions"
        ),
        Div(id=f"comments-{book.id}", cls="comments-container"),
        cls="book-details"
    )

    return Article(
        cover,
        details,
        cls="book-card featured" if featured else "book-card",
        id=f"book-{book.id}"
    )


def BookListItem(book):
    """Compact entry for the personal lists."""
    return Li(
        B(book.title), f" by {book.author}",
        Div(Small(f"Topics: {', '.join(book.topics)}")),
        cls="book-list-item"
    )


def CommentItem(comment: Dict[str, Any], user: Optional[Dict] = None):
    is_author = bool(user) and user.get('id') == comment['user_id']
    return Div(
        Div(
            Strong(comment['user_name']),
            Span(format_time_ago(comment['created_at']), cls="comment-meta"),
            Button(
                "Delete",
                hx_post=f"/ui/books/{comment['book_id']}/comments/{comment['id']}/delete",
                hx_target=f"#comments-{comment['book_id']}",
                hx_swap="innerHTML",
                hx_confirm="Delete this comment?",
                cls="secondary outline small"
            ) if is_author else None,
            cls="comment-header"
        ),
        P(NotStr(linkify(comment['content'])), cls="comment-content"),
        cls="comment-item",
        id=f"comment-{comment['id']}"
    )


def CommentsPanel(book_id: int, comments: List[Dict[str, Any]], user: Optional[Dict] = None, message=None):
    """Comments for a book plus the form to add one."""
    form = Form(
        Textarea(name="content", placeholder="Add a comment...", rows=2, required=True),
        Button("Post", type="submit", cls="small"),
        hx_post=f"/ui/books/{book_id}/comments",
        hx_target=f"#comments-{book_id}",
        hx_swap="innerHTML",
        cls="comment-form"
    ) if user else P(Small("Log in to comment."))

    return Div(
        message,
        *[CommentItem(c, user) for c in comments] if comments else [EmptyState("No comments yet")],
        form,
        cls="comments-panel"
    )
