"""Utility components and helper functions for Book Club UI."""

from fasthtml.common import *
from datetime import datetime, timezone


def format_time_ago(value):
    """Format an ISO timestamp (or datetime) as 'time ago' string."""
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    diff = datetime.now(timezone.utc) - value

    if diff.days > 7:
        return value.strftime("%b %d, %Y")
    elif diff.days > 0:
        return f"{diff.days}d ago"
    elif diff.seconds > 3600:
        hours = diff.seconds // 3600
        return f"{hours}h ago"
    elif diff.seconds > 60:
        minutes = diff.seconds // 60
        return f"{minutes}m ago"
    else:
        return "just now"


def truncate_words(text: str, limit: int = 25) -> str:
    words = (text or "").split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + "..."


def Alert(message: str, type: str = "info"):
    """Alert component for messages."""
    return Div(
        message,
        cls=f"alert alert-{type}",
        role="alert"
    )


def EmptyState(title: str, description: str = ""):
    """Empty state component."""
    return Div(
        H4(title),
        P(description) if description else None,
        cls="empty-state"
    )
