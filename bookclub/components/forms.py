"""Form components for Book Club."""

import json
from fasthtml.common import *
from fasthtml.pico import Card
from typing import Dict, List, Any, Optional, Sequence

from .utils import truncate_words


def LoginForm(users: Sequence[Any]):
    """Pick a registered name to log in."""
    return Form(
        H4("Log in"),
        Select(
            Option("Choose your name", value="", selected=True, disabled=True),
            *[Option(u.name, value=u.name) for u in users],
            name="name",
            required=True
        ),
        Button("Log in", type="submit"),
        action="/ui/login",
        method="post",
        cls="login-form"
    )


def RegisterForm():
    return Form(
        H4("New here?"),
        Input(name="name", placeholder="Your name", required=True),
        Button("Register", type="submit", cls="secondary"),
        action="/ui/register",
        method="post",
        cls="register-form"
    )


def TopicChip(topic_id: int, name: str):
    """A selected topic; the hidden input submits it with the recommend form."""
    return Span(
        name,
        Hidden(name="topics", value=topic_id),
        Button("✕", type="button", onclick="this.parentElement.remove()", cls="chip-remove", title=f"Remove {name}"),
        cls="topic-chip",
        id=f"topic-chip-{topic_id}"
    )


def TopicPicker(selected: Sequence[Any] = ()):
    """Chip list of chosen topics plus an autocomplete input."""
    return Div(
        Label("Topics"),
        Div(*[TopicChip(t.id, t.name) for t in selected], id="selected-topics", cls="topic-chips"),
        Input(
            name="topic_query",
            placeholder="Search or create a topic...",
            autocomplete="off",
            hx_get="/ui/topics/search",
            hx_trigger="keyup changed delay:300ms",
            hx_target="#topic-suggestions",
            hx_swap="innerHTML"
        ),
        Div(id="topic-suggestions", cls="topic-suggestions"),
        cls="topic-picker"
    )


def TopicSuggestions(topics: Sequence[Any], query: str = ""):
    """Autocomplete entries; an unmatched query can be created as a new topic."""
    items = [
        Li(t.name,
           hx_post="/ui/topics/chip",
           hx_vals=json.dumps({"topic_id": t.id}),
           hx_target="#selected-topics",
           hx_swap="beforeend",
           cls="suggestion")
        for t in topics
    ]
    if query and not any(t.name.lower() == query.lower() for t in topics):
        items.append(Li(
            f'Create "{query}"',
            hx_post="/ui/topics/chip",
            hx_vals=json.dumps({"name": query}),
            hx_target="#selected-topics",
            hx_swap="beforeend",
            cls="suggestion create"
        ))
    return Ul(*items, cls="suggestion-list") if items else ""


def RecommendFields(values: Optional[Dict[str, Any]] = None):
    """Title/author/details inputs; prefilled after a catalog pick."""
    values = values or {}
    return Div(
        Input(
            name="title",
            placeholder="Book title",
            value=values.get('title', ''),
            required=True,
            autocomplete="off",
            hx_get="/ui/catalog/search",
            hx_trigger="keyup changed delay:400ms",
            hx_target="#catalog-results",
            hx_swap="innerHTML",
            hx_indicator="#catalog-indicator"
        ),
        Div("🔍 Searching...", cls="htmx-indicator", id="catalog-indicator"),
        Div(id="catalog-results", cls="catalog-results"),
        Input(name="author", placeholder="Author", value=values.get('author', ''), required=True),
        Textarea(values.get('description', ''), name="description", placeholder="Why should we read it?", rows=3),
        Input(name="link", placeholder="Link", value=values.get('link', '')),
        Hidden(name="cover", value=values.get('cover', '')),
        Input(name="recommended_by", placeholder="Recommended by (optional)", value=values.get('recommended_by', '')),
        id="recommend-fields"
    )


def RecommendBookForm(selected_topics: Sequence[Any] = ()):
    return Card(
        H3("Recommend a book"),
        Form(
            RecommendFields(),
            TopicPicker(selected_topics),
            Button("Recommend", type="submit"),
            hx_post="/ui/books",
            hx_target="#book-feed",
            hx_swap="outerHTML",
            hx_include="#topic-filter",
            cls="recommend-form"
        ),
        Div(id="recommend-message"),
        cls="recommend-card"
    )


def CatalogResults(candidates: List[Dict[str, Any]]):
    """Catalog candidates for the typed title; clicking one fills the form."""
    if not candidates:
        return ""
    return Ul(
        *[Li(
            Img(src=c['cover'], alt="", cls="catalog-cover", loading="lazy") if c.get('cover') else None,
            Div(
                Strong(c.get('title', '')),
                Small(f" by {c.get('author', '')}"),
                Div(Small(truncate_words(c.get('description', ''), 12))) if c.get('description') else None
            ),
            hx_post="/ui/catalog/select",
            hx_vals=json.dumps({
                "title": c.get('title', ''),
                "author": c.get('author', ''),
                "description": c.get('description', ''),
                "link": c.get('link', ''),
                "cover": c.get('cover', ''),
                "categories": json.dumps(c.get('categories', [])),
            }),
            hx_target="#recommend-fields",
            hx_swap="outerHTML",
            cls="catalog-candidate"
        ) for c in candidates],
        cls="catalog-list"
    )


def CatalogSelection(values: Dict[str, Any], topics: Sequence[Any]):
    """Prefilled fields plus out-of-band chips for the suggested topics."""
    return (
        RecommendFields(values),
        Div(*[TopicChip(t.id, t.name) for t in topics],
            id="selected-topics", cls="topic-chips", hx_swap_oob="true")
    )


def TopicFilter(topics: Sequence[Any], current: str = ""):
    """Select that narrows the feed to one topic."""
    return Select(
        Option("All topics", value="", selected=not current),
        *[Option(t.name, value=t.name, selected=t.name == current) for t in topics],
        name="topic",
        id="topic-filter",
        hx_get="/ui/feed",
        hx_trigger="change",
        hx_target="#book-feed",
        hx_swap="outerHTML"
    )
