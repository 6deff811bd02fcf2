"""
Shared pytest fixtures for Book Club tests.

This module provides test fixtures for:
- In-memory SQLite database with all tables
- Users, topics and books already stored
- Test data factories
- A Starlette TestClient bound to the test database
"""

import pytest
import os
import sys
from datetime import datetime, timezone, timedelta
from typing import Dict, Any, List

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_tables():
    """
    Create an in-memory SQLite database with all tables.

    Every test gets a fresh database.
    """
    from bookclub.models import setup_database

    tables = setup_database(memory=True)

    yield tables


@pytest.fixture
def db_with_users(db_tables):
    """Database with two registered users, alice and bob."""
    from bookclub.models import User

    alice = db_tables['users'].insert(User(name="alice"))
    bob = db_tables['users'].insert(User(name="bob"))

    return db_tables, alice, bob


@pytest.fixture
def db_with_topics(db_with_users):
    """Database with users and the topics fiction, history and science."""
    from bookclub.models import Topic

    db_tables, alice, bob = db_with_users
    topics = {
        name: db_tables['topics'].insert(Topic(name=name))
        for name in ("fiction", "history", "science")
    }

    return db_tables, alice, bob, topics


@pytest.fixture
def db_with_book(db_with_topics):
    """Database with one book recommended by alice under fiction."""
    db_tables, alice, bob, topics = db_with_topics

    book = TestDataFactory.create_book(
        db_tables, alice.id, [topics['fiction'].id], title="Dune", author="Frank Herbert"
    )

    return db_tables, alice, bob, book


# ============================================================================
# Test Data Factories
# ============================================================================

class TestDataFactory:
    """Factory for storing test data directly, bypassing the services."""

    @staticmethod
    def create_user(db_tables: Dict[str, Any], name: str = None):
        from bookclub.models import User
        import secrets

        return db_tables['users'].insert(User(name=name or f"user-{secrets.token_hex(3)}"))

    @staticmethod
    def create_topic(db_tables: Dict[str, Any], name: str = None):
        from bookclub.models import Topic
        import secrets

        return db_tables['topics'].insert(Topic(name=name or f"topic-{secrets.token_hex(3)}"))

    @staticmethod
    def create_book(
        db_tables: Dict[str, Any],
        user_id: int,
        topic_ids: List[int],
        title: str = None,
        **kwargs
    ):
        """Store a book and its topic links; ``created_at`` may be a datetime."""
        from bookclub.models import Book, BookTopic, utc_now_iso
        import secrets

        created_at = kwargs.get('created_at') or utc_now_iso()
        if isinstance(created_at, datetime):
            created_at = created_at.isoformat()

        book = db_tables['books'].insert(Book(
            title=title or f"Test Book {secrets.token_hex(3)}",
            author=kwargs.get('author', 'Test Author'),
            user_id=user_id,
            description=kwargs.get('description', ''),
            link=kwargs.get('link', ''),
            cover=kwargs.get('cover', ''),
            recommended_by=kwargs.get('recommended_by', ''),
            created_at=created_at,
        ))
        for topic_id in topic_ids:
            db_tables['book_topics'].insert(BookTopic(book_id=book.id, topic_id=topic_id))
        return book

    @staticmethod
    def timestamps(count: int, start: datetime = None) -> List[datetime]:
        """``count`` increasing timestamps one minute apart."""
        start = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        return [start + timedelta(minutes=i) for i in range(count)]


@pytest.fixture
def factory():
    """Provide access to the test data factory."""
    return TestDataFactory()


# ============================================================================
# App Fixtures
# ============================================================================

@pytest.fixture
def client(db_tables, monkeypatch):
    """TestClient for the FastHTML app, backed by the in-memory database."""
    from starlette.testclient import TestClient
    import app as app_module

    monkeypatch.setattr(app_module, 'db_tables', db_tables)
    return TestClient(app_module.app)


@pytest.fixture
def api(client):
    """Small helpers for JSON calls, including DELETE with a body."""
    class Api:
        def get(self, url, **kwargs):
            return client.get(url, **kwargs)

        def post(self, url, body=None):
            return client.post(url, json=body if body is not None else {})

        def delete(self, url, body=None):
            return client.request("DELETE", url, json=body if body is not None else {})

    return Api()


# ============================================================================
# Environment Variable Fixtures
# ============================================================================

@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set up catalog environment variables for testing."""
    monkeypatch.setenv('GOOGLE_BOOKS_API_KEY', 'test-key')
    monkeypatch.setenv('CATALOG_TIMEOUT_SECONDS', '2')
    monkeypatch.setenv('CATALOG_MAX_RESULTS', '3')
    yield
