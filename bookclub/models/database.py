"""Database setup and connection management for Book Club.

This module handles database initialization, migrations, and provides
the setup_database function for creating table connections.
"""

import os
import asyncio
import logging
from typing import Dict, Any

from fastlite import database

from .entities import User, Topic, Book, BookTopic, Vote, BookStatus, Comment

logger = logging.getLogger(__name__)

# Dataclass, table name and unique indexes for every table
TABLES = {
    'users': (User, [('idx_users_name', ['name'])]),
    'topics': (Topic, [('idx_topics_name', ['name'])]),
    'books': (Book, []),
    'book_topics': (BookTopic, [('idx_book_topics_book_topic', ['book_id', 'topic_id'])]),
    'votes': (Vote, [('idx_votes_book_voter', ['book_id', 'voter_id'])]),
    'book_statuses': (BookStatus, [('idx_book_statuses_book_user_status', ['book_id', 'user_id', 'status'])]),
    'comments': (Comment, []),
}


def setup_database(db_path: str = 'data/bookclub.db', migrations_dir: str = 'migrations', memory: bool = False) -> Dict[str, Any]:
    """Initialize the database with fastmigrate and all tables.

    Args:
        db_path: Path to the SQLite database file
        migrations_dir: Path to the migrations directory
        memory: If True, use an in-memory database (for testing)

    Returns:
        Dictionary containing the database connection under 'db' and one
        table object per entry in TABLES
    """
    if memory:
        logger.debug("Setting up in-memory database")
        db = database(':memory:')
    else:
        from fastmigrate.core import create_db, run_migrations, get_db_version

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        create_db(db_path)

        success = run_migrations(db_path, migrations_dir)
        if not success:
            raise RuntimeError("Database migration failed! Application cannot continue.")

        version = get_db_version(db_path)
        logger.info(f"Database initialized at {db_path}, version {version}")

        db = database(db_path)
        db.execute("PRAGMA journal_mode=WAL")
        db.execute("PRAGMA synchronous=NORMAL")
        db.execute("PRAGMA busy_timeout=30000")

    db_tables = {'db': db}
    for name, (cls, unique_indexes) in TABLES.items():
        # Binds the dataclass to the table; migrated tables already exist
        table = db.create(cls, name=name, pk='id', if_not_exists=True)
        for index_name, columns in unique_indexes:
            table.create_index(columns, index_name=index_name, unique=True, if_not_exists=True)
        db_tables[name] = table

    return db_tables


class DatabaseManager:
    """Lazily opens the process-wide database handle."""

    def __init__(self, db_path: str = None, migrations_dir: str = None):
        self.db_path = db_path or os.getenv('DATABASE_PATH', 'data/bookclub.db')
        self.migrations_dir = migrations_dir or os.getenv('MIGRATIONS_DIR', 'migrations')
        self._db = None
        self._lock = asyncio.Lock()

    async def get_connection(self) -> Dict[str, Any]:
        async with self._lock:
            if self._db is None:
                self._db = setup_database(self.db_path, self.migrations_dir)
            return self._db


db_manager = DatabaseManager()
