"""Identity: registration and name-based login.

There are no credentials; a user is a bare record with a unique name.
"""

import logging
from typing import Optional, Dict, Any, List

from ..errors import Conflict, NotFound
from ..models import User
from .validation import require_text

logger = logging.getLogger(__name__)


def get_user(user_id: int, db_tables: Dict[str, Any]) -> Optional[User]:
    """Get a user by id, returning None if not found."""
    rows = db_tables['users'](where="id = ?", where_args=[user_id])
    return rows[0] if rows else None


def get_user_by_name(name: str, db_tables: Dict[str, Any]) -> Optional[User]:
    rows = db_tables['users'](where="name = ?", where_args=[name])
    return rows[0] if rows else None


def list_users(db_tables: Dict[str, Any]) -> List[User]:
    return db_tables['users'](order_by="name")


def register_user(name: str, db_tables: Dict[str, Any]) -> User:
    """Create a user with a unique display name."""
    name = require_text(name, "name")
    if get_user_by_name(name, db_tables):
        raise Conflict(f"The name '{name}' is already taken")
    try:
        user = db_tables['users'].insert(User(name=name))
    except Exception:
        # Lost a race with a concurrent registration of the same name
        if get_user_by_name(name, db_tables):
            raise Conflict(f"The name '{name}' is already taken")
        raise
    logger.info(f"Registered user {user.id} ({user.name})")
    return user


def login_user(name: str, db_tables: Dict[str, Any]) -> User:
    """Look up a registered user by exact name."""
    name = require_text(name, "name")
    user = get_user_by_name(name, db_tables)
    if not user:
        raise NotFound("User not found. Please register.")
    return user
