"""Topics: CRUD, autocomplete search and suggestion from catalog categories."""

import re
import logging
from typing import Dict, Any, List, Optional, Sequence

from ..errors import Conflict
from ..models import Topic
from .validation import require_text

logger = logging.getLogger(__name__)

# Genre words commonly found in catalog categories
CATEGORY_KEYWORDS = (
    'fiction', 'nonfiction', 'science', 'fantasy', 'mystery', 'thriller',
    'romance', 'horror', 'biography', 'history', 'business', 'self-help',
    'philosophy', 'psychology', 'technology', 'computers', 'programming',
)

_CATEGORY_SPLIT = re.compile(r"[\s&,/]+")


def list_topics(db_tables: Dict[str, Any]) -> List[Topic]:
    return db_tables['topics'](order_by="name")


def get_topic_by_name(name: str, db_tables: Dict[str, Any]) -> Optional[Topic]:
    rows = db_tables['topics'](where="name = ?", where_args=[name])
    return rows[0] if rows else None


def search_topics(query: str, db_tables: Dict[str, Any]) -> List[Topic]:
    """Case-insensitive substring search used by the topic autocomplete."""
    query = (query or "").strip()
    if not query:
        return list_topics(db_tables)
    return db_tables['topics'](where="name LIKE ?", where_args=[f"%{query}%"], order_by="name")


def create_topic(name: str, db_tables: Dict[str, Any]) -> Topic:
    name = require_text(name, "name")
    if get_topic_by_name(name, db_tables):
        raise Conflict(f"Topic '{name}' already exists")
    try:
        topic = db_tables['topics'].insert(Topic(name=name))
    except Exception:
        # Lost a race with a concurrent creation of the same topic
        if get_topic_by_name(name, db_tables):
            raise Conflict(f"Topic '{name}' already exists")
        raise
    logger.info(f"Created topic {topic.id} ({topic.name})")
    return topic


def get_or_create_topic(name: str, db_tables: Dict[str, Any]) -> Topic:
    name = require_text(name, "name")
    return get_topic_by_name(name, db_tables) or create_topic(name, db_tables)


def _category_words(categories: Sequence[str]) -> List[str]:
    words = []
    for category in categories or []:
        words.extend(w for w in _CATEGORY_SPLIT.split(category.lower()) if w)
    return words


def suggest_topic_ids(categories: Sequence[str], topics: Sequence[Topic]) -> List[int]:
    """Match catalog categories against existing topic names.

    A topic matches when its name and a category word contain one another,
    or when both mention the same genre keyword.
    """
    words = _category_words(categories)
    if not words:
        return []

    keywords = [k for k in CATEGORY_KEYWORDS if any(k in word for word in words)]
    matched = []
    for topic in topics:
        topic_name = topic.name.lower()
        if any(word in topic_name or topic_name in word for word in words) \
                or any(k in topic_name for k in keywords):
            matched.append(topic.id)
    return matched


def _similar_topic(category: str, topics: Sequence[Topic]) -> Optional[Topic]:
    category = category.lower()
    for topic in topics:
        name = topic.name.lower()
        if name == category or name in category or category in name:
            return topic
    return None


def resolve_category_topics(categories: Sequence[str], db_tables: Dict[str, Any]) -> List[int]:
    """Reuse a similar topic for each category or create a new one.

    Returns de-duplicated topic ids in category order.
    """
    topics = list_topics(db_tables)
    topic_ids = []
    for category in categories or []:
        category = (category or "").strip()
        if not category:
            continue
        topic = _similar_topic(category, topics)
        if topic is None:
            topic = create_topic(category, db_tables)
            topics.append(topic)
        if topic.id not in topic_ids:
            topic_ids.append(topic.id)
    return topic_ids
