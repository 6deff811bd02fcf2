"""
Book Club API Clients Package.

- BookAPIClient: Google Books and Open Library catalog lookup
"""

from .books import BookAPIClient, MIN_QUERY_LENGTH

__all__ = [
    'BookAPIClient',
    'MIN_QUERY_LENGTH',
]
