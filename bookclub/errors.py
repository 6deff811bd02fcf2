"""Error taxonomy for Book Club.

Services raise these; routes translate them into responses using
``status_code``.
"""


class BookClubError(Exception):
    """Base exception for Book Club failures."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidArgument(BookClubError):
    """A required field is missing or malformed."""
    status_code = 400


class NotFound(BookClubError):
    """A referenced book, comment or user does not exist."""
    status_code = 404


class Forbidden(BookClubError):
    """The actor does not own the record it tried to change."""
    status_code = 403


class Conflict(BookClubError):
    """A uniqueness constraint would be violated."""
    status_code = 409


class Unavailable(BookClubError):
    """The storage layer failed."""
    status_code = 503

    def __init__(self, message: str = "Storage is unavailable", original_error: Exception = None):
        self.original_error = original_error
        if original_error:
            message = f"{message}: {original_error}"
        super().__init__(message)
