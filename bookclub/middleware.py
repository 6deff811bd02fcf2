"""Request middleware for Book Club."""

import logging

from fasthtml.common import JSONResponse

from .errors import BookClubError
from .services.validation import parse_json_object

logger = logging.getLogger(__name__)


def _is_json_request(scope) -> bool:
    for key, value in scope.get('headers', []):
        if key == b'content-type':
            return value.split(b';')[0].strip().lower() == b'application/json'
    return False


class JSONBodyMiddleware:
    """Answer 400 for JSON bodies that are not a single JSON object.

    FastHTML decodes the body while injecting handler parameters, before
    any Beforeware or route code runs, so a malformed body never reaches
    the routes' own error handling. Accepted bodies are replayed unchanged.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope['type'] != 'http' or not _is_json_request(scope):
            await self.app(scope, receive, send)
            return

        chunks, more = [], True
        while more:
            message = await receive()
            if message['type'] == 'http.disconnect':
                return
            chunks.append(message.get('body', b''))
            more = message.get('more_body', False)
        body = b''.join(chunks)

        if body:
            try:
                parse_json_object(body)
            except BookClubError as e:
                logger.debug(f"Rejected JSON body for {scope.get('method')} {scope.get('path')}: {e.message}")
                response = JSONResponse({"error": e.message}, status_code=e.status_code)
                await response(scope, receive, send)
                return

        replayed = False

        async def replay():
            nonlocal replayed
            if not replayed:
                replayed = True
                return {'type': 'http.request', 'body': body, 'more_body': False}
            return await receive()

        await self.app(scope, replay, send)
