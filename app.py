"""Main FastHTML application for Book Club."""

from fasthtml.common import *
from fasthtml.pico import picolink
import os
import json
from dataclasses import asdict
from dotenv import load_dotenv

load_dotenv()

from logging_config import setup_logging, silence_noisy_loggers
from bookclub.errors import BookClubError, Forbidden, Unavailable
from bookclub.models import db_manager
from bookclub.middleware import JSONBodyMiddleware
from bookclub.clients import BookAPIClient
from bookclub.services import (
    get_user, list_users, register_user, login_user,
    list_topics, search_topics, create_topic, get_or_create_topic,
    suggest_topic_ids, resolve_category_topics,
    get_book, create_book,
    list_books, list_books_by_owner, list_books_voted_by, list_statuses_for_user,
    voted_book_ids, book_to_dict,
    set_vote, toggle_vote, count_votes, set_status, toggle_status, count_status,
    delete_book, delete_comment,
    list_comments, count_comments, comment_counts, add_comment,
)
from bookclub.services.books import require_book
from bookclub.services.engagement import has_voted, has_status
from bookclub.services.validation import parse_id, parse_json_object
from bookclub.components import (
    Alert, NavBar, HomePage, BookFeed, UserSummary, CommentsPanel,
    CatalogResults, CatalogSelection, TopicSuggestions, TopicChip,
)

logger = setup_logging("web_app")
silence_noisy_loggers()

# Opened lazily by the first request
db_tables = None

book_api = BookAPIClient()


async def before_handler(req, sess):
    global db_tables
    if db_tables is None:
        db_tables = await db_manager.get_connection()

    # Drop session identities whose user no longer exists
    user = sess.get('user')
    if user and get_user(user.get('id'), db_tables) is None:
        sess.pop('user', None)
        user = None
    req.scope['auth'] = user


app, rt = fast_app(
    before=Beforeware(before_handler, skip=[r'/static/.*', r'/favicon\.ico']),
    middleware=[Middleware(JSONBodyMiddleware)],
    htmlkw={'data-theme': 'light'},
    secret_key=os.getenv('SESSION_SECRET'),
    session_cookie='bookclub_session',
    same_site='lax',
    hdrs=(
        picolink,
        Link(rel="stylesheet", href="/static/css/styles.css"),
        Script(src="https://unpkg.com/htmx.org@1.9.10")
    )
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _json_body(req) -> dict:
    """Parse a JSON object body, raising InvalidArgument otherwise."""
    return parse_json_object(await req.body())


def api_error(e: BookClubError):
    return JSONResponse({"error": e.message}, status_code=e.status_code)


def storage_error(e: Exception, context: str):
    """Log an unexpected failure and answer 503."""
    logger.error(f"Error {context}: {e}", exc_info=True)
    return api_error(Unavailable(original_error=e))


def _user_dict(user):
    return {"id": user.id, "name": user.name}


def _vote_state(book_id, voter_id):
    book_id, voter_id = parse_id(book_id, "book_id"), parse_id(voter_id, "voter_id")
    return {
        "book_id": book_id,
        "voter_id": voter_id,
        "active": has_voted(book_id, voter_id, db_tables),
        "votes": count_votes(book_id, db_tables),
    }


def _status_state(book_id, user_id, status):
    book_id, user_id = parse_id(book_id, "book_id"), parse_id(user_id, "user_id")
    return {
        "book_id": book_id,
        "user_id": user_id,
        "status": status,
        "active": has_status(book_id, user_id, status, db_tables),
        "count": count_status(book_id, status, db_tables),
    }


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    try:
        db_tables['db'].q("SELECT 1")
        return JSONResponse({"status": "ok"})
    except Exception as e:
        return storage_error(e, "checking database health")


@app.post("/register")
async def api_register(req):
    try:
        data = await _json_body(req)
        user = register_user(data.get('name'), db_tables)
        return JSONResponse(_user_dict(user), status_code=201)
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, "registering user")


@app.post("/login")
async def api_login(req):
    try:
        data = await _json_body(req)
        return JSONResponse(_user_dict(login_user(data.get('name'), db_tables)))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, "logging in")


@app.get("/users")
def api_users():
    try:
        return JSONResponse([_user_dict(u) for u in list_users(db_tables)])
    except Exception as e:
        return storage_error(e, "listing users")


@app.get("/topics")
def api_topics():
    try:
        return JSONResponse([asdict(t) for t in list_topics(db_tables)])
    except Exception as e:
        return storage_error(e, "listing topics")


@app.get("/topics/search")
def api_search_topics(q: str = ""):
    try:
        return JSONResponse([asdict(t) for t in search_topics(q, db_tables)])
    except Exception as e:
        return storage_error(e, f"searching topics for '{q}'")


@app.post("/topics")
async def api_create_topic(req):
    try:
        data = await _json_body(req)
        topic = create_topic(data.get('name'), db_tables)
        return JSONResponse(asdict(topic), status_code=201)
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, "creating topic")


@app.get("/books")
def api_books():
    try:
        return JSONResponse([book_to_dict(b) for b in list_books(db_tables)])
    except Exception as e:
        return storage_error(e, "listing books")


@app.post("/books")
async def api_create_book(req):
    try:
        data = await _json_body(req)
        book = create_book(
            data.get('title'),
            data.get('author'),
            data.get('user_id'),
            data.get('topics'),
            db_tables,
            description=data.get('description'),
            link=data.get('link'),
            cover=data.get('cover'),
            recommended_by=data.get('recommended_by'),
        )
        return JSONResponse(book_to_dict(book), status_code=201)
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, "creating book")


@app.get("/books/{book_id}")
def api_book(book_id: str):
    try:
        return JSONResponse(book_to_dict(get_book(parse_id(book_id, "book_id"), db_tables)))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"loading book {book_id}")


@app.delete("/books/{book_id}")
async def api_delete_book(book_id: str, req):
    try:
        data = await _json_body(req)
        delete_book(book_id, data.get('user_id'), db_tables)
        return JSONResponse({"deleted": True, "book_id": parse_id(book_id, "book_id")})
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"deleting book {book_id}")


@app.post("/books/{book_id}/vote")
async def api_add_vote(book_id: str, req):
    try:
        data = await _json_body(req)
        changed = set_vote(book_id, data.get('voter_id'), True, db_tables)
        return JSONResponse(_vote_state(book_id, data.get('voter_id')), status_code=201 if changed else 200)
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"adding vote to book {book_id}")


@app.delete("/books/{book_id}/vote")
async def api_remove_vote(book_id: str, req):
    try:
        data = await _json_body(req)
        set_vote(book_id, data.get('voter_id'), False, db_tables)
        return JSONResponse(_vote_state(book_id, data.get('voter_id')))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"removing vote from book {book_id}")


@app.post("/books/{book_id}/vote/toggle")
async def api_toggle_vote(book_id: str, req):
    try:
        data = await _json_body(req)
        toggle_vote(book_id, data.get('voter_id'), db_tables)
        return JSONResponse(_vote_state(book_id, data.get('voter_id')))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"toggling vote on book {book_id}")


@app.post("/books/{book_id}/status")
async def api_add_status(book_id: str, req):
    try:
        data = await _json_body(req)
        changed = set_status(book_id, data.get('user_id'), data.get('status'), True, db_tables)
        return JSONResponse(_status_state(book_id, data.get('user_id'), data.get('status')),
                            status_code=201 if changed else 200)
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"setting status on book {book_id}")


@app.delete("/books/{book_id}/status")
async def api_remove_status(book_id: str, req):
    try:
        data = await _json_body(req)
        set_status(book_id, data.get('user_id'), data.get('status'), False, db_tables)
        return JSONResponse(_status_state(book_id, data.get('user_id'), data.get('status')))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"clearing status on book {book_id}")


@app.post("/books/{book_id}/status/toggle")
async def api_toggle_status(book_id: str, req):
    try:
        data = await _json_body(req)
        toggle_status(book_id, data.get('user_id'), data.get('status'), db_tables)
        return JSONResponse(_status_state(book_id, data.get('user_id'), data.get('status')))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"toggling status on book {book_id}")


@app.get("/users/{user_id}/books")
def api_user_books(user_id: str):
    try:
        books = list_books_by_owner(parse_id(user_id, "user_id"), db_tables)
        return JSONResponse([book_to_dict(b) for b in books])
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"listing books of user {user_id}")


@app.get("/users/{user_id}/votes")
def api_user_votes(user_id: str):
    try:
        books = list_books_voted_by(parse_id(user_id, "user_id"), db_tables)
        return JSONResponse([book_to_dict(b) for b in books])
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"listing votes of user {user_id}")


@app.get("/users/{user_id}/statuses")
def api_user_statuses(user_id: str):
    try:
        return JSONResponse(list_statuses_for_user(parse_id(user_id, "user_id"), db_tables))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"listing statuses of user {user_id}")


@app.get("/books/{book_id}/comments")
def api_comments(book_id: str):
    try:
        book = require_book(parse_id(book_id, "book_id"), db_tables)
        return JSONResponse(list_comments(book.id, db_tables))
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"listing comments of book {book_id}")


@app.get("/books/{book_id}/comments/count")
def api_comment_count(book_id: str):
    try:
        book = require_book(parse_id(book_id, "book_id"), db_tables)
        return JSONResponse({"book_id": book.id, "count": count_comments(book.id, db_tables)})
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"counting comments of book {book_id}")


@app.post("/books/{book_id}/comments")
async def api_add_comment(book_id: str, req):
    try:
        data = await _json_body(req)
        comment = add_comment(book_id, data.get('user_id'), data.get('content'), db_tables)
        return JSONResponse(comment, status_code=201)
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"adding comment to book {book_id}")


@app.delete("/books/{book_id}/comments/{comment_id}")
async def api_delete_comment(book_id: str, comment_id: str, req):
    try:
        data = await _json_body(req)
        delete_comment(book_id, comment_id, data.get('user_id'), db_tables)
        return JSONResponse({"deleted": True, "comment_id": parse_id(comment_id, "comment_id")})
    except BookClubError as e:
        return api_error(e)
    except Exception as e:
        return storage_error(e, f"deleting comment {comment_id}")


@app.get("/catalog/search")
async def api_catalog_search(q: str = ""):
    """Catalog candidates, each with the ids of existing topics matching its categories."""
    try:
        results = await book_api.search_books(q)
        topics = list_topics(db_tables)
        for candidate in results:
            candidate['suggested_topic_ids'] = suggest_topic_ids(candidate.get('categories', []), topics)
        return JSONResponse(results)
    except Exception as e:
        return storage_error(e, f"searching catalog for '{q}'")


# ---------------------------------------------------------------------------
# HTMX UI
# ---------------------------------------------------------------------------

def _actor_id(auth) -> int:
    if not auth:
        raise Forbidden("Please log in first.")
    return auth['id']


def _feed(auth, topic: str = "", message=None):
    """The feed rendered from current storage state."""
    voted, statuses = set(), []
    if auth:
        voted = voted_book_ids(auth['id'], db_tables)
        statuses = list_statuses_for_user(auth['id'], db_tables)
    return BookFeed(
        list_books(db_tables),
        user=auth,
        topic=topic,
        voted_ids=voted,
        statuses=statuses,
        comment_counts=comment_counts(db_tables),
        message=message
    )


def _summary(auth, oob: bool = False):
    return UserSummary(
        list_books_by_owner(auth['id'], db_tables),
        list_books_voted_by(auth['id'], db_tables),
        oob=oob
    )


def _feed_mutation(auth, topic: str, action, context: str):
    """Run a mutation and re-render the feed, plus the user's lists out of band."""
    message = None
    try:
        action(_actor_id(auth))
    except BookClubError as e:
        message = Alert(e.message, "error")
    except Exception as e:
        logger.error(f"Error {context}: {e}", exc_info=True)
        message = Alert("Something went wrong. Please try again.", "error")

    feed = _feed(auth, topic, message)
    return (feed, _summary(auth, oob=True)) if auth else feed


@rt("/")
def index(auth, sess, topic: str = ""):
    """Home page: login or recommend form, personal lists and the feed."""
    error = sess.pop('error', None)
    own_books, voted_books = [], []
    if auth:
        own_books = list_books_by_owner(auth['id'], db_tables)
        voted_books = list_books_voted_by(auth['id'], db_tables)

    return (
        Title("Book Club"),
        NavBar(auth),
        HomePage(
            _feed(auth, topic),
            list_topics(db_tables),
            list_users(db_tables),
            user=auth,
            own_books=own_books,
            voted_books=voted_books,
            topic=topic,
            message=Alert(error, "error") if error else None
        )
    )


@app.post("/ui/login")
def ui_login(sess, name: str = ""):
    try:
        user = login_user(name, db_tables)
        sess['user'] = _user_dict(user)
        logger.info(f"User {user.id} ({user.name}) logged in")
    except BookClubError as e:
        sess['error'] = e.message
    return RedirectResponse('/', status_code=303)


@app.post("/ui/register")
def ui_register(sess, name: str = ""):
    try:
        user = register_user(name, db_tables)
        sess['user'] = _user_dict(user)
    except BookClubError as e:
        sess['error'] = e.message
    return RedirectResponse('/', status_code=303)


@rt("/ui/logout")
def ui_logout(sess):
    sess.pop('user', None)
    return RedirectResponse('/', status_code=303)


@app.get("/ui/feed")
def ui_feed(auth, topic: str = ""):
    return _feed(auth, topic)


@app.post("/ui/books")
async def ui_create_book(auth, req):
    form = await req.form()

    def _create(user_id):
        book = create_book(
            form.get('title'),
            form.get('author'),
            user_id,
            form.getlist('topics'),
            db_tables,
            description=form.get('description'),
            link=form.get('link'),
            cover=form.get('cover'),
            recommended_by=form.get('recommended_by'),
        )
        logger.debug(f"Book {book.id} recommended from the UI")

    return _feed_mutation(auth, form.get('topic', ''), _create, "recommending book")


@app.post("/ui/books/{book_id}/vote")
def ui_toggle_vote(auth, book_id: str, topic: str = ""):
    return _feed_mutation(
        auth, topic,
        lambda user_id: toggle_vote(book_id, user_id, db_tables),
        f"toggling vote on book {book_id}"
    )


@app.post("/ui/books/{book_id}/status")
def ui_toggle_status(auth, book_id: str, status: str = "", topic: str = ""):
    return _feed_mutation(
        auth, topic,
        lambda user_id: toggle_status(book_id, user_id, status, db_tables),
        f"toggling '{status}' on book {book_id}"
    )


@app.post("/ui/books/{book_id}/delete")
def ui_delete_book(auth, book_id: str, topic: str = ""):
    return _feed_mutation(
        auth, topic,
        lambda user_id: delete_book(book_id, user_id, db_tables),
        f"deleting book {book_id}"
    )


def _comments_panel(auth, book_id: str, message=None):
    try:
        book = require_book(parse_id(book_id, "book_id"), db_tables)
    except BookClubError as e:
        return Alert(e.message, "error")
    return CommentsPanel(book.id, list_comments(book.id, db_tables), auth, message)


@app.get("/ui/books/{book_id}/comments")
def ui_comments(auth, book_id: str):
    return _comments_panel(auth, book_id)


@app.post("/ui/books/{book_id}/comments")
def ui_add_comment(auth, book_id: str, content: str = ""):
    message = None
    try:
        add_comment(book_id, _actor_id(auth), content, db_tables)
    except BookClubError as e:
        message = Alert(e.message, "error")
    return _comments_panel(auth, book_id, message)


@app.post("/ui/books/{book_id}/comments/{comment_id}/delete")
def ui_delete_comment(auth, book_id: str, comment_id: str):
    message = None
    try:
        delete_comment(book_id, comment_id, _actor_id(auth), db_tables)
    except BookClubError as e:
        message = Alert(e.message, "error")
    return _comments_panel(auth, book_id, message)


@app.get("/ui/catalog/search")
async def ui_catalog_search(title: str = ""):
    return CatalogResults(await book_api.search_books(title))


@app.post("/ui/catalog/select")
def ui_catalog_select(auth, title: str = "", author: str = "", description: str = "",
                      link: str = "", cover: str = "", categories: str = "[]"):
    """Prefill the recommend form from a catalog pick and preselect topics."""
    try:
        categories = json.loads(categories)
    except json.JSONDecodeError:
        categories = []
    if not isinstance(categories, list):
        categories = []
    categories = [c for c in categories if isinstance(c, str)]

    topics = list_topics(db_tables)
    topic_ids = suggest_topic_ids(categories, topics)
    if not topic_ids and categories and auth:
        topic_ids = resolve_category_topics(categories, db_tables)
        topics = list_topics(db_tables)

    values = {"title": title, "author": author, "description": description, "link": link, "cover": cover}
    return CatalogSelection(values, [t for t in topics if t.id in topic_ids])


@app.get("/ui/topics/search")
def ui_topic_search(topic_query: str = ""):
    query = topic_query.strip()
    if not query:
        return ""
    return TopicSuggestions(search_topics(query, db_tables), query)


@app.post("/ui/topics/chip")
def ui_topic_chip(auth, topic_id: str = "", name: str = ""):
    clear_suggestions = Div(id="topic-suggestions", cls="topic-suggestions", hx_swap_oob="true")
    try:
        _actor_id(auth)
        if topic_id:
            rows = db_tables['topics'](where="id = ?", where_args=[parse_id(topic_id, "topic_id")])
            if not rows:
                return Alert("Topic not found", "error"), clear_suggestions
            topic = rows[0]
        else:
            topic = get_or_create_topic(name, db_tables)
    except BookClubError as e:
        return Alert(e.message, "error"), clear_suggestions
    return TopicChip(topic.id, topic.name), clear_suggestions


serve()
