"""
Integration tests for the HTTP surface: JSON API and HTMX UI routes.
"""

import pytest
from unittest.mock import AsyncMock


@pytest.fixture
def seeded(api):
    """Two registered users, two topics and one book owned by alice."""
    alice = api.post("/register", {"name": "alice"}).json()
    bob = api.post("/register", {"name": "bob"}).json()
    fiction = api.post("/topics", {"name": "fiction"}).json()
    history = api.post("/topics", {"name": "history"}).json()
    book = api.post("/books", {
        "title": "Dune",
        "author": "Frank Herbert",
        "user_id": alice['id'],
        "topics": [fiction['id']],
    }).json()
    return {"alice": alice, "bob": bob, "fiction": fiction, "history": history, "book": book}


@pytest.fixture
def catalog(monkeypatch):
    """Replace the catalog lookup with canned candidates."""
    import app as app_module

    search = AsyncMock(return_value=[{
        'title': 'Dune',
        'author': 'Frank Herbert',
        'description': 'Spice.',
        'cover': 'https://example.com/dune.jpg',
        'link': 'https://example.com/dune',
        'categories': ['Fiction'],
        'source': 'google_books',
    }])
    monkeypatch.setattr(app_module.book_api, 'search_books', search)
    return search


# ============================================================================
# JSON API
# ============================================================================

class TestIdentityApi:

    @pytest.mark.integration
    def test_health(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.integration
    def test_register_login_and_list(self, api):
        created = api.post("/register", {"name": "carol"})
        assert created.status_code == 201

        assert api.post("/register", {"name": "carol"}).status_code == 409
        assert api.post("/login", {"name": "carol"}).json() == created.json()
        assert api.post("/login", {"name": "dave"}).status_code == 404
        assert [u['name'] for u in api.get("/users").json()] == ["carol"]

    @pytest.mark.integration
    def test_malformed_json_is_rejected(self, client):
        response = client.post("/register", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.integration
    def test_non_object_body_is_rejected(self, client):
        assert client.post("/register", json=["alice"]).status_code == 400

    @pytest.mark.integration
    def test_bad_bodies_on_book_routes(self, client, seeded):
        book_id = seeded['book']['id']
        headers = {"Content-Type": "application/json; charset=utf-8"}

        malformed = client.post(f"/books/{book_id}/vote", content=b"{bad", headers=headers)
        listed = client.request("DELETE", f"/books/{book_id}", json=[1])
        empty = client.post(f"/books/{book_id}/vote", headers={"Content-Type": "application/json"})

        assert malformed.status_code == 400
        assert malformed.json() == {"error": "Request body must be valid JSON"}
        assert listed.status_code == 400
        assert listed.json() == {"error": "Request body must be a JSON object"}
        assert empty.status_code == 400
        assert len(client.get("/books").json()) == 1


class TestTopicsApi:

    @pytest.mark.integration
    def test_create_list_and_search(self, api, seeded):
        assert [t['name'] for t in api.get("/topics").json()] == ["fiction", "history"]
        assert [t['name'] for t in api.get("/topics/search", params={"q": "HIS"}).json()] == ["history"]
        assert api.post("/topics", {"name": "fiction"}).status_code == 409
        assert api.post("/topics", {"name": ""}).status_code == 400


class TestBooksApi:

    @pytest.mark.integration
    def test_created_book_shape(self, api, seeded):
        book = seeded['book']

        assert book['title'] == "Dune"
        assert book['topics'] == ["fiction"]
        assert book['votes'] == 0
        for kind in ('already_read', 'skimmed', 'want_to_read', 'reading_now'):
            assert book[kind] == 0

        assert api.get(f"/books/{book['id']}").json()['id'] == book['id']
        assert [b['id'] for b in api.get("/books").json()] == [book['id']]

    @pytest.mark.integration
    def test_book_without_topics_is_rejected(self, api, seeded):
        response = api.post("/books", {
            "title": "SPQR", "author": "Mary Beard", "user_id": seeded['alice']['id'], "topics": [],
        })

        assert response.status_code == 400
        assert response.json()['error'] == "At least one topic is required"

    @pytest.mark.integration
    def test_unregistered_submitter_is_forbidden(self, api, seeded):
        response = api.post("/books", {
            "title": "SPQR", "author": "Mary Beard", "user_id": 999, "topics": [seeded['history']['id']],
        })

        assert response.status_code == 403

    @pytest.mark.integration
    def test_missing_and_malformed_ids(self, api, seeded):
        assert api.get("/books/999").status_code == 404
        assert api.get("/books/abc").status_code == 400

    @pytest.mark.integration
    def test_only_owner_can_delete(self, api, seeded):
        book_id = seeded['book']['id']
        api.post(f"/books/{book_id}/vote", {"voter_id": seeded['bob']['id']})

        denied = api.delete(f"/books/{book_id}", {"user_id": seeded['bob']['id']})
        assert denied.status_code == 403
        assert len(api.get("/books").json()) == 1

        deleted = api.delete(f"/books/{book_id}", {"user_id": seeded['alice']['id']})
        assert deleted.status_code == 200
        assert api.get("/books").json() == []
        assert api.get(f"/users/{seeded['bob']['id']}/votes").json() == []
        assert api.delete(f"/books/{book_id}", {"user_id": seeded['alice']['id']}).status_code == 404


class TestEngagementApi:

    @pytest.mark.integration
    def test_vote_set_is_idempotent(self, api, seeded):
        book_id, bob_id = seeded['book']['id'], seeded['bob']['id']

        first = api.post(f"/books/{book_id}/vote", {"voter_id": bob_id})
        again = api.post(f"/books/{book_id}/vote", {"voter_id": bob_id})

        assert first.status_code == 201
        assert again.status_code == 200
        assert again.json() == {"book_id": book_id, "voter_id": bob_id, "active": True, "votes": 1}

        removed = api.delete(f"/books/{book_id}/vote", {"voter_id": bob_id})
        assert removed.json()['active'] is False
        assert api.delete(f"/books/{book_id}/vote", {"voter_id": bob_id}).json()['votes'] == 0

    @pytest.mark.integration
    def test_vote_toggle(self, api, seeded):
        book_id, bob_id = seeded['book']['id'], seeded['bob']['id']

        on = api.post(f"/books/{book_id}/vote/toggle", {"voter_id": bob_id}).json()
        off = api.post(f"/books/{book_id}/vote/toggle", {"voter_id": bob_id}).json()

        assert (on['active'], on['votes']) == (True, 1)
        assert (off['active'], off['votes']) == (False, 0)

    @pytest.mark.integration
    def test_vote_errors(self, api, seeded):
        book_id = seeded['book']['id']

        assert api.post(f"/books/{book_id}/vote", {}).status_code == 400
        assert api.post(f"/books/{book_id}/vote", {"voter_id": 999}).status_code == 403
        assert api.post("/books/999/vote", {"voter_id": seeded['bob']['id']}).status_code == 404

    @pytest.mark.integration
    def test_status_set_toggle_and_listing(self, api, seeded):
        book_id, bob_id = seeded['book']['id'], seeded['bob']['id']

        added = api.post(f"/books/{book_id}/status", {"user_id": bob_id, "status": "reading_now"})
        assert added.status_code == 201
        assert added.json()['count'] == 1

        toggled = api.post(f"/books/{book_id}/status/toggle", {"user_id": bob_id, "status": "skimmed"}).json()
        assert toggled['active'] is True

        assert api.get(f"/users/{bob_id}/statuses").json() == [
            {"book_id": book_id, "status": "reading_now"},
            {"book_id": book_id, "status": "skimmed"},
        ]

        cleared = api.delete(f"/books/{book_id}/status", {"user_id": bob_id, "status": "reading_now"})
        assert cleared.json()['active'] is False
        book = api.get(f"/books/{book_id}").json()
        assert (book['reading_now'], book['skimmed']) == (0, 1)

    @pytest.mark.integration
    def test_invalid_status_kind(self, api, seeded):
        book_id, bob_id = seeded['book']['id'], seeded['bob']['id']

        response = api.post(f"/books/{book_id}/status/toggle", {"user_id": bob_id, "status": "recommend"})

        assert response.status_code == 400

    @pytest.mark.integration
    def test_user_listings(self, api, seeded):
        alice_id, bob_id, book_id = seeded['alice']['id'], seeded['bob']['id'], seeded['book']['id']
        api.post(f"/books/{book_id}/vote", {"voter_id": bob_id})

        assert [b['id'] for b in api.get(f"/users/{alice_id}/books").json()] == [book_id]
        assert api.get(f"/users/{bob_id}/books").json() == []
        assert [b['votes'] for b in api.get(f"/users/{bob_id}/votes").json()] == [1]
        assert api.get("/users/999/books").json() == []


class TestCommentsApi:

    @pytest.mark.integration
    def test_comment_lifecycle(self, api, seeded):
        book_id, alice_id, bob_id = seeded['book']['id'], seeded['alice']['id'], seeded['bob']['id']

        created = api.post(f"/books/{book_id}/comments", {"user_id": bob_id, "content": "Loved it"})
        assert created.status_code == 201
        comment = created.json()
        assert comment['user_name'] == "bob"

        assert [c['content'] for c in api.get(f"/books/{book_id}/comments").json()] == ["Loved it"]
        assert api.get(f"/books/{book_id}/comments/count").json()['count'] == 1

        url = f"/books/{book_id}/comments/{comment['id']}"
        assert api.delete(url, {"user_id": alice_id}).status_code == 403
        assert api.delete(url, {"user_id": bob_id}).status_code == 200
        assert api.delete(url, {"user_id": bob_id}).status_code == 404
        assert api.get(f"/books/{book_id}/comments/count").json()['count'] == 0

    @pytest.mark.integration
    def test_comments_on_missing_book(self, api, seeded):
        assert api.get("/books/999/comments").status_code == 404
        assert api.post("/books/999/comments", {"user_id": seeded['bob']['id'], "content": "hi"}).status_code == 404


class TestCatalogApi:

    @pytest.mark.integration
    def test_candidates_carry_topic_suggestions(self, api, seeded, catalog):
        results = api.get("/catalog/search", params={"q": "dune"}).json()

        catalog.assert_awaited_once_with("dune")
        assert results[0]['title'] == "Dune"
        assert results[0]['suggested_topic_ids'] == [seeded['fiction']['id']]


class TestStorageFailures:

    @pytest.mark.integration
    def test_unexpected_errors_become_503(self, api, seeded, monkeypatch):
        import app as app_module

        def broken(*args, **kwargs):
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(app_module, 'list_books', broken)

        response = api.get("/books")

        assert response.status_code == 503
        assert "disk I/O error" in response.json()['error']


# ============================================================================
# HTMX UI
# ============================================================================

def login(client, name):
    client.post("/register", json={"name": name})
    return client.post("/ui/login", data={"name": name}, follow_redirects=False)


class TestUi:

    @pytest.mark.integration
    def test_home_page_for_visitors(self, client, seeded):
        response = client.get("/")

        assert response.status_code == 200
        assert "Dune" in response.text
        assert "Log in" in response.text

    @pytest.mark.integration
    def test_login_sets_session(self, client, seeded):
        response = login(client, "bob")

        assert response.status_code == 303
        page = client.get("/").text
        assert "Welcome, bob" in page
        assert "Recommend a book" in page

    @pytest.mark.integration
    def test_unknown_login_shows_error(self, client, seeded):
        client.post("/ui/login", data={"name": "mallory"}, follow_redirects=False)

        assert "User not found" in client.get("/").text

    @pytest.mark.integration
    def test_vote_rerenders_feed(self, client, seeded):
        login(client, "bob")
        book_id = seeded['book']['id']

        response = client.post(f"/ui/books/{book_id}/vote", data={"topic": ""})

        assert response.status_code == 200
        assert 'id="book-feed"' in response.text
        assert "Voted (Undo) (1)" in response.text
        assert client.get(f"/books/{book_id}").json()['votes'] == 1

    @pytest.mark.integration
    def test_anonymous_vote_shows_alert(self, client, seeded):
        response = client.post(f"/ui/books/{seeded['book']['id']}/vote")

        assert "Please log in first." in response.text
        assert client.get(f"/books/{seeded['book']['id']}").json()['votes'] == 0

    @pytest.mark.integration
    def test_status_toggle(self, client, seeded):
        login(client, "bob")
        book_id = seeded['book']['id']

        client.post(f"/ui/books/{book_id}/status", data={"status": "want_to_read"})

        assert client.get(f"/books/{book_id}").json()['want_to_read'] == 1

    @pytest.mark.integration
    def test_recommend_from_form(self, client, seeded):
        login(client, "bob")

        response = client.post("/ui/books", data={
            "title": "SPQR",
            "author": "Mary Beard",
            "topics": [str(seeded['history']['id']), str(seeded['fiction']['id'])],
        })

        assert "SPQR" in response.text
        created = [b for b in client.get("/books").json() if b['title'] == "SPQR"][0]
        assert created['topics'] == ["history", "fiction"]

    @pytest.mark.integration
    def test_non_owner_delete_shows_alert(self, client, seeded):
        login(client, "bob")

        response = client.post(f"/ui/books/{seeded['book']['id']}/delete")

        assert "You can only delete your own recommendations." in response.text
        assert len(client.get("/books").json()) == 1

    @pytest.mark.integration
    def test_comment_panel_escapes_and_links(self, client, seeded):
        login(client, "bob")
        book_id = seeded['book']['id']

        response = client.post(f"/ui/books/{book_id}/comments",
                               data={"content": "<b>hi</b> see www.example.com"})

        assert "&lt;b&gt;hi&lt;/b&gt;" in response.text
        assert 'href="http://www.example.com"' in response.text

    @pytest.mark.integration
    def test_topic_filter(self, client, seeded):
        response = client.get("/ui/feed", params={"topic": "history"})

        assert "Dune" not in response.text

    @pytest.mark.integration
    def test_catalog_select_preselects_topics(self, client, seeded, catalog):
        response = client.post("/ui/catalog/select", data={
            "title": "Dune", "author": "Frank Herbert", "categories": '["Fiction"]',
        })

        assert 'value="Frank Herbert"' in response.text
        assert f'id="topic-chip-{seeded["fiction"]["id"]}"' in response.text

    @pytest.mark.integration
    def test_catalog_select_ignores_non_string_categories(self, client, seeded):
        login(client, "bob")

        response = client.post("/ui/catalog/select", data={"title": "X", "categories": '[1, null, "Fiction"]'})

        assert response.status_code == 200
        assert f'id="topic-chip-{seeded["fiction"]["id"]}"' in response.text

    @pytest.mark.integration
    def test_topic_chip_requires_login(self, client, seeded):
        response = client.post("/ui/topics/chip", data={"name": "poetry"})

        assert "Please log in first." in response.text
        assert "poetry" not in [t['name'] for t in client.get("/topics").json()]

    @pytest.mark.integration
    def test_topic_chip_creates_topic(self, client, seeded):
        login(client, "bob")

        response = client.post("/ui/topics/chip", data={"name": "poetry"})

        assert "poetry" in response.text
        assert "poetry" in [t['name'] for t in client.get("/topics").json()]
