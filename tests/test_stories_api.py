"""Tests for the /api/v1/stories endpoints."""

from tests.conftest import API, STRUCTURED, auth_headers, make_story


class TestStories:

    def test_create_story(self, client):
        resp = client.post(f"{API}/stories", json={"title": "New", "structured_payload": STRUCTURED})
        assert resp.status_code == 201
        body = resp.json()
        assert body["title"] == "New"
        assert body["status"] == "draft"
        assert body["author"] == "1"
        assert body["structured_payload"] == STRUCTURED
        assert resp.headers["Location"] == f"{API}/stories/{body['id']}"

    def test_get_story(self, client, db):
        story = make_story(db, title="Read me")
        resp = client.get(f"{API}/stories/{story.id}")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Read me"
        assert resp.json()["_links"]["self"] == [{"href": f"{API}/stories/{story.id}"}]

    def test_update_story(self, client, db):
        story = make_story(db)
        resp = client.put(f"{API}/stories/{story.id}", json={"title": "Changed"})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Changed"
        assert resp.json()["content"] == "<p>Hello</p>"

    def test_patch_is_partial(self, client, db):
        story = make_story(db, status="pending")
        resp = client.patch(f"{API}/stories/{story.id}", json={"content": "new"})
        assert resp.json()["status"] == "pending"
        assert resp.json()["content"] == "new"

    def test_story_not_found(self, client):
        resp = client.get(f"{API}/stories/999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "STORY_NOT_FOUND"

    def test_invalid_status(self, client):
        resp = client.post(f"{API}/stories", json={"title": "x", "status": "archived"})
        assert resp.status_code == 400

    def test_list_filters(self, client, db):
        make_story(db, author_id="1", status="draft")
        make_story(db, author_id="2", status="publish")
        assert len(client.get(f"{API}/stories").json()) == 2
        assert len(client.get(f"{API}/stories", params={"author": "2"}).json()) == 1
        assert len(client.get(f"{API}/stories", params={"status": "draft"}).json()) == 1

    def test_list_pagination(self, client, db):
        for i in range(3):
            make_story(db, title=f"Story {i}")
        assert len(client.get(f"{API}/stories", params={"per_page": 2}).json()) == 2
        assert len(client.get(f"{API}/stories", params={"per_page": 2, "page": 2}).json()) == 1

    def test_embed_context(self, client, db):
        story = make_story(db)
        body = client.get(f"{API}/stories/{story.id}", params={"context": "embed"}).json()
        assert "content" not in body
        assert "status" not in body
        assert body["title"] == "Test Story"


class TestStoryPermissions:

    def test_contributor_cannot_publish(self, client, auth_enabled):
        resp = client.post(
            f"{API}/stories", json={"title": "x", "status": "publish"}, headers=auth_headers("3", "contributor"),
        )
        assert resp.status_code == 403

    def test_author_cannot_edit_others(self, client, db, auth_enabled):
        story = make_story(db, author_id="42")
        resp = client.put(f"{API}/stories/{story.id}", json={"title": "x"}, headers=auth_headers("7", "author"))
        assert resp.status_code == 403

    def test_anonymous_cannot_create(self, client, auth_enabled):
        assert client.post(f"{API}/stories", json={"title": "x"}).status_code == 401
