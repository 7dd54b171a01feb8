"""Tests for the auth module: token creation, validation, and dev mode bypass."""

import pytest

from story_autosaves.core.auth import ANONYMOUS, DEV_ADMIN, AuthContext
from story_autosaves.core.token_factory import create_token, decode_token
from story_autosaves.exceptions import AuthenticationError, ForbiddenError
from story_autosaves.services import check_permission, require_permission
from tests.conftest import API, auth_headers, autosaves_url, make_story


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("42", "author", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "42"
        assert payload.role == "author"

    def test_wrong_secret_returns_none(self):
        token = create_token("42", "author", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("42", "author", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            create_token("42", "author", "secret", algorithm="RS256")
        assert decode_token(create_token("42", "author", "secret"), "secret", algorithm="RS256") is None


class TestPermissions:

    def test_roles(self):
        assert check_permission(AuthContext("1", "admin"), "publish")
        assert check_permission(AuthContext("1", "author"), "publish")
        assert not check_permission(AuthContext("1", "contributor"), "publish")
        assert not check_permission(AuthContext("1", "viewer"), "edit")
        assert not check_permission(AuthContext("1", "stranger"), "read")

    def test_editing_others_needs_edit_others(self):
        author = AuthContext("1", "author")
        assert check_permission(author, "edit", owner_id="1")
        assert not check_permission(author, "edit", owner_id="2")
        assert check_permission(AuthContext("3", "editor"), "edit", owner_id="2")

    def test_require_permission_errors(self):
        with pytest.raises(AuthenticationError):
            require_permission(ANONYMOUS, "edit")
        with pytest.raises(ForbiddenError):
            require_permission(AuthContext("1", "viewer"), "edit")
        require_permission(DEV_ADMIN, "edit", owner_id="99")


class TestAuthDisabledMode:
    """When AUTH_ENABLED=false (default), every request runs as the development admin."""

    def test_autosave_without_token_succeeds(self, client, db):
        story = make_story(db, author_id="someone-else")
        resp = client.post(autosaves_url(story.id), json={"title": "x"})
        assert resp.status_code == 201
        assert resp.json()["author"] == DEV_ADMIN.user_id


class TestAuthEnabledMode:

    def test_bad_token_is_anonymous(self, client, db, auth_enabled):
        story = make_story(db)
        resp = client.get(autosaves_url(story.id), headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    def test_viewer_can_read_stories(self, client, db, auth_enabled):
        make_story(db)
        resp = client.get(f"{API}/stories", headers=auth_headers("5", "viewer"))
        assert resp.status_code == 200
        assert len(resp.json()) == 1
