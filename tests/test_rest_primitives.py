"""Tests for the filter registry, the response envelope and request params."""

from story_autosaves.core.auth import DEV_ADMIN
from story_autosaves.rest import FilterRegistry, RestRequest, RestResponse, ensure_response


class TestFilterRegistry:

    def test_remove_filter(self):
        hooks = FilterRegistry()

        def double(value):
            return value * 2

        hooks.add_filter("h", double)
        assert hooks.has_filter("h")
        assert hooks.apply_filters("h", 2) == 4

        assert hooks.remove_filter("h", double) is True
        assert not hooks.has_filter("h")
        assert hooks.apply_filters("h", 2) == 2
        assert hooks.remove_filter("h", double) is False

    def test_clear_one_hook(self):
        hooks = FilterRegistry()
        hooks.add_filter("a", lambda v: v)
        hooks.add_filter("b", lambda v: v)
        hooks.clear("a")
        assert not hooks.has_filter("a")
        assert hooks.has_filter("b")


class TestRestResponse:

    def test_links_render_under_links_key(self):
        response = RestResponse({"id": 1})
        response.add_link("self", "/a/1")
        response.add_link("parent", "/p/2", {"embeddable": True})
        assert response.to_dict() == {
            "id": 1,
            "_links": {"self": [{"href": "/a/1"}], "parent": [{"href": "/p/2", "embeddable": True}]},
        }

    def test_add_links_copies_from_another_response(self):
        source = RestResponse({})
        source.add_link("self", "/a/1")
        target = RestResponse({})
        target.add_links(source.get_links())
        assert target.get_links() == source.get_links()

    def test_get_links_is_a_copy(self):
        response = RestResponse({})
        response.add_link("self", "/a")
        response.get_links()["self"].clear()
        assert len(response.get_links()["self"]) == 1

    def test_ensure_response_wraps_plain_values(self):
        wrapped = ensure_response({"a": 1})
        assert isinstance(wrapped, RestResponse)
        assert wrapped.data == {"a": 1}


class TestRestRequest:

    def test_param_precedence(self):
        request = RestRequest(
            method="POST",
            url_params={"id": 1},
            query_params={"id": 2, "context": "edit"},
            body_params={"id": 3},
            auth=DEV_ADMIN,
        )
        assert request["id"] == 1
        assert request.get_params()["id"] == 1
        request.sanitized_params = {"id": 4}
        assert request["id"] == 4
        assert request.context == "edit"

    def test_body_outranks_query_outside_the_path(self):
        request = RestRequest(method="POST", query_params={"title": "q"}, body_params={"title": "b"})
        assert request["title"] == "b"
        assert request.get_params() == {"title": "b"}

    def test_get_ignores_body(self):
        request = RestRequest(method="GET", query_params={"title": "q"}, body_params={"title": "b"})
        assert request["title"] == "q"

    def test_with_url_params(self):
        request = RestRequest(method="GET", url_params={"id": 9, "parent": 5}, sanitized_params={"id": 9})
        copy = request.with_url_params(id=5)
        assert copy["id"] == 5
        assert request["id"] == 9

    def test_requested_fields(self):
        assert RestRequest(method="GET", query_params={"_fields": "id,title"}).requested_fields == frozenset({"id", "title"})
        assert RestRequest(method="GET").requested_fields == "all"
