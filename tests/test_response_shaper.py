"""Tests for autosave response shaping."""

import json
from dataclasses import dataclass, field
from datetime import datetime

from story_autosaves.rest import FilterRegistry, RestResponse
from story_autosaves.rest.validation import ALL_FIELDS
from story_autosaves.schemas import FieldDescriptor, ResourceSchema
from story_autosaves.services import PREPARE_AUTOSAVE_HOOK, decode_structured_payload, shape_response

SCHEMA = ResourceSchema(
    title="autosave",
    properties={
        "id": FieldDescriptor(type="integer", readonly=True),
        "author": FieldDescriptor(type="string", readonly=True),
        "content": FieldDescriptor(type="string", context={"view", "edit"}),
        "structured_payload": FieldDescriptor(
            type="object",
            context={"view", "edit"},
            properties={
                "version": FieldDescriptor(type="integer"),
                "draftNotes": FieldDescriptor(type="string", context={"edit"}),
            },
        ),
    },
)


@dataclass
class Record:
    id: int = 3
    parent_id: int = 7
    author_id: str = "1"
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)
    payload: object = None

    @property
    def fields(self):
        return {"title": "t", "content": "c", "structured_payload": self.payload}


def _base_response():
    response = RestResponse({"id": 3, "author": "1", "content": "c"})
    response.add_link("self", "/api/v1/stories/7/autosaves/3")
    response.add_link("parent", "/api/v1/stories/7", {"embeddable": True})
    return response


def _shape(record, fields=ALL_FIELDS, context="view", hooks=None):
    return shape_response(
        record, fields, context, SCHEMA, _base_response(),
        hooks=hooks if hooks is not None else FilterRegistry(),
    )


class TestDecode:

    def test_decodes_json_text(self):
        assert decode_structured_payload('{"a": 1}') == {"a": 1}

    def test_decodes_bytes(self):
        assert decode_structured_payload(b'[1, 2]') == [1, 2]

    def test_corrupt_or_missing_is_none(self):
        assert decode_structured_payload("{not json") is None
        assert decode_structured_payload(None) is None
        assert decode_structured_payload(12) is None

    def test_non_finite_numbers_are_none(self):
        assert decode_structured_payload('{"a": NaN}') is None
        assert decode_structured_payload('{"a": -Infinity}') is None
        assert decode_structured_payload('{"a": 1e999}') is None
        assert decode_structured_payload('{"a": 1e10, "b": 10000000000000000000000}') == {"a": 1e10, "b": 10**22}


class TestShapeResponse:

    def test_adds_decoded_payload(self):
        response = _shape(Record(payload=json.dumps({"version": 2})))
        assert response.data["structured_payload"] == {"version": 2}
        assert response.data["id"] == 3

    def test_links_preserved(self):
        base_links = _base_response().get_links()
        response = _shape(Record(payload='{"version": 1}'), fields=frozenset({"id"}))
        assert response.get_links() == base_links
        assert response.data == {"id": 3}

    def test_corrupt_payload_is_null_and_rest_intact(self):
        response = _shape(Record(payload="{broken"))
        assert response.data["structured_payload"] is None
        assert response.data["author"] == "1"
        assert response.data["content"] == "c"

    def test_wrong_shape_payload_is_null(self):
        response = _shape(Record(payload=json.dumps("just a string")))
        assert response.data["structured_payload"] is None

    def test_context_filters_nested_fields(self):
        record = Record(payload=json.dumps({"version": 1, "draftNotes": "secret"}))
        assert _shape(record, context="view").data["structured_payload"] == {"version": 1}
        assert _shape(record, context="edit").data["structured_payload"] == {"version": 1, "draftNotes": "secret"}

    def test_embed_context_drops_payload(self):
        data = _shape(Record(payload='{"version": 1}'), context="embed").data
        assert "structured_payload" not in data
        assert "content" not in data
        assert data["id"] == 3

    def test_unknown_context_falls_back_to_view(self):
        record = Record(payload=json.dumps({"version": 1, "draftNotes": "secret"}))
        assert _shape(record, context="bogus").data == _shape(record, context="view").data
        assert _shape(record, context=None).data == _shape(record, context="view").data

    def test_payload_skipped_when_not_requested(self):
        response = _shape(Record(payload="{broken"), fields=frozenset({"id", "author"}))
        assert response.data == {"id": 3, "author": "1"}

    def test_nested_field_selection(self):
        record = Record(payload=json.dumps({"version": 4, "draftNotes": "n"}))
        data = _shape(record, fields=frozenset({"structured_payload.version"}), context="edit").data
        assert data == {"structured_payload": {"version": 4}}

    def test_unknown_top_level_fields_dropped(self):
        base = _base_response()
        base.data["undocumented"] = True
        response = shape_response(Record(), ALL_FIELDS, "view", SCHEMA, base, hooks=FilterRegistry())
        assert "undocumented" not in response.data

    def test_status_and_headers_carried_over(self):
        base = _base_response()
        base.status = 201
        base.headers["Location"] = "/api/v1/stories/7/autosaves/3"
        response = shape_response(Record(), ALL_FIELDS, "view", SCHEMA, base, hooks=FilterRegistry())
        assert response.status == 201
        assert response.headers["Location"] == "/api/v1/stories/7/autosaves/3"


class TestPrepareHook:

    def test_hook_receives_response_record_and_request(self):
        hooks = FilterRegistry()
        seen = []

        def observe(response, record, request):
            seen.append((record.id, request))
            response.data["seen"] = True
            return response

        hooks.add_filter(PREPARE_AUTOSAVE_HOOK, observe)
        response = shape_response(Record(), ALL_FIELDS, "view", SCHEMA, _base_response(), request="req", hooks=hooks)

        assert seen == [(3, "req")]
        assert response.data["seen"] is True

    def test_hook_may_substitute_result(self):
        hooks = FilterRegistry()
        hooks.add_filter(PREPARE_AUTOSAVE_HOOK, lambda response, record, request: {"replaced": True})
        assert _shape(Record(), hooks=hooks) == {"replaced": True}

    def test_hooks_run_in_priority_order(self):
        hooks = FilterRegistry()
        order = []
        hooks.add_filter(PREPARE_AUTOSAVE_HOOK, lambda r, *a: order.append("late") or r, priority=20)
        hooks.add_filter(PREPARE_AUTOSAVE_HOOK, lambda r, *a: order.append("early") or r, priority=5)
        _shape(Record(), hooks=hooks)
        assert order == ["early", "late"]
