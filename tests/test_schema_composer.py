"""Tests for schema composition and the compose-once cache."""

import threading

from story_autosaves.api import StoriesController, StoryAutosavesController
from story_autosaves.api.autosaves import AUTOSAVE_SCHEMA
from story_autosaves.schemas import FieldDescriptor, ResourceSchema
from story_autosaves.services import SchemaCache, compose_schema

PAYLOAD = FieldDescriptor(type="object", context={"view", "edit"})

PARENT = ResourceSchema(
    title="story",
    properties={
        "title": FieldDescriptor(type="string"),
        "structured_payload": PAYLOAD,
    },
)

BASE = ResourceSchema(
    title="autosave",
    properties={
        "id": FieldDescriptor(type="integer", readonly=True),
        "author": FieldDescriptor(type="integer", readonly=True),
    },
)


class TestComposeSchema:

    def test_borrows_parent_field(self):
        composed = compose_schema(BASE, PARENT, "structured_payload")
        assert composed.field_names == ("id", "author", "structured_payload")
        assert composed.get("structured_payload") == PAYLOAD
        assert "title" not in composed

    def test_inputs_are_not_modified(self):
        compose_schema(BASE, PARENT, "structured_payload")
        assert "structured_payload" not in BASE
        assert PARENT.field_names == ("title", "structured_payload")

    def test_idempotent(self):
        once = compose_schema(BASE, PARENT, "structured_payload")
        twice = compose_schema(once, PARENT, "structured_payload")
        assert twice == once

    def test_missing_field_returns_base(self):
        assert compose_schema(BASE, PARENT, "nonexistent") == BASE

    def test_parent_descriptor_replaces_existing_field(self):
        base = BASE.with_field("structured_payload", FieldDescriptor(type="string"))
        composed = compose_schema(base, PARENT, "structured_payload")
        assert composed.field_names == ("id", "author", "structured_payload")
        assert composed.get("structured_payload").type == "object"

    def test_json_schema_shape(self):
        doc = compose_schema(BASE, PARENT, "structured_payload").to_json_schema()
        assert doc["title"] == "autosave"
        assert doc["type"] == "object"
        assert doc["properties"]["structured_payload"]["context"] == ["view", "edit"]


class TestSchemaCache:

    def test_computes_once(self):
        cache = SchemaCache()
        calls = []

        def factory():
            calls.append(1)
            return compose_schema(BASE, PARENT, "structured_payload")

        assert not cache.is_populated
        first = cache.get_or_compute(factory)
        second = cache.get_or_compute(factory)
        assert first is second
        assert len(calls) == 1
        assert cache.is_populated

    def test_concurrent_first_access(self):
        cache = SchemaCache()
        calls = []
        start = threading.Barrier(8)
        results = []

        def factory():
            calls.append(1)
            return compose_schema(BASE, PARENT, "structured_payload")

        def worker():
            start.wait()
            results.append(cache.get_or_compute(factory))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert all(r is results[0] for r in results)


class TestStoryAutosaveSchema:

    def test_composed_schema_has_generic_fields_and_payload(self):
        controller = StoryAutosavesController(StoriesController("api/v1"))
        schema = controller.get_item_schema()
        for name in AUTOSAVE_SCHEMA.field_names:
            assert name in schema
        assert schema.get("structured_payload") == StoriesController("api/v1").get_item_schema().get("structured_payload")

    def test_schema_is_stable_across_calls(self):
        controller = StoryAutosavesController(StoriesController("api/v1"))
        assert controller.get_item_schema() is controller.get_item_schema()
        assert controller.get_public_item_schema() == controller.get_public_item_schema()
