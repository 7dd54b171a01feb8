"""Story endpoints: the parent resource of autosaves.

Besides serving its own routes, StoriesController is the
ParentResourceController the autosave controllers delegate to: it supplies
the story schema, the write-permission check, the editable-field args and
the mapping of request params to story columns.
"""

import json
import logging
from typing import Any, Dict, Optional

from ..models import Story
from ..repositories import StoryRepository
from ..rest.request import RestRequest
from ..rest.response import RestResponse
from ..rest.routes import CREATABLE, EDITABLE, READABLE, Endpoint, PermissionCheck, RouteTable
from ..rest.validation import filter_response_fields, is_field_included, sanitize_value_from_schema
from ..schemas.resource_schema import FieldDescriptor, ResourceSchema
from ..services.permission_service import require_permission
from ..services.response_shaper import STRUCTURED_PAYLOAD_FIELD, decode_structured_payload
from .base import RestController, format_date

logger = logging.getLogger(__name__)

STORY_STATUSES = ("draft", "pending", "publish", "private")

_ID_ARG = FieldDescriptor(type="integer", description="Unique identifier for the story.")

STRUCTURED_PAYLOAD = FieldDescriptor(
    type="object",
    description="Editor state of the story: pages, elements and playback settings.",
    context={"view", "edit"},
    properties={
        "version": FieldDescriptor(type="integer", description="Editor data format version."),
        "autoAdvance": FieldDescriptor(type="boolean", description="Whether pages advance on their own."),
        "defaultPageDuration": FieldDescriptor(type="number", description="Seconds each page is shown."),
        "pages": FieldDescriptor(
            type="array",
            description="Story pages, in order.",
            items=FieldDescriptor(
                type="object",
                properties={
                    "id": FieldDescriptor(type="string", description="Page identifier."),
                    "elements": FieldDescriptor(
                        type="array",
                        description="Elements placed on the page.",
                        items=FieldDescriptor(type="object"),
                    ),
                },
            ),
        ),
    },
)

STORY_SCHEMA = ResourceSchema(
    title="story",
    properties={
        "id": FieldDescriptor(
            type="integer",
            description="Unique identifier for the story.",
            context={"view", "edit", "embed"},
            readonly=True,
        ),
        "date": FieldDescriptor(
            type="string",
            format="date-time",
            description="The date the story was created.",
            context={"view", "edit", "embed"},
            readonly=True,
        ),
        "modified": FieldDescriptor(
            type="string",
            format="date-time",
            description="The date the story was last modified.",
            context={"view", "edit"},
            readonly=True,
        ),
        "status": FieldDescriptor(
            type="string",
            enum=STORY_STATUSES,
            default="draft",
            description="A named status for the story.",
            context={"view", "edit"},
        ),
        "author": FieldDescriptor(
            type="string",
            description="The ID for the author of the story.",
            context={"view", "edit", "embed"},
            readonly=True,
        ),
        "title": FieldDescriptor(
            type="string",
            description="The title for the story.",
            context={"view", "edit", "embed"},
        ),
        "content": FieldDescriptor(
            type="string",
            description="The rendered markup of the story.",
            context={"view", "edit"},
        ),
        STRUCTURED_PAYLOAD_FIELD: STRUCTURED_PAYLOAD,
    },
)


class StoriesController(RestController):
    """Controller for ``/{namespace}/{rest_base}`` and ``/{namespace}/{rest_base}/{id}``."""

    def __init__(self, namespace: str, rest_base: str = "stories"):
        super().__init__(namespace, rest_base)

    def get_item_schema(self) -> ResourceSchema:
        return STORY_SCHEMA

    def register_routes(self, routes: RouteTable) -> None:
        routes.register(
            self.namespace,
            f"/{self.rest_base}",
            [
                Endpoint(READABLE, self.get_items, self.get_items_permissions_check, self.get_collection_params()),
                Endpoint(
                    CREATABLE,
                    self.create_item,
                    self.create_item_permissions_check,
                    self.get_endpoint_args_for_item_schema(CREATABLE),
                ),
            ],
            schema=self.get_public_item_schema,
        )
        routes.register(
            self.namespace,
            f"/{self.rest_base}/{{id:int}}",
            [
                Endpoint(READABLE, self.get_item, self.get_item_permissions_check,
                         {"context": self.get_context_param()}),
                Endpoint(
                    EDITABLE,
                    self.update_item,
                    self.update_item_permissions_check,
                    self.get_endpoint_args_for_item_schema(EDITABLE),
                ),
            ],
            route_args={"id": _ID_ARG},
            schema=self.get_public_item_schema,
        )

    def get_collection_params(self) -> Dict[str, FieldDescriptor]:
        params = super().get_collection_params()
        params.update({
            "page": FieldDescriptor(type="integer", description="Current page of the collection.", default=1),
            "per_page": FieldDescriptor(
                type="integer", description="Maximum number of items to be returned.", default=10,
            ),
            "author": FieldDescriptor(type="string", description="Limit result set to one author."),
            "status": FieldDescriptor(type="string", enum=STORY_STATUSES, description="Limit result set to one status."),
        })
        return params

    # ------------------------------------------------------------------
    # ParentResourceController
    # ------------------------------------------------------------------

    def get_write_permission_check(self) -> PermissionCheck:
        return self.update_item_permissions_check

    def get_editable_field_args(self) -> Dict[str, FieldDescriptor]:
        return self.get_endpoint_args_for_item_schema(EDITABLE)

    def get_record(self, request: RestRequest, record_id: int) -> Story:
        return StoryRepository(request.db).get_by_id(record_id)

    def prepare_item_for_database(self, request: RestRequest) -> Dict[str, Any]:
        """Map validated request args to story columns.

        Only sanitized args are used, so a param the route did not declare
        never reaches the database. The structured payload is stored as JSON
        text.
        """
        params = request.sanitized_params
        prepared: Dict[str, Any] = {
            column: params[column] for column in ("title", "content", "status") if column in params
        }
        if STRUCTURED_PAYLOAD_FIELD in params:
            value = params[STRUCTURED_PAYLOAD_FIELD]
            prepared[STRUCTURED_PAYLOAD_FIELD] = None if value is None else json.dumps(value)
        return prepared

    # ------------------------------------------------------------------
    # Permission checks
    # ------------------------------------------------------------------

    def get_items_permissions_check(self, request: RestRequest) -> None:
        require_permission(request.auth, "read")

    def get_item_permissions_check(self, request: RestRequest) -> None:
        self.get_record(request, request["id"])
        require_permission(request.auth, "read")

    def create_item_permissions_check(self, request: RestRequest) -> None:
        require_permission(request.auth, "edit", message="Sorry, you are not allowed to create stories.")
        if request["status"] == "publish":
            require_permission(request.auth, "publish", message="Sorry, you are not allowed to publish stories.")

    def update_item_permissions_check(self, request: RestRequest) -> None:
        story = self.get_record(request, request["id"])
        require_permission(
            request.auth, "edit", owner_id=story.author_id,
            message="Sorry, you are not allowed to edit this story.",
        )
        if request["status"] == "publish" and story.status != "publish":
            require_permission(request.auth, "publish", message="Sorry, you are not allowed to publish this story.")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def get_items(self, request: RestRequest) -> RestResponse:
        page = max(request["page"] or 1, 1)
        per_page = min(max(request["per_page"] or 10, 1), 100)
        stories = StoryRepository(request.db).list(
            skip=(page - 1) * per_page,
            limit=per_page,
            author_id=request["author"],
            status=request["status"],
        )
        return RestResponse([
            self.prepare_response_for_collection(self.prepare_item_for_response(story, request))
            for story in stories
        ])

    def get_item(self, request: RestRequest) -> RestResponse:
        return self.prepare_item_for_response(self.get_record(request, request["id"]), request)

    def create_item(self, request: RestRequest) -> RestResponse:
        story = StoryRepository(request.db).create(request.auth.user_id, self.prepare_item_for_database(request))
        request.db.commit()
        logger.info("Created story", extra={"story_id": story.id, "author_id": story.author_id})

        response = self.prepare_item_for_response(story, request)
        response.status = 201
        response.headers["Location"] = self.item_url(story.id)
        return response

    def update_item(self, request: RestRequest) -> RestResponse:
        story_id = request["id"]
        story = StoryRepository(request.db).update(story_id, self.prepare_item_for_database(request))
        request.db.commit()
        logger.info("Updated story", extra={"story_id": story.id})
        return self.prepare_item_for_response(story, request)

    def prepare_item_for_response(self, story: Story, request: RestRequest) -> RestResponse:
        fields = self.get_fields_for_response(request)
        values = {
            "id": lambda: story.id,
            "date": lambda: format_date(story.created_at),
            "modified": lambda: format_date(story.modified_at),
            "status": lambda: story.status,
            "author": lambda: story.author_id,
            "title": lambda: story.title,
            "content": lambda: story.content,
            STRUCTURED_PAYLOAD_FIELD: lambda: self._decode_payload(story.structured_payload),
        }
        data = {name: getter() for name, getter in values.items() if is_field_included(name, fields)}
        data = self.filter_response_by_context(data, request.context)
        data = filter_response_fields(data, fields)

        response = RestResponse(data)
        response.add_link("self", self.item_url(story.id))
        response.add_link("collection", self.item_url())
        return response

    @staticmethod
    def _decode_payload(raw: Optional[str]) -> Any:
        decoded = decode_structured_payload(raw)
        return None if decoded is None else sanitize_value_from_schema(decoded, STRUCTURED_PAYLOAD)
