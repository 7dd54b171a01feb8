"""Generic autosave endpoints nested under a parent resource.

Routes:
    GET  /{namespace}/{parent_base}/{id}/{rest_base}               list autosaves
    POST /{namespace}/{parent_base}/{id}/{rest_base}               create / overwrite own autosave
    GET  /{namespace}/{parent_base}/{parent}/{rest_base}/{id}      one autosave

Reading or writing autosaves needs write access to the parent: the checks
are obtained from the parent controller, never re-implemented here.
"""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.orm import Session

from ..exceptions import AutosaveNotFoundError
from ..repositories import AutosaveRepository
from ..rest.hooks import filters
from ..rest.request import RestRequest
from ..rest.response import RestResponse, ensure_response
from ..rest.routes import CREATABLE, READABLE, Endpoint, RouteTable
from ..rest.validation import is_field_included
from ..schemas.resource_schema import FieldDescriptor, ResourceSchema
from ..services.response_shaper import PREPARE_AUTOSAVE_HOOK
from ..services.route_override import PARENT_ID_ARG, collection_route_path
from .base import RestController, format_date
from .interfaces import AutosaveRecord, AutosaveStore, ParentResourceController

logger = logging.getLogger(__name__)

AUTOSAVE_SCHEMA = ResourceSchema(
    title="autosave",
    properties={
        "id": FieldDescriptor(
            type="integer",
            description="Unique identifier for the autosave.",
            context={"view", "edit", "embed"},
            readonly=True,
        ),
        "author": FieldDescriptor(
            type="string",
            description="The ID for the author of the autosave.",
            context={"view", "edit", "embed"},
            readonly=True,
        ),
        "date": FieldDescriptor(
            type="string",
            format="date-time",
            description="The date the autosave was first saved.",
            context={"view", "edit", "embed"},
            readonly=True,
        ),
        "modified": FieldDescriptor(
            type="string",
            format="date-time",
            description="The date the autosave was last saved.",
            context={"view", "edit"},
            readonly=True,
        ),
        "parent": FieldDescriptor(
            type="integer",
            description="The ID for the parent of the autosave.",
            context={"view", "edit", "embed"},
            readonly=True,
        ),
        "title": FieldDescriptor(
            type="string",
            description="The title of the autosaved object.",
            context={"view", "edit", "embed"},
        ),
        "content": FieldDescriptor(
            type="string",
            description="The content of the autosaved object.",
            context={"view", "edit"},
        ),
    },
)

# Generic response fields, in output order.
_FIELD_GETTERS: Dict[str, Callable[[AutosaveRecord], Any]] = {
    "id": lambda record: record.id,
    "author": lambda record: record.author_id,
    "date": lambda record: format_date(record.created_at),
    "modified": lambda record: format_date(record.modified_at),
    "parent": lambda record: record.parent_id,
    "title": lambda record: record.fields.get("title"),
    "content": lambda record: record.fields.get("content"),
}


class AutosavesController(RestController):
    """Autosaves of one parent resource type."""

    def __init__(
        self,
        parent_controller: ParentResourceController,
        rest_base: str = "autosaves",
        store_factory: Callable[[Session], AutosaveStore] = AutosaveRepository,
    ):
        super().__init__(parent_controller.namespace, rest_base)
        self.parent_controller = parent_controller
        self.parent_base = parent_controller.rest_base
        self.store_factory = store_factory

    def get_item_schema(self) -> ResourceSchema:
        return AUTOSAVE_SCHEMA

    def store(self, request: RestRequest) -> AutosaveStore:
        return self.store_factory(request.db)

    def collection_path(self) -> str:
        return collection_route_path(self.parent_base, "int", self.rest_base)

    def register_routes(self, routes: RouteTable) -> None:
        routes.register(
            self.namespace,
            self.collection_path(),
            [
                Endpoint(READABLE, self.get_items, self.get_items_permissions_check, self.get_collection_params()),
                Endpoint(
                    CREATABLE,
                    self.create_item,
                    self.create_item_permissions_check,
                    self.get_endpoint_args_for_item_schema(CREATABLE),
                ),
            ],
            route_args={"id": PARENT_ID_ARG},
            schema=self.get_public_item_schema,
        )
        routes.register(
            self.namespace,
            f"/{self.parent_base}/{{parent:int}}/{self.rest_base}/{{id:int}}",
            [
                Endpoint(READABLE, self.get_item, self.get_item_permissions_check,
                         {"context": self.get_context_param()}),
            ],
            route_args={
                "parent": PARENT_ID_ARG,
                "id": FieldDescriptor(type="integer", description="Unique identifier for the autosave."),
            },
            schema=self.get_public_item_schema,
        )

    def autosave_url(self, parent_id: int, autosave_id: Any = None) -> str:
        url = f"/{self.namespace}/{self.parent_base}/{parent_id}/{self.rest_base}"
        return url if autosave_id is None else f"{url}/{autosave_id}"

    # ------------------------------------------------------------------
    # Permission checks
    # ------------------------------------------------------------------

    def get_items_permissions_check(self, request: RestRequest) -> None:
        """Listing autosaves needs write access to the parent."""
        self.parent_controller.get_write_permission_check()(request)

    def get_item_permissions_check(self, request: RestRequest) -> None:
        self.get_items_permissions_check(request.with_url_params(id=request["parent"]))

    def create_item_permissions_check(self, request: RestRequest) -> None:
        """Creating an autosave is allowed to whoever may update the parent."""
        self.parent_controller.get_write_permission_check()(request)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def get_items(self, request: RestRequest) -> RestResponse:
        parent = self.parent_controller.get_record(request, request["id"])
        records = self.store(request).list_for_parent(parent.id)
        return RestResponse([
            self.prepare_response_for_collection(self.prepare_item_for_response(record, request))
            for record in records
        ])

    def get_item(self, request: RestRequest) -> RestResponse:
        parent = self.parent_controller.get_record(request, request["parent"])
        record = self.store(request).get_by_id(request["id"])
        if record.parent_id != parent.id:
            raise AutosaveNotFoundError(request["id"])
        return ensure_response(self.prepare_item_for_response(record, request))

    def create_item(self, request: RestRequest) -> RestResponse:
        parent = self.parent_controller.get_record(request, request["id"])
        prepared = self.parent_controller.prepare_item_for_database(request)
        record = self.store(request).save(parent.id, request.auth.user_id, prepared)

        response = ensure_response(self.prepare_item_for_response(record, request))
        response.status = 201
        response.headers["Location"] = self.autosave_url(parent.id, record.id)
        return response

    # ------------------------------------------------------------------
    # Response shaping
    # ------------------------------------------------------------------

    def prepare_item_for_response(self, record: AutosaveRecord, request: RestRequest) -> Any:
        response = self.prepare_base_response(record, request)
        return filters.apply_filters(PREPARE_AUTOSAVE_HOOK, response, record, request)

    def prepare_base_response(self, record: AutosaveRecord, request: RestRequest) -> RestResponse:
        """Generic autosave data and links, filtered by context."""
        fields = self.get_fields_for_response(request)
        data = {
            name: getter(record)
            for name, getter in _FIELD_GETTERS.items()
            if is_field_included(name, fields)
        }
        data = self.filter_response_by_context(data, request.context)

        response = RestResponse(data)
        response.add_link("self", self.autosave_url(record.parent_id, record.id))
        response.add_link("collection", self.autosave_url(record.parent_id))
        response.add_link(
            "parent",
            f"/{self.namespace}/{self.parent_base}/{record.parent_id}",
            {"embeddable": True},
        )
        return response
