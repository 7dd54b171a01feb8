"""Story autosaves: generic autosaves plus the story's structured payload.

Drop-in replacement for AutosavesController that

- exposes a composed schema: the autosave schema plus the payload field
  borrowed from the parent schema, composed once and cached;
- re-registers the collection route so that creating an autosave validates
  against the parent's editable args, exactly like a full save of the
  parent would;
- shapes responses with the decoded payload.

Writes validate with the parent's rules; reads shape with the composed
autosave schema.
"""

from typing import Any, Callable

from sqlalchemy.orm import Session

from ..repositories import AutosaveRepository
from ..rest.request import RestRequest
from ..rest.routes import RouteTable
from ..schemas.resource_schema import ResourceSchema
from ..services.response_shaper import STRUCTURED_PAYLOAD_FIELD, shape_response
from ..services.route_override import register_create_route
from ..services.schema_composer import SchemaCache, compose_schema
from .autosaves import AutosavesController
from .interfaces import AutosaveRecord, AutosaveStore, ParentResourceController


class StoryAutosavesController(AutosavesController):
    """Autosaves whose responses carry the parent's structured payload."""

    def __init__(
        self,
        parent_controller: ParentResourceController,
        rest_base: str = "autosaves",
        store_factory: Callable[[Session], AutosaveStore] = AutosaveRepository,
        payload_field: str = STRUCTURED_PAYLOAD_FIELD,
        parent_id_pattern: str = "int",
    ):
        super().__init__(parent_controller, rest_base, store_factory)
        self.payload_field = payload_field
        self.parent_id_pattern = parent_id_pattern
        self._schema_cache = SchemaCache()

    def get_item_schema(self) -> ResourceSchema:
        return self._schema_cache.get_or_compute(self._compose_item_schema)

    def _compose_item_schema(self) -> ResourceSchema:
        return compose_schema(
            super().get_item_schema(),
            self.parent_controller.get_item_schema(),
            self.payload_field,
        )

    def register_routes(self, routes: RouteTable) -> None:
        super().register_routes(routes)

        register_create_route(
            routes,
            namespace=self.namespace,
            parent_base=self.parent_base,
            parent_id_pattern=self.parent_id_pattern,
            resource_base=self.rest_base,
            parent_validation_rules=self.parent_controller.get_editable_field_args(),
            parent_write_permission_check=self.create_item_permissions_check,
            read_handler=self.get_items,
            create_handler=self.create_item,
            read_permission_check=self.get_items_permissions_check,
            read_args=self.get_collection_params(),
            schema=self.get_public_item_schema,
        )

    def prepare_item_for_response(self, record: AutosaveRecord, request: RestRequest) -> Any:
        return shape_response(
            record,
            self.get_fields_for_response(request),
            request.context,
            self.get_item_schema(),
            self.prepare_base_response(record, request),
            request=request,
            payload_field=self.payload_field,
        )
