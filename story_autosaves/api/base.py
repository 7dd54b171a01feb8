"""Base class for resource controllers.

A controller owns one resource type: its schema, its routes and the way
records become responses. Subclasses implement ``get_item_schema`` and
``register_routes``.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..rest.request import RestRequest
from ..rest.response import ensure_response
from ..rest.routes import CREATABLE, RouteTable
from ..rest.validation import (
    FieldSelection,
    endpoint_args_for_schema,
    fields_for_schema,
    filter_response_by_context,
)
from ..schemas.resource_schema import CONTEXTS, FieldDescriptor, ResourceSchema


def format_date(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class RestController:
    """Shared controller plumbing."""

    def __init__(self, namespace: str, rest_base: str):
        self.namespace = namespace.strip("/")
        self.rest_base = rest_base.strip("/")

    def register_routes(self, routes: RouteTable) -> None:
        raise NotImplementedError

    def get_item_schema(self) -> ResourceSchema:
        raise NotImplementedError

    def get_public_item_schema(self) -> Dict[str, Any]:
        return self.get_item_schema().to_json_schema()

    def get_endpoint_args_for_item_schema(self, methods: Tuple[str, ...] = CREATABLE) -> Dict[str, FieldDescriptor]:
        return endpoint_args_for_schema(self.get_item_schema(), methods)

    def get_context_param(self, default: str = "view") -> FieldDescriptor:
        # No enum: an unknown context degrades to "view" instead of failing.
        return FieldDescriptor(
            type="string",
            description=f"Scope under which the request is made; one of {', '.join(CONTEXTS)}.",
            default=default,
        )

    def get_collection_params(self) -> Dict[str, FieldDescriptor]:
        return {"context": self.get_context_param()}

    def get_fields_for_response(self, request: RestRequest) -> FieldSelection:
        return fields_for_schema(self.get_item_schema(), request.requested_fields)

    def filter_response_by_context(self, data: Dict[str, Any], context: str) -> Dict[str, Any]:
        return filter_response_by_context(data, self.get_item_schema().properties, context)

    def item_url(self, *segments: Any) -> str:
        return "/" + "/".join([self.namespace, self.rest_base] + [str(s) for s in segments])

    @staticmethod
    def prepare_response_for_collection(response: Any) -> Any:
        """Render one item of a collection, links included."""
        return ensure_response(response).to_dict()
