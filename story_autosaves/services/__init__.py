"""Autosave composition, route override, response shaping and permissions."""

from .schema_composer import SchemaCache, compose_schema
from .route_override import collection_route_path, register_create_route
from .response_shaper import (
    PREPARE_AUTOSAVE_HOOK,
    STRUCTURED_PAYLOAD_FIELD,
    decode_structured_payload,
    shape_response,
)
from .permission_service import check_permission, require_permission

__all__ = [
    "PREPARE_AUTOSAVE_HOOK",
    "STRUCTURED_PAYLOAD_FIELD",
    "SchemaCache",
    "check_permission",
    "collection_route_path",
    "compose_schema",
    "decode_structured_payload",
    "register_create_route",
    "require_permission",
    "shape_response",
]
