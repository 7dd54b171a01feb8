"""REST layer: route table, request/response envelopes, validation and dispatch."""

from .hooks import FilterRegistry, filters
from .request import RestRequest
from .response import RestResponse, ensure_response
from .routes import (
    CREATABLE,
    EDITABLE,
    READABLE,
    Endpoint,
    PermissionCheck,
    RouteDescriptor,
    RouteTable,
)
from .server import RestServer

__all__ = [
    "CREATABLE",
    "EDITABLE",
    "READABLE",
    "Endpoint",
    "FilterRegistry",
    "PermissionCheck",
    "RestRequest",
    "RestResponse",
    "ensure_response",
    "RestServer",
    "RouteDescriptor",
    "RouteTable",
    "filters",
]
