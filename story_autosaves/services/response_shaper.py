"""Shaping of autosave responses that carry a structured payload.

The generic autosave response knows nothing about the payload field. The
shaper decodes the stored blob, sanitizes it against the composed schema,
filters the data by context and requested fields, and rebuilds the response
with the original links before handing it to the ``rest_prepare_autosave``
filter.
"""

import json
import logging
import math
from typing import Any, Optional

from ..rest.hooks import FilterRegistry, filters
from ..rest.request import RestRequest
from ..rest.response import RestResponse
from ..rest.validation import (
    FieldSelection,
    filter_response_by_context,
    filter_response_fields,
    is_field_included,
    normalize_context,
    sanitize_value_from_schema,
)
from ..schemas.resource_schema import ResourceSchema

logger = logging.getLogger(__name__)

STRUCTURED_PAYLOAD_FIELD = "structured_payload"

PREPARE_AUTOSAVE_HOOK = "rest_prepare_autosave"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Non-finite number {text}")
    return value


def decode_structured_payload(raw: Any) -> Any:
    """Decode a stored JSON blob. Returns None when it cannot be decoded.

    NaN, Infinity and out-of-range floats count as undecodable: they cannot
    be rendered back as JSON.
    """
    if raw is None:
        return None
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except (TypeError, ValueError) as e:
        logger.debug("Undecodable structured payload", extra={"error": str(e)})
        return None


def shape_response(
    record: Any,
    requested_fields: FieldSelection,
    requested_context: Optional[str],
    composed_schema: ResourceSchema,
    base_response: RestResponse,
    request: Optional[RestRequest] = None,
    payload_field: str = STRUCTURED_PAYLOAD_FIELD,
    hooks: FilterRegistry = filters,
) -> Any:
    """Build the final autosave response from the generic one.

    Args:
        record: Stored autosave; ``record.fields[payload_field]`` holds the raw blob.
        requested_fields: ``"all"`` or the selected field paths.
        requested_context: ``view``, ``edit`` or ``embed``; anything else means ``view``.
        composed_schema: Autosave schema including the borrowed payload field.
        base_response: Response from the generic autosave shaping.
        request: Passed through to filter callbacks.
        payload_field: Name of the structured payload field.
        hooks: Filter registry holding ``rest_prepare_autosave`` callbacks.

    Returns:
        Whatever the filter chain returns; a RestResponse unless a callback
        substitutes something else.
    """
    data = dict(base_response.data or {})

    descriptor = composed_schema.get(payload_field)
    if descriptor is not None and is_field_included(payload_field, requested_fields):
        decoded = decode_structured_payload(record.fields.get(payload_field))
        data[payload_field] = None if decoded is None else sanitize_value_from_schema(decoded, descriptor)

    context = normalize_context(requested_context)
    data = filter_response_by_context(data, composed_schema.properties, context)
    data = filter_response_fields(data, requested_fields)

    response = RestResponse(data, status=base_response.status, headers=base_response.headers)
    response.add_links(base_response.get_links())

    return hooks.apply_filters(PREPARE_AUTOSAVE_HOOK, response, record, request)
