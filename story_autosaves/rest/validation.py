"""Schema-driven request validation, value sanitization and response filtering.

Each FieldDescriptor is turned into a pydantic type (scalars, ``Literal`` for
enums, ``List`` for arrays and a generated model for objects with declared
properties) and values go through a ``TypeAdapter`` built from it.
Validation rejects what does not fit, including unknown keys of closed
objects; sanitization coerces a stored value into the declared shape and
yields None when it cannot.
"""

import json
import re
import threading
from datetime import datetime
from typing import AbstractSet, Annotated, Any, Dict, List, Literal, Mapping, Tuple, Union

from pydantic import AfterValidator, ConfigDict, Field, TypeAdapter, ValidationError, confloat, create_model

from ..exceptions import InvalidParamError, MissingParamError
from ..schemas.resource_schema import CONTEXTS, FieldDescriptor, ResourceSchema

ALL_FIELDS = "all"

# Either ALL_FIELDS or a set of field names / dotted nested paths.
FieldSelection = Union[str, AbstractSet[str]]

_LIST_SPLIT_RE = re.compile(r"[\s,]+")


# ---------------------------------------------------------------------------
# Descriptor -> pydantic type
# ---------------------------------------------------------------------------

_DATETIME = TypeAdapter(datetime)

# JSON has no NaN or Infinity; numbers must stay renderable.
_FiniteFloat = confloat(allow_inf_nan=False)

_SCALARS: Dict[str, Any] = {
    "null": type(None),
    "boolean": bool,
    "integer": int,
    "number": Union[int, _FiniteFloat],
    "string": str,
}

# How a closed object (additional_properties=False) treats unknown keys.
_REJECT_UNKNOWN = "forbid"
_DROP_UNKNOWN = "ignore"


def _check_date_time(value: Any) -> Any:
    if isinstance(value, str):
        try:
            _DATETIME.validate_python(value)
        except ValidationError:
            raise ValueError("Input should be a valid date-time") from None
    return value


def _object_model(schema: FieldDescriptor, closed: str) -> Any:
    extra = closed if schema.additional_properties is False else "allow"
    fields: Dict[str, Any] = {}
    # Generated attribute names with the real key as alias, so keys that
    # clash with BaseModel attributes still work.
    for i, (name, sub) in enumerate((schema.properties or {}).items()):
        annotation = _annotation(sub, closed)
        fields[f"field_{i}"] = (annotation, Field(alias=name)) if sub.required else (annotation, Field(None, alias=name))
    return create_model("ObjectValue", __config__=ConfigDict(extra=extra), **fields)


def _type_annotation(type_name: str, schema: FieldDescriptor, closed: str) -> Any:
    if type_name == "array":
        return List[Any] if schema.items is None else List[_annotation(schema.items, closed)]
    if type_name == "object":
        if not schema.properties and schema.additional_properties is not False:
            return Dict[str, Any]
        return _object_model(schema, closed)
    # Unknown type names accept anything.
    return _SCALARS.get(type_name, Any)


def _annotation(schema: FieldDescriptor, closed: str) -> Any:
    options = [_type_annotation(t, schema, closed) for t in schema.types]
    annotation = options[0] if len(options) == 1 else Union[tuple(options)]
    if schema.enum is not None:
        annotation = Literal[schema.enum]
    if schema.format == "date-time":
        annotation = Annotated[annotation, AfterValidator(_check_date_time)]
    return annotation


_adapters: Dict[Tuple[int, str], Tuple[FieldDescriptor, TypeAdapter]] = {}
_adapters_lock = threading.Lock()


def _adapter(schema: FieldDescriptor, closed: str) -> TypeAdapter:
    """TypeAdapter for *schema*, built once per descriptor instance."""
    key = (id(schema), closed)
    entry = _adapters.get(key)
    if entry is None:
        # The descriptor is kept in the entry so its id cannot be reused.
        entry = (schema, TypeAdapter(_annotation(schema, closed)))
        with _adapters_lock:
            entry = _adapters.setdefault(key, entry)
    return entry[1]


def _coerce(value: Any, schema: FieldDescriptor, closed: str) -> Any:
    adapter = _adapter(schema, closed)
    return adapter.dump_python(adapter.validate_python(value), by_alias=True, exclude_unset=True)


def _error_message(param: str, error: ValidationError) -> str:
    first = error.errors()[0]
    return f"{param} is invalid: {first['msg']}."


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_request_args(args: Mapping[str, FieldDescriptor], params: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and sanitize the request params an endpoint declares.

    Returns the sanitized declared params, with defaults filled in for
    missing ones. Undeclared params are not returned.

    Raises:
        MissingParamError: A required arg is absent.
        InvalidParamError: One or more args failed validation.
    """
    missing = [name for name, arg in args.items() if arg.required and params.get(name) is None]
    if missing:
        raise MissingParamError(missing)

    cleaned: Dict[str, Any] = {}
    invalid: Dict[str, str] = {}
    for name, arg in args.items():
        if name not in params:
            if arg.default is not None:
                cleaned[name] = arg.default
            continue
        try:
            value = _coerce(params[name], arg, _REJECT_UNKNOWN)
            # Untyped nested values come straight from the request body.
            json.dumps(value, allow_nan=False)
        except ValidationError as e:
            invalid[name] = _error_message(name, e)
            continue
        except ValueError:
            invalid[name] = f"{name} is invalid: NaN and Infinity are not allowed."
            continue
        cleaned[name] = value

    if invalid:
        raise InvalidParamError(invalid)
    return cleaned


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------

def sanitize_value_from_schema(value: Any, schema: FieldDescriptor) -> Any:
    """Coerce *value* into the shape *schema* declares.

    Values that do not fit become None; unknown object keys are dropped when
    ``additional_properties`` is False.
    """
    try:
        return _coerce(value, schema, _DROP_UNKNOWN)
    except ValidationError:
        return None


# ---------------------------------------------------------------------------
# Endpoint args
# ---------------------------------------------------------------------------

def endpoint_args_for_schema(schema: ResourceSchema, methods: Tuple[str, ...]) -> Dict[str, FieldDescriptor]:
    """Derive request args for a write endpoint from a resource schema.

    Readonly fields are skipped. ``required`` and ``default`` only carry over
    for create (POST-only) endpoints; updates accept partial bodies.
    """
    creating = tuple(methods) == ("POST",)
    args: Dict[str, FieldDescriptor] = {}
    for name, descriptor in schema.properties.items():
        if descriptor.readonly:
            continue
        args[name] = descriptor.model_copy(update={
            "required": descriptor.required and creating,
            "default": descriptor.default if creating else None,
        })
    return args


# ---------------------------------------------------------------------------
# Response filtering
# ---------------------------------------------------------------------------

def normalize_context(value: Any, default: str = "view") -> str:
    """Return *value* if it names a known context, else *default*."""
    return value if isinstance(value, str) and value in CONTEXTS else default


def parse_fields_param(raw: Any) -> FieldSelection:
    """Parse a ``_fields`` query value (comma-separated or a list)."""
    if raw is None or raw == "" or raw == []:
        return ALL_FIELDS
    parts = raw if isinstance(raw, (list, tuple)) else _LIST_SPLIT_RE.split(str(raw))
    selected = frozenset(part.strip() for part in parts if part and part.strip())
    return selected or ALL_FIELDS


def is_field_included(field: str, fields: FieldSelection) -> bool:
    """Whether *field* (possibly dotted) is covered by the selection.

    A field is included when it is selected itself, when one of its parents
    is selected, or when something nested below it is selected.
    """
    if isinstance(fields, str):
        return True
    for selected in fields:
        if selected == field or selected.startswith(field + ".") or field.startswith(selected + "."):
            return True
    return False


def fields_for_schema(schema: ResourceSchema, requested: FieldSelection) -> FieldSelection:
    """Restrict a requested selection to paths rooted at a schema field."""
    if isinstance(requested, str):
        return ALL_FIELDS
    return frozenset(path for path in requested if path.split(".", 1)[0] in schema)


def filter_response_fields(data: Mapping[str, Any], fields: FieldSelection) -> Dict[str, Any]:
    """Keep only the selected fields (and selected nested paths) of *data*."""
    if isinstance(fields, str):
        return dict(data)

    picked: Dict[str, Any] = {}
    # Deeper paths first, so a shallower selection can overwrite the partial
    # dicts they build instead of writing into the source data.
    for path in sorted(fields, key=lambda p: p.count("."), reverse=True):
        _pick_path(data, picked, path.split("."))
    return {key: picked[key] for key in data if key in picked}


def _pick_path(source: Any, target: Dict[str, Any], parts: List[str]) -> None:
    key = parts[0]
    if not isinstance(source, Mapping) or key not in source:
        return
    if len(parts) == 1:
        target[key] = source[key]
        return
    if not isinstance(source[key], Mapping):
        return
    nested = target.get(key)
    if not isinstance(nested, dict):
        nested = target[key] = {}
    _pick_path(source[key], nested, parts[1:])


def filter_response_by_context(
    data: Mapping[str, Any],
    properties: Mapping[str, FieldDescriptor],
    context: str,
) -> Dict[str, Any]:
    """Drop fields that are not exposed in *context*.

    Top-level keys without a descriptor are dropped. Inside objects only
    described keys are checked; undescribed nested keys are kept as data.
    """
    result: Dict[str, Any] = {}
    for name, value in data.items():
        descriptor = properties.get(name)
        if descriptor is None or context not in descriptor.context:
            continue
        result[name] = _filter_nested(value, descriptor, context)
    return result


def _filter_nested(value: Any, descriptor: FieldDescriptor, context: str) -> Any:
    if descriptor.properties and isinstance(value, Mapping):
        props = descriptor.properties
        return {
            key: (_filter_nested(item, props[key], context) if key in props else item)
            for key, item in value.items()
            if key not in props or context in props[key].context
        }
    if descriptor.items is not None and isinstance(value, list):
        return [_filter_nested(item, descriptor.items, context) for item in value]
    return value
