"""Resource schema types.

A ResourceSchema is an ordered mapping of field name to FieldDescriptor and
renders as a JSON Schema document. Both types are frozen: a schema that has
been handed to clients must not change underneath them, so "modifying" one
always produces a new instance.
"""

from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-04/schema#"

# Named views of a resource; each field lists the views it appears in.
CONTEXTS: Tuple[str, ...] = ("view", "edit", "embed")


class FieldDescriptor(BaseModel):
    """Schema of one field (or one request argument).

    ``type`` is a JSON Schema type name or a tuple of them. ``properties``,
    ``items`` and ``additional_properties`` describe nested shapes and drive
    validation and sanitization. ``required`` and ``default`` only matter when
    the descriptor is used as a request argument.
    """

    model_config = ConfigDict(frozen=True)

    type: Union[str, Tuple[str, ...]] = "string"
    description: str = ""
    context: FrozenSet[str] = frozenset(CONTEXTS)
    readonly: bool = False
    required: bool = False
    default: Any = None
    enum: Optional[Tuple[Any, ...]] = None
    format: Optional[str] = None
    properties: Optional[Dict[str, "FieldDescriptor"]] = None
    items: Optional["FieldDescriptor"] = None
    # None allows unknown object keys; False forbids them.
    additional_properties: Optional[bool] = None

    @field_validator("context", mode="before")
    @classmethod
    def _known_contexts(cls, v):
        unknown = set(v) - set(CONTEXTS)
        if unknown:
            raise ValueError(f"Unknown context(s): {sorted(unknown)}")
        return frozenset(v)

    @property
    def types(self) -> Tuple[str, ...]:
        return (self.type,) if isinstance(self.type, str) else tuple(self.type)

    def to_json_schema(self) -> Dict[str, Any]:
        """Render as a JSON Schema property object."""
        out: Dict[str, Any] = {
            "description": self.description,
            "type": self.type if isinstance(self.type, str) else list(self.type),
            "context": [c for c in CONTEXTS if c in self.context],
            "readonly": self.readonly,
        }
        if self.format is not None:
            out["format"] = self.format
        if self.enum is not None:
            out["enum"] = list(self.enum)
        if self.default is not None:
            out["default"] = self.default
        if self.required:
            out["required"] = True
        if self.properties is not None:
            out["properties"] = {name: d.to_json_schema() for name, d in self.properties.items()}
        if self.items is not None:
            out["items"] = self.items.to_json_schema()
        if self.additional_properties is not None:
            out["additionalProperties"] = self.additional_properties
        return out


FieldDescriptor.model_rebuild()


class ResourceSchema(BaseModel):
    """Ordered, immutable mapping of field name to descriptor."""

    model_config = ConfigDict(frozen=True)

    title: str
    properties: Dict[str, FieldDescriptor] = Field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.properties

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(self.properties)

    def get(self, name: str) -> Optional[FieldDescriptor]:
        return self.properties.get(name)

    def with_field(self, name: str, descriptor: FieldDescriptor) -> "ResourceSchema":
        """Return a copy with *name* set to *descriptor*.

        An existing field keeps its position and gets the new descriptor; a
        new field is appended.
        """
        properties = dict(self.properties)
        properties[name] = descriptor
        return ResourceSchema(title=self.title, properties=properties)

    def to_json_schema(self) -> Dict[str, Any]:
        """Render the whole schema as a JSON Schema document."""
        return {
            "$schema": JSON_SCHEMA_DRAFT,
            "title": self.title,
            "type": "object",
            "properties": {name: d.to_json_schema() for name, d in self.properties.items()},
        }
