"""Schema types shared by controllers, validation and the autosave core."""

from .resource_schema import (
    CONTEXTS,
    FieldDescriptor,
    ResourceSchema,
)

__all__ = [
    "CONTEXTS",
    "FieldDescriptor",
    "ResourceSchema",
]
