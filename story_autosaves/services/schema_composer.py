"""Schema composition for resources that borrow a field from a parent resource.

``compose_schema`` is pure; memoization is the caller's job and is done with
a ``SchemaCache``, which computes its value at most once per process.
"""

import logging
import threading
from typing import Callable, Optional

from ..schemas.resource_schema import ResourceSchema

logger = logging.getLogger(__name__)


def compose_schema(base: ResourceSchema, parent: ResourceSchema, borrowed_field: str) -> ResourceSchema:
    """Return *base* plus the parent's descriptor for *borrowed_field*.

    If the parent does not define the field, *base* is returned unchanged.
    If *base* already defines it, the parent's descriptor replaces it.
    """
    descriptor = parent.get(borrowed_field)
    if descriptor is None:
        logger.debug(
            "Parent schema has no field to borrow",
            extra={"parent_schema": parent.title, "field": borrowed_field},
        )
        return base
    return base.with_field(borrowed_field, descriptor)


class SchemaCache:
    """Initialize-once holder for a composed schema.

    The first ``get_or_compute`` runs the factory under a lock; every later
    call returns the stored schema without locking.
    """

    def __init__(self):
        self._schema: Optional[ResourceSchema] = None
        self._lock = threading.Lock()

    @property
    def is_populated(self) -> bool:
        return self._schema is not None

    def get_or_compute(self, factory: Callable[[], ResourceSchema]) -> ResourceSchema:
        schema = self._schema
        if schema is not None:
            return schema
        with self._lock:
            if self._schema is None:
                self._schema = factory()
                logger.debug("Composed schema cached", extra={"schema": self._schema.title})
            return self._schema
