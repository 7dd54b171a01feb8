"""Registration of the autosave collection route on top of a generic one.

The collection path ``/{parent_base}/{id}/{resource_base}`` is registered
with ``override=True``: whatever an earlier registration put on that path is
replaced, and the create method validates its body against the parent
resource's editable args instead of the autosave schema.
"""

import logging
from typing import List, Mapping, Optional

from ..rest.routes import (
    CREATABLE,
    READABLE,
    Endpoint,
    Handler,
    PermissionCheck,
    RouteDescriptor,
    RouteTable,
    SchemaGetter,
)
from ..schemas.resource_schema import FieldDescriptor

logger = logging.getLogger(__name__)

PARENT_ID_ARG = FieldDescriptor(
    type="integer",
    description="The ID for the parent of the autosave.",
)


def collection_route_path(parent_base: str, parent_id_pattern: str, resource_base: str) -> str:
    """``/{parent_base}/{id:<pattern>}/{resource_base}``; the pattern is a path convertor name."""
    return f"/{parent_base.strip('/')}/{{id:{parent_id_pattern}}}/{resource_base.strip('/')}"


def register_create_route(
    routes: RouteTable,
    namespace: str,
    parent_base: str,
    parent_id_pattern: str,
    resource_base: str,
    parent_validation_rules: Mapping[str, FieldDescriptor],
    parent_write_permission_check: PermissionCheck,
    read_handler: Handler,
    create_handler: Handler,
    read_permission_check: PermissionCheck,
    read_args: Optional[Mapping[str, FieldDescriptor]] = None,
    schema: Optional[SchemaGetter] = None,
) -> List[RouteDescriptor]:
    """Install list + create on the autosave collection path, replacing earlier routes.

    Args:
        routes: Table to register into.
        namespace: Namespace shared with the parent resource.
        parent_base: Route base of the parent resource.
        parent_id_pattern: Path convertor for the parent id (``"int"``).
        resource_base: Route base of the autosaves.
        parent_validation_rules: The parent's editable-field args; used as the
            create args verbatim.
        parent_write_permission_check: Check run before create.
        read_handler: Lists autosaves.
        create_handler: Creates an autosave.
        read_permission_check: Check run before list.
        read_args: Query args of the list method.
        schema: Getter for the public autosave schema.

    Returns:
        The route descriptors now active on the path.
    """
    path = collection_route_path(parent_base, parent_id_pattern, resource_base)

    installed = routes.register(
        namespace,
        path,
        [
            Endpoint(
                methods=READABLE,
                handler=read_handler,
                permission_check=read_permission_check,
                args=dict(read_args or {}),
            ),
            Endpoint(
                methods=CREATABLE,
                handler=create_handler,
                permission_check=parent_write_permission_check,
                args=dict(parent_validation_rules),
            ),
        ],
        override=True,
        route_args={"id": PARENT_ID_ARG},
        schema=schema,
    )

    logger.info(
        "Registered autosave collection route",
        extra={
            "route": installed[0].full_path,
            "create_args": sorted(parent_validation_rules),
        },
    )
    return installed
