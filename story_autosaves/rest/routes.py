"""Route table keyed by (namespace, path, method).

Registering a method on a path that already has it replaces the earlier
registration: the last registration wins and there is never more than one
active route per key. ``override=True`` additionally drops every method
previously registered on the path, so the new endpoints become the whole
route.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import NoRouteError
from ..schemas.resource_schema import FieldDescriptor
from .request import RestRequest
from .response import RestResponse

logger = logging.getLogger(__name__)

READABLE: Tuple[str, ...] = ("GET",)
CREATABLE: Tuple[str, ...] = ("POST",)
EDITABLE: Tuple[str, ...] = ("POST", "PUT", "PATCH")

Handler = Callable[[RestRequest], RestResponse]
# Raises AuthenticationError / ForbiddenError (or a not-found error) to deny.
PermissionCheck = Callable[[RestRequest], None]
SchemaGetter = Callable[[], Dict[str, Any]]

RouteKey = Tuple[str, str, str]


@dataclass(frozen=True)
class Endpoint:
    """One handler for one or more HTTP methods of a route."""

    methods: Tuple[str, ...]
    handler: Handler
    permission_check: Optional[PermissionCheck] = None
    args: Mapping[str, FieldDescriptor] = field(default_factory=dict)


@dataclass(frozen=True)
class RouteDescriptor:
    """The active route for one (namespace, path, method)."""

    namespace: str
    path: str
    method: str
    handler: Handler
    permission_check: Optional[PermissionCheck]
    args: Mapping[str, FieldDescriptor]
    route_args: Mapping[str, FieldDescriptor] = field(default_factory=dict)
    schema: Optional[SchemaGetter] = None

    @property
    def key(self) -> RouteKey:
        return (self.namespace, self.path, self.method)

    @property
    def full_path(self) -> str:
        return f"/{self.namespace}{self.path}"


def normalize_route(namespace: str, path: str) -> Tuple[str, str]:
    namespace = namespace.strip("/")
    if not namespace:
        raise ValueError("Routes must be namespaced")
    return namespace, "/" + path.strip("/")


class RouteTable:
    """Registry of active routes."""

    def __init__(self):
        self._routes: Dict[RouteKey, RouteDescriptor] = {}

    def register(
        self,
        namespace: str,
        path: str,
        endpoints: Sequence[Endpoint],
        override: bool = False,
        route_args: Optional[Mapping[str, FieldDescriptor]] = None,
        schema: Optional[SchemaGetter] = None,
    ) -> List[RouteDescriptor]:
        """Register *endpoints* on a path, replacing what was there.

        Args:
            namespace: Route namespace, e.g. ``"api/v1"``.
            path: Path inside the namespace; may hold ``{name:convertor}`` params.
            endpoints: Handlers to install; each method appears once.
            override: Drop all methods already on the path first.
            route_args: Args shared by every method (path params).
            schema: Callable returning the public JSON schema of the resource.
        """
        namespace, path = normalize_route(namespace, path)

        if override:
            removed = self.unregister(namespace, path)
            if removed:
                logger.debug(
                    "Overriding route",
                    extra={"namespace": namespace, "path": path, "replaced_methods": removed},
                )

        installed: List[RouteDescriptor] = []
        for endpoint in endpoints:
            for method in endpoint.methods:
                method = method.upper()
                descriptor = RouteDescriptor(
                    namespace=namespace,
                    path=path,
                    method=method,
                    handler=endpoint.handler,
                    permission_check=endpoint.permission_check,
                    args=dict(endpoint.args),
                    route_args=dict(route_args or {}),
                    schema=schema,
                )
                if descriptor.key in self._routes:
                    logger.debug("Replacing route", extra={"route": descriptor.full_path, "method": method})
                self._routes[descriptor.key] = descriptor
                installed.append(descriptor)
        return installed

    def unregister(self, namespace: str, path: str) -> List[str]:
        """Remove every method on a path. Returns the removed methods."""
        namespace, path = normalize_route(namespace, path)
        keys = [key for key in self._routes if key[:2] == (namespace, path)]
        for key in keys:
            del self._routes[key]
        return [key[2] for key in keys]

    def get(self, namespace: str, path: str, method: str) -> RouteDescriptor:
        namespace, path = normalize_route(namespace, path)
        try:
            return self._routes[(namespace, path, method.upper())]
        except KeyError:
            raise NoRouteError(namespace, path, method.upper()) from None

    def routes_for(self, namespace: str, path: str) -> List[RouteDescriptor]:
        namespace, path = normalize_route(namespace, path)
        return [route for key, route in self._routes.items() if key[:2] == (namespace, path)]

    def methods_for(self, namespace: str, path: str) -> List[str]:
        return [route.method for route in self.routes_for(namespace, path)]

    def paths(self) -> List[Tuple[str, str]]:
        """Distinct (namespace, path) pairs in registration order."""
        return list(dict.fromkeys(key[:2] for key in self._routes))

    def namespaces(self) -> List[str]:
        return list(dict.fromkeys(key[0] for key in self._routes))

    def __contains__(self, key: RouteKey) -> bool:
        return key in self._routes

    def __iter__(self) -> Iterator[RouteDescriptor]:
        return iter(list(self._routes.values()))

    def __len__(self) -> int:
        return len(self._routes)
