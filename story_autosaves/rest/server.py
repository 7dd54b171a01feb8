"""REST server: dispatches requests through a RouteTable and mounts it on FastAPI.

For each request the server looks up the active route for the method,
runs the permission check, validates and sanitizes the declared args, then
calls the handler. Permission checks see raw params only. Lookup happens
per request, so a route replaced in the table takes effect for paths that
are already mounted.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, optional_auth
from ..database import get_db
from .request import RestRequest
from .response import RestResponse
from .routes import RouteTable
from .validation import validate_request_args

logger = logging.getLogger(__name__)


class RestServer:
    """Owns the route table and turns it into FastAPI routes."""

    def __init__(self, routes: Optional[RouteTable] = None):
        self.routes = routes if routes is not None else RouteTable()
        self._mounted: set = set()

    def dispatch(self, namespace: str, path: str, request: RestRequest) -> RestResponse:
        """Run one request against the active route for its method."""
        route = self.routes.get(namespace, path, request.method)

        if route.permission_check is not None:
            route.permission_check(request)

        args = {**route.route_args, **route.args}
        request.sanitized_params = validate_request_args(args, request.get_params())

        response = route.handler(request)
        logger.debug(
            "Dispatched",
            extra={"route": route.full_path, "method": request.method, "status_code": response.status},
        )
        return response

    def describe_route(self, namespace: str, path: str) -> Dict[str, Any]:
        """OPTIONS payload: methods, per-method args and the resource schema."""
        routes = self.routes.routes_for(namespace, path)
        data: Dict[str, Any] = {
            "namespace": namespace,
            "methods": [route.method for route in routes],
            "endpoints": [
                {
                    "methods": [route.method],
                    "args": {
                        name: arg.to_json_schema()
                        for name, arg in {**route.route_args, **route.args}.items()
                    },
                }
                for route in routes
            ],
        }
        schema = next((route.schema for route in routes if route.schema is not None), None)
        if schema is not None:
            data["schema"] = schema()
        return data

    def namespace_index(self, namespace: str) -> Dict[str, Any]:
        """Route index of one namespace."""
        index: Dict[str, Any] = {"namespace": namespace, "routes": {}}
        for route_namespace, path in self.routes.paths():
            if route_namespace != namespace:
                continue
            index["routes"][f"/{namespace}{path}"] = {
                "namespace": namespace,
                "methods": self.routes.methods_for(namespace, path),
            }
        return index

    # ------------------------------------------------------------------
    # FastAPI integration
    # ------------------------------------------------------------------

    def mount(self, app: FastAPI) -> None:
        """Add a FastAPI route for every (namespace, path) not yet mounted.

        Each path is mounted once with every method currently in the table,
        plus OPTIONS for the route description.
        """
        for namespace in self.routes.namespaces():
            if (namespace, "") not in self._mounted:
                app.add_api_route(
                    f"/{namespace}",
                    self._make_index_endpoint(namespace),
                    methods=["GET"],
                    include_in_schema=False,
                )
                self._mounted.add((namespace, ""))

        for namespace, path in self.routes.paths():
            if (namespace, path) in self._mounted:
                continue
            methods = self.routes.methods_for(namespace, path)
            app.add_api_route(
                f"/{namespace}{path}",
                self._make_endpoint(namespace, path),
                methods=methods + ["OPTIONS"],
                name=f"{namespace}{path}",
            )
            self._mounted.add((namespace, path))
            logger.debug("Mounted route", extra={"route": f"/{namespace}{path}", "methods": methods})

    def _make_index_endpoint(self, namespace: str):
        def index_endpoint() -> Dict[str, Any]:
            return self.namespace_index(namespace)

        return index_endpoint

    def _make_endpoint(self, namespace: str, path: str):
        server = self

        def endpoint(
            request: Request,
            body: Optional[Dict[str, Any]] = Body(None),
            db: Session = Depends(get_db),
            auth: AuthContext = Depends(optional_auth),
        ) -> JSONResponse:
            if request.method == "OPTIONS":
                return JSONResponse(content=jsonable_encoder(server.describe_route(namespace, path)))

            rest_request = RestRequest(
                method=request.method,
                path=path,
                url_params=dict(request.path_params),
                query_params=dict(request.query_params),
                body_params=body or {},
                auth=auth,
                db=db,
            )
            response = server.dispatch(namespace, path, rest_request)
            return server.to_http(response)

        endpoint.__name__ = f"rest_{namespace}{path}".replace("/", "_").replace("{", "").replace("}", "").replace(":", "_")
        return endpoint

    @staticmethod
    def to_http(response: RestResponse) -> JSONResponse:
        return JSONResponse(
            status_code=response.status,
            content=jsonable_encoder(response.to_dict()),
            headers=response.headers or None,
        )
