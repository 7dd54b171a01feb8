"""REST request: the params a handler sees, independent of the HTTP layer."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.auth import AuthContext
from .validation import FieldSelection, normalize_context, parse_fields_param


@dataclass
class RestRequest:
    """Parameters of one request, merged by precedence.

    Lookup order is sanitized args, then URL path params, then the JSON body
    (write methods only), then the query string. A body or query value can
    never stand in for a path segment. ``db`` is the request's session;
    handlers build repositories from it.
    """

    method: str
    path: str = ""
    url_params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    body_params: Dict[str, Any] = field(default_factory=dict)
    auth: AuthContext = field(default_factory=lambda: AuthContext(user_id="", role=""))
    db: Optional[Session] = None
    sanitized_params: Dict[str, Any] = field(default_factory=dict)

    def _sources(self):
        yield self.sanitized_params
        yield self.url_params
        if self.method != "GET":
            yield self.body_params
        yield self.query_params

    def get_param(self, name: str, default: Any = None) -> Any:
        for source in self._sources():
            if name in source:
                return source[name]
        return default

    def has_param(self, name: str) -> bool:
        return any(name in source for source in self._sources())

    def get_params(self) -> Dict[str, Any]:
        """All params merged, higher-precedence sources winning."""
        merged: Dict[str, Any] = {}
        for source in reversed(list(self._sources())):
            merged.update(source)
        return merged

    def __getitem__(self, name: str) -> Any:
        return self.get_param(name)

    def __contains__(self, name: str) -> bool:
        return self.has_param(name)

    def with_url_params(self, **params: Any) -> "RestRequest":
        """A copy whose URL params (and sanitized values) are overridden."""
        url_params = {**self.url_params, **params}
        sanitized = {k: v for k, v in self.sanitized_params.items() if k not in params}
        return replace(self, url_params=url_params, sanitized_params=sanitized)

    @property
    def context(self) -> str:
        """Requested context; unknown or missing values fall back to "view"."""
        return normalize_context(self.get_param("context"))

    @property
    def requested_fields(self) -> FieldSelection:
        return parse_fields_param(self.get_param("_fields"))
