"""REST response envelope: data, status, headers and hypermedia links."""

import copy
from typing import Any, Dict, List, Optional


class RestResponse:
    """A handler's result before it is serialized to HTTP.

    Links are kept apart from ``data`` so that field and context filtering of
    the data never touches them; they are merged in as ``_links`` only when
    the response is rendered.
    """

    def __init__(self, data: Any = None, status: int = 200, headers: Optional[Dict[str, str]] = None):
        self.data = data
        self.status = status
        self.headers: Dict[str, str] = dict(headers or {})
        self._links: Dict[str, List[Dict[str, Any]]] = {}

    def add_link(self, rel: str, href: str, attributes: Optional[Dict[str, Any]] = None) -> None:
        self._links.setdefault(rel, []).append({"href": href, "attributes": dict(attributes or {})})

    def add_links(self, links: Dict[str, List[Dict[str, Any]]]) -> None:
        for rel, rel_links in links.items():
            for link in rel_links:
                self.add_link(rel, link["href"], link.get("attributes"))

    def get_links(self) -> Dict[str, List[Dict[str, Any]]]:
        """A deep copy of the links, keyed by relation."""
        return copy.deepcopy(self._links)

    def render_links(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            rel: [{"href": link["href"], **link["attributes"]} for link in rel_links]
            for rel, rel_links in self._links.items()
        }

    def to_dict(self) -> Any:
        """Data with ``_links`` merged in, ready for JSON encoding."""
        if not isinstance(self.data, dict) or not self._links:
            return self.data
        rendered = dict(self.data)
        rendered["_links"] = self.render_links()
        return rendered

    def __repr__(self) -> str:
        return f"RestResponse(status={self.status}, data={self.data!r})"


def ensure_response(value: Any) -> RestResponse:
    """Wrap a non-response value (e.g. from a filter callback) in a RestResponse."""
    return value if isinstance(value, RestResponse) else RestResponse(value)
