"""Collaborator interfaces of the autosave controllers.

The autosave controllers depend on these protocols, not on concrete
classes: any parent controller or store with the right shape can be plugged
in.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Protocol

from ..rest.request import RestRequest
from ..rest.routes import PermissionCheck
from ..schemas.resource_schema import FieldDescriptor, ResourceSchema


class AutosaveRecord(Protocol):
    """A stored autosave as the store hands it out."""

    id: int
    parent_id: int
    author_id: str
    created_at: datetime
    modified_at: datetime

    @property
    def fields(self) -> Mapping[str, Any]: ...


class ParentRecord(Protocol):
    id: int


class ParentResourceController(Protocol):
    """What the autosave controllers need from the parent resource."""

    namespace: str
    rest_base: str

    def get_item_schema(self) -> ResourceSchema: ...

    def get_write_permission_check(self) -> PermissionCheck: ...

    def get_editable_field_args(self) -> Dict[str, FieldDescriptor]: ...

    def get_record(self, request: RestRequest, record_id: int) -> ParentRecord: ...

    def prepare_item_for_database(self, request: RestRequest) -> Dict[str, Any]: ...


class AutosaveStore(Protocol):
    """Persistence of autosave records for one database session."""

    def list_for_parent(self, parent_id: int) -> List[AutosaveRecord]: ...

    def get_by_id(self, autosave_id: int) -> AutosaveRecord: ...

    def save(self, parent_id: int, author_id: str, fields: Dict[str, Any]) -> AutosaveRecord: ...
