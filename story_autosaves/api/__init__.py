"""Resource controllers and the collaborator protocols they depend on."""

from .base import RestController
from .stories import StoriesController
from .autosaves import AutosavesController
from .story_autosaves import StoryAutosavesController
from .interfaces import AutosaveRecord, AutosaveStore, ParentResourceController

__all__ = [
    "RestController",
    "StoriesController",
    "AutosavesController",
    "StoryAutosavesController",
    "AutosaveRecord",
    "AutosaveStore",
    "ParentResourceController",
]
