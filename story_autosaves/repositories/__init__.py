"""Data access repositories."""

from .base import BaseRepository
from .story_repository import StoryRepository
from .autosave_repository import AutosaveRepository

__all__ = [
    "BaseRepository",
    "StoryRepository",
    "AutosaveRepository",
]
