"""Database models."""

from .story import Story
from .autosave import Autosave

__all__ = ["Story", "Autosave"]
