"""Story repository for database operations."""

from typing import List, Optional

from ..models import Story
from ..exceptions import StoryNotFoundError
from .base import BaseRepository


class StoryRepository(BaseRepository[Story]):
    """Repository for story CRUD operations."""

    model_class = Story
    not_found_error = StoryNotFoundError

    def list(
        self,
        skip: int = 0,
        limit: int = 10,
        author_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Story]:
        """List stories, most recently modified first."""
        query = self._base_query()
        if author_id is not None:
            query = query.filter(Story.author_id == author_id)
        if status is not None:
            query = query.filter(Story.status == status)
        return query.order_by(Story.modified_at.desc(), Story.id.desc()).offset(skip).limit(limit).all()

    def create(self, author_id: str, fields: dict) -> Story:
        """Insert a story built from already-prepared column values."""
        story = Story(author_id=author_id, **fields)
        self.db.add(story)
        self.db.flush()
        self.db.refresh(story)
        return story

    def update(self, story_id: int, fields: dict) -> Story:
        """Apply prepared column values to an existing story."""
        story = self.get_by_id(story_id)
        for column, value in fields.items():
            setattr(story, column, value)
        self.db.flush()
        self.db.refresh(story)
        return story
