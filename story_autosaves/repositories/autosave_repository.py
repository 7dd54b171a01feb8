"""Autosave repository, the store behind the autosave routes.

Keeps a single autosave per (story, author): saving again overwrites the
caller's previous snapshot instead of piling up rows.
"""

import logging
from typing import List

import sqlalchemy.exc

from ..models import Autosave
from ..exceptions import AutosaveNotFoundError, DatabaseError
from .base import BaseRepository

logger = logging.getLogger(__name__)

# Columns an autosave snapshot copies from prepared story data.
AUTOSAVE_COLUMNS = ("title", "content", "structured_payload")


class AutosaveRepository(BaseRepository[Autosave]):
    """Repository for autosave reads and writes."""

    model_class = Autosave
    not_found_error = AutosaveNotFoundError

    def list_for_parent(self, parent_id: int) -> List[Autosave]:
        """All autosaves of a story, newest first."""
        return self._base_query().filter(
            Autosave.parent_id == parent_id
        ).order_by(Autosave.modified_at.desc(), Autosave.id.desc()).all()

    def get_for_author(self, parent_id: int, author_id: str):
        return self._base_query().filter(
            Autosave.parent_id == parent_id,
            Autosave.author_id == author_id,
        ).first()

    def save(self, parent_id: int, author_id: str, fields: dict) -> Autosave:
        """Create the author's autosave for a story, or overwrite the existing one.

        Unknown keys in *fields* are ignored; the structured payload is stored
        exactly as given.
        """
        values = {k: v for k, v in fields.items() if k in AUTOSAVE_COLUMNS}

        autosave = self.get_for_author(parent_id, author_id)
        if autosave is None:
            autosave = Autosave(parent_id=parent_id, author_id=author_id, **values)
            self.db.add(autosave)
        else:
            for column, value in values.items():
                setattr(autosave, column, value)

        try:
            self.db.commit()
        except sqlalchemy.exc.SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("Failed to save autosave", original_error=e) from e

        self.db.refresh(autosave)
        logger.info(
            "Saved autosave",
            extra={"autosave_id": autosave.id, "story_id": parent_id, "author_id": author_id},
        )
        return autosave
