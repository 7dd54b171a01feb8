"""Story model."""

from sqlalchemy import Column, Index, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Story(Base):
    """Stories table: the parent resource autosaves hang off."""

    __tablename__ = "stories"
    __table_args__ = (
        Index("ix_stories_author_id", "author_id"),
        Index("ix_stories_modified_at", "modified_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    author_id = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft | pending | publish | private

    title = Column(String(255), nullable=False, default="")
    content = Column(Text, nullable=False, default="")

    # Editor state, serialized as JSON text. Decoded only when shaping responses.
    structured_payload = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    modified_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    autosaves = relationship("Autosave", back_populates="story", cascade="all, delete-orphan")
