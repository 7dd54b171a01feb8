"""Autosave model."""

from sqlalchemy import Column, Index, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Autosave(Base):
    """Autosave snapshots of a story. At most one per (story, author)."""

    __tablename__ = "autosaves"
    __table_args__ = (
        UniqueConstraint("parent_id", "author_id", name="uq_autosaves_parent_author"),
        Index("ix_autosaves_parent_id", "parent_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    parent_id = Column(Integer, ForeignKey("stories.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(100), nullable=False)

    title = Column(String(255), nullable=False, default="")
    content = Column(Text, nullable=False, default="")

    # Opaque serialized blob; never validated on write.
    structured_payload = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    modified_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    story = relationship("Story", back_populates="autosaves")

    @property
    def fields(self) -> dict:
        """Raw stored field values, keyed by field name."""
        return {
            "title": self.title,
            "content": self.content,
            "structured_payload": self.structured_payload,
        }
