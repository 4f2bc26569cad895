"""
Saved search database model
"""
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid, JSON
from sqlalchemy.orm import relationship
from .base import BaseModel


class SavedSearch(BaseModel):
    """A search in a user's or session's history"""
    __tablename__ = "searches"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = Column(String(128), nullable=True, index=True)
    title = Column(String(255), nullable=True)
    saved = Column(Boolean, default=False, nullable=False)
    backend = Column(String(50), default="Solr", nullable=False)
    search_object = Column(JSON, nullable=False)  # Query.to_dict() / QueryGroup.to_dict()
    checksum = Column(String(64), nullable=True, index=True)

    # Relationships
    user = relationship("User", back_populates="searches")
