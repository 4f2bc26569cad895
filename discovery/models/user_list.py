"""
User list database models
"""
from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Text, Uuid
from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import BaseModel


class UserList(BaseModel):
    """Favourites list of a user"""
    __tablename__ = "user_lists"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    public = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="lists")
    entries = relationship("UserResource", back_populates="user_list", passive_deletes=True)


class UserResource(BaseModel):
    """A resource saved by a user, optionally into one of their lists"""
    __tablename__ = "user_resources"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False)
    list_id = Column(Integer, ForeignKey("user_lists.id", ondelete="CASCADE"), nullable=True)
    notes = Column(Text, nullable=True)
    saved = Column(DateTime(timezone=True), default=func.now(), nullable=False)

    # Relationships
    user = relationship("User", back_populates="saved_resources")
    resource = relationship("Resource", back_populates="user_resources")
    user_list = relationship("UserList", back_populates="entries")
