"""
Tag database models
"""
from sqlalchemy import Column, String, Integer, ForeignKey, Uuid
from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import BaseModel


class Tag(BaseModel):
    """Tag text shared by all users"""
    __tablename__ = "tags"

    tag = Column(String(64), unique=True, nullable=False)

    # Relationships
    resource_tags = relationship("ResourceTag", back_populates="tag", passive_deletes=True)


class ResourceTag(BaseModel):
    """A tag attached to a resource by a user"""
    __tablename__ = "resource_tags"

    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    list_id = Column(Integer, ForeignKey("user_lists.id", ondelete="SET NULL"), nullable=True)
    posted = Column(DateTime(timezone=True), default=func.now(), nullable=False)

    # Relationships
    resource = relationship("Resource", back_populates="resource_tags")
    tag = relationship("Tag", back_populates="resource_tags")
