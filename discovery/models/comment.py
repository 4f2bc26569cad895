"""
Comment database model
"""
from sqlalchemy import Column, Integer, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship
from .base import BaseModel


class Comment(BaseModel):
    """Comment posted by a user on a resource"""
    __tablename__ = "comments"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True)
    comment = Column(Text, nullable=False)

    # Relationships
    user = relationship("User", back_populates="comments")
    resource = relationship("Resource", back_populates="comments")
