"""
Resource database model: a record of a search backend that user data refers to
"""
from sqlalchemy import Column, String, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class Resource(BaseModel):
    """Resource model"""
    __tablename__ = "resources"

    record_id = Column(String(255), nullable=False)
    source = Column(String(50), default="Solr", nullable=False)  # Solr, Summon or WorldCat
    title = Column(String(255), default="", nullable=False)
    author = Column(String(255), nullable=True)
    year = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("record_id", "source", name="uq_resource_record_source"),
    )

    # Relationships
    user_resources = relationship("UserResource", back_populates="resource", passive_deletes=True)
    comments = relationship("Comment", back_populates="resource", passive_deletes=True)
    resource_tags = relationship("ResourceTag", back_populates="resource", passive_deletes=True)
