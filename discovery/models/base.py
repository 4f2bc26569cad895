"""
Base database model and common utilities
"""
from sqlalchemy import Column, Integer, DateTime, func
from sqlalchemy.orm import declarative_base

# Create base class
Base = declarative_base()


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)


class BaseModel(TimestampMixin, Base):
    """Base model with ID and timestamps"""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
