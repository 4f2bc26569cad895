"""
Database models package
"""
from discovery.models.base import Base, BaseModel, TimestampMixin
from discovery.models.user import User, UserRole
from discovery.models.resource import Resource
from discovery.models.user_list import UserList, UserResource
from discovery.models.tag import Tag, ResourceTag
from discovery.models.comment import Comment
from discovery.models.search import SavedSearch

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "User",
    "UserRole",
    "Resource",
    "UserList",
    "UserResource",
    "Tag",
    "ResourceTag",
    "Comment",
    "SavedSearch"
]
