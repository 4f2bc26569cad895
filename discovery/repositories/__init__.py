"""
Data access layer (Repository pattern)
"""
from .user_repository import UserRepository
from .resource_repository import ResourceRepository
from .user_list_repository import UserListRepository
from .tag_repository import TagRepository, parse_tags
from .comment_repository import CommentRepository
from .search_repository import SearchRepository

__all__ = [
    "UserRepository",
    "ResourceRepository",
    "UserListRepository",
    "TagRepository",
    "parse_tags",
    "CommentRepository",
    "SearchRepository"
]
