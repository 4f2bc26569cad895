"""
API v1 endpoints package
"""
from .auth import router as auth_router
from .search import router as search_router
from .lists import router as lists_router
from .social import router as social_router
from .searches import router as searches_router

__all__ = [
    "auth_router",
    "search_router",
    "lists_router",
    "social_router",
    "searches_router",
]
