"""
Core configuration and utilities package
"""
from .config import settings
from .database import get_db, init_db, close_db

__all__ = [
    "settings",
    "get_db",
    "init_db",
    "close_db",
]
