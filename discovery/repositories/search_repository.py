"""Repository for the search history."""

import hashlib
import json
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, delete

from discovery.models.search import SavedSearch
from discovery.core.database import get_db


class SearchRepository:
    """Repository for saved search database operations."""

    @staticmethod
    def checksum(backend: str, search_object: Dict[str, Any]) -> str:
        encoded = json.dumps({"backend": backend, "search": search_object}, sort_keys=True)
        return hashlib.sha256(encoded.encode()).hexdigest()

    async def save_search(
        self,
        backend: str,
        search_object: Dict[str, Any],
        user_id: Optional[UUID] = None,
        session_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> SavedSearch:
        """Add a search to the history of a user or an anonymous session"""
        async with get_db() as session:
            search = SavedSearch(
                user_id=user_id,
                session_id=session_id,
                title=title,
                backend=backend,
                search_object=search_object,
                checksum=self.checksum(backend, search_object),
            )
            session.add(search)
            await session.commit()
            await session.refresh(search)
            return search

    async def get_history(
        self,
        user_id: Optional[UUID] = None,
        session_id: Optional[str] = None,
        limit: int = 50,
    ) -> List[SavedSearch]:
        """
        Most recent searches of a user or session.

        Raises:
            ValueError: If neither user_id nor session_id is given
        """
        if user_id is None and not session_id:
            raise ValueError("Either user_id or session_id is required")

        statement = select(SavedSearch)
        if user_id is not None:
            statement = statement.where(SavedSearch.user_id == user_id)
        else:
            statement = statement.where(SavedSearch.session_id == session_id)

        async with get_db() as session:
            result = await session.execute(
                statement.order_by(SavedSearch.created_at.desc(), SavedSearch.id.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def set_saved(self, search_id: int, user_id: UUID, saved: bool) -> Optional[SavedSearch]:
        """Mark a search as saved (or unsaved); only its owner may do this"""
        async with get_db() as session:
            search = await session.get(SavedSearch, search_id)
            if not search or search.user_id != user_id:
                return None
            search.saved = saved
            await session.commit()
            await session.refresh(search)
            return search

    async def purge_unsaved(self, older_than: datetime) -> int:
        """Delete unsaved history entries created before a point in time"""
        async with get_db() as session:
            result = await session.execute(
                delete(SavedSearch).where(
                    SavedSearch.saved.is_(False),
                    SavedSearch.created_at < older_than,
                )
            )
            await session.commit()
            return result.rowcount
