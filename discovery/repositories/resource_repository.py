"""Repository for resource (backend record) data access."""

from typing import Optional

from sqlalchemy import select

from discovery.models.resource import Resource
from discovery.core.database import get_db


class ResourceRepository:
    """Repository for resource database operations."""

    async def get(self, record_id: str, source: str = "Solr") -> Optional[Resource]:
        async with get_db() as session:
            result = await session.execute(
                select(Resource).where(Resource.record_id == record_id, Resource.source == source)
            )
            return result.scalar_one_or_none()

    async def find_or_create(
        self,
        record_id: str,
        source: str = "Solr",
        title: str = "",
        author: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Resource:
        """
        Get the resource of a backend record, creating it when it is first referenced.

        Args:
            record_id: Record ID in the backend
            source: Backend name
            title: Title to store for display
            author: Main author
            year: Publication year

        Returns:
            Existing or new resource
        """
        async with get_db() as session:
            result = await session.execute(
                select(Resource).where(Resource.record_id == record_id, Resource.source == source)
            )
            resource = result.scalar_one_or_none()
            if resource:
                return resource

            resource = Resource(
                record_id=record_id,
                source=source,
                title=(title or "")[:255],
                author=author[:255] if author else None,
                year=year,
            )
            session.add(resource)
            await session.commit()
            await session.refresh(resource)
            return resource
