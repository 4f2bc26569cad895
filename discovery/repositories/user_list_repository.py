"""Repository for user lists and saved records."""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, delete

from discovery.models.resource import Resource
from discovery.models.user_list import UserList, UserResource
from discovery.core.database import get_db


class UserListRepository:
    """Repository for user list database operations."""

    async def create_list(self, user_id: UUID, title: str, description: Optional[str] = None, public: bool = False) -> UserList:
        async with get_db() as session:
            user_list = UserList(user_id=user_id, title=title, description=description, public=public)
            session.add(user_list)
            await session.commit()
            await session.refresh(user_list)
            return user_list

    async def get_lists(self, user_id: UUID) -> List[UserList]:
        async with get_db() as session:
            result = await session.execute(
                select(UserList).where(UserList.user_id == user_id).order_by(UserList.title)
            )
            return list(result.scalars().all())

    async def get_list(self, list_id: int) -> Optional[UserList]:
        async with get_db() as session:
            return await session.get(UserList, list_id)

    async def delete_list(self, list_id: int, user_id: UUID) -> bool:
        """
        Delete a list and its entries.

        Returns:
            True if deleted, False if the list does not exist or belongs to someone else
        """
        async with get_db() as session:
            user_list = await session.get(UserList, list_id)
            if not user_list or user_list.user_id != user_id:
                return False
            await session.execute(delete(UserResource).where(UserResource.list_id == list_id))
            await session.delete(user_list)
            await session.commit()
            return True

    async def save_resource(
        self,
        user_id: UUID,
        resource_id: int,
        list_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> UserResource:
        """
        Save a resource for a user; saving it again updates the notes.
        """
        async with get_db() as session:
            result = await session.execute(
                select(UserResource).where(
                    UserResource.user_id == user_id,
                    UserResource.resource_id == resource_id,
                    UserResource.list_id == list_id if list_id is not None else UserResource.list_id.is_(None),
                )
            )
            entry = result.scalar_one_or_none()
            if entry:
                entry.notes = notes
            else:
                entry = UserResource(user_id=user_id, resource_id=resource_id, list_id=list_id, notes=notes)
                session.add(entry)
            await session.commit()
            await session.refresh(entry)
            return entry

    async def remove_resource(self, user_id: UUID, resource_id: int, list_id: Optional[int] = None) -> bool:
        """Remove a saved resource from one list (or from all lists when list_id is None)"""
        async with get_db() as session:
            statement = delete(UserResource).where(
                UserResource.user_id == user_id,
                UserResource.resource_id == resource_id,
            )
            if list_id is not None:
                statement = statement.where(UserResource.list_id == list_id)
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount > 0

    async def get_list_resources(self, list_id: int) -> List[Tuple[UserResource, Resource]]:
        async with get_db() as session:
            result = await session.execute(
                select(UserResource, Resource)
                .join(Resource, Resource.id == UserResource.resource_id)
                .where(UserResource.list_id == list_id)
                .order_by(UserResource.saved, UserResource.id)
            )
            return [(entry, resource) for entry, resource in result.all()]
