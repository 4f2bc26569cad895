"""Repository for comments on resources."""

from typing import List
from uuid import UUID

from sqlalchemy import select

from discovery.models.comment import Comment
from discovery.core.database import get_db


class CommentRepository:
    """Repository for comment database operations."""

    async def add_comment(self, user_id: UUID, resource_id: int, text: str) -> Comment:
        async with get_db() as session:
            comment = Comment(user_id=user_id, resource_id=resource_id, comment=text)
            session.add(comment)
            await session.commit()
            await session.refresh(comment)
            return comment

    async def get_comments(self, resource_id: int) -> List[Comment]:
        """Comments of a resource, oldest first"""
        async with get_db() as session:
            result = await session.execute(
                select(Comment)
                .where(Comment.resource_id == resource_id)
                .order_by(Comment.created_at, Comment.id)
            )
            return list(result.scalars().all())

    async def delete_comment(self, comment_id: int, user_id: UUID) -> bool:
        """
        Delete a comment.

        Returns:
            True if deleted, False if it does not exist or belongs to someone else
        """
        async with get_db() as session:
            comment = await session.get(Comment, comment_id)
            if not comment or comment.user_id != user_id:
                return False
            await session.delete(comment)
            await session.commit()
            return True
