"""Repository for tags on resources."""

import re
from typing import Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy import select, delete, func

from discovery.core.config import settings
from discovery.models.resource import Resource
from discovery.models.tag import Tag, ResourceTag
from discovery.core.database import get_db


MAX_TAG_LENGTH = 64


def parse_tags(text: str) -> List[str]:
    """
    Split user input into tags: space separated, "quoted phrases" stay whole.

    Tags are truncated to 64 characters and de-duplicated in order.
    """
    tags = []
    for word in re.findall(r'"[^"]*"|[^ ]+', (text or "").strip()):
        tag = word.replace('"', "")[:MAX_TAG_LENGTH]
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class TagRepository:
    """Repository for tag database operations."""

    def __init__(self, case_sensitive: Optional[bool] = None):
        self.case_sensitive = settings.CASE_SENSITIVE_TAGS if case_sensitive is None else case_sensitive

    def _match(self, text: str):
        if self.case_sensitive:
            return Tag.tag == text
        return func.lower(Tag.tag) == text.lower()

    async def add_tags(
        self,
        resource: Resource,
        user_id: UUID,
        tags: Union[str, List[str]],
        list_id: Optional[int] = None,
    ) -> List[str]:
        """
        Attach tags to a resource for a user. Tags the user already attached
        are skipped.

        Args:
            resource: Tagged resource
            user_id: Tagging user
            tags: List of tags or raw user input (see parse_tags)
            list_id: List the tagging happened in

        Returns:
            The tags that were added
        """
        if isinstance(tags, str):
            tags = parse_tags(tags)

        added = []
        async with get_db() as session:
            for text in tags:
                result = await session.execute(select(Tag).where(self._match(text)))
                tag = result.scalars().first()
                if not tag:
                    tag = Tag(tag=text if self.case_sensitive else text.lower())
                    session.add(tag)
                    await session.flush()

                existing = await session.execute(
                    select(ResourceTag).where(
                        ResourceTag.resource_id == resource.id,
                        ResourceTag.tag_id == tag.id,
                        ResourceTag.user_id == user_id,
                    )
                )
                if existing.scalars().first():
                    continue

                session.add(ResourceTag(resource_id=resource.id, tag_id=tag.id, user_id=user_id, list_id=list_id))
                added.append(tag.tag)
            await session.commit()
        return added

    async def remove_tag(self, resource: Resource, user_id: UUID, tag: str) -> bool:
        """Remove a user's tag from a resource"""
        async with get_db() as session:
            tag_ids = select(Tag.id).where(self._match(tag))
            result = await session.execute(
                delete(ResourceTag).where(
                    ResourceTag.resource_id == resource.id,
                    ResourceTag.user_id == user_id,
                    ResourceTag.tag_id.in_(tag_ids),
                )
            )
            await session.commit()
            return result.rowcount > 0

    async def get_tags_for_record(self, resource: Resource) -> List[Dict[str, Union[str, int]]]:
        """Tags of a resource with the number of users that attached each, most used first"""
        async with get_db() as session:
            count = func.count(ResourceTag.id).label("count")
            result = await session.execute(
                select(Tag.tag, count)
                .join(ResourceTag, ResourceTag.tag_id == Tag.id)
                .where(ResourceTag.resource_id == resource.id)
                .group_by(Tag.tag)
                .order_by(count.desc(), Tag.tag)
            )
            return [{"tag": tag, "count": total} for tag, total in result.all()]
