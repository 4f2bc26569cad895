"""
Tag and comment API endpoints
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response, status

from discovery.core.auth import get_current_user
from discovery.core.exceptions import UnknownBackendError
from discovery.models.user import User
from discovery.repositories.comment_repository import CommentRepository
from discovery.repositories.resource_repository import ResourceRepository
from discovery.repositories.tag_repository import TagRepository
from discovery.schemas.user_data import CommentRequest, CommentResponse, TagRequest, TagResponse
from discovery.services.search_service import canonical_backend_name

logger = logging.getLogger(__name__)

router = APIRouter()
resource_repository = ResourceRepository()
tag_repository = TagRepository()
comment_repository = CommentRepository()


def record_source(source: str) -> str:
    """Canonical backend name of the record source in the path"""
    try:
        return canonical_backend_name(source)
    except UnknownBackendError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/records/{source}/{record_id}/tags", response_model=List[TagResponse])
async def get_tags(record_id: str, source: str = Depends(record_source)):
    """Tags of a record with their usage counts"""
    resource = await resource_repository.get(record_id, source)
    if not resource:
        return []
    return await tag_repository.get_tags_for_record(resource)


@router.post("/records/{source}/{record_id}/tags", response_model=List[TagResponse])
async def add_tags(
    record_id: str,
    tag_request: TagRequest,
    source: str = Depends(record_source),
    current_user: User = Depends(get_current_user),
):
    """
    Tag a record. The input is split on spaces; "quoted phrases" make
    multi-word tags.

    Returns:
        All tags of the record after tagging
    """
    resource = await resource_repository.find_or_create(record_id, source)
    added = await tag_repository.add_tags(resource, current_user.id, tag_request.tags, list_id=tag_request.list_id)
    logger.info(f"User {current_user.id} tagged {source}:{record_id} with {added}")
    return await tag_repository.get_tags_for_record(resource)


@router.delete("/records/{source}/{record_id}/tags/{tag}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_tag(
    record_id: str,
    tag: str,
    source: str = Depends(record_source),
    current_user: User = Depends(get_current_user),
):
    """Remove the user's tag from a record"""
    resource = await resource_repository.get(record_id, source)
    if not resource or not await tag_repository.remove_tag(resource, current_user.id, tag):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/records/{source}/{record_id}/comments", response_model=List[CommentResponse])
async def get_comments(record_id: str, source: str = Depends(record_source)):
    """Comments on a record, oldest first"""
    resource = await resource_repository.get(record_id, source)
    if not resource:
        return []
    return await comment_repository.get_comments(resource.id)


@router.post(
    "/records/{source}/{record_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    record_id: str,
    comment_request: CommentRequest,
    source: str = Depends(record_source),
    current_user: User = Depends(get_current_user),
):
    """Comment on a record"""
    resource = await resource_repository.find_or_create(record_id, source)
    return await comment_repository.add_comment(current_user.id, resource.id, comment_request.comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: int, current_user: User = Depends(get_current_user)):
    """Delete one of the user's comments"""
    if not await comment_repository.delete_comment(comment_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
