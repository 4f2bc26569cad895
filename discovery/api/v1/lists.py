"""
Favourites list API endpoints
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response, status

from discovery.core.auth import get_current_user
from discovery.models.user import User
from discovery.models.user_list import UserList
from discovery.repositories.resource_repository import ResourceRepository
from discovery.repositories.user_list_repository import UserListRepository
from discovery.schemas.user_data import (
    ListCreateRequest,
    ListDetailResponse,
    ListRecordResponse,
    ListResponse,
    SaveRecordRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()
list_repository = UserListRepository()
resource_repository = ResourceRepository()


async def _get_own_list(list_id: int, user: User) -> UserList:
    user_list = await list_repository.get_list(list_id)
    if not user_list or user_list.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
    return user_list


@router.get("/lists", response_model=List[ListResponse])
async def get_lists(current_user: User = Depends(get_current_user)):
    """Lists of the authenticated user"""
    return await list_repository.get_lists(current_user.id)


@router.post("/lists", response_model=ListResponse, status_code=status.HTTP_201_CREATED)
async def create_list(list_data: ListCreateRequest, current_user: User = Depends(get_current_user)):
    """Create a list"""
    user_list = await list_repository.create_list(
        current_user.id,
        list_data.title,
        description=list_data.description,
        public=list_data.public,
    )
    logger.info(f"User {current_user.id} created list {user_list.id}")
    return user_list


@router.get("/lists/{list_id}", response_model=ListDetailResponse)
async def get_list(list_id: int, current_user: User = Depends(get_current_user)):
    """
    A list with its records. Public lists are visible to every user,
    private lists only to their owner.
    """
    user_list = await list_repository.get_list(list_id)
    if not user_list or (not user_list.public and user_list.user_id != current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")

    records = [
        ListRecordResponse(
            resource_id=resource.id,
            record_id=resource.record_id,
            source=resource.source,
            title=resource.title,
            author=resource.author,
            year=resource.year,
            notes=entry.notes,
            saved=entry.saved,
        )
        for entry, resource in await list_repository.get_list_resources(list_id)
    ]
    return ListDetailResponse(
        id=user_list.id,
        title=user_list.title,
        description=user_list.description,
        public=user_list.public,
        created_at=user_list.created_at,
        records=records,
    )


@router.delete("/lists/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(list_id: int, current_user: User = Depends(get_current_user)):
    """Delete a list with its entries"""
    if not await list_repository.delete_list(list_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/lists/{list_id}/records", response_model=ListRecordResponse, status_code=status.HTTP_201_CREATED)
async def save_record(list_id: int, record: SaveRecordRequest, current_user: User = Depends(get_current_user)):
    """Save a record to a list; saving it again replaces the notes"""
    await _get_own_list(list_id, current_user)

    resource = await resource_repository.find_or_create(
        record.record_id,
        source=record.source,
        title=record.title,
        author=record.author,
        year=record.year,
    )
    entry = await list_repository.save_resource(current_user.id, resource.id, list_id=list_id, notes=record.notes)
    return ListRecordResponse(
        resource_id=resource.id,
        record_id=resource.record_id,
        source=resource.source,
        title=resource.title,
        author=resource.author,
        year=resource.year,
        notes=entry.notes,
        saved=entry.saved,
    )


@router.delete("/lists/{list_id}/records/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_record(list_id: int, resource_id: int, current_user: User = Depends(get_current_user)):
    """Remove a record from a list"""
    await _get_own_list(list_id, current_user)
    if not await list_repository.remove_resource(current_user.id, resource_id, list_id=list_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not in list")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
