"""
Search history API endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from discovery.core.auth import get_current_user, get_optional_user
from discovery.models.user import User
from discovery.repositories.search_repository import SearchRepository
from discovery.schemas.user_data import SavedSearchResponse, SetSavedRequest

router = APIRouter()
search_repository = SearchRepository()


@router.get("/searches/history", response_model=List[SavedSearchResponse])
async def get_history(
    limit: int = Query(50, ge=1, le=500),
    x_session_id: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Recent searches of the authenticated user, or of the anonymous session"""
    if current_user is None and not x_session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Log in or send an X-Session-Id header to see the search history"
        )
    return await search_repository.get_history(
        user_id=current_user.id if current_user else None,
        session_id=x_session_id,
        limit=limit,
    )


@router.put("/searches/{search_id}/saved", response_model=SavedSearchResponse)
async def set_saved(search_id: int, request: SetSavedRequest, current_user: User = Depends(get_current_user)):
    """Keep a search permanently, or return it to the purgeable history"""
    search = await search_repository.set_saved(search_id, current_user.id, request.saved)
    if not search:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Search not found")
    return search
