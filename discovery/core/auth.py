"""Authentication dependencies."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from discovery.models.user import User
from discovery.services.auth_service import AuthService
from discovery.repositories.user_repository import UserRepository

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)
auth_service = AuthService()
user_repository = UserRepository()


async def _user_from_token(token: str) -> User:
    payload = auth_service.validate_access_token(token)
    user_id = payload.get("sub")

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID"
        )

    user = await user_repository.get_by_id(UUID(user_id))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled"
        )

    return user


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.

    The user is also stored on request.state for per-user rate limiting.

    Args:
        request: Incoming request
        credentials: HTTP Bearer token credentials

    Returns:
        Current authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        user = await _user_from_token(credentials.credentials)
    except HTTPException:
        raise
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )
    request.state.user = user
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> Optional[User]:
    """Dependency returning the authenticated user, or None for anonymous requests"""
    if credentials is None:
        return None
    return await get_current_user(request, credentials)
