"""
Authentication API endpoints
"""
import logging
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.exc import IntegrityError

from discovery.core.auth import get_current_user
from discovery.models.user import User, UserRole
from discovery.schemas.auth import (
    UserRegisterRequest,
    UserLoginRequest,
    AuthResponse,
    TokenResponse,
    RefreshTokenRequest,
    UserResponse
)
from discovery.services.auth_service import AuthService
from discovery.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()
auth_service = AuthService()
user_repository = UserRepository()


def _auth_response(user: User) -> AuthResponse:
    access_token, refresh_token = auth_service.generate_token_pair(user)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=auth_service.access_token_expire_minutes * 60
        )
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserRegisterRequest, response: Response):
    """
    User registration endpoint with email/password validation.

    Args:
        user_data: User registration data

    Returns:
        User data and authentication tokens

    Raises:
        HTTPException: If email already exists or validation fails
    """
    try:
        existing_user = await user_repository.get_by_email(user_data.email)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

        new_user = User(
            email=user_data.email.lower(),
            hashed_password=auth_service.hash_password(user_data.password),
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            home_library=user_data.home_library,
            role=UserRole.USER
        )
        created_user = await user_repository.create(new_user)
        logger.info(f"Registered user {created_user.id}")

        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        return _auth_response(created_user)

    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during registration: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed due to server error"
        )


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLoginRequest):
    """
    User login endpoint with JWT token generation.

    Raises:
        HTTPException: If credentials are invalid
    """
    user = await auth_service.authenticate_user(credentials.email, credentials.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled"
        )

    await user_repository.update_last_login(user.id)
    return _auth_response(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(refresh_data: RefreshTokenRequest):
    """Exchange a refresh token for a new token pair"""
    payload = auth_service.validate_refresh_token(refresh_data.refresh_token)

    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )

    user = await user_repository.get_by_id(user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    return _auth_response(user).tokens


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Profile of the authenticated user"""
    return UserResponse.model_validate(current_user)
