"""Authentication service for user authentication and token management."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
import jwt
from fastapi import HTTPException, status

from discovery.core.config import settings
from discovery.models.user import User
from discovery.repositories.user_repository import UserRepository


class AuthService:
    """Service for handling authentication operations."""

    def __init__(self):
        self.user_repository = UserRepository()
        self.jwt_secret = settings.JWT_SECRET_KEY
        self.jwt_algorithm = settings.JWT_ALGORITHM
        self.access_token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.refresh_token_expire_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
        self.bcrypt_salt_rounds = 12

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt with configured salt rounds.

        Args:
            password: Plain text password to hash

        Returns:
            Hashed password string
        """
        salt = bcrypt.gensalt(rounds=self.bcrypt_salt_rounds)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a plain password against a bcrypt hash."""
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )

    def create_access_token(self, user_id: str, email: str, role: str) -> str:
        """
        Create a short-lived JWT access token.

        Args:
            user_id: User's unique identifier
            email: User's email address
            role: User's role (USER, ADMIN)

        Returns:
            JWT access token string
        """
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.access_token_expire_minutes)

        payload = {
            "sub": user_id,
            "email": email,
            "role": role,
            "type": "access",
            "exp": expires_at,
            "iat": datetime.now(timezone.utc)
        }

        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def create_refresh_token(self, user_id: str) -> str:
        """Create a JWT refresh token carrying a unique jti."""
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.refresh_token_expire_days)

        payload = {
            "sub": user_id,
            "type": "refresh",
            "exp": expires_at,
            "iat": datetime.now(timezone.utc),
            "jti": secrets.token_urlsafe(32)
        }

        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def decode_token(self, token: str) -> dict:
        """
        Decode and validate a JWT token.

        Raises:
            HTTPException: If token is invalid or expired
        """
        try:
            return jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm]
            )
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired"
            )
        except jwt.InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token: {str(e)}"
            )

    def _validate_token_type(self, token: str, token_type: str) -> dict:
        payload = self.decode_token(token)

        if payload.get("type") != token_type:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token type"
            )

        return payload

    def validate_access_token(self, token: str) -> dict:
        return self._validate_token_type(token, "access")

    def validate_refresh_token(self, token: str) -> dict:
        return self._validate_token_type(token, "refresh")

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user with email and password.

        Returns:
            User object if authentication successful, None otherwise
        """
        user = await self.user_repository.get_by_email(email)

        if not user:
            return None

        if not self.verify_password(password, user.hashed_password):
            return None

        return user

    def generate_token_pair(self, user: User) -> Tuple[str, str]:
        """
        Generate both access and refresh tokens for a user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        role = user.role.value if hasattr(user.role, "value") else str(user.role)
        access_token = self.create_access_token(
            user_id=str(user.id),
            email=user.email,
            role=role
        )
        refresh_token = self.create_refresh_token(user_id=str(user.id))

        return access_token, refresh_token
