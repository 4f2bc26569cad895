"""Unit tests for authentication service."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, AsyncMock, patch
import jwt
import bcrypt
from fastapi import HTTPException

from discovery.models.user import User, UserRole
from discovery.services.auth_service import AuthService


USER_ID = "123e4567-e89b-12d3-a456-426614174000"


@pytest.fixture
def auth_service():
    """Create an auth service instance for testing."""
    service = AuthService()
    service.bcrypt_salt_rounds = 4
    return service


@pytest.fixture
def mock_user():
    """Create a mock user for testing."""
    user = Mock(spec=User)
    user.id = USER_ID
    user.email = "reader@example.com"
    user.role = UserRole.USER
    user.hashed_password = bcrypt.hashpw(b"password123", bcrypt.gensalt(rounds=4)).decode('utf-8')
    return user


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password(self, auth_service):
        hashed = auth_service.hash_password("SecurePassword123!")

        assert hashed != "SecurePassword123!"
        assert hashed.startswith("$2b$")
        assert len(hashed) == 60

    def test_verify_password(self, auth_service):
        hashed = auth_service.hash_password("SecurePassword123!")

        assert auth_service.verify_password("SecurePassword123!", hashed) is True
        assert auth_service.verify_password("WrongPassword", hashed) is False

    def test_hash_password_different_salts(self, auth_service):
        """Test that same password generates different hashes."""
        hash1 = auth_service.hash_password("SecurePassword123!")
        hash2 = auth_service.hash_password("SecurePassword123!")

        assert hash1 != hash2


class TestTokenGeneration:
    """Test JWT token generation and validation."""

    def _decode(self, auth_service, token):
        return jwt.decode(token, auth_service.jwt_secret, algorithms=[auth_service.jwt_algorithm])

    def test_create_access_token(self, auth_service):
        """Test access token creation with correct claims."""
        payload = self._decode(auth_service, auth_service.create_access_token(USER_ID, "reader@example.com", "USER"))

        assert payload["sub"] == USER_ID
        assert payload["email"] == "reader@example.com"
        assert payload["role"] == "USER"
        assert payload["type"] == "access"

        # Verify expiration is 15 minutes
        exp_time = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        iat_time = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        assert (exp_time - iat_time).total_seconds() == pytest.approx(900, abs=5)

    def test_create_refresh_token(self, auth_service):
        """Test refresh token creation with correct claims."""
        payload = self._decode(auth_service, auth_service.create_refresh_token(USER_ID))

        assert payload["sub"] == USER_ID
        assert payload["type"] == "refresh"
        assert "jti" in payload

        exp_time = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        iat_time = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        assert (exp_time - iat_time).days == 7

    def test_refresh_tokens_are_unique(self, auth_service):
        assert auth_service.create_refresh_token(USER_ID) != auth_service.create_refresh_token(USER_ID)

    def test_decode_expired_token(self, auth_service):
        past_time = datetime.now(timezone.utc) - timedelta(hours=1)
        expired_token = jwt.encode(
            {"sub": USER_ID, "type": "access", "exp": past_time, "iat": past_time - timedelta(minutes=15)},
            auth_service.jwt_secret,
            algorithm=auth_service.jwt_algorithm
        )

        with pytest.raises(HTTPException) as exc_info:
            auth_service.decode_token(expired_token)

        assert exc_info.value.status_code == 401
        assert "expired" in exc_info.value.detail.lower()

    def test_decode_invalid_token(self, auth_service):
        with pytest.raises(HTTPException) as exc_info:
            auth_service.decode_token("invalid.token.here")

        assert exc_info.value.status_code == 401
        assert "invalid" in exc_info.value.detail.lower()

    def test_validate_access_token_wrong_type(self, auth_service):
        """Test validating a refresh token as access token fails."""
        with pytest.raises(HTTPException) as exc_info:
            auth_service.validate_access_token(auth_service.create_refresh_token(USER_ID))

        assert exc_info.value.detail == "Invalid token type"

    def test_validate_refresh_token(self, auth_service):
        payload = auth_service.validate_refresh_token(auth_service.create_refresh_token(USER_ID))

        assert payload["sub"] == USER_ID
        assert payload["type"] == "refresh"

    def test_validate_refresh_token_wrong_type(self, auth_service):
        access_token = auth_service.create_access_token(USER_ID, "reader@example.com", "USER")

        with pytest.raises(HTTPException) as exc_info:
            auth_service.validate_refresh_token(access_token)

        assert exc_info.value.detail == "Invalid token type"


class TestUserAuthentication:
    """Test user authentication methods."""

    async def test_authenticate_user_success(self, auth_service, mock_user):
        with patch.object(auth_service.user_repository, 'get_by_email', new_callable=AsyncMock) as mock_get:
            mock_get.return_value = mock_user

            result = await auth_service.authenticate_user("reader@example.com", "password123")

            assert result == mock_user
            mock_get.assert_called_once_with("reader@example.com")

    async def test_authenticate_user_not_found(self, auth_service):
        with patch.object(auth_service.user_repository, 'get_by_email', new_callable=AsyncMock) as mock_get:
            mock_get.return_value = None

            assert await auth_service.authenticate_user("nobody@example.com", "password123") is None

    async def test_authenticate_user_wrong_password(self, auth_service, mock_user):
        with patch.object(auth_service.user_repository, 'get_by_email', new_callable=AsyncMock) as mock_get:
            mock_get.return_value = mock_user

            assert await auth_service.authenticate_user("reader@example.com", "wrongpassword") is None

    def test_generate_token_pair(self, auth_service, mock_user):
        """Test generating both access and refresh tokens."""
        access_token, refresh_token = auth_service.generate_token_pair(mock_user)

        access_payload = auth_service.validate_access_token(access_token)
        assert access_payload["sub"] == USER_ID
        assert access_payload["email"] == "reader@example.com"
        assert access_payload["role"] == "USER"

        refresh_payload = auth_service.validate_refresh_token(refresh_token)
        assert refresh_payload["sub"] == USER_ID
