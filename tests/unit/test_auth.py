"""Tests for authentication services."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.services.auth.dependencies import AuthenticatedUser, get_current_user
from app.services.auth.jwt_service import JWTService, TokenPair


class TestJWTService:
    """Tests for JWT service."""

    def setup_method(self):
        """Set up test fixtures."""
        self.jwt_service = JWTService(
            secret_key="test-secret-key-for-testing-only",
            access_token_expire_minutes=30,
            refresh_token_expire_days=7,
        )

    def test_create_token_pair(self):
        """Test creating token pair."""
        pair = self.jwt_service.create_token_pair("alice", roles=["employee"])

        assert isinstance(pair, TokenPair)
        assert pair.access_token
        assert pair.refresh_token
        assert pair.token_type == "Bearer"
        assert pair.expires_in == 30 * 60  # 30 minutes in seconds

    def test_verify_access_token(self):
        """Test verifying access token."""
        token = self.jwt_service.create_access_token("alice", roles=["employee"])

        payload = self.jwt_service.verify_access_token(token)

        assert payload is not None
        assert payload.sub == "alice"
        assert payload.type == "access"
        assert payload.roles == ["employee"]
        assert payload.iss == "shiftswap-backend"

    def test_verify_refresh_token(self):
        """Test verifying refresh token."""
        pair = self.jwt_service.create_token_pair("alice")

        payload = self.jwt_service.verify_refresh_token(pair.refresh_token)

        assert payload is not None
        assert payload.sub == "alice"
        assert payload.type == "refresh"
        assert payload.roles == []

    def test_verify_access_token_rejects_refresh_token(self):
        """Test that access token verification rejects refresh tokens."""
        pair = self.jwt_service.create_token_pair("alice")

        assert self.jwt_service.verify_access_token(pair.refresh_token) is None

    def test_verify_refresh_token_rejects_access_token(self):
        """Test that refresh token verification rejects access tokens."""
        token = self.jwt_service.create_access_token("alice")

        assert self.jwt_service.verify_refresh_token(token) is None

    def test_verify_invalid_token(self):
        """Test verifying invalid token returns None."""
        assert self.jwt_service.verify_token("invalid-token") is None

    def test_verify_tampered_token(self):
        """Test verifying tampered token returns None."""
        token = self.jwt_service.create_access_token("alice")

        assert self.jwt_service.verify_token(token + "tampered") is None

    def test_verify_foreign_issuer(self):
        """Test tokens minted for another service are refused."""
        other = JWTService(
            secret_key="test-secret-key-for-testing-only", issuer="rostering"
        )
        token = other.create_access_token("alice")

        assert self.jwt_service.verify_access_token(token) is None

    def test_verify_token_missing_claims(self):
        """Test a correctly signed token without required claims returns None."""
        token = jwt.encode(
            {"sub": "alice", "iss": "shiftswap-backend"},
            "test-secret-key-for-testing-only",
            algorithm="HS256",
        )

        assert self.jwt_service.verify_access_token(token) is None

    def test_token_expiration(self):
        """Test that tokens contain correct expiration time."""
        token = self.jwt_service.create_access_token("alice")
        payload = self.jwt_service.verify_access_token(token)

        assert payload is not None
        # Expiration should be approximately 30 minutes from now
        expected_exp = datetime.now(timezone.utc) + timedelta(minutes=30)
        assert abs((payload.exp - expected_exp).total_seconds()) < 5

    def test_expired_token_rejected(self):
        """Test an expired token no longer verifies."""
        short = JWTService(
            secret_key="test-secret-key-for-testing-only",
            access_token_expire_minutes=1,
        )
        token = short._encode("alice", "access", timedelta(seconds=-10))

        assert short.verify_access_token(token) is None


class TestAuthenticatedUser:
    """Tests for AuthenticatedUser."""

    def test_authenticated_user_creation(self):
        """Test creating authenticated user."""
        user = AuthenticatedUser(user_id="mike", roles=["manager"])

        assert user.user_id == "mike"
        assert user.roles == ["manager"]

    def test_has_role(self):
        """Test has_role checks the claimed roles."""
        user = AuthenticatedUser(user_id="mike", roles=["manager"])

        assert user.has_role("manager") is True
        assert user.has_role("hr") is False

    def test_roles_default_empty(self):
        """Test a token without roles yields no roles."""
        assert AuthenticatedUser(user_id="alice").roles == []


class TestGetCurrentUser:
    """Tests for the bearer token dependency."""

    def setup_method(self):
        """Set up test fixtures."""
        self.jwt_service = JWTService(secret_key="test-secret-key-for-testing-only")

    @pytest.mark.asyncio
    async def test_valid_token(self):
        """Test a valid access token resolves the employee."""
        token = self.jwt_service.create_access_token("bob", roles=["employee"])
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        user = await get_current_user(credentials, self.jwt_service)

        assert user.user_id == "bob"
        assert user.has_role("employee")

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        """Test missing credentials raise 401."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(None, self.jwt_service)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_a_bearer(self):
        """Test a refresh token cannot authenticate requests."""
        pair = self.jwt_service.create_token_pair("bob")
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=pair.refresh_token
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials, self.jwt_service)

        assert exc_info.value.status_code == 401
