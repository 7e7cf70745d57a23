"""Tests for authentication services."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from procura.services.auth.dependencies import (
    AuthenticatedUser,
    get_current_user,
    require_admin,
)
from procura.services.auth.jwt_service import JWTService

SECRET = "test-secret-key-for-testing-only"


class TestJWTService:
    """Tests for JWT service."""

    def setup_method(self):
        """Set up test fixtures."""
        self.jwt_service = JWTService(secret_key=SECRET, access_token_expire_minutes=30)

    def test_create_and_verify_access_token(self):
        """Test a created token verifies with its claims."""
        token = self.jwt_service.create_access_token(
            42,
            roles=["admin"],
            permissions=["requirement-signed-gerencia"],
        )

        payload = self.jwt_service.verify_access_token(token)

        assert payload is not None
        assert payload.sub == "42"
        assert payload.type == "access"
        assert payload.roles == ["admin"]
        assert payload.permissions == ["requirement-signed-gerencia"]

    def test_wrong_secret(self):
        """Test tokens signed with another key are refused."""
        token = JWTService(secret_key="other-secret").create_access_token(1)

        assert self.jwt_service.verify_access_token(token) is None

    def test_expired_token(self):
        """Test expired tokens are refused."""
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "1", "exp": past + timedelta(minutes=5), "iat": past, "type": "access"},
            SECRET,
            algorithm="HS256",
        )

        assert self.jwt_service.verify_access_token(token) is None

    def test_non_access_token(self):
        """Test tokens of another type are refused."""
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "exp": now + timedelta(minutes=5), "iat": now, "type": "refresh"},
            SECRET,
            algorithm="HS256",
        )

        assert self.jwt_service.verify_access_token(token) is None


class TestAuthDependencies:
    """Tests for FastAPI auth dependencies."""

    def setup_method(self):
        """Set up test fixtures."""
        self.jwt_service = JWTService(secret_key=SECRET)

    def credentials(self, token: str) -> HTTPAuthorizationCredentials:
        return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

    @pytest.mark.asyncio
    async def test_current_user(self):
        """Test the token subject becomes an integer employee ID."""
        token = self.jwt_service.create_access_token(
            7, permissions=["quotation-signed-administracion"]
        )

        user = await get_current_user(self.credentials(token), self.jwt_service)

        assert user.user_id == 7
        assert user.permissions == ["quotation-signed-administracion"]

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        """Test a missing token is 401."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(None, self.jwt_service)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_non_numeric_subject(self):
        """Test subjects that are not employee IDs are 401."""
        token = self.jwt_service.create_access_token(1, extra_claims={"sub": "0xabc"})

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(self.credentials(token), self.jwt_service)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_require_admin(self):
        """Test the admin role gate."""
        admin = AuthenticatedUser(1, roles=["admin"])
        clerk = AuthenticatedUser(2, roles=["logistics"])

        assert await require_admin(admin) is admin
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(clerk)
        assert exc_info.value.status_code == 403

    def test_to_actor(self):
        """Test conversion to the workflow actor."""
        user = AuthenticatedUser(5, permissions=["requirement-signed-gerencia"])

        actor = user.to_actor()

        assert actor.user_id == 5
        assert actor.permissions == frozenset({"requirement-signed-gerencia"})
