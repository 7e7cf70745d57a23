"""Authentication dependencies for FastAPI."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from procura.services.approval.schemas import SignatureActor
from procura.services.auth.jwt_service import JWTService, get_jwt_service

logger = logging.getLogger(__name__)

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser:
    """Represents an authenticated employee."""

    def __init__(
        self,
        user_id: int,
        roles: list[str] | None = None,
        permissions: list[str] | None = None,
    ):
        """Initialize authenticated user.

        Args:
            user_id: Employee ID (subject from token)
            roles: User roles
            permissions: Permission tokens
        """
        self.user_id = user_id
        self.roles = roles or []
        self.permissions = permissions or []

    @property
    def is_admin(self) -> bool:
        """Check if user is admin."""
        return "admin" in self.roles

    def to_actor(self) -> SignatureActor:
        """Identity used by the signature workflow."""
        return SignatureActor(user_id=self.user_id, permissions=frozenset(self.permissions))


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
) -> AuthenticatedUser:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException: If token is missing or invalid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = jwt_service.verify_access_token(credentials.credentials)
    if not payload or not payload.sub.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(
        user_id=int(payload.sub),
        roles=payload.roles,
        permissions=payload.permissions,
    )


async def require_admin(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
) -> AuthenticatedUser:
    """Dependency requiring admin role.

    Raises:
        HTTPException: If user is not admin
    """
    if not user.is_admin:
        logger.warning(f"User {user.user_id} denied admin access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


# Type aliases for dependency injection
CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]
