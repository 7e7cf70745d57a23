"""Authentication services."""

from procura.services.auth.dependencies import (
    AdminUser,
    AuthenticatedUser,
    CurrentUser,
    get_current_user,
    require_admin,
)
from procura.services.auth.jwt_service import JWTService, TokenPayload, get_jwt_service

__all__ = [
    "AdminUser",
    "AuthenticatedUser",
    "CurrentUser",
    "JWTService",
    "TokenPayload",
    "get_current_user",
    "get_jwt_service",
    "require_admin",
]
