"""Authentication: access tokens, role checks and role routes."""

from tablerest.auth.types import Principal, TokenClaims
from tablerest.auth.jwt_service import JWTService, JWTError
from tablerest.auth.routes import DEFAULT_ROLE_ROUTES, ELEVATED_ROLES, RoleRouteTable
from tablerest.auth.dependencies import (
    get_principal,
    require_authenticated,
    require_roles,
)

__all__ = [
    "Principal",
    "TokenClaims",
    "JWTService",
    "JWTError",
    "DEFAULT_ROLE_ROUTES",
    "ELEVATED_ROLES",
    "RoleRouteTable",
    "get_principal",
    "require_authenticated",
    "require_roles",
]
