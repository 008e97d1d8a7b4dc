"""FastAPI dependencies for authentication."""

from typing import Callable

from fastapi import HTTPException, Request

from tablerest.auth.types import Principal


def _auth_disabled(request: Request) -> bool:
    return bool(getattr(request.app.state, "auth_disabled", False))


def get_principal(request: Request) -> Principal | None:
    """Dependency to get the caller, or None if unauthenticated.

    The principal is placed on ``request.state`` by the app's bearer-token
    middleware.
    """
    return getattr(request.state, "principal", None)


def require_authenticated(request: Request) -> Principal | None:
    """Dependency that requires a valid access token.

    Returns None only when auth is disabled and no token was sent.

    Raises:
        HTTPException 401 if not authenticated
    """
    principal = get_principal(request)
    if principal is None and not _auth_disabled(request):
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def require_roles(*required_roles: str) -> Callable[[Request], Principal | None]:
    """Create a dependency that requires at least one of ``required_roles``.

    Example:
        @router.delete("/{table}/{key}/{value}")
        def delete(..., _: Principal = Depends(require_roles("admin"))):
            ...
    """

    def dependency(request: Request) -> Principal | None:
        if _auth_disabled(request):
            return get_principal(request)

        principal = require_authenticated(request)
        if not principal.has_any_role(*required_roles):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions. Required roles: {', '.join(required_roles)}",
            )
        return principal

    return dependency
