"""Authentication API endpoints."""

import logging
from typing import Any, Callable

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from tablerest.auth.jwt_service import JWTService
from tablerest.auth.routes import RoleRouteTable
from tablerest.engine.crud import CrudEngine
from tablerest.errors import RecordNotFound

logger = logging.getLogger(__name__)

USER_TABLE = "usuario"
USER_FIELD = "email"

# Role names of a user, through the rol_usuario link table
_ROLES_SQL = (
    "SELECT rol.nombre FROM usuario"
    " INNER JOIN rol_usuario ON usuario.email = rol_usuario.fkemail"
    " INNER JOIN rol ON rol_usuario.fkidrol = rol.id"
    " WHERE usuario.email = @email"
)


class LoginRequest(BaseModel):
    """Request body for login."""

    email: str
    contrasena: str | None = None


class LoginResponse(BaseModel):
    """Response body for login."""

    email: str
    roles: list[str]
    rutas: list[str]
    token: str


def fetch_roles(engine: CrudEngine, email: str) -> list[str]:
    """Role names granted to ``email``, empty if none."""
    try:
        rows = engine.run_query(_ROLES_SQL, {"email": email})
    except RecordNotFound:
        return []
    return [str(row["nombre"]) for row in rows if row.get("nombre") is not None]


def create_auth_router(
    get_jwt_service: Callable[[], JWTService],
    get_engine: Callable[[], CrudEngine],
    get_role_routes: Callable[[], RoleRouteTable],
) -> APIRouter:
    """Create the auth router with injected dependencies.

    Args:
        get_jwt_service: Function returning the JWT service
        get_engine: Function returning the CRUD engine
        get_role_routes: Function returning the role route table

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/login", response_model=LoginResponse)
    def login(request: LoginRequest) -> LoginResponse:
        """Authenticate a user and return their roles, routes and a token.

        Raises:
            HTTPException 401 if the user is unknown or the password is wrong
        """
        engine = get_engine()
        schema, _ = engine.describe(USER_TABLE)
        password_field = engine.credentials.find_credential_field(schema.column_names)

        try:
            engine.get_by_key(USER_TABLE, USER_FIELD, request.email)
            if password_field is None:
                valid = True
            elif not request.contrasena:
                valid = False
            else:
                valid = engine.verify_credential(
                    USER_TABLE,
                    USER_FIELD,
                    password_field,
                    request.email,
                    request.contrasena,
                )
        except RecordNotFound:
            valid = False

        if not valid:
            logger.info("Rejected login for %s", request.email)
            raise HTTPException(401, "Invalid email or password")

        roles = fetch_roles(engine, request.email)
        routes = get_role_routes().routes_for(roles)
        token = get_jwt_service().generate_token(request.email, roles)
        return LoginResponse(email=request.email, roles=roles, rutas=routes, token=token)

    @router.get("/obtener-roles")
    def get_roles(email: str) -> dict[str, Any]:
        roles = fetch_roles(get_engine(), email)
        if not roles:
            raise HTTPException(404, "No roles were found for the user.")
        return {"roles": roles}

    return router
