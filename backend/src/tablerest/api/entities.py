"""Generic entity endpoints under /api/{project}/{table}.

``project`` is accepted for route compatibility and otherwise ignored: every
project maps to the one configured database.
"""

from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import APIRouter, Body, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from tablerest.auth.dependencies import require_authenticated, require_roles
from tablerest.auth.routes import ELEVATED_ROLES
from tablerest.auth.types import Principal
from tablerest.engine.crud import CrudEngine
from tablerest.errors import ValidationError

_VERIFY_FIELDS = ("campoUsuario", "campoContrasena", "valorUsuario", "valorContrasena")


def create_entities_router(get_engine: Callable[[], CrudEngine]) -> APIRouter:
    """Create the generic entity router.

    Args:
        get_engine: Function returning the CRUD engine

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/api/{project}/{table}", tags=["entities"])

    elevated = Depends(require_roles(*ELEVATED_ROLES))

    # --- Fixed-path routes first, so they never match as key lookups ---

    @router.get("/validar")
    def validate_token(
        project: str,
        table: str,
        principal: Principal | None = Depends(require_authenticated),
    ) -> dict[str, Any]:
        """Report whether the caller's token is valid and when it expires."""
        if principal is None or not principal.expires_at:
            return {"mensaje": "Token válido, sin información de expiración"}
        expires = datetime.fromtimestamp(principal.expires_at, tz=timezone.utc)
        return {
            "mensaje": "Token válido",
            "usuario": principal.subject,
            "expiraEn": expires.isoformat(),
        }

    @router.get("/consulta/{report}", dependencies=[elevated])
    def run_report(project: str, table: str, report: str) -> Any:
        return jsonable_encoder(get_engine().run_report(report))

    @router.post("/verificar-contrasena")
    def verify_password(project: str, table: str, body: Any = Body(None)) -> Any:
        """Check a plaintext password against the stored bcrypt hash.

        Anonymous. Returns ``true`` (200) on a match and ``false`` (401) otherwise.
        """
        if not isinstance(body, dict) or any(
            not isinstance(body.get(k), str) or not body.get(k) for k in _VERIFY_FIELDS
        ):
            raise ValidationError(
                "The table name, user field, password field, user value and "
                "password value cannot be empty."
            )
        valid = get_engine().verify_credential(
            table,
            body["campoUsuario"],
            body["campoContrasena"],
            body["valorUsuario"],
            body["valorContrasena"],
        )
        if not valid:
            return JSONResponse(status_code=401, content=False)
        return True

    @router.post("/ejecutar-consulta-parametrizada", dependencies=[elevated])
    def run_parametrized_query(project: str, table: str, body: Any = Body(None)) -> Any:
        if not isinstance(body, dict) or not isinstance(body.get("consulta"), str):
            raise ValidationError("A valid SQL query must be provided in the request body.")
        records = get_engine().run_query(body["consulta"], body.get("parametros"))
        return jsonable_encoder(records)

    @router.post("/ejecutar-procedimiento/{name}", dependencies=[elevated])
    def run_procedure(
        project: str, table: str, name: str, body: Any = Body(None)
    ) -> dict[str, Any]:
        affected = get_engine().run_procedure(name, body)
        return {
            "mensaje": "Procedimiento almacenado ejecutado exitosamente.",
            "filasAfectadas": affected,
        }

    # --- CRUD ---

    @router.get("", dependencies=[elevated])
    def list_rows(project: str, table: str) -> Any:
        return jsonable_encoder(get_engine().list_rows(table))

    @router.get("/{key_column}/{value}", dependencies=[elevated])
    def get_by_key(project: str, table: str, key_column: str, value: str) -> Any:
        return jsonable_encoder(get_engine().get_by_key(table, key_column, value))

    @router.post("", dependencies=[Depends(require_roles("admin"))])
    def create(project: str, table: str, body: Any = Body(None)) -> dict[str, Any]:
        new_id = get_engine().create(table, body)
        return jsonable_encoder({"mensaje": "Entidad creada exitosamente.", "id": new_id})

    @router.put(
        "/{key_column}/{value}",
        dependencies=[Depends(require_roles("admin", "Validador"))],
    )
    def update(
        project: str, table: str, key_column: str, value: str, body: Any = Body(None)
    ) -> dict[str, Any]:
        affected = get_engine().update(table, key_column, value, body)
        return {"mensaje": "Entidad actualizada exitosamente.", "filasAfectadas": affected}

    @router.delete("/{key_column}/{value}", dependencies=[Depends(require_roles("admin"))])
    def delete(project: str, table: str, key_column: str, value: str) -> dict[str, Any]:
        affected = get_engine().delete(table, key_column, value)
        return {"mensaje": "Entidad eliminada exitosamente.", "filasAfectadas": affected}

    return router
