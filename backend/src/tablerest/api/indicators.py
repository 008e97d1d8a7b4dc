"""Save an indicator together with its child collections."""

from typing import Any, Callable

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from tablerest.auth.dependencies import require_roles
from tablerest.engine.crud import CrudEngine

PARENT_TABLE = "indicador"


class SaveIndicatorRequest(BaseModel):
    """An indicator row plus the rows of each table that references it."""

    indicador: dict[str, Any]
    variablesporindicador: list[dict[str, Any]] = Field(default_factory=list)
    responsablesporindicador: list[dict[str, Any]] = Field(default_factory=list)
    represenvisualporindicador: list[dict[str, Any]] = Field(default_factory=list)
    resultadoindicador: list[dict[str, Any]] = Field(default_factory=list)

    def children(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "variablesporindicador": self.variablesporindicador,
            "responsablesporindicador": self.responsablesporindicador,
            "represenvisualporindicador": self.represenvisualporindicador,
            "resultadoindicador": self.resultadoindicador,
        }


def create_indicators_router(get_engine: Callable[[], CrudEngine]) -> APIRouter:
    router = APIRouter(prefix="/api/indicador", tags=["indicators"])

    @router.post("", dependencies=[Depends(require_roles("admin"))])
    def save_indicator(request: SaveIndicatorRequest) -> dict[str, Any]:
        """Insert the indicator and every child row in one transaction."""
        new_id = get_engine().create_with_children(
            PARENT_TABLE, request.indicador, request.children()
        )
        return {
            "mensaje": "Indicador y sus relaciones guardados correctamente",
            "idIndicador": new_id,
        }

    return router
