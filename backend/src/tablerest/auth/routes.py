"""Role to front-end route mapping returned at login."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Roles allowed to read entities, run ad-hoc queries and reports
ELEVATED_ROLES = ("admin", "Verificador", "Validador")

_ENTITY_ROUTES = (
    "actor",
    "articulo",
    "frecuencia",
    "fuente",
    "fuentesporindicador",
    "indicador",
    "literal",
    "numeral",
    "paragrafo",
    "represenvisual",
    "represenvisualporindicador",
    "responsablesporindicador",
    "resultadoindicador",
    "seccion",
    "sentido",
    "subseccion",
    "tipoactor",
    "tipoindicador",
    "unidadmedicion",
    "variable",
    "variablesporindicador",
)

# Only admin manages users and their roles
_ADMIN_ROUTES = ("menu", *_ENTITY_ROUTES, "rol", "rol_Usuario", "usuario")


@dataclass(frozen=True)
class RoleRouteTable:
    """Versioned, read-only mapping of role name to route segments.

    Roles absent from the table map to no routes.
    """

    version: int = 1
    routes: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RoleRouteTable:
        """Build a table from ``{"version": n, "roles": {role: [route, ...]}}``.

        Raises:
            ValueError: if ``roles`` is missing or malformed
        """
        roles = data.get("roles")
        if not isinstance(roles, Mapping):
            raise ValueError("Role route configuration needs a 'roles' mapping")

        routes: dict[str, tuple[str, ...]] = {}
        for role, entries in roles.items():
            if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
                raise ValueError(f"Routes for role '{role}' must be a list of strings")
            routes[str(role)] = tuple(entries)
        return cls(version=int(data.get("version", 1)), routes=routes)

    @classmethod
    def from_yaml(cls, path: Path | str) -> RoleRouteTable:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, Mapping):
            raise ValueError(f"{path}: expected a mapping at the top level")
        return cls.from_mapping(data)

    def routes_for(self, roles: Iterable[str]) -> list[str]:
        """Union of the routes of every role, first occurrence order, no duplicates."""
        seen: dict[str, None] = {}
        for role in roles:
            for route in self.routes.get(role, ()):
                seen.setdefault(route, None)
        return list(seen)

    def to_mapping(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "roles": {role: list(entries) for role, entries in self.routes.items()},
        }


DEFAULT_ROLE_ROUTES = RoleRouteTable(
    version=1,
    routes={
        "admin": _ADMIN_ROUTES,
        "Verificador": ("menu", *_ENTITY_ROUTES),
        "Validador": ("menu", *_ENTITY_ROUTES),
        "Administrativo": ("menu", *_ENTITY_ROUTES),
        "invitado": ("menu",),
    },
)
