"""FastAPI application."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tablerest.api.entities import create_entities_router
from tablerest.api.indicators import create_indicators_router
from tablerest.auth import (
    DEFAULT_ROLE_ROUTES,
    JWTError,
    JWTService,
    Principal,
    RoleRouteTable,
)
from tablerest.auth.endpoints import create_auth_router
from tablerest.engine import CredentialFieldPolicy, CrudEngine
from tablerest.engine.values import decode_json
from tablerest.errors import TableRestError, ValidationError
from tablerest.persistence import create_adapter
from tablerest.settings import Settings

logger = logging.getLogger(__name__)

# Global instances (initialized on startup, read-only afterwards)
settings: Settings | None = None
engine: CrudEngine | None = None
jwt_service: JWTService | None = None
role_routes: RoleRouteTable = DEFAULT_ROLE_ROUTES


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    global settings, engine, jwt_service, role_routes

    settings = Settings.from_env()
    configure_logging(settings.log_level)

    # Ensure parent directory exists for SQLite databases
    if settings.database.is_sqlite:
        sqlite_path = settings.database.sqlite_path
        if sqlite_path != ":memory:":
            Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    # No connection is opened here: every request opens its own
    adapter = create_adapter(settings.database)
    engine = CrudEngine(adapter, CredentialFieldPolicy(rounds=settings.bcrypt_rounds))

    jwt_service = JWTService(
        settings.secret_key,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        ttl=settings.token_ttl,
    )

    if settings.role_routes_path:
        role_routes = RoleRouteTable.from_yaml(settings.role_routes_path)
        logger.info(
            "Loaded role routes v%d from %s", role_routes.version, settings.role_routes_path
        )
    else:
        role_routes = DEFAULT_ROLE_ROUTES

    app.state.auth_disabled = settings.disable_auth
    if settings.disable_auth:
        logger.warning("Role checks are disabled (TABLEREST_DISABLE_AUTH)")

    logger.info("tablerest API ready (%s)", settings.database.redacted)
    yield

    engine = None
    jwt_service = None


app = FastAPI(title="tablerest API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Auth Middleware (uses global jwt_service) ---


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    """Extract the bearer token and set ``request.state.principal``."""
    request.state.principal = None

    if not jwt_service:
        return await call_next(request)

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[7:]
        try:
            claims = jwt_service.decode_token(token)
            request.state.principal = Principal.from_claims(claims)
        except JWTError as e:
            # Invalid token: the request continues unauthenticated
            logger.debug("Ignoring bearer token: %s", e)

    return await call_next(request)


@app.exception_handler(TableRestError)
async def table_rest_error_handler(request: Request, exc: TableRestError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Unparseable JSON bodies are client errors (400), not schema errors (422)."""
    if isinstance(exc.body, (str, bytes)) and any(
        error.get("type") == "json_invalid" for error in exc.errors()
    ):
        try:
            decode_json(exc.body)
        except ValidationError as e:
            return await table_rest_error_handler(request, e)
    return await request_validation_exception_handler(request, exc)


# Helper functions for dependency injection in routers
def _get_engine() -> CrudEngine:
    if engine is None:
        raise TableRestError("Service not initialized")
    return engine


def _get_jwt_service() -> JWTService:
    if jwt_service is None:
        raise TableRestError("Service not initialized")
    return jwt_service


def _get_role_routes() -> RoleRouteTable:
    return role_routes


@app.get("/")
async def health() -> str:
    return "La API está en funcionamiento"


app.include_router(
    create_auth_router(
        get_jwt_service=_get_jwt_service,
        get_engine=_get_engine,
        get_role_routes=_get_role_routes,
    )
)
app.include_router(create_indicators_router(_get_engine))
# Registered last: its path parameters would shadow the fixed routes above
app.include_router(create_entities_router(_get_engine))
