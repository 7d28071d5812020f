"""
FastAPI application factory.

All routes live under /api. Errors are returned as {"error": message}
so the browser client can show them as-is.

On startup the JSON store is created if missing, and an admin account
is seeded when the store has no users yet.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from spendwise import __version__
from spendwise.api.routes import admin, auth, intel, transactions
from spendwise.audit import configure_logging
from spendwise.orchestrator import AppComponents, create_app_components
from spendwise.services.auth import TokenService, hash_password
from spendwise.services.storage import StorageError


logger = structlog.get_logger(__name__)


def describe_validation_errors(errors) -> str:
    """Flatten request validation errors into one line, e.g. "item: Field required"."""
    parts = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        parts.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return "; ".join(parts) or "Invalid request"


def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        components: Pre-wired components; defaults to those built from
                    the environment settings
    """
    components = components or create_app_components()
    app_settings = components.settings.app
    configure_logging(app_settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await components.storage.initialize()
        admin_user = await components.storage.ensure_default_admin(
            app_settings.default_admin_username,
            await run_in_threadpool(hash_password, app_settings.default_admin_password),
        )
        if admin_user is not None:
            logger.info("default_admin_initialized", username=admin_user.username)
        logger.info(
            "server_started",
            engine="Spend Wise Secure",
            version=__version__,
            providers=components.chain.status(),
        )
        yield

    app = FastAPI(
        title="Spend Wise API",
        version=__version__,
        debug=app_settings.debug_mode,
        lifespan=lifespan,
    )
    app.state.components = components
    app.state.token_service = TokenService(components.settings.jwt)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": describe_validation_errors(exc.errors())},
        )

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )

    for router in (
        auth.router,
        admin.router,
        transactions.router,
        intel.assistant_router,
        intel.router,
    ):
        app.include_router(router, prefix="/api")

    return app
