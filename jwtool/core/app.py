"""FastAPI application factory for the jwtool HTTP API."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from jwtool.api.router_keys import router as keys_router
from jwtool.api.router_tokens import router as tokens_router
from jwtool.api.router_vault import router as vault_router
from jwtool.core.logging_setup import configure_logging
from jwtool.core.settings import ToolkitSettings
from jwtool.crypto.errors import TokenError
from jwtool.db.engine import create_tables, dispose_engine

logger = structlog.get_logger(__name__)


async def _token_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Map core errors to 400 with an OAuth-style error body."""
    code = exc.code if isinstance(exc, TokenError) else "token_error"
    logger.info("request_rejected", error=code, reason=str(exc))
    return JSONResponse(
        {"error": code, "error_description": str(exc)},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = ToolkitSettings()
    configure_logging(settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await create_tables()
        logger.info("vault_ready")
        yield
        await dispose_engine()

    app = FastAPI(
        title="jwtool",
        version="0.1.0",
        lifespan=lifespan,
    )

    origins = settings.get_cors_origin_list()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.add_exception_handler(TokenError, _token_error_handler)

    app.include_router(tokens_router)
    app.include_router(keys_router)
    app.include_router(vault_router)

    return app
