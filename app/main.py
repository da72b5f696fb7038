"""
app/main.py

FastAPI application entrypoint.
- `create_app()` resolves configuration, validates it and wires the chat service.
- Registers all routers (health, config, initialize, chat) under /api.
- Translates domain errors into JSON error responses.
- Optionally auto-initializes the RAG system in the background at startup.

Run with: uvicorn app.main:create_app --factory --port 5000   (or `python -m app.main`)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from app.config import ConfigResolver
from app.errors import KarlChatError
from app.factory import build_service
from app.routers import chat, config, health, system
from app.schemas import ErrorResponse
from app.services.chat import RagService

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


async def karl_chat_error_handler(request: Request, exc: KarlChatError) -> JSONResponse:
    logger.warning("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return _error_response(
        exc.status_code,
        ErrorResponse(error=exc.message, needs_initialization=exc.needs_initialization or None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s -> 400 %s", request.method, request.url.path, exc.errors())
    return _error_response(400, ErrorResponse(error="Invalid request body"))


async def _auto_initialize(service: RagService) -> None:
    logger.info("Auto-initializing RAG system")
    try:
        await asyncio.to_thread(service.initialize)
    except Exception as exc:
        logger.warning(
            "Auto-initialization failed (%s). Use /api/initialize endpoint or check configuration.", exc
        )


def create_app(
    resolver: Optional[ConfigResolver] = None,
    service: Optional[RagService] = None,
    auto_initialize: Optional[bool] = None,
) -> FastAPI:
    resolver = resolver or ConfigResolver()
    resolver.validate()
    settings = resolver.settings()
    configure_logging(settings.log_level)

    service = service or build_service(settings)
    if auto_initialize is None:
        auto_initialize = settings.auto_initialize

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_task = asyncio.create_task(_auto_initialize(service)) if auto_initialize else None
        yield
        if init_task is not None and not init_task.done():
            logger.info("Waiting for background initialization before shutdown")
            await init_task
        logger.info("Shutting down backend server")
        service.close()

    app = FastAPI(
        title="Karl Chat API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.resolver = resolver
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(KarlChatError, karl_chat_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Root: be nice during dev instead of 404ing
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")

    app.include_router(health.router, prefix="/api")
    app.include_router(config.router, prefix="/api")
    app.include_router(system.router, prefix="/api")
    app.include_router(chat.router, prefix="/api")

    logger.info(
        "Karl Chat backend configured: Ollama %s model %s, Neo4j %s, frontend origin %s",
        settings.ollama_base_url,
        settings.default_model,
        health.hide_credentials(settings.neo4j_uri),
        settings.cors_origin,
    )
    return app


def main() -> None:
    import uvicorn

    resolver = ConfigResolver()
    port = resolver.settings().server_port
    uvicorn.run(create_app(resolver), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
